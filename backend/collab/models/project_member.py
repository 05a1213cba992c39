"""ProjectMember ORM — one role per (project, user).

Invariants:
    - Composite primary key (project_id, user_id): a user holds one role per project
    - role is constrained to owner | manager | member
    - Partial unique indexes: at most one owner row and one manager row per project

Design Decisions:
    - Invariants duplicated as DB constraints: MembershipStore enforces them in
      Python, the indexes catch whatever a concurrent writer slips past
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, DateTime, ForeignKey, CheckConstraint, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from collab.db.base import Base


class ProjectMember(Base):
    """Role assignment of a user on a project."""
    __tablename__ = "project_members"
    __table_args__ = (
        CheckConstraint(
            "role IN ('owner', 'manager', 'member')",
            name="project_members_role_check",
        ),
        Index(
            "ux_project_members_single_manager", "project_id", unique=True,
            postgresql_where=text("role = 'manager'"),
            sqlite_where=text("role = 'manager'"),
        ),
        Index(
            "ux_project_members_single_owner", "project_id", unique=True,
            postgresql_where=text("role = 'owner'"),
            sqlite_where=text("role = 'owner'"),
        ),
        Index("idx_project_members_user", "user_id"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    project: Mapped["Project"] = relationship(
        "Project", back_populates="members",
    )
