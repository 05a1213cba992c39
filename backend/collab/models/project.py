"""Project ORM — versioned aggregate root for memberships, stages and tasks.

Invariants:
    - owner_id is set at creation and never changes
    - updated_at is the version token; written only by ConcurrencyGuard
      (and at creation)
    - MUTABLE_FIELDS lists everything a patch may touch

Design Decisions:
    - cascade delete for members and stages: deleting a project removes
      its whole subtree in one statement
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from collab.db.base import Base


class Project(Base):
    """Project aggregate root."""
    __tablename__ = "projects"

    MUTABLE_FIELDS = ("title", "description", "status", "deadline")

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="planned",
    )
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    members: Mapped[list["ProjectMember"]] = relationship(
        "ProjectMember", back_populates="project",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    stages: Mapped[list["Stage"]] = relationship(
        "Stage", back_populates="project",
        cascade="all, delete-orphan", passive_deletes=True,
    )
