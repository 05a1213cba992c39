"""User ORM — platform identity plus its single edge in the management hierarchy.

Invariants:
    - manager_id is a nullable self-reference; NULL means hierarchy root
    - manager_id is written only by HierarchyGraph.assign_manager
    - role is a free-text label; only HierarchyAdmin matches carry meaning

Design Decisions:
    - ON DELETE SET NULL on manager_id: removing a manager detaches reports
      instead of deleting them
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from collab.db.base import Base


class User(Base):
    """Platform user and hierarchy node."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True,
    )
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    role: Mapped[str | None] = mapped_column(String(120), nullable=True)
    manager_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
