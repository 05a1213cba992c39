"""Task ORM — versioned work item inside a stage.

Invariants:
    - Belongs to a project transitively via stage_id
    - updated_at is the task's own version token, independent of the project's
    - MUTABLE_FIELDS lists everything a patch may touch

Design Decisions:
    - stage_id is mutable: moving a task between stages of the same project
      is an ordinary versioned update
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from collab.db.base import Base


class Task(Base):
    """Task work item."""
    __tablename__ = "tasks"

    MUTABLE_FIELDS = (
        "title", "description", "status", "deadline", "order_index", "stage_id",
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    stage_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("project_stages.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="todo",
    )
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    order_index: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
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

    stage: Mapped["Stage"] = relationship("Stage", back_populates="tasks")
