"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, ProjectId, StageId, TaskId wrap UUIDs; never use bare UUID in domain logic
    - ProjectRole is the closed set {owner, manager, member}; unknown strings are
      rejected at the boundary by ProjectRole.parse, never deep inside invariant logic
    - HierarchyAdmin labels are a fixed constant, not configuration

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to the DB role column without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID

from collab.core.errors import InvalidInputError


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
ProjectId = NewType("ProjectId", UUID)
StageId = NewType("StageId", UUID)
TaskId = NewType("TaskId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class ProjectRole(str, Enum):
    """Per-project role held by a user, maps to project_members.role."""
    OWNER = "owner"
    MANAGER = "manager"
    MEMBER = "member"

    @classmethod
    def parse(cls, raw: str | None) -> "ProjectRole":
        """Boundary parser: trims, lower-cases, rejects unknown values."""
        value = (raw or "").strip().lower()
        if not value:
            raise InvalidInputError("role is required", field="role")
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(f"invalid role '{raw}'", field="role")

    @property
    def grants_edit(self) -> bool:
        return self in (ProjectRole.OWNER, ProjectRole.MANAGER)


class HierarchyAdmin(str, Enum):
    """Role labels that grant hierarchy-edit rights across the whole org chart."""
    CEO = "ceo"
    HR = "hr"
    HR_MANAGER = "hr manager"
    HR_MANAGER_SNAKE = "hr_manager"
    HUMAN_RESOURCES = "human resources"

    @classmethod
    def matches(cls, label: str | None) -> bool:
        if label is None:
            return False
        return label.strip().lower() in _HIERARCHY_ADMIN_LABELS


_HIERARCHY_ADMIN_LABELS = frozenset(item.value for item in HierarchyAdmin)


class ProjectStatus(str, Enum):
    """Project lifecycle states, maps to projects.status."""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    """Task board columns, maps to tasks.status."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


# Full role assignment of one project, owner included.
RoleMap = dict[UserId, ProjectRole]
