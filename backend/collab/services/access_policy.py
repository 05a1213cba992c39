"""Access Policy — loads the state the pure access rules need and answers yes/no.

Invariants:
    - Read-only: never writes, never commits
    - has_project_edit_access: membership role is owner or manager
    - is_project_member: any membership row exists
    - can_edit_hierarchy: self, hierarchy root, HierarchyAdmin label, or direct manager
    - can_edit_role_label: hierarchy root or HierarchyAdmin label, never self alone
    - require_* raise ResourceNotFoundError for a missing project/target and
      ForbiddenError when the decision is no

Design Decisions:
    - Thin shell over core/enforce_access.py: decisions stay pure and unit-tested
      without a database; this class only does the lookups
    - An unknown requester is treated as unauthorized (Forbidden), an unknown
      target as NotFound
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from collab.core import enforce_access
from collab.core.errors import ForbiddenError
from collab.models import Project, Stage, Task, User
from collab.services.lookups import (
    get_project_or_404,
    get_role,
    get_stage_or_404,
    get_task_or_404,
    get_user_or_404,
    project_id_of_task,
)

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Authorization decisions for project and hierarchy mutations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_project_edit_access(self, user_id: UUID, project_id: UUID) -> bool:
        role = await get_role(self.db, project_id, user_id)
        return enforce_access.role_grants_edit(role)

    async def is_project_member(self, user_id: UUID, project_id: UUID) -> bool:
        role = await get_role(self.db, project_id, user_id)
        return enforce_access.role_grants_membership(role)

    async def can_edit_hierarchy(self, requester_id: UUID, target_id: UUID) -> bool:
        target = await get_user_or_404(self.db, target_id)
        requester = await self.db.get(User, requester_id)
        if requester is None:
            return False
        return enforce_access.can_edit_hierarchy(requester, target)

    async def can_edit_role_label(self, requester_id: UUID) -> bool:
        requester = await self.db.get(User, requester_id)
        if requester is None:
            return False
        return enforce_access.can_edit_role_label(requester)

    # ─── Guards used by route handlers ───────────────────────────

    async def require_project_edit_access(
        self, user_id: UUID, project_id: UUID,
    ) -> Project:
        project = await get_project_or_404(self.db, project_id)
        if not await self.has_project_edit_access(user_id, project_id):
            self._deny("project edit", user_id, project_id)
        return project

    async def require_project_member(self, user_id: UUID, project_id: UUID) -> Project:
        project = await get_project_or_404(self.db, project_id)
        if not await self.is_project_member(user_id, project_id):
            self._deny("project read", user_id, project_id)
        return project

    async def require_stage_edit_access(self, user_id: UUID, stage_id: UUID) -> Stage:
        stage = await get_stage_or_404(self.db, stage_id)
        if not await self.has_project_edit_access(user_id, stage.project_id):
            self._deny("stage edit", user_id, stage.project_id)
        return stage

    async def require_task_edit_access(self, user_id: UUID, task_id: UUID) -> Task:
        task = await get_task_or_404(self.db, task_id)
        project_id = await project_id_of_task(self.db, task_id)
        if not await self.has_project_edit_access(user_id, project_id):
            self._deny("task edit", user_id, project_id)
        return task

    async def require_task_member(self, user_id: UUID, task_id: UUID) -> Task:
        task = await get_task_or_404(self.db, task_id)
        project_id = await project_id_of_task(self.db, task_id)
        if not await self.is_project_member(user_id, project_id):
            self._deny("task read", user_id, project_id)
        return task

    async def require_hierarchy_edit(self, requester_id: UUID, target_id: UUID) -> User:
        if not await self.can_edit_hierarchy(requester_id, target_id):
            logger.info(
                "Denied hierarchy edit",
                extra={"requester_id": requester_id, "user_id": target_id},
            )
            raise ForbiddenError("requester may not edit this user's hierarchy")
        return await get_user_or_404(self.db, target_id)

    async def require_role_label_edit(self, requester_id: UUID, target_id: UUID) -> User:
        target = await get_user_or_404(self.db, target_id)
        if not await self.can_edit_role_label(requester_id):
            logger.info(
                "Denied role label edit",
                extra={"requester_id": requester_id, "user_id": target_id},
            )
            raise ForbiddenError("requester may not change role labels")
        return target

    def _deny(self, action: str, user_id: UUID, project_id: UUID) -> None:
        logger.info(
            f"Denied {action}",
            extra={"requester_id": user_id, "project_id": project_id},
        )
        raise ForbiddenError(f"{action} requires project access")
