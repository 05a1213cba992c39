"""Membership Store — per-project role assignments and their uniqueness invariants.

Invariants:
    - create_project is the only path that writes an owner row; no operation
      here ever re-roles or removes it
    - After any committed operation a project has at most one manager row
    - Each mutating operation is one transaction: lock project row, read the
      full RoleMap, plan the target state in core/, write the diff, commit
    - Any rejection rolls back fully; callers observe either the old or the
      new RoleMap, never a mix
    - Mutations return a RoleChange: the RoleMap read under the lock and the
      committed one, so notification targets never come from an unlocked read

Design Decisions:
    - Project row locked FOR UPDATE before reading roles: concurrent role
      changes on one project are serialized, so the prior-manager read in
      update_roles cannot go stale (last committed desired state wins whole)
    - Partial unique indexes stay as the backstop; a violation surfaces as
      VersionConflictError through atomic()
    - Diff applied with explicit statements in plan order, not ORM unit of
      work, so a demotion always lands before the promotion that follows it
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from collab.core.domain_types import ProjectRole, ProjectStatus, RoleMap, UserId
from collab.core.enforce_roles import (
    RoleChange,
    check_requester_can_edit,
    diff_roles,
    plan_delegation,
    plan_member_removal,
    plan_member_upsert,
    plan_role_update,
)
from collab.core.errors import InvalidInputError
from collab.infrastructure.database import atomic
from collab.models import Project, ProjectMember, Stage, Task
from collab.services.lookups import (
    get_project_or_404,
    get_role,
    get_user_or_404,
    load_role_map,
    require_users_exist,
)

logger = logging.getLogger(__name__)


class MembershipStore:
    """Project creation and role assignment."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Project lifecycle ───────────────────────────────────────

    async def create_project(
        self,
        owner_id: UUID,
        title: str,
        description: str | None = None,
        status: ProjectStatus = ProjectStatus.PLANNED,
        deadline: datetime | None = None,
    ) -> Project:
        """Create the project and its owner row in one transaction."""
        now = datetime.now(timezone.utc)
        async with atomic(self.db):
            await get_user_or_404(self.db, owner_id)
            project = Project(
                owner_id=owner_id, title=title, description=description,
                status=status.value, deadline=deadline,
                created_at=now, updated_at=now,
            )
            self.db.add(project)
            await self.db.flush()
            await self.db.execute(
                insert(ProjectMember).values(
                    project_id=project.id, user_id=owner_id,
                    role=ProjectRole.OWNER.value, created_at=now,
                ),
            )
        logger.info(
            "Project created",
            extra={"project_id": project.id, "requester_id": owner_id},
        )
        return project

    async def delete_project(self, requester_id: UUID, project_id: UUID) -> None:
        async with atomic(self.db):
            await get_project_or_404(self.db, project_id, for_update=True)
            current = await load_role_map(self.db, project_id)
            check_requester_can_edit(current, UserId(requester_id))
            stage_ids = select(Stage.id).where(Stage.project_id == project_id)
            await self.db.execute(
                delete(Task)
                .where(Task.stage_id.in_(stage_ids))
                .execution_options(synchronize_session=False),
            )
            await self.db.execute(
                delete(Stage)
                .where(Stage.project_id == project_id)
                .execution_options(synchronize_session=False),
            )
            await self.db.execute(
                delete(ProjectMember)
                .where(ProjectMember.project_id == project_id)
                .execution_options(synchronize_session=False),
            )
            await self.db.execute(
                delete(Project)
                .where(Project.id == project_id)
                .execution_options(synchronize_session=False),
            )
        logger.info(
            "Project deleted",
            extra={"project_id": project_id, "requester_id": requester_id},
        )

    # ─── Reads ───────────────────────────────────────────────────

    async def list_members(self, project_id: UUID) -> RoleMap:
        await get_project_or_404(self.db, project_id)
        return await load_role_map(self.db, project_id)

    async def get_role(self, project_id: UUID, user_id: UUID) -> ProjectRole | None:
        return await get_role(self.db, project_id, user_id)

    # ─── Role mutations ──────────────────────────────────────────

    async def upsert_member(
        self,
        requester_id: UUID,
        project_id: UUID,
        user_id: UUID,
        role: ProjectRole,
    ) -> RoleChange:
        """Add or re-role a user. Manager goes through delegation; owner is refused."""
        if role is ProjectRole.OWNER:
            raise InvalidInputError(
                "owner role cannot be assigned", field="role",
                code="OWNER_IMMUTABLE",
            )
        if role is ProjectRole.MANAGER:
            return await self.delegate_project(requester_id, project_id, user_id)
        async with atomic(self.db):
            current = await self._lock_roles(requester_id, project_id)
            await get_user_or_404(self.db, user_id)
            desired = plan_member_upsert(current, UserId(user_id))
            result = await self._apply(project_id, current, desired)
        self._log_change("Member upserted", requester_id, project_id)
        return result

    async def delegate_project(
        self, requester_id: UUID, project_id: UUID, new_manager_id: UUID,
    ) -> RoleChange:
        """Demote every manager to member, then make new_manager_id the manager."""
        async with atomic(self.db):
            current = await self._lock_roles(requester_id, project_id)
            await get_user_or_404(self.db, new_manager_id)
            desired = plan_delegation(current, UserId(new_manager_id))
            result = await self._apply(project_id, current, desired)
        self._log_change("Project delegated", requester_id, project_id)
        return result

    async def update_roles(
        self,
        requester_id: UUID,
        project_id: UUID,
        manager_id: UUID,
        member_ids: Iterable[UUID],
    ) -> RoleChange:
        """Replace the manager + member assignment with the requested set."""
        member_ids = list(dict.fromkeys(member_ids))
        async with atomic(self.db):
            current = await self._lock_roles(requester_id, project_id)
            await require_users_exist(self.db, [manager_id, *member_ids])
            desired = plan_role_update(
                current, UserId(manager_id), [UserId(m) for m in member_ids],
            )
            result = await self._apply(project_id, current, desired)
        self._log_change("Roles reconciled", requester_id, project_id)
        return result

    async def delete_member(
        self, requester_id: UUID, project_id: UUID, user_id: UUID,
    ) -> RoleChange:
        async with atomic(self.db):
            current = await self._lock_roles(requester_id, project_id)
            desired = plan_member_removal(current, UserId(user_id))
            result = await self._apply(project_id, current, desired)
        self._log_change("Member removed", requester_id, project_id)
        return result

    # ─── Internals ───────────────────────────────────────────────

    async def _lock_roles(self, requester_id: UUID, project_id: UUID) -> RoleMap:
        await get_project_or_404(self.db, project_id, for_update=True)
        current = await load_role_map(self.db, project_id)
        check_requester_can_edit(current, UserId(requester_id))
        return current

    async def _apply(
        self, project_id: UUID, current: RoleMap, desired: RoleMap,
    ) -> RoleChange:
        diff = diff_roles(current, desired)
        for user_id in diff.deletes:
            await self.db.execute(
                delete(ProjectMember).where(
                    ProjectMember.project_id == project_id,
                    ProjectMember.user_id == user_id,
                ),
            )
        for user_id, role in diff.writes:
            if user_id in current:
                await self.db.execute(
                    update(ProjectMember)
                    .where(
                        ProjectMember.project_id == project_id,
                        ProjectMember.user_id == user_id,
                    )
                    .values(role=role.value)
                    .execution_options(synchronize_session=False),
                )
            else:
                await self.db.execute(
                    insert(ProjectMember).values(
                        project_id=project_id, user_id=user_id, role=role.value,
                    ),
                )
        after = await load_role_map(self.db, project_id)
        return RoleChange(before=current, after=after)

    def _log_change(self, message: str, requester_id: UUID, project_id: UUID) -> None:
        logger.info(
            message,
            extra={"requester_id": requester_id, "project_id": project_id},
        )
