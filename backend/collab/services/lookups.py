"""Lookups — shared reads that raise ResourceNotFoundError instead of returning None.

Invariants:
    - No row is changed here; for_update only takes locks
    - Role maps are returned in display order: owner, manager, members by join time
"""

from uuid import UUID

from sqlalchemy import select, case
from sqlalchemy.ext.asyncio import AsyncSession

from collab.core.domain_types import ProjectRole, RoleMap, UserId
from collab.core.errors import ResourceNotFoundError
from collab.infrastructure.database import execute_for_update
from collab.models import Project, ProjectMember, Stage, Task, User

_ROLE_ORDER = case(
    (ProjectMember.role == ProjectRole.OWNER.value, 0),
    (ProjectMember.role == ProjectRole.MANAGER.value, 1),
    else_=2,
)


async def get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError("User", str(user_id))
    return user


async def get_project_or_404(
    db: AsyncSession, project_id: UUID, for_update: bool = False,
) -> Project:
    query = select(Project).where(Project.id == project_id)
    if for_update:
        result = await execute_for_update(db, query)
    else:
        result = await db.execute(query)
    project = result.scalar_one_or_none()
    if project is None:
        raise ResourceNotFoundError("Project", str(project_id))
    return project


async def get_stage_or_404(db: AsyncSession, stage_id: UUID) -> Stage:
    stage = await db.get(Stage, stage_id)
    if stage is None:
        raise ResourceNotFoundError("Stage", str(stage_id))
    return stage


async def get_task_or_404(db: AsyncSession, task_id: UUID) -> Task:
    task = await db.get(Task, task_id)
    if task is None:
        raise ResourceNotFoundError("Task", str(task_id))
    return task


async def project_id_of_task(db: AsyncSession, task_id: UUID) -> UUID:
    result = await db.execute(
        select(Stage.project_id)
        .join(Task, Task.stage_id == Stage.id)
        .where(Task.id == task_id),
    )
    project_id = result.scalar_one_or_none()
    if project_id is None:
        raise ResourceNotFoundError("Task", str(task_id))
    return project_id


async def require_users_exist(db: AsyncSession, user_ids: list[UUID]) -> None:
    """One query for the whole batch; reports the first missing id."""
    wanted = set(user_ids)
    if not wanted:
        return
    result = await db.execute(select(User.id).where(User.id.in_(wanted)))
    missing = wanted - set(result.scalars().all())
    if missing:
        raise ResourceNotFoundError("User", str(sorted(missing, key=str)[0]))


async def get_role(
    db: AsyncSession, project_id: UUID, user_id: UUID,
) -> ProjectRole | None:
    result = await db.execute(
        select(ProjectMember.role).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        ),
    )
    role = result.scalar_one_or_none()
    return ProjectRole(role) if role is not None else None


async def load_role_map(db: AsyncSession, project_id: UUID) -> RoleMap:
    result = await db.execute(
        select(ProjectMember.user_id, ProjectMember.role)
        .where(ProjectMember.project_id == project_id)
        .order_by(_ROLE_ORDER, ProjectMember.created_at, ProjectMember.user_id),
    )
    return {UserId(uid): ProjectRole(role) for uid, role in result.all()}
