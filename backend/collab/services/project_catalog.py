"""Project Catalog — stages, tasks, and versioned project/task edits.

Invariants:
    - Project and task edits go through ConcurrencyGuard (never a direct UPDATE)
    - A task may only move to a stage of the same project
    - Creating a task does not touch the project's version token

Design Decisions:
    - Authorization stays with the caller (AccessPolicy); the catalog trusts its inputs
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collab.core.domain_types import TaskStatus
from collab.core.errors import InvalidInputError
from collab.infrastructure.database import atomic
from collab.models import Project, Stage, Task
from collab.services.concurrency_guard import ConcurrencyGuard
from collab.services.lookups import (
    get_project_or_404,
    get_stage_or_404,
    project_id_of_task,
)

logger = logging.getLogger(__name__)


class ProjectCatalog:
    """Board structure of a project."""

    def __init__(self, db: AsyncSession, guard: ConcurrencyGuard | None = None):
        self.db = db
        self.guard = guard or ConcurrencyGuard(db)

    async def list_stages(self, project_id: UUID) -> list[Stage]:
        result = await self.db.execute(
            select(Stage)
            .where(Stage.project_id == project_id)
            .order_by(Stage.order_index, Stage.created_at),
        )
        return list(result.scalars().all())

    async def create_stage(
        self, project_id: UUID, title: str, order_index: int = 0,
    ) -> Stage:
        async with atomic(self.db):
            await get_project_or_404(self.db, project_id)
            stage = Stage(project_id=project_id, title=title, order_index=order_index)
            self.db.add(stage)
        logger.info(
            "Stage created",
            extra={"project_id": project_id, "resource_id": stage.id},
        )
        return stage

    async def create_task(
        self,
        stage_id: UUID,
        title: str,
        status: TaskStatus = TaskStatus.TODO,
        description: str | None = None,
        deadline: datetime | None = None,
        order_index: int = 0,
    ) -> Task:
        now = datetime.now(timezone.utc)
        async with atomic(self.db):
            await get_stage_or_404(self.db, stage_id)
            task = Task(
                stage_id=stage_id, title=title, status=status.value,
                description=description, deadline=deadline,
                order_index=order_index, created_at=now, updated_at=now,
            )
            self.db.add(task)
        logger.info("Task created", extra={"resource_id": task.id})
        return task

    async def project_of_task(self, task_id: UUID) -> UUID:
        return await project_id_of_task(self.db, task_id)

    async def update_project(
        self,
        project_id: UUID,
        expected_version: datetime | None,
        patch: Mapping[str, object],
    ) -> Project:
        return await self.guard.update(Project, project_id, expected_version, patch)

    async def update_task(
        self,
        task_id: UUID,
        expected_version: datetime | None,
        patch: Mapping[str, object],
    ) -> Task:
        target_stage = patch.get("stage_id")
        if target_stage is not None:
            await self._check_same_project(task_id, target_stage)
        return await self.guard.update(Task, task_id, expected_version, patch)

    async def _check_same_project(self, task_id: UUID, stage_id: UUID) -> None:
        project_id = await project_id_of_task(self.db, task_id)
        stage = await get_stage_or_404(self.db, stage_id)
        if stage.project_id != project_id:
            raise InvalidInputError(
                "task can only move within its project", field="stage_id",
            )
