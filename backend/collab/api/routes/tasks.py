"""Task Routes — task creation, reads, and versioned edits.

Invariants:
    - Task access resolves task → stage → project before any decision
    - PATCH goes through ConcurrencyGuard; a stale expected_version is a 409
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from collab.api.deps import get_requester_id
from collab.core.version_tokens import parse_version_token
from collab.infrastructure.database import get_db
from collab.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from collab.services.access_policy import AccessPolicy
from collab.services.project_catalog import ProjectCatalog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["tasks"])


@router.post(
    "/stages/{stage_id}/tasks", response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    stage_id: UUID,
    body: TaskCreate,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    stage = await AccessPolicy(db).require_stage_edit_access(requester_id, stage_id)
    task = await ProjectCatalog(db).create_task(
        stage_id, body.title, body.status, body.description,
        body.deadline, body.order_index,
    )
    return TaskResponse.from_model(task, stage.project_id)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    task = await AccessPolicy(db).require_task_member(requester_id, task_id)
    project_id = await ProjectCatalog(db).project_of_task(task_id)
    return TaskResponse.from_model(task, project_id)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_task_edit_access(requester_id, task_id)
    expected = parse_version_token(body.expected_version)
    catalog = ProjectCatalog(db)
    task = await catalog.update_task(task_id, expected, body.to_patch())
    project_id = await catalog.project_of_task(task_id)
    return TaskResponse.from_model(task, project_id)
