"""Project Routes — project lifecycle, versioned edits, and stages.

Invariants:
    - Reads require membership; writes require owner or manager
    - PATCH goes through ConcurrencyGuard; a stale expected_version is a 409
    - Every project payload carries the current version token
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from collab.api.deps import get_requester_id
from collab.core.version_tokens import parse_version_token
from collab.infrastructure.database import get_db
from collab.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from collab.schemas.task import StageCreate, StageResponse
from collab.services.access_policy import AccessPolicy
from collab.services.membership_store import MembershipStore
from collab.services.project_catalog import ProjectCatalog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.post(
    "", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED,
)
async def create_project(
    body: ProjectCreate,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    store = MembershipStore(db)
    project = await store.create_project(
        requester_id, body.title, body.description, body.status, body.deadline,
    )
    role = await store.get_role(project.id, requester_id)
    return ProjectResponse.from_model(project, role)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    project = await AccessPolicy(db).require_project_member(requester_id, project_id)
    role = await MembershipStore(db).get_role(project_id, requester_id)
    return ProjectResponse.from_model(project, role)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    expected = parse_version_token(body.expected_version)
    project = await ProjectCatalog(db).update_project(
        project_id, expected, body.to_patch(),
    )
    role = await MembershipStore(db).get_role(project_id, requester_id)
    return ProjectResponse.from_model(project, role)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    await MembershipStore(db).delete_project(requester_id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Stages ─────────────────────────────────────────────────────

@router.get("/{project_id}/stages", response_model=list[StageResponse])
async def list_stages(
    project_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_member(requester_id, project_id)
    stages = await ProjectCatalog(db).list_stages(project_id)
    return [StageResponse.from_model(s) for s in stages]


@router.post(
    "/{project_id}/stages", response_model=StageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_stage(
    project_id: UUID,
    body: StageCreate,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    stage = await ProjectCatalog(db).create_stage(
        project_id, body.title, body.order_index,
    )
    return StageResponse.from_model(stage)
