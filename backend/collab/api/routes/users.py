"""User Routes — user records and manager-edge edits.

Invariants:
    - Every hierarchy edit consults AccessPolicy.can_edit_hierarchy first
    - Role labels change only through AccessPolicy.require_role_label_edit
    - A new manager must exist before HierarchyGraph sees the edge
    - POST /users needs no requester (bootstrap path for the first user)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from collab.api.deps import get_requester_id
from collab.infrastructure.database import get_db
from collab.schemas.user import (
    ManagerAssign, RoleLabelUpdate, UserCreate, UserResponse,
)
from collab.services.access_policy import AccessPolicy
from collab.services.hierarchy_graph import HierarchyGraph
from collab.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post(
    "", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await UserDirectory(db).create_user(body.email, body.full_name, body.role)
    return UserResponse.from_model(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    return UserResponse.from_model(await UserDirectory(db).get_user(user_id))


@router.get("/{user_id}/reports", response_model=list[UserResponse])
async def list_direct_reports(
    user_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    reports = await HierarchyGraph(db).direct_reports(user_id)
    return [UserResponse.from_model(u) for u in reports]


@router.get("/{user_id}/managers", response_model=list[UUID])
async def list_manager_chain(
    user_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    """Ancestors of the user, nearest manager first."""
    return await HierarchyGraph(db).manager_chain(user_id)


@router.put("/{user_id}/manager", response_model=UserResponse)
async def assign_manager(
    user_id: UUID,
    body: ManagerAssign,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_hierarchy_edit(requester_id, user_id)
    if body.manager_id is not None:
        await UserDirectory(db).get_user(body.manager_id)
    user = await HierarchyGraph(db).assign_manager(user_id, body.manager_id)
    return UserResponse.from_model(user)


@router.put("/{user_id}/role", response_model=UserResponse)
async def set_role_label(
    user_id: UUID,
    body: RoleLabelUpdate,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_role_label_edit(requester_id, user_id)
    user = await UserDirectory(db).set_role_label(user_id, body.role)
    return UserResponse.from_model(user)
