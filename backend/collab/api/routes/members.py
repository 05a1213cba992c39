"""Membership Routes — role assignment, delegation, and reconciliation.

Invariants:
    - Role strings are parsed into ProjectRole here; unknown values never
      reach MembershipStore
    - Edit access checked before the store is invoked
    - Notifications are scheduled only after the store call returned, i.e.
      after commit; a rejected call notifies nobody

Design Decisions:
    - Notification targets come from the RoleChange the store returns: the
      map it read under the project lock versus the map it committed.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from collab.api.deps import get_notifier, get_requester_id
from collab.config import get_settings
from collab.core.boundary_protocols import NotificationDispatcher
from collab.core.domain_types import ProjectRole
from collab.core.enforce_roles import RoleChange
from collab.infrastructure.database import get_db
from collab.schemas.member import (
    DelegateRequest, MemberUpsert, RoleMapResponse, RolesUpdate,
)
from collab.services.access_policy import AccessPolicy
from collab.services.membership_store import MembershipStore
from collab.services.notifications import dispatch_role_notifications

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects", tags=["members"])


def _schedule_notifications(
    background: BackgroundTasks,
    notifier: NotificationDispatcher,
    project_id: UUID,
    requester_id: UUID,
    change: RoleChange,
) -> None:
    if not get_settings().notifications_enabled:
        return
    targets = change.changed_users
    if targets:
        background.add_task(
            dispatch_role_notifications,
            notifier, project_id, requester_id, change.after, targets,
        )


@router.get("/{project_id}/members", response_model=RoleMapResponse)
async def list_members(
    project_id: UUID,
    requester_id: UUID = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_member(requester_id, project_id)
    role_map = await MembershipStore(db).list_members(project_id)
    return RoleMapResponse.from_role_map(project_id, role_map)


@router.put("/{project_id}/members", response_model=RoleMapResponse)
async def upsert_member(
    project_id: UUID,
    body: MemberUpsert,
    background: BackgroundTasks,
    requester_id: UUID = Depends(get_requester_id),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db),
):
    role = ProjectRole.parse(body.role)
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    change = await MembershipStore(db).upsert_member(
        requester_id, project_id, body.user_id, role,
    )
    _schedule_notifications(
        background, notifier, project_id, requester_id, change,
    )
    return RoleMapResponse.from_role_map(project_id, change.after)


@router.delete("/{project_id}/members/{user_id}", response_model=RoleMapResponse)
async def delete_member(
    project_id: UUID,
    user_id: UUID,
    background: BackgroundTasks,
    requester_id: UUID = Depends(get_requester_id),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    change = await MembershipStore(db).delete_member(
        requester_id, project_id, user_id,
    )
    _schedule_notifications(
        background, notifier, project_id, requester_id, change,
    )
    return RoleMapResponse.from_role_map(project_id, change.after)


@router.put("/{project_id}/roles", response_model=RoleMapResponse)
async def update_roles(
    project_id: UUID,
    body: RolesUpdate,
    background: BackgroundTasks,
    requester_id: UUID = Depends(get_requester_id),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    change = await MembershipStore(db).update_roles(
        requester_id, project_id, body.manager_id, body.member_ids,
    )
    _schedule_notifications(
        background, notifier, project_id, requester_id, change,
    )
    return RoleMapResponse.from_role_map(project_id, change.after)


@router.post("/{project_id}/delegate", response_model=RoleMapResponse)
async def delegate_project(
    project_id: UUID,
    body: DelegateRequest,
    background: BackgroundTasks,
    requester_id: UUID = Depends(get_requester_id),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db),
):
    await AccessPolicy(db).require_project_edit_access(requester_id, project_id)
    change = await MembershipStore(db).delegate_project(
        requester_id, project_id, body.new_manager_id,
    )
    _schedule_notifications(
        background, notifier, project_id, requester_id, change,
    )
    return RoleMapResponse.from_role_map(project_id, change.after)
