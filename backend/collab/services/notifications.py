"""Role Notifications — post-commit, best-effort fan-out of role changes.

Invariants:
    - Runs only after the membership transaction committed
    - Never raises: a failed recipient is logged and the next one is tried
    - The requester is never notified about their own change

Design Decisions:
    - Scheduled through FastAPI BackgroundTasks: the response does not wait,
      and a failure cannot roll back a committed role change
    - LoggingNotificationDispatcher is the default; delivery channels plug in
      through the NotificationDispatcher protocol
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from collab.core.boundary_protocols import NotificationDispatcher
from collab.core.domain_types import ProjectRole, RoleMap

logger = logging.getLogger(__name__)

ROLE_TITLES = {
    ProjectRole.OWNER: "Owner",
    ProjectRole.MANAGER: "Manager",
    ProjectRole.MEMBER: "Member",
}


class LoggingNotificationDispatcher:
    """Writes notifications to the log instead of delivering them."""

    async def notify(self, user_id: UUID, title: str, body: str, link: str) -> None:
        logger.info(f"Notification: {title}: {body}", extra={"user_id": user_id})


async def dispatch_role_notifications(
    dispatcher: NotificationDispatcher,
    project_id: UUID,
    requester_id: UUID,
    role_map: RoleMap,
    targets: Iterable[UUID],
) -> int:
    """Tell each target its role in role_map. Returns how many were delivered."""
    delivered = 0
    link = f"/projects/{project_id}"
    for user_id in dict.fromkeys(targets):
        if user_id == requester_id:
            continue
        role = role_map.get(user_id)
        if role is None:
            body = "You were removed from the project"
        else:
            body = f"Your role: {ROLE_TITLES[role]}"
        try:
            await dispatcher.notify(user_id, "Project roles updated", body, link)
            delivered += 1
        except Exception:
            logger.error(
                "Role notification failed",
                extra={"user_id": user_id, "project_id": project_id},
                exc_info=True,
            )
    return delivered
