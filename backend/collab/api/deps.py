"""Request Dependencies — requester identity and post-commit collaborators.

Invariants:
    - X-User-Id missing or not a UUID → 401 before any handler logic runs
    - The header is trusted as-is; authentication happens upstream

Design Decisions:
    - Notifier resolved through a dependency so tests swap it via
      app.dependency_overrides instead of patching module globals
"""

from uuid import UUID

from fastapi import Header, HTTPException, status

from collab.core.boundary_protocols import NotificationDispatcher
from collab.services.notifications import LoggingNotificationDispatcher


async def get_requester_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> UUID:
    if not x_user_id:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header required",
        )
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED, detail="X-User-Id must be a UUID",
        ) from None


def get_notifier() -> NotificationDispatcher:
    return LoggingNotificationDispatcher()
