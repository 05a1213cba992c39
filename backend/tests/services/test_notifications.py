"""Role Notifications — best-effort fan-out after commit.

Tests cover:
    - Each target gets its new role; removed users get a removal notice
    - The requester is skipped
    - A failing recipient is logged and does not stop the others
"""

from uuid import uuid4

from collab.core.domain_types import ProjectRole
from collab.services.notifications import (
    LoggingNotificationDispatcher, dispatch_role_notifications,
)


async def test_dispatch_role_notifications(dispatcher):
    project_id, requester, manager, removed = uuid4(), uuid4(), uuid4(), uuid4()
    role_map = {requester: ProjectRole.OWNER, manager: ProjectRole.MANAGER}

    delivered = await dispatch_role_notifications(
        dispatcher, project_id, requester, role_map, [requester, manager, removed],
    )

    assert delivered == 2
    bodies = {n["user_id"]: n["body"] for n in dispatcher.sent}
    assert bodies == {
        manager: "Your role: Manager",
        removed: "You were removed from the project",
    }
    assert all(n["link"] == f"/projects/{project_id}" for n in dispatcher.sent)


async def test_failed_recipient_does_not_stop_fan_out(dispatcher, caplog):
    broken, fine = uuid4(), uuid4()
    dispatcher.fail_for.add(broken)
    role_map = {broken: ProjectRole.MEMBER, fine: ProjectRole.MEMBER}

    delivered = await dispatch_role_notifications(
        dispatcher, uuid4(), uuid4(), role_map, [broken, fine],
    )

    assert delivered == 1
    assert [n["user_id"] for n in dispatcher.sent] == [fine]
    assert "Role notification failed" in caplog.text


async def test_logging_dispatcher_never_raises():
    await LoggingNotificationDispatcher().notify(uuid4(), "t", "b", "/x")
