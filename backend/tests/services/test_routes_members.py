"""Membership Routes — role changes and post-commit notifications over HTTP.

Tests cover:
    - Delegation sequence and owner-as-manager rejection
    - PUT /roles reconciliation with de-duplicated member ids
    - Unknown role strings rejected at the boundary
    - Members cannot change roles; owner cannot be removed
    - Notifications go to changed users only, never to the requester,
      and never for rejected calls
    - Notification targets come from the roles read under the project lock,
      so a change committed by another request just before is not mixed in
"""

from collab.core.domain_types import ProjectRole
from collab.services.membership_store import MembershipStore


def _as(user_id) -> dict:
    return {"X-User-Id": str(user_id)}


def _roles(body) -> dict:
    return {m["user_id"]: m["role"] for m in body["members"]}


async def _project(client, owner) -> str:
    res = await client.post(
        "/api/v1/projects", json={"title": "Team"}, headers=_as(owner),
    )
    return res.json()["id"]


async def test_delegation_sequence(client, users, dispatcher):
    pid = await _project(client, users[1])

    res = await client.post(
        f"/api/v1/projects/{pid}/delegate",
        json={"new_manager_id": str(users[3])}, headers=_as(users[1]),
    )
    assert res.status_code == 200
    assert _roles(res.json()) == {str(users[1]): "owner", str(users[3]): "manager"}

    res = await client.post(
        f"/api/v1/projects/{pid}/delegate",
        json={"newManagerId": str(users[4])}, headers=_as(users[1]),
    )
    assert _roles(res.json()) == {
        str(users[1]): "owner", str(users[3]): "member", str(users[4]): "manager",
    }

    notified = [(n["user_id"], n["body"]) for n in dispatcher.sent]
    assert notified == [
        (users[3], "Your role: Manager"),
        (users[3], "Your role: Member"),
        (users[4], "Your role: Manager"),
    ]


async def test_delegate_to_owner_rejected(client, users, dispatcher):
    pid = await _project(client, users[1])
    res = await client.post(
        f"/api/v1/projects/{pid}/delegate",
        json={"new_manager_id": str(users[1])}, headers=_as(users[1]),
    )
    assert res.status_code == 400
    assert res.json()["error"]["kind"] == "cannot_assign_owner_as_manager"
    assert dispatcher.sent == []


async def test_update_roles(client, users):
    pid = await _project(client, users[1])
    await client.post(
        f"/api/v1/projects/{pid}/delegate",
        json={"new_manager_id": str(users[4])}, headers=_as(users[1]),
    )
    await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[6]), "role": "Member"}, headers=_as(users[1]),
    )

    res = await client.put(
        f"/api/v1/projects/{pid}/roles",
        json={
            "manager_id": str(users[5]),
            "member_ids": [str(users[6]), str(users[7]), str(users[7])],
        },
        headers=_as(users[1]),
    )
    assert res.status_code == 200
    assert _roles(res.json()) == {
        str(users[1]): "owner", str(users[5]): "manager",
        str(users[4]): "member", str(users[6]): "member", str(users[7]): "member",
    }


async def test_unknown_role_rejected(client, users):
    pid = await _project(client, users[1])
    res = await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[2]), "role": "admin"}, headers=_as(users[1]),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"


async def test_member_cannot_change_roles(client, users):
    pid = await _project(client, users[1])
    await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[2]), "role": "member"}, headers=_as(users[1]),
    )
    res = await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[3]), "role": "member"}, headers=_as(users[2]),
    )
    assert res.status_code == 403


async def test_remove_member_and_owner(client, users, dispatcher):
    pid = await _project(client, users[1])
    await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[2]), "role": "member"}, headers=_as(users[1]),
    )

    res = await client.delete(
        f"/api/v1/projects/{pid}/members/{users[2]}", headers=_as(users[1]),
    )
    assert res.status_code == 200
    assert _roles(res.json()) == {str(users[1]): "owner"}
    assert dispatcher.sent[-1]["body"] == "You were removed from the project"

    res = await client.delete(
        f"/api/v1/projects/{pid}/members/{users[1]}", headers=_as(users[1]),
    )
    assert res.status_code == 400


async def test_list_members_in_display_order(client, users):
    pid = await _project(client, users[1])
    await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[2]), "role": "member"}, headers=_as(users[1]),
    )
    await client.post(
        f"/api/v1/projects/{pid}/delegate",
        json={"new_manager_id": str(users[3])}, headers=_as(users[1]),
    )
    res = await client.get(f"/api/v1/projects/{pid}/members", headers=_as(users[2]))
    assert [m["role"] for m in res.json()["members"]] == ["owner", "manager", "member"]


async def test_notifications_can_be_disabled(client, users, dispatcher, monkeypatch):
    monkeypatch.setenv("NOTIFICATIONS_ENABLED", "false")
    from collab.config import get_settings
    get_settings.cache_clear()
    try:
        pid = await _project(client, users[1])
        await client.post(
            f"/api/v1/projects/{pid}/delegate",
            json={"new_manager_id": str(users[2])}, headers=_as(users[1]),
        )
        assert dispatcher.sent == []
    finally:
        monkeypatch.delenv("NOTIFICATIONS_ENABLED")
        get_settings.cache_clear()


async def test_notifications_use_roles_read_under_lock(
    client, users, dispatcher, test_session_factory, monkeypatch,
):
    pid = await _project(client, users[1])
    await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[2]), "role": "member"}, headers=_as(users[1]),
    )
    dispatcher.sent.clear()

    real_lock = MembershipStore._lock_roles
    edited: list[bool] = []

    async def commit_other_edit_then_lock(self, requester_id, project_id):
        if not edited:
            edited.append(True)
            async with test_session_factory() as other:
                store = MembershipStore(other)
                await store.delete_member(users[1], project_id, users[2])
                await store.upsert_member(
                    users[1], project_id, users[3], ProjectRole.MEMBER,
                )
        return await real_lock(self, requester_id, project_id)

    monkeypatch.setattr(
        MembershipStore, "_lock_roles", commit_other_edit_then_lock,
    )

    # Re-adding users[2], who the other request has just removed
    res = await client.put(
        f"/api/v1/projects/{pid}/members",
        json={"user_id": str(users[2]), "role": "member"}, headers=_as(users[1]),
    )

    assert res.status_code == 200
    assert _roles(res.json()) == {
        str(users[1]): "owner", str(users[2]): "member", str(users[3]): "member",
    }
    assert [(n["user_id"], n["body"]) for n in dispatcher.sent] == [
        (users[2], "Your role: Member"),
    ]
