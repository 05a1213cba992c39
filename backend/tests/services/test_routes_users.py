"""User Routes — hierarchy edits over HTTP.

Tests cover:
    - POST /users creates a user without a requester header
    - Missing / malformed X-User-Id → 401
    - PUT /users/{id}/manager: allowed edit, cycle → 400 MANAGER_CYCLE,
      unrelated requester → 403, unknown manager → 404
    - PUT /users/{id}/role and GET reports / managers
    - A managed user cannot relabel self into a hierarchy admin
"""

from uuid import uuid4


def _as(user_id) -> dict:
    return {"X-User-Id": str(user_id)}


async def test_create_user(client):
    res = await client.post(
        "/api/v1/users", json={"email": "Dana@Example.com", "role": "CEO"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "dana@example.com"
    assert body["manager_id"] is None


async def test_create_user_invalid_email(client):
    res = await client.post("/api/v1/users", json={"email": "not-an-email"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_requester_header_required(client, users):
    res = await client.get(f"/api/v1/users/{users[1]}")
    assert res.status_code == 401
    res = await client.get(f"/api/v1/users/{users[1]}", headers={"X-User-Id": "me"})
    assert res.status_code == 401


async def test_get_user(client, users):
    res = await client.get(f"/api/v1/users/{users[2]}", headers=_as(users[1]))
    assert res.status_code == 200
    assert res.json()["id"] == str(users[2])


async def test_assign_manager_and_reject_cycle(client, users):
    res = await client.put(
        f"/api/v1/users/{users[2]}/manager",
        json={"manager_id": str(users[1])}, headers=_as(users[1]),
    )
    assert res.status_code == 200
    assert res.json()["manager_id"] == str(users[1])

    # U1 is a root, so it may edit itself; the edge would close U1 -> U2 -> U1
    res = await client.put(
        f"/api/v1/users/{users[1]}/manager",
        json={"managerId": str(users[2])}, headers=_as(users[1]),
    )
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "MANAGER_CYCLE"
    assert error["kind"] == "invalid_input"

    res = await client.get(f"/api/v1/users/{users[1]}", headers=_as(users[1]))
    assert res.json()["manager_id"] is None


async def test_assign_manager_forbidden(client, users):
    for report in (users[2], users[3]):
        await client.put(
            f"/api/v1/users/{report}/manager",
            json={"manager_id": str(users[1])}, headers=_as(report),
        )
    # U2 is neither root, admin, nor U3's manager
    res = await client.put(
        f"/api/v1/users/{users[3]}/manager",
        json={"manager_id": str(users[2])}, headers=_as(users[2]),
    )
    assert res.status_code == 403
    assert res.json()["error"]["kind"] == "forbidden"


async def test_assign_unknown_manager(client, users):
    res = await client.put(
        f"/api/v1/users/{users[2]}/manager",
        json={"manager_id": str(uuid4())}, headers=_as(users[2]),
    )
    assert res.status_code == 404


async def test_self_management_rejected(client, users):
    res = await client.put(
        f"/api/v1/users/{users[2]}/manager",
        json={"manager_id": str(users[2])}, headers=_as(users[2]),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "SELF_MANAGEMENT"


async def test_set_role_label(client, users):
    res = await client.put(
        f"/api/v1/users/{users[3]}/role", json={"role": " hr "}, headers=_as(users[3]),
    )
    assert res.status_code == 200
    assert res.json()["role"] == "hr"


async def test_managed_user_cannot_relabel_self(client, users):
    await client.put(
        f"/api/v1/users/{users[3]}/manager",
        json={"manager_id": str(users[1])}, headers=_as(users[1]),
    )

    res = await client.put(
        f"/api/v1/users/{users[3]}/role", json={"role": "ceo"}, headers=_as(users[3]),
    )
    assert res.status_code == 403

    res = await client.put(
        f"/api/v1/users/{users[3]}/role", json={"role": "ceo"}, headers=_as(users[1]),
    )
    assert res.status_code == 200
    assert res.json()["role"] == "ceo"


async def test_reports_and_manager_chain(client, users):
    await client.put(
        f"/api/v1/users/{users[2]}/manager",
        json={"manager_id": str(users[1])}, headers=_as(users[1]),
    )
    await client.put(
        f"/api/v1/users/{users[3]}/manager",
        json={"manager_id": str(users[2])}, headers=_as(users[1]),
    )

    res = await client.get(f"/api/v1/users/{users[1]}/reports", headers=_as(users[1]))
    assert [u["id"] for u in res.json()] == [str(users[2])]

    res = await client.get(f"/api/v1/users/{users[3]}/managers", headers=_as(users[3]))
    assert res.json() == [str(users[2]), str(users[1])]
