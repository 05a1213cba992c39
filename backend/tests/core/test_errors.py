"""Error Hierarchy — tests for kinds, HTTP statuses and the REST envelope."""

from collab.core.errors import (
    CannotAssignOwnerAsManagerError,
    CollabError,
    CycleDetectedError,
    DatabaseError,
    ErrorContext,
    ErrorKind,
    ForbiddenError,
    InvalidInputError,
    ResourceNotFoundError,
    VersionConflictError,
)


def test_each_error_maps_to_its_kind_and_status():
    cases = [
        (ResourceNotFoundError("User", "u1"), ErrorKind.NOT_FOUND, 404),
        (ForbiddenError(), ErrorKind.FORBIDDEN, 403),
        (InvalidInputError("bad"), ErrorKind.INVALID_INPUT, 400),
        (CycleDetectedError(["a", "b", "a"]), ErrorKind.INVALID_INPUT, 400),
        (VersionConflictError("stale"), ErrorKind.CONFLICT, 409),
        (
            CannotAssignOwnerAsManagerError(),
            ErrorKind.CANNOT_ASSIGN_OWNER_AS_MANAGER, 400,
        ),
        (DatabaseError("down", "execute"), ErrorKind.DATABASE, 503),
    ]
    for error, kind, status in cases:
        assert isinstance(error, CollabError)
        assert error.kind is kind
        assert error.http_status == status


def test_cycle_is_invalid_input_with_chain():
    error = CycleDetectedError(["u1", "u2", "u1"])
    assert isinstance(error, InvalidInputError)
    assert error.code == "MANAGER_CYCLE"
    assert error.chain == ["u1", "u2", "u1"]
    assert error.field == "manager_id"


def test_to_response_envelope():
    ctx = ErrorContext(requester_id="r1", project_id="p1")
    body = ForbiddenError("nope", context=ctx).to_response()
    error = body["error"]
    assert error["code"] == "FORBIDDEN"
    assert error["kind"] == "forbidden"
    assert error["message"] == "nope"
    assert error["severity"] == "warning"
    assert error["context"] == {
        "requester_id": "r1", "project_id": "p1", "resource_id": None,
    }
    assert "timestamp" in error


def test_version_conflict_carries_tokens():
    error = VersionConflictError("stale", expected="v0", current="v1")
    assert error.code == "VERSION_CONFLICT"
    assert (error.expected, error.current) == ("v0", "v1")
