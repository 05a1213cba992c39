"""Error Hierarchy — typed, categorized exceptions for every rejection the core can produce.

Invariants:
    - Every error has a kind (ErrorKind), code (str), severity (ErrorSeverity)
    - ErrorKind is closed: callers branch on kind, never on message text
    - Domain errors (400-level) leave stored state exactly as it was before the call
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with CollabError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - CycleDetectedError subclasses InvalidInputError: a cycle IS invalid input,
      the subclass only adds the offending chain for diagnostics
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorKind(str, Enum):
    """Closed taxonomy of failure kinds surfaced by the core."""
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    CANNOT_ASSIGN_OWNER_AS_MANAGER = "cannot_assign_owner_as_manager"
    DATABASE = "database"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    requester_id: str | None = None
    project_id: str | None = None
    resource_id: str | None = None
    debug_info: dict[str, Any] | None = None


class CollabError(Exception):
    """Base exception for all core errors."""

    def __init__(
        self,
        message: str,
        code: str,
        kind: ErrorKind,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.kind = kind
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "kind": self.kind.value,
                "message": self.message,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "requester_id": self.context.requester_id,
                    "project_id": self.context.project_id,
                    "resource_id": self.context.resource_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(CollabError):
    """Requested resource, or a user/project it references, does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorKind.NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ForbiddenError(CollabError):
    """Requester is not allowed to perform the action."""
    def __init__(self, message: str = "forbidden", context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorKind.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class InvalidInputError(CollabError):
    """Malformed request or a change the invariants do not permit."""
    def __init__(
        self,
        message: str,
        field: str | None = None,
        code: str = "INVALID_INPUT",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorKind.INVALID_INPUT,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class CycleDetectedError(InvalidInputError):
    """Proposed manager edge would close a cycle in the hierarchy."""
    def __init__(self, chain: list[str], context: ErrorContext | None = None):
        super().__init__(
            "manager hierarchy cycle detected",
            field="manager_id", code="MANAGER_CYCLE", context=context,
        )
        self.chain = chain


class VersionConflictError(CollabError):
    """Stale version token or a concurrent write that lost the race."""
    def __init__(
        self,
        message: str,
        expected: str | None = None,
        current: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VERSION_CONFLICT", ErrorKind.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.expected = expected
        self.current = current


class CannotAssignOwnerAsManagerError(CollabError):
    """Delegation target already holds the owner role on the project."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "owner cannot be assigned as manager",
            "CANNOT_ASSIGN_OWNER_AS_MANAGER",
            ErrorKind.CANNOT_ASSIGN_OWNER_AS_MANAGER,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CollabError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorKind.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
