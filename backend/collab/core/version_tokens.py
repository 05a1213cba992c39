"""Version Tokens — optimistic-concurrency markers carried by versioned resources.

Invariants:
    - A version token is a UTC timestamp with microsecond precision
    - next_version() is strictly greater than the token it replaces
    - Comparison is exact equality after UTC normalization
    - Patches may only touch a resource's declared mutable fields

Design Decisions:
    - Timestamp over integer counter: readers already display "last modified",
      and the token doubles as that value
    - now is passed in: keeps every function here pure and testable
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone

from collab.core.errors import InvalidInputError

VERSION_RESOLUTION = timedelta(microseconds=1)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values (SQLite drops tzinfo), convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_version(value: datetime) -> str:
    return as_utc(value).isoformat()


def parse_version_token(raw: str | datetime | None) -> datetime | None:
    """Parse a client-supplied token. Blank means 'no expectation'."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return as_utc(raw)
    trimmed = raw.strip()
    if not trimmed:
        return None
    if trimmed.endswith(("Z", "z")):
        trimmed = trimmed[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(trimmed))
    except ValueError:
        raise InvalidInputError(
            "invalid expected_version", field="expected_version",
        )


def next_version(current: datetime | None, now: datetime) -> datetime:
    """Token for the next accepted write: now, or just past current on clock skew."""
    now = as_utc(now)
    if current is None:
        return now
    floor = as_utc(current) + VERSION_RESOLUTION
    return now if now >= floor else floor


def validate_patch(
    patch: Mapping[str, object], mutable_fields: Iterable[str], resource: str,
) -> dict[str, object]:
    """Only declared mutable fields may be patched."""
    allowed = set(mutable_fields)
    illegal = sorted(key for key in patch if key not in allowed)
    if illegal:
        raise InvalidInputError(
            f"{resource} fields not updatable: {', '.join(illegal)}",
            field=illegal[0],
        )
    return dict(patch)
