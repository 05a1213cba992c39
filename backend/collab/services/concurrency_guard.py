"""Concurrency Guard — optimistic version check around every versioned-resource write.

Invariants:
    - With expected_version: one UPDATE ... WHERE id = :id AND updated_at = :expected;
      zero rows means NotFound (row gone) or Conflict (token stale), nothing applied
    - Without expected_version: unconditional write under a row lock (trusted callers)
    - Every accepted write sets updated_at to a token strictly greater than before
    - Patches may only touch the model's MUTABLE_FIELDS
    - A rejected call is idempotent: repeating it with the same stale token
      fails the same way and changes nothing

Design Decisions:
    - Compare-and-set in the UPDATE's WHERE clause instead of read-then-write:
      a second writer cannot slip between check and write at any isolation level
    - Whole-resource granularity: disjoint-field edits still conflict
    - Authorization is not checked here; callers consult AccessPolicy first
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from collab.core.errors import ResourceNotFoundError, VersionConflictError
from collab.core.version_tokens import (
    as_utc, format_version, next_version, validate_patch,
)
from collab.infrastructure.database import atomic, execute_for_update
from collab.models import Project, Task

logger = logging.getLogger(__name__)

Versioned = TypeVar("Versioned", Project, Task)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConcurrencyGuard:
    """Optimistic-concurrency writer for Project and Task rows."""

    def __init__(
        self, db: AsyncSession, clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self._clock = clock

    async def update(
        self,
        model: type[Versioned],
        resource_id: UUID,
        expected_version: datetime | None,
        patch: Mapping[str, object],
    ) -> Versioned:
        """Apply patch if expected_version still matches; bump the version."""
        name = model.__name__
        values = validate_patch(patch, model.MUTABLE_FIELDS, name)
        async with atomic(self.db):
            if expected_version is None:
                base = await self._current_version(model, resource_id, lock=True)
                if base is None:
                    raise ResourceNotFoundError(name, str(resource_id))
                condition = model.id == resource_id
            else:
                base = as_utc(expected_version)
                condition = (model.id == resource_id) & (model.updated_at == base)
            new_version = next_version(base, self._clock())
            result = await self.db.execute(
                update(model)
                .where(condition)
                .values(**values, updated_at=new_version)
                .execution_options(synchronize_session=False),
            )
            if result.rowcount == 0:
                await self._raise_rejection(model, resource_id, base)
            row = await self.db.get(model, resource_id, populate_existing=True)
        logger.info(
            f"{name} updated",
            extra={
                "resource_id": resource_id,
                "current_version": format_version(new_version),
            },
        )
        return row

    async def _current_version(
        self, model: type[Versioned], resource_id: UUID, lock: bool = False,
    ) -> datetime | None:
        query = select(model.updated_at).where(model.id == resource_id)
        if lock:
            result = await execute_for_update(self.db, query)
        else:
            result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _raise_rejection(
        self, model: type[Versioned], resource_id: UUID, expected: datetime,
    ) -> None:
        name = model.__name__
        current = await self._current_version(model, resource_id)
        if current is None:
            raise ResourceNotFoundError(name, str(resource_id))
        logger.warning(
            f"{name} update rejected: stale version",
            extra={
                "resource_id": resource_id,
                "expected_version": format_version(expected),
                "current_version": format_version(current),
            },
        )
        raise VersionConflictError(
            f"{name} was modified concurrently, reload and retry",
            expected=format_version(expected),
            current=format_version(current),
        )
