"""Hierarchy Graph — sole writer of manager -> subordinate edges between users.

Invariants:
    - assign_manager is the only code path that writes users.manager_id
    - Self-management rejected before any read
    - An edge is written only after find_manager_cycle proves it acyclic against
      a snapshot read inside the same transaction
    - On rejection the transaction rolls back and manager_id is untouched
    - Existence of the new manager is the caller's check, not this service's

Design Decisions:
    - Edge snapshot loaded in one query and walked in pure code: hierarchy
      edits are rare and orgs are small, one round-trip beats one per level
    - PostgreSQL advisory lock around the check-and-write: two concurrent
      edits A->B and B->A would each pass the check alone
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collab.core.domain_types import UserId
from collab.core.enforce_hierarchy import find_manager_cycle, walk_manager_chain
from collab.core.errors import (
    CycleDetectedError, InvalidInputError, ResourceNotFoundError,
)
from collab.infrastructure.database import (
    acquire_hierarchy_lock, atomic, execute_for_update,
)
from collab.models import User

logger = logging.getLogger(__name__)


class HierarchyGraph:
    """Manager edges over users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def assign_manager(
        self, user_id: UUID, new_manager_id: UUID | None,
    ) -> User:
        """Point user_id at new_manager_id (None detaches the user)."""
        if new_manager_id is not None and new_manager_id == user_id:
            raise InvalidInputError(
                "user cannot manage self", field="manager_id",
                code="SELF_MANAGEMENT",
            )
        async with atomic(self.db):
            await acquire_hierarchy_lock(self.db)
            user = await self._lock_user(user_id)
            if new_manager_id is not None:
                edges = await self._load_edges()
                chain = find_manager_cycle(
                    UserId(user_id), UserId(new_manager_id), edges,
                )
                if chain is not None:
                    logger.info(
                        "Rejected manager edge: cycle",
                        extra={"user_id": user_id, "resource_id": new_manager_id},
                    )
                    raise CycleDetectedError([str(node) for node in chain])
            user.manager_id = new_manager_id
        logger.info(
            "Manager assigned",
            extra={"user_id": user_id, "resource_id": new_manager_id},
        )
        return user

    async def manager_chain(self, user_id: UUID) -> list[UserId]:
        """Ancestors of user_id, nearest first."""
        await self._get_user(user_id)
        edges = await self._load_edges()
        return walk_manager_chain(UserId(user_id), edges)

    async def direct_reports(self, manager_id: UUID) -> list[User]:
        await self._get_user(manager_id)
        result = await self.db.execute(
            select(User).where(User.manager_id == manager_id).order_by(User.email),
        )
        return list(result.scalars().all())

    async def _get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    async def _lock_user(self, user_id: UUID) -> User:
        query = select(User).where(User.id == user_id)
        result = await execute_for_update(
            self.db, query.execution_options(populate_existing=True),
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    async def _load_edges(self) -> dict[UserId, UserId | None]:
        result = await self.db.execute(
            select(User.id, User.manager_id).where(User.manager_id.is_not(None)),
        )
        return {UserId(uid): UserId(mid) for uid, mid in result.all()}
