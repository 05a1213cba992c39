"""User Directory — user records outside the manager edge set.

Invariants:
    - Never writes manager_id (HierarchyGraph owns that column)
    - Emails are unique, compared case-insensitively
    - Role labels are trimmed; empty becomes None; longer than 120 chars rejected
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from collab.core.errors import InvalidInputError
from collab.infrastructure.database import atomic
from collab.models import User
from collab.services.lookups import get_user_or_404

logger = logging.getLogger(__name__)

MAX_ROLE_LABEL_LENGTH = 120


def normalize_role_label(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    if len(value) > MAX_ROLE_LABEL_LENGTH:
        raise InvalidInputError("role is too long", field="role")
    return value


class UserDirectory:
    """Create and read users, edit their role label."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(
        self, email: str, full_name: str | None = None, role: str | None = None,
    ) -> User:
        email = email.strip().lower()
        label = normalize_role_label(role)
        async with atomic(self.db):
            existing = await self.db.execute(
                select(User.id).where(func.lower(User.email) == email),
            )
            if existing.scalar_one_or_none() is not None:
                raise InvalidInputError(
                    "email already registered", field="email", code="EMAIL_TAKEN",
                )
            user = User(email=email, full_name=full_name, role=label)
            self.db.add(user)
        logger.info("User created", extra={"user_id": user.id})
        return user

    async def get_user(self, user_id: UUID) -> User:
        return await get_user_or_404(self.db, user_id)

    async def set_role_label(self, user_id: UUID, role: str | None) -> User:
        label = normalize_role_label(role)
        async with atomic(self.db):
            user = await get_user_or_404(self.db, user_id)
            user.role = label
        logger.info("Role label changed", extra={"user_id": user_id})
        return user
