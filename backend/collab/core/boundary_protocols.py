"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, ORM rows and test doubles both satisfy it
    - NotificationDispatcher is async because implementations do IO; the
      pure access rules only ever see UserLike
"""

from typing import Protocol
from uuid import UUID


class UserLike(Protocol):
    """Structural contract for users passed to pure access rules.

    Satisfied by the User ORM model and by plain test doubles.
    """
    id: UUID
    manager_id: UUID | None
    role: str | None


class NotificationDispatcher(Protocol):
    """Contract for the external notification collaborator, implemented by shell."""
    async def notify(
        self, user_id: UUID, title: str, body: str, link: str,
    ) -> None: ...
