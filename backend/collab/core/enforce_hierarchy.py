"""Hierarchy Rules — cycle detection for proposed manager edges.

Invariants:
    - Traversal starts at the proposed manager and walks manager_of upward
    - Reaching the subordinate, or revisiting any node, is a cycle
    - A node missing from manager_of (or mapped to None) is a root: no cycle
    - Never loops forever, even over corrupt data that already contains a cycle

Design Decisions:
    - manager_of is a Mapping snapshot loaded by the shell in the same
      transaction that writes the edge; the walk itself stays pure
    - Returns the offending chain instead of a bool so the rejection can say why
"""

from collections.abc import Mapping

from collab.core.domain_types import UserId


def find_manager_cycle(
    user_id: UserId,
    new_manager_id: UserId,
    manager_of: Mapping[UserId, UserId | None],
) -> list[UserId] | None:
    """Return the chain that would close a cycle, or None if the edge is safe.

    The chain starts at user_id and lists the nodes walked from
    new_manager_id upward until the repeat was found.
    """
    chain: list[UserId] = [user_id]
    visited: set[UserId] = set()
    current: UserId | None = new_manager_id
    while current is not None:
        chain.append(current)
        if current == user_id or current in visited:
            return chain
        visited.add(current)
        current = manager_of.get(current)
    return None


def walk_manager_chain(
    user_id: UserId, manager_of: Mapping[UserId, UserId | None],
) -> list[UserId]:
    """Ancestors of user_id, nearest first. Stops at a root or a repeated node."""
    ancestors: list[UserId] = []
    seen: set[UserId] = {user_id}
    current = manager_of.get(user_id)
    while current is not None and current not in seen:
        ancestors.append(current)
        seen.add(current)
        current = manager_of.get(current)
    return ancestors
