"""Access Rules — pure authorization decisions over already-loaded state.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Edit access on a project means role owner or manager; membership means any row
    - Hierarchy edit: self, hierarchy root, HierarchyAdmin label, or direct manager
    - Role-label edit: hierarchy root or HierarchyAdmin label only, not self

Design Decisions:
    - Decisions take loaded values (roles, users), not ids: the shell does the
      lookups, so these stay testable without mocks
"""

from collab.core.boundary_protocols import UserLike
from collab.core.domain_types import HierarchyAdmin, ProjectRole


def role_grants_edit(role: ProjectRole | None) -> bool:
    """True iff the membership role allows structural edits of the project."""
    return role is not None and role.grants_edit


def role_grants_membership(role: ProjectRole | None) -> bool:
    """True iff any membership row exists for the pair."""
    return role is not None


def can_edit_hierarchy(requester: UserLike, target: UserLike) -> bool:
    """Decide whether requester may change target's position in the org chart."""
    if requester.id == target.id:
        return True
    if requester.manager_id is None:
        return True
    if HierarchyAdmin.matches(requester.role):
        return True
    return target.manager_id == requester.id


def can_edit_role_label(requester: UserLike) -> bool:
    """Only a hierarchy root or a HierarchyAdmin may change role labels."""
    return requester.manager_id is None or HierarchyAdmin.matches(requester.role)
