"""Role Rules — pure planning of project role changes.

Invariants:
    - All functions are PURE: they take the current RoleMap and return the desired one
    - The owner row is never added, removed or re-roled by any plan
    - Every desired RoleMap holds at most one manager
    - Unknown/absent users are the shell's problem; plans only reason about ids

Design Decisions:
    - Plan-then-apply: the shell reads the project's full RoleMap under a row
      lock, the plan computes the complete target state, and diff_roles turns
      it into the minimal set of row writes. The result is independent of the
      order individual rows are written in.
    - Writes are ordered members-first so a demoted manager leaves the
      single-manager unique index before the new manager enters it
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from collab.core.domain_types import ProjectRole, RoleMap, UserId
from collab.core.errors import (
    CannotAssignOwnerAsManagerError,
    ForbiddenError,
    InvalidInputError,
    ResourceNotFoundError,
)


@dataclass
class RoleDiff:
    """Row-level changes turning one RoleMap into another."""
    deletes: list[UserId] = field(default_factory=list)
    writes: list[tuple[UserId, ProjectRole]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.deletes and not self.writes


@dataclass(frozen=True)
class RoleChange:
    """RoleMap read under the project lock and the RoleMap the same transaction committed."""
    before: RoleMap
    after: RoleMap

    @property
    def changed_users(self) -> list[UserId]:
        """Users whose role differs, in before-then-after order; removals included."""
        return [
            uid for uid in dict.fromkeys([*self.before, *self.after])
            if self.before.get(uid) != self.after.get(uid)
        ]


def owner_of(current: RoleMap) -> UserId | None:
    for user_id, role in current.items():
        if role is ProjectRole.OWNER:
            return user_id
    return None


def managers_of(current: RoleMap) -> list[UserId]:
    return [uid for uid, role in current.items() if role is ProjectRole.MANAGER]


def check_requester_can_edit(current: RoleMap, requester_id: UserId) -> None:
    """Requester must hold owner or manager on the project."""
    role = current.get(requester_id)
    if role is None or not role.grants_edit:
        raise ForbiddenError("requester must be project owner or manager")


def check_not_owner(current: RoleMap, user_id: UserId) -> None:
    if current.get(user_id) is ProjectRole.OWNER:
        raise CannotAssignOwnerAsManagerError()


def plan_delegation(current: RoleMap, new_manager_id: UserId) -> RoleMap:
    """Demote every manager to member, then make new_manager_id the manager."""
    check_not_owner(current, new_manager_id)
    desired: RoleMap = {
        uid: (ProjectRole.MEMBER if role is ProjectRole.MANAGER else role)
        for uid, role in current.items()
    }
    desired[new_manager_id] = ProjectRole.MANAGER
    return desired


def build_keep_set(
    current: RoleMap, manager_id: UserId, member_ids: Iterable[UserId],
) -> set[UserId]:
    """Requested members plus any displaced manager, minus the new manager."""
    keep = set(member_ids)
    keep.update(uid for uid in managers_of(current) if uid != manager_id)
    keep.discard(manager_id)
    return keep


def plan_role_update(
    current: RoleMap, manager_id: UserId, member_ids: Iterable[UserId],
) -> RoleMap:
    """Full reconciliation: {owner} + {manager_id: manager} + keep-set as members."""
    check_not_owner(current, manager_id)
    keep = build_keep_set(current, manager_id, member_ids)
    desired: RoleMap = {
        uid: role for uid, role in current.items() if role is ProjectRole.OWNER
    }
    desired[manager_id] = ProjectRole.MANAGER
    for uid in keep:
        if desired.get(uid) is ProjectRole.OWNER:
            continue
        desired[uid] = ProjectRole.MEMBER
    return desired


def plan_member_upsert(current: RoleMap, user_id: UserId) -> RoleMap:
    """Insert-or-update user_id to member. The owner row is immutable."""
    if current.get(user_id) is ProjectRole.OWNER:
        raise InvalidInputError(
            "project owner role cannot be changed", field="user_id",
            code="OWNER_IMMUTABLE",
        )
    desired = dict(current)
    desired[user_id] = ProjectRole.MEMBER
    return desired


def plan_member_removal(current: RoleMap, user_id: UserId) -> RoleMap:
    """Remove a member or manager row. Refuses the owner."""
    role = current.get(user_id)
    if role is None:
        raise ResourceNotFoundError("ProjectMember", str(user_id))
    if role is ProjectRole.OWNER:
        raise InvalidInputError(
            "project owner cannot be removed", field="user_id",
            code="OWNER_IMMUTABLE",
        )
    desired = dict(current)
    del desired[user_id]
    return desired


def diff_roles(current: RoleMap, desired: RoleMap) -> RoleDiff:
    """Minimal row changes from current to desired, members written before the manager."""
    if owner_of(current) != owner_of(desired):
        raise InvalidInputError(
            "role plan would alter the project owner", code="OWNER_IMMUTABLE",
        )
    if len(managers_of(desired)) > 1:
        raise InvalidInputError(
            "role plan would leave more than one manager", code="MULTIPLE_MANAGERS",
        )
    diff = RoleDiff()
    diff.deletes = sorted(
        (uid for uid in current if uid not in desired), key=str,
    )
    changed = [
        (uid, role) for uid, role in desired.items() if current.get(uid) is not role
    ]
    diff.writes = sorted(
        changed, key=lambda item: (item[1] is ProjectRole.MANAGER, str(item[0])),
    )
    return diff
