"""Access Rules — tests for pure project and hierarchy access decisions.

Tests cover:
    - role_grants_edit / role_grants_membership over every role and None
    - can_edit_hierarchy: self, root requester, admin label, direct manager
    - can_edit_hierarchy denies a non-root, non-admin, indirect manager
    - can_edit_role_label: root or admin label only, a plain user not even for self
"""

from dataclasses import dataclass
from uuid import UUID, uuid4

from collab.core.domain_types import ProjectRole
from collab.core.enforce_access import (
    can_edit_hierarchy,
    can_edit_role_label,
    role_grants_edit,
    role_grants_membership,
)


@dataclass
class _User:
    id: UUID
    manager_id: UUID | None = None
    role: str | None = None


def _chain():
    """boss <- mid <- worker, all under a root."""
    root = _User(uuid4())
    boss = _User(uuid4(), manager_id=root.id)
    mid = _User(uuid4(), manager_id=boss.id)
    worker = _User(uuid4(), manager_id=mid.id)
    return root, boss, mid, worker


# ─── Project roles ───────────────────────────────────────────────

def test_edit_access_for_owner_and_manager_only():
    assert role_grants_edit(ProjectRole.OWNER)
    assert role_grants_edit(ProjectRole.MANAGER)
    assert not role_grants_edit(ProjectRole.MEMBER)
    assert not role_grants_edit(None)


def test_membership_is_any_row():
    for role in ProjectRole:
        assert role_grants_membership(role)
    assert not role_grants_membership(None)


# ─── Hierarchy ───────────────────────────────────────────────────

def test_user_may_edit_self():
    _, _, mid, _ = _chain()
    assert can_edit_hierarchy(mid, mid)


def test_root_may_edit_anyone():
    root, _, _, worker = _chain()
    assert can_edit_hierarchy(root, worker)


def test_direct_manager_may_edit_report():
    _, _, mid, worker = _chain()
    assert can_edit_hierarchy(mid, worker)


def test_indirect_manager_may_not_edit():
    _, boss, _, worker = _chain()
    assert not can_edit_hierarchy(boss, worker)


def test_report_may_not_edit_manager():
    _, _, mid, worker = _chain()
    assert not can_edit_hierarchy(worker, mid)


def test_admin_label_may_edit_anyone():
    _, boss, _, worker = _chain()
    hr = _User(uuid4(), manager_id=boss.id, role="  Human Resources ")
    assert can_edit_hierarchy(hr, worker)


def test_unrelated_label_grants_nothing():
    _, boss, _, worker = _chain()
    cto = _User(uuid4(), manager_id=boss.id, role="CTO")
    assert not can_edit_hierarchy(cto, worker)


# ─── Role labels ─────────────────────────────────────────────────

def test_root_and_admin_may_edit_role_labels():
    root, boss, _, _ = _chain()
    ceo = _User(uuid4(), manager_id=boss.id, role="CEO")
    assert can_edit_role_label(root)
    assert can_edit_role_label(ceo)


def test_managed_user_may_not_relabel_self():
    _, _, mid, _ = _chain()
    assert can_edit_hierarchy(mid, mid)
    assert not can_edit_role_label(mid)
