"""Hierarchy Rules — tests for cycle detection and manager-chain walks.

Tests cover:
    - Safe edges (roots, unrelated subtrees) return None
    - Direct and indirect cycles return the offending chain
    - Pre-existing corrupt cycles terminate instead of looping
    - walk_manager_chain returns ancestors nearest first
"""

from uuid import uuid4

from collab.core.enforce_hierarchy import find_manager_cycle, walk_manager_chain


def _ids(n):
    return [uuid4() for _ in range(n)]


# ─── find_manager_cycle ──────────────────────────────────────────

def test_edge_to_root_is_safe():
    u1, u2 = _ids(2)
    assert find_manager_cycle(u1, u2, {}) is None


def test_edge_into_unrelated_chain_is_safe():
    u1, u2, u3 = _ids(3)
    assert find_manager_cycle(u1, u2, {u2: u3, u3: None}) is None


def test_two_node_cycle_detected():
    """U1 manages U2; making U2 manage U1 closes U1 -> U2 -> U1."""
    u1, u2 = _ids(2)
    chain = find_manager_cycle(u1, u2, {u2: u1})
    assert chain == [u1, u2, u1]


def test_long_cycle_detected():
    a, b, c, d = _ids(4)
    # d <- c <- b <- a: a is the top; setting a's manager to d closes the loop
    manager_of = {b: a, c: b, d: c}
    chain = find_manager_cycle(a, d, manager_of)
    assert chain == [a, d, c, b, a]


def test_existing_corrupt_cycle_terminates():
    u1, x, y = _ids(3)
    chain = find_manager_cycle(u1, x, {x: y, y: x})
    assert chain == [u1, x, y, x]


def test_self_edge_is_a_cycle():
    u1 = uuid4()
    assert find_manager_cycle(u1, u1, {}) == [u1, u1]


# ─── walk_manager_chain ──────────────────────────────────────────

def test_walk_returns_ancestors_nearest_first():
    a, b, c = _ids(3)
    assert walk_manager_chain(c, {c: b, b: a}) == [b, a]


def test_walk_of_root_is_empty():
    assert walk_manager_chain(uuid4(), {}) == []


def test_walk_stops_on_repeat():
    a, b = _ids(2)
    assert walk_manager_chain(a, {a: b, b: a}) == [b]
