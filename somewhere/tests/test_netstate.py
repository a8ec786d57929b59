"""
Tests for NetState, the gossiped view of the fastest strategy.

Verifies:
- Unseen devices read as (-inf, False)
- update() and max() never mutate their inputs
- Merge is commutative, associative and idempotent
- value(threshold) only counts true entries strictly after the threshold
"""

import math
from itertools import permutations

from somewhere.netstate import NetState, DEFAULT_ENTRY


def make_states():
    a = NetState({0: (1.0, True), 1: (4.0, False)})
    b = NetState({1: (2.0, True), 2: (3.0, True)})
    c = NetState({0: (5.0, False), 3: (0.5, True)})
    return a, b, c


def test_default_entry():
    state = NetState()
    assert state.get(7) == DEFAULT_ENTRY
    assert state.get(7) == (-math.inf, False)
    assert len(state) == 0
    assert 7 not in state


def test_update_returns_copy():
    state = NetState()
    updated = state.update(1, 2.0, True)

    assert len(state) == 0, "update() must not mutate the original"
    assert updated.get(1) == (2.0, True)
    assert 1 in updated


def test_max_pointwise():
    a, b, _ = make_states()
    merged = NetState.max(a, b)

    assert merged.get(0) == (1.0, True)
    assert merged.get(1) == (4.0, False), "newer timestamp wins regardless of value"
    assert merged.get(2) == (3.0, True)
    assert a == NetState({0: (1.0, True), 1: (4.0, False)}), "inputs unchanged"


def test_max_tie_prefers_true():
    merged = NetState.max(NetState({1: (3.0, False)}), NetState({1: (3.0, True)}))
    assert merged.get(1) == (3.0, True)


def test_merge_laws():
    a, b, c = make_states()

    assert NetState.max(a, b) == NetState.max(b, a)
    assert NetState.max(NetState.max(a, b), c) == NetState.max(a, NetState.max(b, c))
    assert NetState.max(a, a) == a

    folds = {NetState.fold(order) for order in permutations((a, b, c))}
    assert len(folds) == 1, "fold must not depend on delivery order"


def test_fold_empty():
    assert NetState.fold([]) == NetState()


def test_value_threshold():
    state = NetState({0: (5.0, True), 1: (9.0, False)})

    assert state.value(4.0)
    assert not state.value(5.0), "threshold is strict"
    assert not state.value(6.0)
    assert not NetState().value(-math.inf)


def test_encoded_size_grows_with_devices():
    # uid (4) + timestamp (8) + value (1) per entry
    assert NetState().encoded_size() == 0
    assert NetState({0: (1.0, True), 1: (2.0, False)}).encoded_size() == 26
