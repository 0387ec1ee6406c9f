from __future__ import annotations

import itertools

import numpy as np
import pytest

from indexed_heap.entry import Entry
from indexed_heap.errors import (
    DuplicateValueError,
    EmptyHeapError,
    HeapError,
    HeapInvariantError,
    ValueNotFoundError,
)
from indexed_heap.heap import IndexedMinHeap


def _heap_from(pairs: list[tuple[str, int]]) -> IndexedMinHeap[str, int]:
    heap: IndexedMinHeap[str, int] = IndexedMinHeap()
    for value, priority in pairs:
        heap.add(value, priority)
    return heap


def _drain(heap: IndexedMinHeap) -> list:
    out = []
    while heap.size() > 0:
        out.append(heap.poll())
    return out


def test_peek_returns_lowest_priority() -> None:
    heap = _heap_from([("a", 5), ("b", 3), ("c", 8)])
    assert heap.peek() == "b"
    assert heap.size() == 3


def test_poll_tied_priorities_returns_each_value_once() -> None:
    heap = _heap_from([("x", 1), ("y", 1)])
    polled = {heap.poll(), heap.poll()}
    assert polled == {"x", "y"}
    assert heap.size() == 0


def test_empty_heap_peek_and_poll_raise() -> None:
    heap: IndexedMinHeap[str, int] = IndexedMinHeap()
    with pytest.raises(EmptyHeapError):
        heap.peek()
    with pytest.raises(EmptyHeapError):
        heap.poll()


def test_change_priority_then_add() -> None:
    heap = _heap_from([("a", 10)])
    heap.change_priority("a", 1)
    heap.add("b", 5)
    assert heap.peek() == "a"


def test_duplicate_add_leaves_heap_unchanged() -> None:
    heap = _heap_from([("a", 1)])
    with pytest.raises(DuplicateValueError):
        heap.add("a", 2)
    assert heap.size() == 1
    assert heap.peek() == "a"
    assert heap._entries[0].priority == 1
    heap.check_invariants()


def test_change_priority_missing_value_raises() -> None:
    heap: IndexedMinHeap[str, int] = IndexedMinHeap()
    with pytest.raises(ValueNotFoundError):
        heap.change_priority("z", 1)
    assert heap.size() == 0


def test_errors_are_builtin_compatible() -> None:
    heap = _heap_from([("a", 1)])
    with pytest.raises(KeyError):
        heap.add("a", 1)
    with pytest.raises(KeyError):
        heap.change_priority("b", 1)
    heap.poll()
    with pytest.raises(IndexError):
        heap.poll()
    assert issubclass(HeapInvariantError, HeapError)


def test_contains_uses_position_index() -> None:
    heap = _heap_from([("a", 2), ("b", 1)])
    assert heap.contains("a")
    assert "b" in heap
    assert not heap.contains("c")
    heap.poll()
    assert not heap.contains("b")
    assert heap.contains("a")
    assert len(heap) == 1


def test_round_trip_yields_non_decreasing_priorities() -> None:
    rng = np.random.default_rng(0)
    priorities = [int(p) for p in rng.integers(0, 50, size=200)]
    heap = _heap_from([(f"v{i}", p) for i, p in enumerate(priorities)])
    heap.check_invariants()

    polled = _drain(heap)
    polled_priorities = [priorities[int(v[1:])] for v in polled]
    assert polled_priorities == sorted(priorities)
    assert sorted(polled) == sorted(f"v{i}" for i in range(200))


def test_change_priority_increase_moves_value_down() -> None:
    heap = _heap_from([("a", 1), ("b", 2), ("c", 3), ("d", 4)])
    heap.change_priority("a", 10)
    heap.check_invariants()
    assert heap.contains("a")
    assert _drain(heap) == ["b", "c", "d", "a"]


def test_change_priority_decrease_moves_value_up() -> None:
    heap = _heap_from([("a", 1), ("b", 2), ("c", 3), ("d", 4), ("e", 5)])
    heap.change_priority("e", 0)
    heap.check_invariants()
    assert heap.peek() == "e"
    assert heap._position["e"] == 0


def test_change_priority_same_value_is_noop() -> None:
    heap = _heap_from([("a", 1), ("b", 2), ("c", 3)])
    before = [(e.value, e.priority) for e in heap._entries]
    heap.change_priority("b", 2)
    assert [(e.value, e.priority) for e in heap._entries] == before
    heap.check_invariants()


def test_bubble_down_prefers_right_child_on_tie() -> None:
    heap = _heap_from([("r", 0), ("x", 2), ("y", 2), ("z", 9)])
    assert [e.value for e in heap._entries] == ["r", "x", "y", "z"]

    assert heap.poll() == "r"
    assert [e.value for e in heap._entries] == ["y", "x", "z"]
    assert heap.peek() == "y"
    heap.check_invariants()


def test_smaller_child_with_single_child() -> None:
    heap = _heap_from([("a", 1), ("b", 2)])
    assert heap._smaller_child(0) == 1


def test_bubble_up_stops_at_equal_parent() -> None:
    heap = _heap_from([("a", 1), ("b", 1)])
    assert [e.value for e in heap._entries] == ["a", "b"]


def test_swap_keeps_position_index_consistent() -> None:
    pairs = [(f"v{i}", i) for i in range(7)]
    for i, j in itertools.product(range(7), repeat=2):
        heap = _heap_from(pairs)
        vi = heap._entries[i].value
        vj = heap._entries[j].value
        heap._swap(i, j)
        assert heap._entries[i].value == vj
        assert heap._entries[j].value == vi
        assert len(heap._position) == len(heap._entries)
        for idx, entry in enumerate(heap._entries):
            assert heap._position[entry.value] == idx


def test_index_arithmetic() -> None:
    assert IndexedMinHeap._parent(1) == 0
    assert IndexedMinHeap._parent(2) == 0
    assert IndexedMinHeap._parent(6) == 2
    assert IndexedMinHeap._left(2) == 5
    assert IndexedMinHeap._right(2) == 6


def test_random_operations_preserve_invariants() -> None:
    rng = np.random.default_rng(1234)
    heap: IndexedMinHeap[int, int] = IndexedMinHeap()
    reference: dict[int, int] = {}

    for _ in range(2000):
        op = int(rng.integers(0, 3))
        value = int(rng.integers(0, 60))
        priority = int(rng.integers(-20, 20))
        if op == 0:
            if value in reference:
                with pytest.raises(DuplicateValueError):
                    heap.add(value, priority)
            else:
                heap.add(value, priority)
                reference[value] = priority
        elif op == 1:
            if reference:
                polled = heap.poll()
                assert reference[polled] == min(reference.values())
                del reference[polled]
            else:
                with pytest.raises(EmptyHeapError):
                    heap.poll()
        else:
            if value in reference:
                heap.change_priority(value, priority)
                reference[value] = priority
                assert heap.contains(value)
            else:
                with pytest.raises(ValueNotFoundError):
                    heap.change_priority(value, priority)

        heap.check_invariants()
        assert heap.size() == len(heap._position) == len(reference)
        for v in reference:
            assert heap._entries[heap._position[v]].value == v


def test_check_invariants_detects_bad_position() -> None:
    heap = _heap_from([("a", 1), ("b", 2), ("c", 3)])
    heap._position["b"] = 2
    with pytest.raises(HeapInvariantError, match="Position index"):
        heap.check_invariants()


def test_check_invariants_detects_heap_order_violation() -> None:
    heap = _heap_from([("a", 1), ("b", 2), ("c", 3)])
    heap._entries[2].priority = 0
    with pytest.raises(HeapInvariantError, match="Heap order"):
        heap.check_invariants()


def test_check_invariants_detects_stale_index_entry() -> None:
    heap = _heap_from([("a", 1), ("b", 2)])
    heap._position["ghost"] = 5
    with pytest.raises(HeapInvariantError):
        heap.check_invariants()


def test_entry_repr_and_heap_repr() -> None:
    assert repr(Entry("a", 3)) == "'a'@3"
    heap = _heap_from([("a", 3)])
    assert repr(heap) == "IndexedMinHeap(['a'@3])"


def test_tuple_priorities() -> None:
    heap = _heap_from([("a", (2, "x")), ("b", (1, "z")), ("c", (1, "y"))])
    assert _drain(heap) == ["c", "b", "a"]
