from __future__ import annotations

from typing import Generic, Hashable, TypeVar

from indexed_heap.entry import Entry
from indexed_heap.errors import (
    DuplicateValueError,
    EmptyHeapError,
    HeapInvariantError,
    ValueNotFoundError,
)

V = TypeVar("V", bound=Hashable)
P = TypeVar("P")


class IndexedMinHeap(Generic[V, P]):
    """Min-heap of distinct values keyed by priority.

    `_entries` holds a complete binary tree: the root is at 0, the children
    of i are at 2i+1 and 2i+2, and the parent of i > 0 is at (i-1)//2.
    `_position` maps every value in the heap to its index in `_entries`.
    Smaller priorities sit closer to the root; equal priorities are allowed.
    """

    def __init__(self) -> None:
        self._entries: list[Entry[V, P]] = []
        self._position: dict[V, int] = {}

    # ---------- index arithmetic ----------

    @staticmethod
    def _parent(i: int) -> int:
        return (i - 1) // 2

    @staticmethod
    def _left(i: int) -> int:
        return 2 * i + 1

    @staticmethod
    def _right(i: int) -> int:
        return 2 * i + 2

    # ---------- internal helpers ----------

    def _swap(self, i: int, j: int) -> None:
        entries = self._entries
        entries[i], entries[j] = entries[j], entries[i]
        self._position[entries[i].value] = i
        self._position[entries[j].value] = j

    def _smaller_child(self, k: int) -> int:
        """Index of the child of k with the smaller priority.

        Ties go to the right child. Precondition: k has a left child.
        """
        left = self._left(k)
        right = self._right(k)
        if right >= len(self._entries):
            return left
        if self._entries[left].priority < self._entries[right].priority:
            return left
        return right

    def _bubble_up(self, k: int) -> None:
        entries = self._entries
        while k > 0:
            parent = self._parent(k)
            if not entries[k].priority < entries[parent].priority:
                break
            self._swap(k, parent)
            k = parent

    def _bubble_down(self, k: int) -> None:
        entries = self._entries
        n = len(entries)
        while self._left(k) < n:
            child = self._smaller_child(k)
            if not entries[child].priority < entries[k].priority:
                break
            self._swap(k, child)
            k = child

    # ---------- public API ----------

    def add(self, value: V, priority: P) -> None:
        if value in self._position:
            raise DuplicateValueError(value)

        idx = len(self._entries)
        self._entries.append(Entry(value, priority))
        self._position[value] = idx
        self._bubble_up(idx)

    def size(self) -> int:
        return len(self._entries)

    def peek(self) -> V:
        if not self._entries:
            raise EmptyHeapError("peek")
        return self._entries[0].value

    def poll(self) -> V:
        if not self._entries:
            raise EmptyHeapError("poll")

        top = self._entries[0]
        last = self._entries.pop()
        del self._position[top.value]

        if self._entries:
            self._entries[0] = last
            self._position[last.value] = 0
            self._bubble_down(0)

        return top.value

    def contains(self, value: V) -> bool:
        return value in self._position

    def change_priority(self, value: V, priority: P) -> None:
        if value not in self._position:
            raise ValueNotFoundError(value)

        idx = self._position[value]
        entry = self._entries[idx]
        old_priority = entry.priority
        entry.priority = priority

        if priority < old_priority:
            self._bubble_up(idx)
        elif old_priority < priority:
            self._bubble_down(idx)

    def check_invariants(self) -> None:
        """Verify completeness, heap order, uniqueness and the position index.

        Runs in O(n); raises HeapInvariantError on the first violation.
        """
        entries = self._entries
        for i, entry in enumerate(entries):
            if entry is None:
                raise HeapInvariantError(f"Gap in heap at index {i}")
        for i in range(1, len(entries)):
            parent = self._parent(i)
            if entries[i].priority < entries[parent].priority:
                raise HeapInvariantError(
                    f"Heap order violated: index {i} ({entries[i]!r}) "
                    f"is smaller than its parent {parent} ({entries[parent]!r})"
                )
        if len({entry.value for entry in entries}) != len(entries):
            raise HeapInvariantError("Duplicate value in heap")
        if len(self._position) != len(entries):
            raise HeapInvariantError(
                f"Position index has {len(self._position)} entries "
                f"but heap has {len(entries)}"
            )
        for i, entry in enumerate(entries):
            mapped = self._position.get(entry.value)
            if mapped != i:
                raise HeapInvariantError(
                    f"Position index maps {entry.value!r} to {mapped}, expected {i}"
                )

    def __contains__(self, value: object) -> bool:
        return value in self._position

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._entries!r})"
