from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")
P = TypeVar("P")


@dataclass(slots=True)
class Entry(Generic[V, P]):
    value: V
    priority: P

    def __repr__(self) -> str:
        return f"{self.value!r}@{self.priority!r}"
