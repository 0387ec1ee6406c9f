from __future__ import annotations

import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np
from tqdm import tqdm

from indexed_heap.errors import HeapError
from indexed_heap.heap import IndexedMinHeap
from lib.workload_config import OP_KINDS, WorkloadConfig


class WorkloadMismatchError(RuntimeError):
    pass


@dataclass(frozen=True)
class Operation:
    kind: str
    value: str
    priority: int


@dataclass
class WorkloadReport:
    num_ops: int = 0
    final_size: int = 0
    max_size: int = 0
    invariant_checks: int = 0
    elapsed_s: float = 0.0
    ops: dict[str, int] = field(default_factory=dict)
    errors: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def generate_operations(cfg: WorkloadConfig, rng: np.random.Generator) -> list[Operation]:
    weights = np.asarray(cfg.mix.weights(), dtype=np.float64)
    kinds = rng.choice(len(OP_KINDS), size=cfg.num_ops, p=weights / weights.sum())
    values = rng.integers(0, cfg.value_space, size=cfg.num_ops)
    priorities = rng.integers(cfg.priority_low, cfg.priority_high, size=cfg.num_ops)
    return [
        Operation(OP_KINDS[int(k)], f"v{int(v)}", int(p))
        for k, v, p in zip(kinds, values, priorities)
    ]


def _apply(heap: IndexedMinHeap[str, int], op: Operation) -> tuple[Any, str | None]:
    try:
        if op.kind == "add":
            return heap.add(op.value, op.priority), None
        if op.kind == "poll":
            return heap.poll(), None
        if op.kind == "peek":
            return heap.peek(), None
        if op.kind == "contains":
            return heap.contains(op.value), None
        if op.kind == "change_priority":
            return heap.change_priority(op.value, op.priority), None
    except HeapError as e:
        return None, type(e).__name__
    raise ValueError(f"Unknown operation kind `{op.kind}`")


class ReferenceModel:
    """Brute-force dict model used to cross-check heap results."""

    def __init__(self) -> None:
        self.priorities: dict[str, int] = {}

    def expected_error(self, op: Operation) -> str | None:
        if op.kind == "add" and op.value in self.priorities:
            return "DuplicateValueError"
        if op.kind in ("poll", "peek") and not self.priorities:
            return "EmptyHeapError"
        if op.kind == "change_priority" and op.value not in self.priorities:
            return "ValueNotFoundError"
        return None

    def check(self, step: int, op: Operation, result: Any, error: str | None) -> None:
        expected = self.expected_error(op)
        if error != expected:
            raise WorkloadMismatchError(
                f"Step {step} {op}: expected error {expected}, got {error}"
            )
        if error is not None:
            return

        if op.kind == "add":
            self.priorities[op.value] = op.priority
        elif op.kind == "change_priority":
            self.priorities[op.value] = op.priority
        elif op.kind == "contains":
            if result != (op.value in self.priorities):
                raise WorkloadMismatchError(
                    f"Step {step} {op}: contains returned {result}"
                )
        else:
            # Ties are implementation-defined, so compare by priority
            lowest = min(self.priorities.values())
            if self.priorities.get(result) != lowest:
                raise WorkloadMismatchError(
                    f"Step {step} {op}: returned {result!r} "
                    f"with priority {self.priorities.get(result)}, minimum is {lowest}"
                )
            if op.kind == "poll":
                del self.priorities[result]


def replay(
    heap: IndexedMinHeap[str, int],
    operations: list[Operation],
    cfg: WorkloadConfig,
    progress: tqdm | None = None,
) -> WorkloadReport:
    reference = ReferenceModel() if cfg.check.verify_against_reference else None
    every = cfg.check.invariants_every
    ops: Counter[str] = Counter()
    errors: Counter[str] = Counter()
    report = WorkloadReport()

    t0 = time.time()
    for step, op in enumerate(operations, start=1):
        result, error = _apply(heap, op)
        ops[op.kind] += 1
        if error is not None:
            errors[error] += 1
        if reference is not None:
            reference.check(step, op, result, error)
        if reference is not None and len(heap) != len(reference.priorities):
            raise WorkloadMismatchError(
                f"Step {step} {op}: heap size {len(heap)}, "
                f"expected {len(reference.priorities)}"
            )
        report.max_size = max(report.max_size, len(heap))

        if every and step % every == 0:
            heap.check_invariants()
            report.invariant_checks += 1

        if progress is not None:
            progress.update(1)
            if step % 1000 == 0:
                elapsed = time.time() - t0
                progress.set_postfix(
                    {
                        "size": len(heap),
                        "ops/s": f"{step / max(elapsed, 1e-8):.0f}",
                    }
                )

    heap.check_invariants()
    report.invariant_checks += 1

    report.num_ops = len(operations)
    report.final_size = len(heap)
    report.elapsed_s = time.time() - t0
    report.ops = {kind: ops[kind] for kind in OP_KINDS}
    report.errors = dict(sorted(errors.items()))
    return report
