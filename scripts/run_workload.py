from __future__ import annotations

import json
import sys
from pathlib import Path

import numpy as np
from tqdm import tqdm

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from indexed_heap.heap import IndexedMinHeap
from lib.workload import WorkloadReport, generate_operations, replay
from lib.workload_config import WorkloadConfig, load_workload_config, parse_args
from lib.workload_utils import prepare_run_dir, save_json


def run_workload(cfg: WorkloadConfig) -> tuple[WorkloadReport, Path]:
    run_dir = prepare_run_dir(cfg)
    save_json(cfg.to_dict(), run_dir / "config.resolved.json")

    rng = np.random.default_rng(cfg.seed)
    operations = generate_operations(cfg, rng)
    tqdm.write(
        f"Generated {len(operations):,} operations "
        f"(seed={cfg.seed}, value_space={cfg.value_space})"
    )

    heap: IndexedMinHeap[str, int] = IndexedMinHeap()
    progress = tqdm(
        total=len(operations),
        dynamic_ncols=True,
        desc="replay",
        disable=not cfg.output.show_progress,
    )
    try:
        report = replay(heap, operations, cfg, progress=progress)
    finally:
        progress.close()

    report_path = run_dir / "report.json"
    save_json(report.to_dict(), report_path)
    tqdm.write(
        f"Done: {report.num_ops:,} ops in {report.elapsed_s:.2f}s, "
        f"final size={report.final_size}, max size={report.max_size}, "
        f"invariant checks={report.invariant_checks}"
    )
    tqdm.write(f"Saved report: {report_path}")
    return report, report_path


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    cfg = load_workload_config(args)
    if args.print_config:
        print(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))
        return
    run_workload(cfg)


if __name__ == "__main__":
    main()
