from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from lib.workload_config import WorkloadConfig


def prepare_run_dir(cfg: WorkloadConfig) -> Path:
    run_id = cfg.output.run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
    cfg.output.run_id = run_id
    run_dir = Path(cfg.output.out_dir) / f"{cfg.output.run_name}_{run_id}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def save_json(data: dict[str, Any], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(data, indent=2, sort_keys=True))
