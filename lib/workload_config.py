from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from lib.config_base import ConfigBase

OP_KINDS = ("add", "poll", "peek", "contains", "change_priority")


@dataclass
class MixConfig(ConfigBase):
    # Relative weights, normalized at generation time
    add: float = 0.4
    poll: float = 0.2
    peek: float = 0.1
    contains: float = 0.1
    change_priority: float = 0.2

    def weights(self) -> list[float]:
        return [float(getattr(self, kind)) for kind in OP_KINDS]


@dataclass
class CheckConfig(ConfigBase):
    invariants_every: int = 100
    verify_against_reference: bool = True


@dataclass
class OutputConfig(ConfigBase):
    out_dir: str = "runs"
    run_name: str = "workload"
    run_id: str | None = None
    show_progress: bool = True


@dataclass
class WorkloadConfig(ConfigBase):
    seed: int = 0
    num_ops: int = 10000
    value_space: int = 1000
    priority_low: int = 0
    priority_high: int = 1000
    mix: MixConfig = field(default_factory=MixConfig)
    check: CheckConfig = field(default_factory=CheckConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.num_ops < 0:
            raise ValueError(f"num_ops must be >= 0, got {self.num_ops}")
        if self.value_space < 1:
            raise ValueError(f"value_space must be >= 1, got {self.value_space}")
        if self.priority_low >= self.priority_high:
            raise ValueError(
                f"priority_low ({self.priority_low}) must be < priority_high ({self.priority_high})"
            )
        if self.check.invariants_every < 0:
            raise ValueError(
                f"check.invariants_every must be >= 0, got {self.check.invariants_every}"
            )
        weights = self.mix.weights()
        if any(w < 0 for w in weights):
            raise ValueError(f"Operation mix weights must be non-negative: {weights}")
        if sum(weights) <= 0:
            raise ValueError("Operation mix weights must have a positive sum.")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay a random operation workload against IndexedMinHeap."
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path to .toml or .json config."
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override config key(s), e.g. --set num_ops=5000 --set mix.poll=0.5",
    )
    parser.add_argument(
        "--print-config", action="store_true", help="Print final config and exit."
    )
    return parser.parse_args(argv)


def load_workload_config(args: argparse.Namespace) -> WorkloadConfig:
    cfg = WorkloadConfig()
    if args.config is not None:
        cfg = WorkloadConfig.from_file(args.config)
    return cfg.with_overrides(args.set)
