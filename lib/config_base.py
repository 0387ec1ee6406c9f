from __future__ import annotations

import ast
import json
import tomllib
from dataclasses import asdict, fields, is_dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, TypeVar, get_type_hints

TConfig = TypeVar("TConfig", bound="ConfigBase")


class ConfigBase:
    @classmethod
    def from_file(cls: type[TConfig], config_path: str | Path) -> TConfig:
        return cls.from_dict(read_config_file(config_path))

    @classmethod
    def from_dict(cls: type[TConfig], data: Mapping[str, Any]) -> TConfig:
        field_names = {f.name for f in fields(cls)}
        unknown = [key for key in data if key not in field_names]
        if unknown:
            keys = ", ".join(sorted(unknown))
            raise ValueError(f"Unknown config field(s) in {cls.__name__}: {keys}")

        type_hints = get_type_hints(cls)
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in data:
                kwargs[f.name] = cls._coerce_value(
                    type_hints.get(f.name, f.type), data[f.name], path=f.name
                )
        return cls(**kwargs)  # type: ignore[call-arg]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]

    def with_updates(self: TConfig, updates: Mapping[str, Any]) -> TConfig:
        merged = self.to_dict()
        _merge_nested(merged, updates, path="")
        return type(self).from_dict(merged)

    def with_overrides(self: TConfig, overrides: Iterable[str]) -> TConfig:
        """Apply `KEY=VALUE` strings, where KEY may be dotted (`mix.add=0.5`)."""
        flat: dict[str, Any] = {}
        for override in overrides:
            if "=" not in override:
                raise ValueError(
                    f"Invalid override `{override}` (expected KEY=VALUE)"
                )
            key, raw = override.split("=", 1)
            flat[key.strip()] = parse_value(raw)
        return self.with_updates(nested_from_dotted(flat))

    @classmethod
    def _coerce_value(cls, field_type: Any, incoming: Any, *, path: str) -> Any:
        if (
            isinstance(field_type, type)
            and is_dataclass(field_type)
            and issubclass(field_type, ConfigBase)
        ):
            if not isinstance(incoming, Mapping):
                raise ValueError(f"Expected mapping for nested config field `{path}`.")
            return field_type.from_dict(dict(incoming))
        return incoming


def read_config_file(config_path: str | Path) -> dict[str, Any]:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.suffix == ".toml":
        data = tomllib.loads(path.read_text())
    elif path.suffix == ".json":
        data = json.loads(path.read_text())
    else:
        raise ValueError(
            f"Unsupported config format: {path.suffix}. Use .toml or .json."
        )
    if not isinstance(data, Mapping):
        raise ValueError("Config must parse to a mapping at the top level.")
    return dict(data)


def parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass
    try:
        return ast.literal_eval(raw)
    except (ValueError, SyntaxError):
        return raw


def nested_from_dotted(flat: Mapping[str, Any]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for dotted_key, value in flat.items():
        parts = dotted_key.split(".")
        if any(not part for part in parts):
            raise ValueError(f"Invalid override key `{dotted_key}`.")
        cursor = nested
        for part in parts[:-1]:
            existing = cursor.setdefault(part, {})
            if not isinstance(existing, dict):
                raise ValueError(
                    f"Cannot set nested key `{dotted_key}` because `{part}` is not a mapping."
                )
            cursor = existing
        cursor[parts[-1]] = value
    return nested


def _merge_nested(base: dict[str, Any], updates: Mapping[str, Any], *, path: str) -> None:
    for key, value in updates.items():
        full_key = f"{path}.{key}" if path else key
        if key not in base:
            raise ValueError(f"Unknown config field `{full_key}`.")

        if isinstance(base[key], dict):
            if not isinstance(value, Mapping):
                raise ValueError(
                    f"Expected mapping for nested field `{full_key}`, got {type(value).__name__}."
                )
            _merge_nested(base[key], value, path=full_key)
        elif isinstance(value, Mapping):
            raise ValueError(
                f"Expected scalar value for field `{full_key}`, got mapping."
            )
        else:
            base[key] = value
