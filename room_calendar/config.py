"""Work-week policy and runtime settings loaded from YAML and the environment."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping
import os

import yaml

from .booking import DEFAULT_POLICY, WorkWeekPolicy

DATA_DIR_ENV = "ROOM_CALENDAR_DATA_DIR"
POLICY_FILE_ENV = "ROOM_CALENDAR_POLICY_FILE"
_POLICY_KEYS = {item.name for item in fields(WorkWeekPolicy)}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    policy: WorkWeekPolicy = DEFAULT_POLICY


def policy_from_mapping(data: Mapping[str, Any]) -> WorkWeekPolicy:
    unknown = sorted(set(data) - _POLICY_KEYS)
    if unknown:
        raise ValueError(f"Unknown policy key(s): {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if key == "holiday_country":
            values[key] = str(value).upper() if value else None
        elif isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Policy key '{key}' must be an integer, got {value!r}")
        else:
            values[key] = value
    return WorkWeekPolicy(**values)


def load_policy(config_path: str | Path) -> WorkWeekPolicy:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Policy file must contain a mapping at the root level.")
    return policy_from_mapping(data)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    data_dir = Path(env.get(DATA_DIR_ENV) or "data")
    policy_file = env.get(POLICY_FILE_ENV)
    policy = load_policy(policy_file) if policy_file else DEFAULT_POLICY
    return Settings(data_dir=data_dir, policy=policy)
