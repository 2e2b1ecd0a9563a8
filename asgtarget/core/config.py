"""Configuration helpers for the ASG target.

This module loads optional YAML configuration files with process-wide
defaults (region, convergence polling, drain deadline).  Configuration
precedence:

1. Environment variable ``ASGTARGET_CONFIG`` pointing to a YAML file.
2. ``asgtarget.yaml`` in the current working directory.
3. Built-in defaults bundled with the package (``config/default.yaml``).

Per-call string mappings supplied by the autoscaler host are layered on top
with :meth:`TargetSettings.merged`.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from asgtarget.config.keys import (
    CONFIG_KEY_DRAIN_DEADLINE,
    CONFIG_KEY_REGION,
    CONFIG_KEY_RETRY_INTERVAL,
    CONFIG_KEY_RETRY_LIMIT,
    CONFIG_VALUE_REGION_DEFAULT,
)
from asgtarget.core.errors import ConfigError

__all__ = [
    "TargetSettings",
    "get_target_settings",
    "parse_duration",
    "reset_target_settings",
]


_ENV_VAR = "ASGTARGET_CONFIG"

_DURATION_UNITS: Dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: object, *, key: str = "duration") -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and unit strings such as ``"15m"``,
    ``"1h30m"``, ``"2.5s"`` or ``"500ms"``.
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid {key} value {value!r}", key=key)
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if not text:
            raise ConfigError(f"invalid {key} value {value!r}", key=key)
        try:
            seconds = float(text)
        except ValueError:
            seconds = 0.0
            position = 0
            for match in _DURATION_PART.finditer(text):
                if match.start() != position:
                    raise ConfigError(f"invalid {key} value {value!r}", key=key)
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                position = match.end()
            if position != len(text):
                raise ConfigError(f"invalid {key} value {value!r}", key=key)
    if seconds < 0:
        raise ConfigError(f"{key} must be non-negative, got {value!r}", key=key)
    return seconds


def _parse_positive_int(value: object, *, key: str) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid {key} value {value!r}", key=key) from exc
    if number < 1:
        raise ConfigError(f"{key} must be at least 1, got {value!r}", key=key)
    return number


@dataclass(frozen=True)
class TargetSettings:
    region: str = CONFIG_VALUE_REGION_DEFAULT
    retry_interval: float = 10.0
    retry_limit: int = 15
    drain_deadline: float = 15 * 60.0

    @property
    def convergence_timeout(self) -> float:
        return self.retry_interval * self.retry_limit

    def merged(self, config: Optional[Mapping[str, str]]) -> "TargetSettings":
        """Return settings overridden by any keys present in ``config``."""
        if not config:
            return self
        overrides: Dict[str, object] = {}
        if config.get(CONFIG_KEY_REGION):
            overrides["region"] = str(config[CONFIG_KEY_REGION])
        if config.get(CONFIG_KEY_RETRY_INTERVAL):
            overrides["retry_interval"] = parse_duration(
                config[CONFIG_KEY_RETRY_INTERVAL], key=CONFIG_KEY_RETRY_INTERVAL
            )
        if config.get(CONFIG_KEY_RETRY_LIMIT):
            overrides["retry_limit"] = _parse_positive_int(
                config[CONFIG_KEY_RETRY_LIMIT], key=CONFIG_KEY_RETRY_LIMIT
            )
        if config.get(CONFIG_KEY_DRAIN_DEADLINE):
            overrides["drain_deadline"] = parse_duration(
                config[CONFIG_KEY_DRAIN_DEADLINE], key=CONFIG_KEY_DRAIN_DEADLINE
            )
        return replace(self, **overrides) if overrides else self


_target_settings: Optional[TargetSettings] = None


def _resolve_config_path() -> Optional[Path]:
    env_path = os.environ.get(_ENV_VAR)
    if env_path:
        candidate = Path(env_path).expanduser()
        if candidate.is_file():
            return candidate

    cwd_file = Path.cwd() / "asgtarget.yaml"
    if cwd_file.is_file():
        return cwd_file
    return None


def _load_yaml_dict() -> Dict[str, object]:
    path = _resolve_config_path()
    if path is not None:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}

    # Fallback to bundled default configuration
    from importlib import resources

    with resources.open_text("asgtarget.config", "default.yaml", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _build_target_settings(data: Dict[str, object]) -> TargetSettings:
    node = data.get("target", {})
    if node is None:
        node = {}
    if not isinstance(node, dict):
        raise ConfigError("'target' section must be a mapping")

    # YAML scalars may already be numbers; the mapping merge expects strings.
    raw = {key: str(value) for key, value in node.items() if value is not None}
    return TargetSettings().merged(raw)


def get_target_settings() -> TargetSettings:
    global _target_settings
    if _target_settings is None:
        _target_settings = _build_target_settings(_load_yaml_dict())
    return _target_settings


def reset_target_settings() -> None:
    """Reset cached target settings (intended for tests)."""
    global _target_settings
    _target_settings = None
