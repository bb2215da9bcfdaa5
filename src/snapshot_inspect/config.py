"""
Configuration loader for snapshot-inspect.

Settings come from an optional JSON file, then environment overrides, then
explicit overrides (command-line flags). Config is immutable once loaded.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

from .registry import DEFAULT_REGISTRY
from .stats import DEFAULT_KEY_SEPARATOR, DEFAULT_PREFIX_DEPTH


__all__ = [
    "InspectConfig",
    "load_inspect_config",
    "get_inspect_config",
    "reset_config_cache",
]

OutputFormat = Literal["table", "json"]
_OUTPUT_FORMATS = ("table", "json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class InspectConfig:
    """Immutable inspection settings."""

    # Key prefix breakdown
    prefix_depth: int = DEFAULT_PREFIX_DEPTH
    key_separator: str = DEFAULT_KEY_SEPARATOR
    key_record_type: str = "KVS"

    # Output
    output_format: OutputFormat = "table"
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def load_inspect_config(path: Path | None = None, **overrides: Any) -> InspectConfig:
    """
    Load inspection configuration.

    Args:
        path: JSON config file. Defaults to $SNAPSHOT_INSPECT_CONFIG when set,
            otherwise built-in defaults are used.
        overrides: Explicit values (None entries are ignored). These win over
            the file and the environment.

    Raises:
        FileNotFoundError: If an explicitly requested config file is missing.
        ValueError: If any setting is invalid.
    """
    config_path = path or _resolve_config_path()
    raw: Mapping[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Inspect config not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)

    values = _parse_config(raw)
    values.update(_env_overrides())
    values.update({key: val for key, val in overrides.items() if val is not None})
    return _validate(values)


def _resolve_config_path() -> Path | None:
    env_path = os.environ.get("SNAPSHOT_INSPECT_CONFIG", "").strip()
    if env_path:
        return Path(env_path)
    return None


def _parse_config(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten the JSON file layout into InspectConfig field names."""
    if not isinstance(raw, Mapping):
        raise ValueError("config must be an object")
    if not raw:
        return {}
    schema_version = raw.get("schema_version")
    if schema_version != "1":
        raise ValueError(f"Unsupported schema_version: {schema_version}")

    values: dict[str, Any] = {}
    key_prefix = raw.get("key_prefix", {})
    if not isinstance(key_prefix, Mapping):
        raise ValueError("key_prefix must be an object")
    if "depth" in key_prefix:
        values["prefix_depth"] = key_prefix["depth"]
    if "separator" in key_prefix:
        values["key_separator"] = key_prefix["separator"]
    if "record_type" in key_prefix:
        values["key_record_type"] = key_prefix["record_type"]

    output = raw.get("output", {})
    if not isinstance(output, Mapping):
        raise ValueError("output must be an object")
    if "format" in output:
        values["output_format"] = output["format"]
    if "log_level" in output:
        values["log_level"] = output["log_level"]
    return values


def _env_int(name: str) -> int | None:
    raw_val = os.getenv(name)
    if raw_val is None or not raw_val.strip():
        return None
    try:
        return int(raw_val.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None


def _env_str(name: str) -> str | None:
    raw_val = os.getenv(name)
    if raw_val is None or not raw_val.strip():
        return None
    return raw_val.strip()


def _env_overrides() -> dict[str, Any]:
    candidates = {
        "prefix_depth": _env_int("SNAPSHOT_INSPECT_PREFIX_DEPTH"),
        # Separator is taken verbatim so whitespace separators stay possible.
        "key_separator": os.getenv("SNAPSHOT_INSPECT_KEY_SEPARATOR") or None,
        "key_record_type": _env_str("SNAPSHOT_INSPECT_KEY_RECORD_TYPE"),
        "output_format": _env_str("SNAPSHOT_INSPECT_FORMAT"),
        "log_level": _env_str("SNAPSHOT_INSPECT_LOG_LEVEL"),
    }
    return {key: val for key, val in candidates.items() if val is not None}


def _validate(values: Mapping[str, Any]) -> InspectConfig:
    cfg = InspectConfig(**values)

    if isinstance(cfg.prefix_depth, bool) or not isinstance(cfg.prefix_depth, int) or cfg.prefix_depth < 1:
        raise ValueError("prefix_depth must be a positive integer")
    if not isinstance(cfg.key_separator, str) or cfg.key_separator == "":
        raise ValueError("key_separator must be a non-empty string")
    if not isinstance(cfg.key_record_type, str):
        raise ValueError("key_record_type must be a string")
    try:
        DEFAULT_REGISTRY.tag_for(cfg.key_record_type)
    except KeyError:
        raise ValueError(f"key_record_type is not a known record type: {cfg.key_record_type}") from None
    if cfg.output_format not in _OUTPUT_FORMATS:
        raise ValueError("output_format must be table or json")
    if not isinstance(cfg.log_level, str) or cfg.log_level.upper() not in _LOG_LEVELS:
        raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
    return replace(cfg, log_level=cfg.log_level.upper())


@lru_cache(maxsize=1)
def get_inspect_config() -> InspectConfig:
    """
    Get cached inspection configuration.

    Loads once at first call, immutable thereafter.
    """
    return load_inspect_config()


def reset_config_cache() -> None:
    """Reset config cache. Only for testing."""
    get_inspect_config.cache_clear()
