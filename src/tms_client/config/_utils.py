from __future__ import annotations

import tomllib
from pathlib import Path

from tms_client.errors import TmsConfigError
from tms_client.json_utils import JSONValue
from tms_client.logging import LogFormat, LogLevel

from . import _test_hooks


def _optional_env_str(key: str) -> str | None:
    value = _test_hooks.get_env(key)
    if value is None:
        return None
    trimmed = value.strip()
    if trimmed == "":
        return None
    return trimmed


def _parse_float(key: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise TmsConfigError(f"Invalid number for {key}: {raw!r}") from exc


def _parse_bool(key: str, raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise TmsConfigError(f"Invalid boolean value for {key}: {raw!r}")


def _parse_log_level(key: str, raw: str) -> LogLevel:
    upper_val = raw.strip().upper()
    if upper_val == "DEBUG":
        return "DEBUG"
    if upper_val == "INFO":
        return "INFO"
    if upper_val == "WARNING":
        return "WARNING"
    if upper_val == "ERROR":
        return "ERROR"
    if upper_val == "CRITICAL":
        return "CRITICAL"
    raise TmsConfigError(f"Invalid log level for {key}: {raw!r}")


def _parse_log_format(key: str, raw: str) -> LogFormat:
    lowered = raw.strip().lower()
    if lowered == "json":
        return "json"
    if lowered == "text":
        return "text"
    raise TmsConfigError(f"Invalid log format for {key}: {raw!r}")


def _decode_toml(path: Path) -> dict[str, JSONValue]:
    text = path.read_text(encoding="utf-8")
    try:
        return _test_hooks.tomllib_loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise TmsConfigError(f"Invalid TOML in {path}: {exc}") from exc


def _decode_table(data: dict[str, JSONValue], key: str) -> dict[str, JSONValue]:
    raw = data.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TmsConfigError(f"TOML key {key} must be a table")
    return {str(k): v for k, v in raw.items()}


def _table_str(table: dict[str, JSONValue], key: str) -> str | None:
    """Read a scalar from a TOML table as the string an env var would hold."""
    value = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text if text != "" else None
    raise TmsConfigError(f"TOML key {key} must be a scalar")


__all__ = [
    "_decode_table",
    "_decode_toml",
    "_optional_env_str",
    "_parse_bool",
    "_parse_float",
    "_parse_log_format",
    "_parse_log_level",
    "_table_str",
]
