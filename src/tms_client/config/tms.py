from __future__ import annotations

import logging
from pathlib import Path
from typing import TypedDict

from tms_client.errors import TmsConfigError
from tms_client.json_utils import JSONValue
from tms_client.logging import LogFormat, LogLevel, setup_logging
from tms_client.models import (
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_MAX_EXECUTION_TIME,
    Credentials,
    EndpointSet,
    PollPolicy,
    make_poll_policy,
)

from ._utils import (
    _decode_table,
    _decode_toml,
    _optional_env_str,
    _parse_bool,
    _parse_float,
    _parse_log_format,
    _parse_log_level,
    _table_str,
)

CONFIG_FILE_ENV = "TMS_CONFIG_FILE"
_ENV_PREFIX = "TMS_"
_TOML_TABLE = "tms"


class TmsSettings(TypedDict):
    host: str
    endpoints: EndpointSet
    credentials: Credentials
    poll_policy: PollPolicy
    http_timeout_seconds: float | None
    log_level: LogLevel
    log_format: LogFormat


class _Source:
    """Environment first, then the ``[tms]`` table of the optional TOML file."""

    __slots__ = ("_table",)

    def __init__(self, table: dict[str, JSONValue]) -> None:
        self._table = table

    def get(self, env_key: str) -> str | None:
        value = _optional_env_str(env_key)
        if value is not None:
            return value
        return _table_str(self._table, env_key.removeprefix(_ENV_PREFIX).lower())

    def require(self, env_key: str) -> str:
        value = self.get(env_key)
        if value is None:
            raise TmsConfigError(f"Missing required setting: {env_key}")
        return value


def _load_file_table() -> dict[str, JSONValue]:
    raw_path = _optional_env_str(CONFIG_FILE_ENV)
    if raw_path is None:
        return {}
    path = Path(raw_path)
    if not path.is_file():
        raise TmsConfigError(f"Config file not found: {path}")
    return _decode_table(_decode_toml(path), _TOML_TABLE)


def load_tms_settings() -> TmsSettings:
    src = _Source(_load_file_table())

    host = src.require("TMS_HOST")
    endpoints: EndpointSet = {
        "import_request": src.require("TMS_IMPORT_REQUEST_PATH"),
        "import_state": src.require("TMS_IMPORT_STATE_PATH"),
        "import_download": src.require("TMS_IMPORT_DOWNLOAD_PATH"),
        "export_upload": src.require("TMS_EXPORT_UPLOAD_PATH"),
        "export_state": src.require("TMS_EXPORT_STATE_PATH"),
    }
    credentials: Credentials = {
        "access_token": src.require("TMS_ACCESS_TOKEN"),
        "application_token": src.require("TMS_APP_TOKEN"),
    }

    interval_raw = src.get("TMS_CHECK_INTERVAL")
    deadline_raw = src.get("TMS_MAX_EXECUTION_TIME")
    raise_raw = src.get("TMS_RAISE_ON_TIMEOUT")
    try:
        poll_policy = make_poll_policy(
            check_interval=(
                DEFAULT_CHECK_INTERVAL
                if interval_raw is None
                else _parse_float("TMS_CHECK_INTERVAL", interval_raw)
            ),
            max_execution_time=(
                DEFAULT_MAX_EXECUTION_TIME
                if deadline_raw is None
                else _parse_float("TMS_MAX_EXECUTION_TIME", deadline_raw)
            ),
            raise_on_timeout=(
                False if raise_raw is None else _parse_bool("TMS_RAISE_ON_TIMEOUT", raise_raw)
            ),
        )
    except ValueError as exc:
        raise TmsConfigError(str(exc)) from exc

    timeout_raw = src.get("TMS_HTTP_TIMEOUT")
    http_timeout = None if timeout_raw is None else _parse_float("TMS_HTTP_TIMEOUT", timeout_raw)
    if http_timeout is not None and http_timeout <= 0:
        raise TmsConfigError("TMS_HTTP_TIMEOUT must be > 0")

    level_raw = src.get("TMS_LOG_LEVEL")
    format_raw = src.get("TMS_LOG_FORMAT")
    return {
        "host": host,
        "endpoints": endpoints,
        "credentials": credentials,
        "poll_policy": poll_policy,
        "http_timeout_seconds": http_timeout,
        "log_level": "INFO" if level_raw is None else _parse_log_level("TMS_LOG_LEVEL", level_raw),
        "log_format": (
            "json" if format_raw is None else _parse_log_format("TMS_LOG_FORMAT", format_raw)
        ),
    }


def configure_logging(
    settings: TmsSettings, *, service_name: str = "tms-client"
) -> logging.Logger:
    """Install the root log handler using the level and format from ``settings``."""
    return setup_logging(
        level=settings["log_level"],
        format_mode=settings["log_format"],
        service_name=service_name,
    )


__all__ = ["CONFIG_FILE_ENV", "TmsSettings", "configure_logging", "load_tms_settings"]
