from __future__ import annotations

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
from .tms import CONFIG_FILE_ENV, TmsSettings, configure_logging, load_tms_settings

__all__ = [
    "CONFIG_FILE_ENV",
    "TmsSettings",
    "_decode_table",
    "_decode_toml",
    "_optional_env_str",
    "_parse_bool",
    "_parse_float",
    "_parse_log_format",
    "_parse_log_level",
    "_table_str",
    "configure_logging",
    "load_tms_settings",
]
