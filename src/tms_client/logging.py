"""Structured logging for TMS job orchestration.

Events are logged with a short event name as the message (``tms_poll``,
``tms_export_submitted``) and job details passed through ``extra=``. Both
formatters pick the job fields listed in ``JOB_FIELDS`` off the record when
present, so call sites never configure them.
"""

from __future__ import annotations

import logging
import os
import socket
import sys
import time
from typing import Literal, TypedDict

from tms_client.json_utils import JSONValue, dump_json_str

LogFormat = Literal["json", "text"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

JOB_FIELDS: tuple[str, ...] = (
    "job_id",
    "endpoint",
    "method",
    "http_status",
    "raw_state",
    "poll_count",
    "elapsed_seconds",
    "file_path",
    "error_code",
    "error_kind",
    "transport_code",
)


class LogEventFields(TypedDict, total=False):
    """Fields accepted in ``extra=`` by the client's log calls."""

    job_id: int
    endpoint: str
    method: str
    http_status: int
    raw_state: int
    poll_count: int
    elapsed_seconds: float
    file_path: str
    error_code: str
    error_kind: str
    transport_code: str


_Scalar = str | int | float | bool


def _scalar_field(record: logging.LogRecord, name: str) -> _Scalar | None:
    # Non-scalar extras are dropped rather than stringified.
    value: object = record.__dict__.get(name)
    if isinstance(value, (str, int, float, bool)):
        return value
    return None


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, static and job fields."""

    def __init__(self, *, static_fields: dict[str, str]) -> None:
        super().__init__()
        self._static = static_fields

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, JSONValue] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(self._static)
        for name in JOB_FIELDS:
            value = _scalar_field(record, name)
            if value is not None:
                payload[name] = value
        if record.exc_info is not None:
            payload["exc_info"] = self.formatException(record.exc_info)
        return dump_json_str(payload, compact=False)


class TextFormatter(logging.Formatter):
    """``[timestamp] [LEVEL] [logger] message key=value ...`` for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"[{self.formatTime(record, '%Y-%m-%d %H:%M:%S')}]",
            f"[{record.levelname}]",
            f"[{record.name}]",
            record.getMessage(),
        ]
        for name in JOB_FIELDS:
            value = _scalar_field(record, name)
            if value is not None:
                parts.append(f"{name}={value}")
        line = " ".join(parts)
        if record.exc_info is not None:
            line = line + "\n" + self.formatException(record.exc_info)
        return line


def _compute_instance_id() -> str:
    host = socket.gethostname().split(".")[0]
    return f"{host}-{os.getpid()}"


_LEVELS: dict[LogLevel, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(
    *,
    level: LogLevel,
    format_mode: LogFormat,
    service_name: str,
    instance_id: str | None = None,
) -> logging.Logger:
    """Configure the root logger with a single stdout handler.

    Existing root handlers are removed. ``instance_id`` defaults to
    ``<hostname>-<pid>`` and, with ``service_name``, is stamped on every JSON
    record. httpx and httpcore are capped at WARNING.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_LEVELS[level])

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    if format_mode == "json":
        handler.setFormatter(
            JsonFormatter(
                static_fields={
                    "service": service_name,
                    "instance_id": (
                        instance_id if instance_id is not None else _compute_instance_id()
                    ),
                }
            )
        )
    else:
        handler.setFormatter(TextFormatter())
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return root


# Expose stdlib logging module for typed test utilities.
stdlib_logging = logging


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "JOB_FIELDS",
    "JsonFormatter",
    "LogEventFields",
    "LogFormat",
    "LogLevel",
    "TextFormatter",
    "get_logger",
    "setup_logging",
    "stdlib_logging",
]
