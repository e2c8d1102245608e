from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TypedDict


class ErrorCodeBase(str, Enum):
    """Base class for error codes.

    This is a string enum where each member is both an Enum and a str.
    """

    value: str


class TmsErrorKind(ErrorCodeBase):
    """Which layer a failure came from.

    - TRANSPORT: the HTTP exchange itself failed (connect, DNS, TLS, read, timeout)
    - PROTOCOL: the TMS answered, but not with HTTP 200 and the expected JSON envelope
    - PRECONDITION: a staging file was missing or unexpectedly present
    - TIMEOUT: the poll deadline passed before Done (only when raise_on_timeout is set)
    """

    TRANSPORT = "TRANSPORT"
    PROTOCOL = "PROTOCOL"
    PRECONDITION = "PRECONDITION"
    TIMEOUT = "TIMEOUT"


class TmsErrorCode(ErrorCodeBase):
    """Operation that failed. Combined with TmsErrorKind to pinpoint the cause."""

    # Remote operations
    REQUEST_FAILED = "REQUEST_FAILED"  # submit import request
    UPLOAD_FAILED = "UPLOAD_FAILED"  # submit export upload
    STATE_FAILED = "STATE_FAILED"  # poll import/export state
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"  # download import file

    # Staging files
    FILE_NOT_PRODUCED = "FILE_NOT_PRODUCED"  # export file missing after writer ran
    FILE_ALREADY_EXISTS = "FILE_ALREADY_EXISTS"  # import file present before download

    # Polling
    JOB_TIMEOUT = "JOB_TIMEOUT"


class TmsErrorContext(TypedDict, total=False):
    """Diagnostic context attached to TmsClientError. Every key is optional."""

    endpoint: str
    method: str
    params: dict[str, str]
    headers: dict[str, str]
    http_status: int
    transport_code: str
    file_path: str
    job_id: int
    raw_state: int


_REDACTED = "***"
_SECRET_HEADERS: frozenset[str] = frozenset({"access-token", "x-app-token"})


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of headers with credential values masked."""
    out: dict[str, str] = {}
    for name, value in headers.items():
        out[name] = _REDACTED if name.lower() in _SECRET_HEADERS and value != "" else value
    return out


class TmsClientError(Exception):
    """Single error type raised by the TMS client.

    Attributes:
        kind: Failing layer (transport, protocol, precondition, timeout)
        code: Failing operation
        message: Human-readable error message
        context: Endpoint, params, redacted headers, HTTP status and similar details

    Example:
        >>> raise TmsClientError(
        ...     kind=TmsErrorKind.PRECONDITION,
        ...     code=TmsErrorCode.FILE_NOT_PRODUCED,
        ...     message="Export file not found",
        ...     context={"file_path": "/tmp/export.json"},
        ... )
    """

    def __init__(
        self,
        *,
        kind: TmsErrorKind,
        code: TmsErrorCode,
        message: str,
        context: TmsErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.message = message
        self.context: TmsErrorContext = context if context is not None else {}

    @property
    def http_status(self) -> int | None:
        return self.context.get("http_status")

    def __str__(self) -> str:
        parts = [f"[{self.kind.value}/{self.code.value}] {self.message}"]
        endpoint = self.context.get("endpoint")
        if endpoint is not None:
            parts.append(f"endpoint={endpoint}")
        status = self.context.get("http_status")
        if status is not None:
            parts.append(f"http_status={status}")
        transport_code = self.context.get("transport_code")
        if transport_code is not None:
            parts.append(f"transport_code={transport_code}")
        file_path = self.context.get("file_path")
        if file_path is not None:
            parts.append(f"file_path={file_path}")
        return " ".join(parts)


def is_transport_error(exc: BaseException) -> bool:
    return isinstance(exc, TmsClientError) and exc.kind is TmsErrorKind.TRANSPORT


def is_protocol_error(exc: BaseException) -> bool:
    return isinstance(exc, TmsClientError) and exc.kind is TmsErrorKind.PROTOCOL


def is_precondition_error(exc: BaseException) -> bool:
    return isinstance(exc, TmsClientError) and exc.kind is TmsErrorKind.PRECONDITION


class TmsConfigError(RuntimeError):
    """Raised when settings are missing or invalid."""


__all__ = [
    "ErrorCodeBase",
    "TmsClientError",
    "TmsConfigError",
    "TmsErrorCode",
    "TmsErrorContext",
    "TmsErrorKind",
    "is_precondition_error",
    "is_protocol_error",
    "is_transport_error",
    "redact_headers",
]
