from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from pathlib import Path
from types import TracebackType
from typing import Literal, Protocol

from tms_client import _test_hooks
from tms_client.errors import (
    TmsClientError,
    TmsErrorCode,
    TmsErrorContext,
    TmsErrorKind,
    redact_headers,
)
from tms_client.http_client import HttpxClient, UploadFile, http_error_type
from tms_client.logging import get_logger

HttpMethod = Literal["GET", "POST"]

_logger = get_logger(__name__)

_UPLOAD_CONTENT_TYPE = "application/octet-stream"
_CHUNK_SIZE = 64 * 1024


class HttpRequest:
    """One HTTP exchange as described by the codec.

    ``url`` is ``host + endpoint`` with the URL-encoded query appended only when
    ``params`` is non-empty.
    """

    __slots__ = ("endpoint", "form", "headers", "host", "method", "params", "upload")

    def __init__(
        self,
        *,
        method: HttpMethod,
        host: str,
        endpoint: str,
        headers: Mapping[str, str],
        params: Mapping[str, str] | None = None,
        form: Mapping[str, str] | None = None,
        upload: tuple[str, Path] | None = None,
    ) -> None:
        self.method: HttpMethod = method
        self.host = host
        self.endpoint = endpoint
        self.headers: dict[str, str] = dict(headers)
        self.params: dict[str, str] = dict(params or {})
        self.form: dict[str, str] = dict(form or {})
        self.upload = upload

    @property
    def url(self) -> str:
        base = f"{self.host}{self.endpoint}"
        if not self.params:
            return base
        return f"{base}?{urllib.parse.urlencode(self.params)}"

    def error_context(self) -> TmsErrorContext:
        return {
            "endpoint": self.endpoint,
            "method": self.method,
            "params": dict(self.params),
            "headers": redact_headers(self.headers),
        }


class HttpResult:
    __slots__ = ("body", "status")

    def __init__(self, *, status: int, body: bytes) -> None:
        self.status = int(status)
        self.body = body


class Transport(Protocol):
    """Performs HTTP exchanges. Never retries and never interprets the status code."""

    def perform(self, request: HttpRequest, *, error_code: TmsErrorCode) -> HttpResult: ...

    def download(
        self, request: HttpRequest, destination: Path, *, error_code: TmsErrorCode
    ) -> int: ...

    def close(self) -> None: ...


class HttpxTransport(Transport):
    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        client: HttpxClient | None = None,
    ) -> None:
        self._client: HttpxClient = (
            _test_hooks.build_client(timeout_seconds) if client is None else client
        )
        self._http_error = http_error_type()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def perform(self, request: HttpRequest, *, error_code: TmsErrorCode) -> HttpResult:
        try:
            if request.upload is None:
                resp = self._client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    data=request.form or None,
                )
            else:
                field_name, path = request.upload
                with path.open("rb") as fh:
                    files: dict[str, UploadFile] = {
                        field_name: (path.name, fh, _UPLOAD_CONTENT_TYPE)
                    }
                    resp = self._client.request(
                        request.method,
                        request.url,
                        headers=request.headers,
                        data=request.form or None,
                        files=files,
                    )
        except self._http_error as exc:
            raise _transport_failure(request, exc, error_code) from exc
        _logger.debug(
            "tms_http_exchange",
            extra={
                "endpoint": request.endpoint,
                "method": request.method,
                "http_status": int(resp.status_code),
            },
        )
        return HttpResult(status=int(resp.status_code), body=bytes(resp.content))

    def download(
        self, request: HttpRequest, destination: Path, *, error_code: TmsErrorCode
    ) -> int:
        """Stream the response body verbatim into ``destination`` and return the status.

        A partially written file is removed when the exchange fails mid-stream.
        """
        try:
            with self._client.stream(request.method, request.url, headers=request.headers) as resp:
                status = int(resp.status_code)
                with destination.open("wb") as fh:
                    for chunk in resp.iter_bytes(_CHUNK_SIZE):
                        fh.write(chunk)
        except self._http_error as exc:
            destination.unlink(missing_ok=True)
            raise _transport_failure(request, exc, error_code) from exc
        _logger.debug(
            "tms_http_download",
            extra={
                "endpoint": request.endpoint,
                "method": request.method,
                "http_status": status,
                "file_path": str(destination),
            },
        )
        return status


def _transport_failure(
    request: HttpRequest, exc: Exception, error_code: TmsErrorCode
) -> TmsClientError:
    context = request.error_context()
    context["transport_code"] = type(exc).__name__
    _logger.error(
        "tms_transport_error",
        extra={
            "endpoint": request.endpoint,
            "method": request.method,
            "error_code": error_code.value,
            "error_kind": TmsErrorKind.TRANSPORT.value,
            "transport_code": type(exc).__name__,
        },
    )
    return TmsClientError(
        kind=TmsErrorKind.TRANSPORT,
        code=error_code,
        message=f"An error occurred while sending a request to TMS: {exc}",
        context=context,
    )


__all__ = ["HttpMethod", "HttpRequest", "HttpResult", "HttpxTransport", "Transport"]
