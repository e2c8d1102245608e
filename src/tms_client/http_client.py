from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import ModuleType, TracebackType
from typing import BinaryIO, Protocol

UploadFile = tuple[str, BinaryIO, str]


class HttpxResponse(Protocol):
    status_code: int
    headers: Mapping[str, str]
    content: bytes


class HttpxStreamResponse(Protocol):
    status_code: int
    headers: Mapping[str, str]

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]: ...


class HttpxStreamContext(Protocol):
    def __enter__(self) -> HttpxStreamResponse: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


class Timeout(Protocol):
    def __repr__(self) -> str: ...


class _TimeoutCtor(Protocol):
    def __call__(self, timeout: float | None) -> Timeout: ...


class SyncTransport(Protocol):
    def close(self) -> None: ...


class HttpxClient(Protocol):
    def close(self) -> None: ...

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        data: Mapping[str, str] | None = None,
        files: Mapping[str, UploadFile] | None = None,
    ) -> HttpxResponse: ...

    def stream(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
    ) -> HttpxStreamContext: ...


class _ClientCtor(Protocol):
    def __call__(
        self,
        *,
        timeout: Timeout,
        transport: SyncTransport | None = None,
    ) -> HttpxClient: ...


def _load_httpx() -> tuple[_TimeoutCtor, _ClientCtor, type[Exception]]:
    mod: ModuleType = __import__("httpx")
    timeout_ctor: _TimeoutCtor = object.__getattribute__(mod, "Timeout")
    client_ctor: _ClientCtor = object.__getattribute__(mod, "Client")
    http_error: type[Exception] = object.__getattribute__(mod, "HTTPError")
    return timeout_ctor, client_ctor, http_error


def http_error_type() -> type[Exception]:
    """Base class of every network-level httpx failure (connect, DNS, TLS, read, timeout)."""
    _, _, http_error = _load_httpx()
    return http_error


def build_client(
    timeout_seconds: float | None, transport: SyncTransport | None = None
) -> HttpxClient:
    """Build a sync httpx client. ``timeout_seconds=None`` disables the timeout."""
    timeout_ctor, client_ctor, _ = _load_httpx()
    timeout_obj = timeout_ctor(None if timeout_seconds is None else float(timeout_seconds))
    if transport is None:
        return client_ctor(timeout=timeout_obj)
    return client_ctor(timeout=timeout_obj, transport=transport)


__all__ = [
    "HttpxClient",
    "HttpxResponse",
    "HttpxStreamContext",
    "HttpxStreamResponse",
    "SyncTransport",
    "Timeout",
    "UploadFile",
    "build_client",
    "http_error_type",
]
