from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from tms_client.config import _test_hooks as config_hooks
from tms_client.errors import TmsClientError, TmsErrorCode, TmsErrorKind
from tms_client.json_utils import JSONValue, dump_json_str
from tms_client.models import Credentials, EndpointSet
from tms_client.transport import HttpRequest, HttpResult, Transport
from tms_client.translation import TranslationManager, TranslationReader, TranslationWriter

# =============================================================================
# Canned configuration
# =============================================================================

FAKE_HOST = "https://tms.test"

FAKE_ENDPOINTS: EndpointSet = {
    "import_request": "/api/import/request",
    "import_state": "/api/import/state",
    "import_download": "/api/import/download",
    "export_upload": "/api/export/upload",
    "export_state": "/api/export/state",
}

FAKE_CREDENTIALS: Credentials = {
    "access_token": "access-123",
    "application_token": "app-456",
}


def job_envelope(job_id: int) -> dict[str, JSONValue]:
    return {"data": {"id": job_id}}


def state_envelope(job_id: int, raw_state: int) -> dict[str, JSONValue]:
    return {"data": {"id": job_id, "state": {"id": raw_state}}}


# =============================================================================
# Fake transport
# =============================================================================


class _Reply:
    __slots__ = ("body", "status", "transport_code")

    def __init__(self, *, status: int, body: bytes, transport_code: str | None) -> None:
        self.status = status
        self.body = body
        self.transport_code = transport_code


class FakeTransport(Transport):
    """Scripted transport. Replies are queued per endpoint path and consumed in order."""

    def __init__(self) -> None:
        self._replies: dict[str, list[_Reply]] = {}
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add_json(self, endpoint: str, body: Mapping[str, JSONValue], *, status: int = 200) -> None:
        self.add_raw(endpoint, dump_json_str(body).encode("utf-8"), status=status)

    def add_raw(self, endpoint: str, body: bytes, *, status: int = 200) -> None:
        self._replies.setdefault(endpoint, []).append(
            _Reply(status=status, body=body, transport_code=None)
        )

    def add_failure(self, endpoint: str, *, transport_code: str = "ConnectError") -> None:
        self._replies.setdefault(endpoint, []).append(
            _Reply(status=0, body=b"", transport_code=transport_code)
        )

    def add_states(self, endpoint: str, job_id: int, raw_states: Sequence[int]) -> None:
        for raw in raw_states:
            self.add_json(endpoint, state_envelope(job_id, raw))

    def calls_to(self, endpoint: str) -> list[HttpRequest]:
        return [r for r in self.requests if r.endpoint == endpoint]

    def perform(self, request: HttpRequest, *, error_code: TmsErrorCode) -> HttpResult:
        reply = self._next(request, error_code)
        return HttpResult(status=reply.status, body=reply.body)

    def download(
        self, request: HttpRequest, destination: Path, *, error_code: TmsErrorCode
    ) -> int:
        reply = self._next(request, error_code)
        destination.write_bytes(reply.body)
        return reply.status

    def close(self) -> None:
        self.closed = True

    def _next(self, request: HttpRequest, error_code: TmsErrorCode) -> _Reply:
        self.requests.append(request)
        queue = self._replies.get(request.endpoint)
        if not queue:
            raise RuntimeError(f"No fake response queued for {request.endpoint}")
        reply = queue.pop(0)
        if reply.transport_code is not None:
            context = request.error_context()
            context["transport_code"] = reply.transport_code
            raise TmsClientError(
                kind=TmsErrorKind.TRANSPORT,
                code=error_code,
                message="fake transport failure",
                context=context,
            )
        return reply


# =============================================================================
# Fake translation storage
# =============================================================================


class FakeStoreReader(TranslationReader):
    """Local translation storage acting as a source."""

    def __init__(self, entries: bytes) -> None:
        self.entries = entries


class FakeStoreWriter(TranslationWriter):
    """Local translation storage acting as a sink."""

    def __init__(self) -> None:
        self.merged: list[bytes] = []


class FakeFileReader(TranslationReader):
    """Reads translation entries from a staging file."""

    def __init__(self, path: Path) -> None:
        self.path = path


class FakeFileWriter(TranslationWriter):
    """Writes translation entries to a staging file."""

    def __init__(self, path: Path) -> None:
        self.path = path


class FakeTranslationManager(TranslationManager):
    """Copies bytes between fake readers and writers and records every call."""

    def __init__(
        self,
        *,
        languages: Sequence[str] = ("en", "fr"),
        fail_with: Exception | None = None,
    ) -> None:
        self._languages = list(languages)
        self._fail_with = fail_with
        self.copies: list[tuple[TranslationReader, TranslationWriter]] = []

    def get_languages(self) -> Sequence[str]:
        return list(self._languages)

    def copy_translations(self, reader: TranslationReader, writer: TranslationWriter) -> None:
        self.copies.append((reader, writer))
        if self._fail_with is not None:
            raise self._fail_with
        data = b""
        if isinstance(reader, FakeStoreReader):
            data = reader.entries
        elif isinstance(reader, FakeFileReader):
            data = reader.path.read_bytes()
        if isinstance(writer, FakeFileWriter):
            writer.path.write_bytes(data)
        elif isinstance(writer, FakeStoreWriter):
            writer.merged.append(data)


# =============================================================================
# Fake clock and environment
# =============================================================================


class FakeClock:
    """Records sleeps instead of blocking. Assign ``clock.sleep`` to the sleep hook."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []
        self.now = 0.0

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeEnv:
    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def get(self, key: str) -> str | None:
        return self._values.get(key)


def make_fake_env(values: Mapping[str, str] | None = None) -> FakeEnv:
    """Install an in-memory environment into the config env hook and return it."""
    env = FakeEnv(values)
    config_hooks.get_env = env.get
    return env


__all__ = [
    "FAKE_CREDENTIALS",
    "FAKE_ENDPOINTS",
    "FAKE_HOST",
    "FakeClock",
    "FakeEnv",
    "FakeFileReader",
    "FakeFileWriter",
    "FakeStoreReader",
    "FakeStoreWriter",
    "FakeTranslationManager",
    "FakeTransport",
    "job_envelope",
    "make_fake_env",
    "state_envelope",
]
