from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tms_client.codec import OPERATIONS, TmsProtocolCodec
from tms_client.errors import TmsClientError, TmsErrorCode, TmsErrorKind
from tms_client.json_utils import JSONValue
from tms_client.models import JobId, JobState
from tms_client.testing import (
    FAKE_CREDENTIALS,
    FAKE_ENDPOINTS,
    FAKE_HOST,
    FakeTransport,
    job_envelope,
    state_envelope,
)


def _codec(transport: FakeTransport) -> TmsProtocolCodec:
    return TmsProtocolCodec(
        host=FAKE_HOST,
        endpoints=FAKE_ENDPOINTS,
        credentials=FAKE_CREDENTIALS,
        transport=transport,
    )


def _submit_import(codec: TmsProtocolCodec, _: Path) -> JobId:
    return codec.submit_import(["en", "fr"])


def _submit_upload(codec: TmsProtocolCodec, tmp_path: Path) -> JobId:
    path = tmp_path / "export.json"
    path.write_text("{}", encoding="utf-8")
    return codec.submit_export_upload(path)


_SUBMITTERS: list[tuple[str, Callable[[TmsProtocolCodec, Path], JobId], TmsErrorCode]] = [
    (FAKE_ENDPOINTS["import_request"], _submit_import, TmsErrorCode.REQUEST_FAILED),
    (FAKE_ENDPOINTS["export_upload"], _submit_upload, TmsErrorCode.UPLOAD_FAILED),
]


def test_submit_import_builds_request() -> None:
    transport = FakeTransport()
    transport.add_json(FAKE_ENDPOINTS["import_request"], job_envelope(42))
    job_id = _codec(transport).submit_import(["en", "fr", "de"])
    assert job_id == 42
    (req,) = transport.requests
    assert req.method == "POST"
    assert req.url == "https://tms.test/api/import/request?fields=id"
    assert req.form == {"languages": "en,fr,de"}
    assert req.upload is None
    assert req.headers == {"Access-Token": "access-123", "X-App-Token": "app-456"}


def test_submit_export_upload_attaches_file(tmp_path: Path) -> None:
    transport = FakeTransport()
    transport.add_json(FAKE_ENDPOINTS["export_upload"], job_envelope(5))
    path = tmp_path / "export.json"
    path.write_text("{}", encoding="utf-8")
    assert _codec(transport).submit_export_upload(path) == 5
    (req,) = transport.requests
    assert req.method == "POST"
    assert req.params == {"fields": "id"}
    assert req.upload == ("file", path)
    assert req.form == {}
    assert sorted(req.headers) == ["Access-Token", "X-App-Token"]


@pytest.mark.parametrize(("endpoint", "submit", "code"), _SUBMITTERS)
@pytest.mark.parametrize(
    ("status", "body"),
    [
        (500, b'{"data":{"id":1}}'),
        (404, b'{"data":{"id":1}}'),
        (201, b'{"data":{"id":1}}'),
        (200, b'{"data":{}}'),
        (200, b"{}"),
        (200, b'{"data":{"id":"42"}}'),
        (200, b'{"data":{"id":true}}'),
        (200, b'{"data":[1]}'),
        (200, b"[1, 2]"),
        (200, b"<html>error</html>"),
        (200, b""),
    ],
)
def test_submit_rejects_anything_but_200_with_integer_id(
    tmp_path: Path,
    endpoint: str,
    submit: Callable[[TmsProtocolCodec, Path], JobId],
    code: TmsErrorCode,
    status: int,
    body: bytes,
) -> None:
    transport = FakeTransport()
    transport.add_raw(endpoint, body, status=status)
    with pytest.raises(TmsClientError) as exc:
        submit(_codec(transport), tmp_path)
    assert exc.value.kind is TmsErrorKind.PROTOCOL
    assert exc.value.code is code
    assert exc.value.context["endpoint"] == endpoint
    assert exc.value.context["http_status"] == status
    assert exc.value.context["params"] == {"fields": "id"}


@pytest.mark.parametrize(("endpoint", "submit", "code"), _SUBMITTERS)
def test_submit_accepts_200_with_integer_id(
    tmp_path: Path,
    endpoint: str,
    submit: Callable[[TmsProtocolCodec, Path], JobId],
    code: TmsErrorCode,
) -> None:
    transport = FakeTransport()
    transport.add_json(endpoint, {"data": {"id": 77, "extra": "ignored"}})
    assert submit(_codec(transport), tmp_path) == 77


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (1, JobState.WAITING),
        (2, JobState.RESERVED),
        (3, JobState.DONE),
        (0, None),
        (4, None),
        (99, None),
    ],
)
def test_poll_state_maps_raw_values(raw: int, expected: JobState | None) -> None:
    transport = FakeTransport()
    transport.add_json(FAKE_ENDPOINTS["export_state"], state_envelope(7, raw))
    report = _codec(transport).poll_state("export_state", JobId(7))
    assert report.job_id == 7
    assert report.raw_state == raw
    assert report.state is expected
    assert report.is_done is (expected is JobState.DONE)


def test_poll_state_builds_query() -> None:
    transport = FakeTransport()
    transport.add_json(FAKE_ENDPOINTS["import_state"], state_envelope(7, 1))
    _codec(transport).poll_state("import_state", JobId(7))
    (req,) = transport.requests
    assert req.method == "GET"
    assert req.endpoint == FAKE_ENDPOINTS["import_state"]
    assert req.url == "https://tms.test/api/import/state?id=7&fields=id%2Cstate"


@pytest.mark.parametrize(
    "body",
    [
        {"data": {"id": 7}},
        {"data": {"state": {}}},
        {"data": {"state": {"id": "3"}}},
        {"data": {"state": 3}},
    ],
)
def test_poll_state_missing_state_is_protocol_error(body: dict[str, JSONValue]) -> None:
    transport = FakeTransport()
    transport.add_json(FAKE_ENDPOINTS["import_state"], body)
    with pytest.raises(TmsClientError) as exc:
        _codec(transport).poll_state("import_state", JobId(7))
    assert exc.value.kind is TmsErrorKind.PROTOCOL
    assert exc.value.code is TmsErrorCode.STATE_FAILED
    assert "data.state.id" in exc.value.message


def test_poll_state_http_error_is_protocol_error() -> None:
    transport = FakeTransport()
    transport.add_json(FAKE_ENDPOINTS["export_state"], state_envelope(7, 3), status=503)
    with pytest.raises(TmsClientError) as exc:
        _codec(transport).poll_state("export_state", JobId(7))
    assert exc.value.kind is TmsErrorKind.PROTOCOL
    assert exc.value.http_status == 503


def test_download_writes_body_verbatim(tmp_path: Path) -> None:
    transport = FakeTransport()
    payload = b"en: hello\nfr: bonjour\n"
    transport.add_raw(FAKE_ENDPOINTS["import_download"], payload)
    dest = tmp_path / "import.yml"
    _codec(transport).download_import_file(JobId(42), dest)
    assert dest.read_bytes() == payload
    (req,) = transport.requests
    assert req.method == "GET"
    assert req.url == "https://tms.test/api/import/download?id=42"
    assert req.headers == {"Access-Token": "access-123", "X-App-Token": "app-456"}


def test_download_error_status_leaves_no_file(tmp_path: Path) -> None:
    transport = FakeTransport()
    transport.add_raw(FAKE_ENDPOINTS["import_download"], b"<html>404</html>", status=404)
    dest = tmp_path / "import.yml"
    with pytest.raises(TmsClientError) as exc:
        _codec(transport).download_import_file(JobId(42), dest)
    assert exc.value.kind is TmsErrorKind.PROTOCOL
    assert exc.value.code is TmsErrorCode.DOWNLOAD_FAILED
    assert exc.value.http_status == 404
    assert not dest.exists()


def test_transport_failure_keeps_operation_code() -> None:
    transport = FakeTransport()
    transport.add_failure(FAKE_ENDPOINTS["import_request"], transport_code="ConnectTimeout")
    with pytest.raises(TmsClientError) as exc:
        _codec(transport).submit_import(["en"])
    assert exc.value.kind is TmsErrorKind.TRANSPORT
    assert exc.value.code is TmsErrorCode.REQUEST_FAILED
    assert exc.value.context["transport_code"] == "ConnectTimeout"


def test_error_context_redacts_tokens() -> None:
    transport = FakeTransport()
    transport.add_raw(FAKE_ENDPOINTS["import_request"], b"", status=401)
    with pytest.raises(TmsClientError) as exc:
        _codec(transport).submit_import(["en"])
    headers = exc.value.context["headers"]
    assert headers == {"Access-Token": "***", "X-App-Token": "***"}
    assert "access-123" not in str(exc.value)
    assert exc.value.context["method"] == "POST"


def test_operation_table_covers_every_endpoint() -> None:
    keys = {spec.endpoint_key for spec in OPERATIONS.values()}
    assert keys == set(FAKE_ENDPOINTS)
    assert OPERATIONS["poll_import_state"].result_path == ("data", "state", "id")
    assert OPERATIONS["submit_import"].result_path == ("data", "id")
