from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from tms_client import _test_hooks
from tms_client.errors import TmsClientError, TmsErrorCode, TmsErrorKind
from tms_client.http_client import HttpxClient, build_client
from tms_client.transport import HttpRequest, HttpxTransport

_HEADERS = {"Access-Token": "tok", "X-App-Token": "app"}


def _transport(handler: Callable[[httpx.Request], httpx.Response]) -> HttpxTransport:
    client = build_client(None, transport=httpx.MockTransport(handler))
    return HttpxTransport(client=client)


def test_form_post_sends_query_headers_and_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen.append(request)
        return httpx.Response(200, content=b'{"data":{"id":1}}')

    transport = _transport(handler)
    result = transport.perform(
        HttpRequest(
            method="POST",
            host="https://tms.test",
            endpoint="/import/request",
            headers=_HEADERS,
            params={"fields": "id"},
            form={"languages": "en,fr"},
        ),
        error_code=TmsErrorCode.REQUEST_FAILED,
    )
    transport.close()

    assert result.status == 200
    assert result.body == b'{"data":{"id":1}}'
    (req,) = seen
    assert req.method == "POST"
    assert str(req.url) == "https://tms.test/import/request?fields=id"
    assert req.headers["Access-Token"] == "tok"
    assert req.headers["X-App-Token"] == "app"
    assert req.content == b"languages=en%2Cfr"


def test_multipart_upload_sends_file_field(tmp_path: Path) -> None:
    path = tmp_path / "export.json"
    path.write_bytes(b'{"en":{"k":"v"}}')
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        assert request.headers["content-type"].startswith("multipart/form-data")
        return httpx.Response(200, content=b'{"data":{"id":9}}')

    transport = _transport(handler)
    result = transport.perform(
        HttpRequest(
            method="POST",
            host="https://tms.test",
            endpoint="/export/upload",
            headers=_HEADERS,
            params={"fields": "id"},
            upload=("file", path),
        ),
        error_code=TmsErrorCode.UPLOAD_FAILED,
    )

    assert result.status == 200
    (body,) = bodies
    assert b'name="file"' in body
    assert b'filename="export.json"' in body
    assert b'{"en":{"k":"v"}}' in body


def test_status_is_returned_uninterpreted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b"boom")

    result = _transport(handler).perform(
        HttpRequest(method="GET", host="https://tms.test", endpoint="/state", headers=_HEADERS),
        error_code=TmsErrorCode.STATE_FAILED,
    )
    assert result.status == 500
    assert result.body == b"boom"


def test_network_failure_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TmsClientError) as exc:
        _transport(handler).perform(
            HttpRequest(
                method="GET",
                host="https://tms.test",
                endpoint="/state",
                headers=_HEADERS,
                params={"id": "1", "fields": "id,state"},
            ),
            error_code=TmsErrorCode.STATE_FAILED,
        )
    assert exc.value.kind is TmsErrorKind.TRANSPORT
    assert exc.value.code is TmsErrorCode.STATE_FAILED
    assert exc.value.context["transport_code"] == "ConnectError"
    assert exc.value.context["endpoint"] == "/state"
    assert exc.value.context["params"] == {"id": "1", "fields": "id,state"}
    assert exc.value.context["headers"] == {"Access-Token": "***", "X-App-Token": "***"}


def test_download_streams_body_to_file(tmp_path: Path) -> None:
    payload = b"en: hello\nfr: bonjour\n"

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://tms.test/download?id=42"
        return httpx.Response(200, content=payload)

    dest = tmp_path / "import.yml"
    status = _transport(handler).download(
        HttpRequest(
            method="GET",
            host="https://tms.test",
            endpoint="/download",
            headers=_HEADERS,
            params={"id": "42"},
        ),
        dest,
        error_code=TmsErrorCode.DOWNLOAD_FAILED,
    )
    assert status == 200
    assert dest.read_bytes() == payload


def test_download_failure_removes_partial_file(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    dest = tmp_path / "import.yml"
    with pytest.raises(TmsClientError) as exc:
        _transport(handler).download(
            HttpRequest(method="GET", host="https://tms.test", endpoint="/d", headers=_HEADERS),
            dest,
            error_code=TmsErrorCode.DOWNLOAD_FAILED,
        )
    assert exc.value.context["transport_code"] == "ReadTimeout"
    assert not dest.exists()


def test_default_client_comes_from_hook() -> None:
    built: list[float | None] = []

    def _fake_build(timeout_seconds: float | None) -> HttpxClient:
        built.append(timeout_seconds)
        return build_client(timeout_seconds, transport=httpx.MockTransport(_ok))

    def _ok(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    _test_hooks.build_client = _fake_build
    with HttpxTransport(timeout_seconds=12.5) as transport:
        result = transport.perform(
            HttpRequest(method="GET", host="https://tms.test", endpoint="/x", headers={}),
            error_code=TmsErrorCode.STATE_FAILED,
        )
    assert result.status == 200
    assert built == [12.5]


def test_url_omits_empty_query() -> None:
    req = HttpRequest(method="GET", host="https://tms.test", endpoint="/x", headers={})
    assert req.url == "https://tms.test/x"
