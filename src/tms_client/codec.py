"""Protocol codec for the TMS job API.

Every remote operation is described by one row of ``OPERATIONS``: the endpoint
it targets, the HTTP method, the error code reported on failure and the JSON
path holding its result. ``TmsProtocolCodec.perform`` executes any row; the
public methods only supply parameters.

Response envelopes look like ``{"data": {"id": 42, "state": {"id": 3}}}``.
Anything other than HTTP 200 with an integer at the expected path is a
protocol error.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Literal

from tms_client.errors import TmsClientError, TmsErrorCode, TmsErrorContext, TmsErrorKind
from tms_client.json_utils import (
    InvalidJsonError,
    JSONTypeError,
    load_json_bytes,
    narrow_json_to_dict,
    require_int_path,
)
from tms_client.logging import get_logger
from tms_client.models import (
    Credentials,
    EndpointKey,
    EndpointSet,
    JobId,
    StateEndpoint,
    StateReport,
)
from tms_client.transport import HttpMethod, HttpRequest, Transport

_logger = get_logger(__name__)

OperationName = Literal[
    "submit_import",
    "poll_import_state",
    "poll_export_state",
    "download_import_file",
    "submit_export_upload",
]

ACCESS_TOKEN_HEADER = "Access-Token"
APP_TOKEN_HEADER = "X-App-Token"


class OperationSpec:
    __slots__ = ("endpoint_key", "error_code", "failure_message", "method", "result_path")

    def __init__(
        self,
        *,
        endpoint_key: EndpointKey,
        method: HttpMethod,
        error_code: TmsErrorCode,
        result_path: tuple[str, ...],
        failure_message: str,
    ) -> None:
        self.endpoint_key: EndpointKey = endpoint_key
        self.method: HttpMethod = method
        self.error_code = error_code
        self.result_path = result_path
        self.failure_message = failure_message


OPERATIONS: Mapping[OperationName, OperationSpec] = {
    "submit_import": OperationSpec(
        endpoint_key="import_request",
        method="POST",
        error_code=TmsErrorCode.REQUEST_FAILED,
        result_path=("data", "id"),
        failure_message="Import request was rejected by TMS",
    ),
    "poll_import_state": OperationSpec(
        endpoint_key="import_state",
        method="GET",
        error_code=TmsErrorCode.STATE_FAILED,
        result_path=("data", "state", "id"),
        failure_message="Import state request failed",
    ),
    "poll_export_state": OperationSpec(
        endpoint_key="export_state",
        method="GET",
        error_code=TmsErrorCode.STATE_FAILED,
        result_path=("data", "state", "id"),
        failure_message="Export state request failed",
    ),
    "download_import_file": OperationSpec(
        endpoint_key="import_download",
        method="GET",
        error_code=TmsErrorCode.DOWNLOAD_FAILED,
        result_path=(),
        failure_message="Import file download failed",
    ),
    "submit_export_upload": OperationSpec(
        endpoint_key="export_upload",
        method="POST",
        error_code=TmsErrorCode.UPLOAD_FAILED,
        result_path=("data", "id"),
        failure_message="Export file upload was rejected by TMS",
    ),
}

_STATE_OPERATIONS: Mapping[StateEndpoint, OperationName] = {
    "import_state": "poll_import_state",
    "export_state": "poll_export_state",
}


class TmsProtocolCodec:
    def __init__(
        self,
        *,
        host: str,
        endpoints: EndpointSet,
        credentials: Credentials,
        transport: Transport,
    ) -> None:
        self._host = host
        self._endpoints: EndpointSet = endpoints
        self._credentials: Credentials = credentials
        self._transport = transport

    @property
    def transport(self) -> Transport:
        return self._transport

    def submit_import(self, languages: Sequence[str]) -> JobId:
        job_id = self.perform(
            "submit_import",
            params={"fields": "id"},
            form={"languages": ",".join(languages)},
        )
        return JobId(job_id)

    def poll_state(self, endpoint: StateEndpoint, job_id: JobId) -> StateReport:
        raw_state = self.perform(
            _STATE_OPERATIONS[endpoint],
            params={"id": str(job_id), "fields": "id,state"},
        )
        return StateReport(job_id=job_id, raw_state=raw_state)

    def submit_export_upload(self, file_path: Path) -> JobId:
        job_id = self.perform(
            "submit_export_upload",
            params={"fields": "id"},
            upload=("file", file_path),
        )
        return JobId(job_id)

    def download_import_file(self, job_id: JobId, destination: Path) -> None:
        """Stream the import file of ``job_id`` into ``destination``.

        The body is kept only for HTTP 200; any other status removes the file and
        raises so an error page is never mistaken for translations.
        """
        spec = OPERATIONS["download_import_file"]
        request = self._build_request(spec, params={"id": str(job_id)})
        status = self._transport.download(request, destination, error_code=spec.error_code)
        if status != 200:
            destination.unlink(missing_ok=True)
            raise self._protocol_failure(spec, request, f"unexpected HTTP status {status}", status)

    def perform(
        self,
        operation: OperationName,
        *,
        params: Mapping[str, str],
        form: Mapping[str, str] | None = None,
        upload: tuple[str, Path] | None = None,
    ) -> int:
        """Execute one table-driven operation and return the integer at its result path."""
        spec = OPERATIONS[operation]
        request = self._build_request(spec, params=params, form=form, upload=upload)
        result = self._transport.perform(request, error_code=spec.error_code)
        if result.status != 200:
            raise self._protocol_failure(
                spec, request, f"unexpected HTTP status {result.status}", result.status
            )
        try:
            body = narrow_json_to_dict(load_json_bytes(result.body))
            return require_int_path(body, spec.result_path)
        except (InvalidJsonError, JSONTypeError) as exc:
            raise self._protocol_failure(spec, request, str(exc), result.status) from exc

    def _headers(self) -> dict[str, str]:
        return {
            ACCESS_TOKEN_HEADER: self._credentials["access_token"],
            APP_TOKEN_HEADER: self._credentials["application_token"],
        }

    def _build_request(
        self,
        spec: OperationSpec,
        *,
        params: Mapping[str, str],
        form: Mapping[str, str] | None = None,
        upload: tuple[str, Path] | None = None,
    ) -> HttpRequest:
        return HttpRequest(
            method=spec.method,
            host=self._host,
            endpoint=self._endpoints[spec.endpoint_key],
            headers=self._headers(),
            params=params,
            form=form,
            upload=upload,
        )

    @staticmethod
    def _protocol_failure(
        spec: OperationSpec, request: HttpRequest, detail: str, status: int
    ) -> TmsClientError:
        context: TmsErrorContext = request.error_context()
        context["http_status"] = status
        _logger.error(
            "tms_protocol_error",
            extra={
                "endpoint": request.endpoint,
                "method": request.method,
                "http_status": status,
                "error_code": spec.error_code.value,
                "error_kind": TmsErrorKind.PROTOCOL.value,
            },
        )
        return TmsClientError(
            kind=TmsErrorKind.PROTOCOL,
            code=spec.error_code,
            message=f"{spec.failure_message}: {detail}",
            context=context,
        )


__all__ = [
    "ACCESS_TOKEN_HEADER",
    "APP_TOKEN_HEADER",
    "OPERATIONS",
    "OperationName",
    "OperationSpec",
    "TmsProtocolCodec",
]
