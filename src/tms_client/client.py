from __future__ import annotations

from pathlib import Path
from types import TracebackType

from tms_client.codec import TmsProtocolCodec
from tms_client.config import TmsSettings
from tms_client.errors import TmsClientError, TmsErrorCode, TmsErrorKind
from tms_client.logging import get_logger
from tms_client.models import (
    Credentials,
    EndpointSet,
    JobId,
    PollOutcome,
    PollPolicy,
    StateEndpoint,
    StateReport,
    make_poll_policy,
)
from tms_client.poller import JobPoller
from tms_client.transport import HttpxTransport, Transport
from tms_client.translation import TranslationManager, TranslationReader, TranslationWriter

_logger = get_logger(__name__)


class TranslationClient:
    """Runs export and import jobs against a TMS.

    Host, endpoints and credentials are fixed at construction. The poll policy is
    an immutable value; pass ``policy=`` to a pipeline call to override it once,
    or derive a new client with ``with_poll_policy``.

    Each pipeline call blocks until its job is done or the policy deadline passes.
    One client serves one logical task at a time.
    """

    def __init__(
        self,
        *,
        host: str,
        endpoints: EndpointSet,
        credentials: Credentials,
        policy: PollPolicy | None = None,
        transport: Transport | None = None,
        poller: JobPoller | None = None,
    ) -> None:
        self._host = host
        self._endpoints: EndpointSet = endpoints
        self._credentials: Credentials = credentials
        self._policy: PollPolicy = policy if policy is not None else make_poll_policy()
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._poller = poller if poller is not None else JobPoller()
        self._codec = TmsProtocolCodec(
            host=self._host,
            endpoints=endpoints,
            credentials=credentials,
            transport=self._transport,
        )

    @classmethod
    def from_settings(
        cls, settings: TmsSettings, *, transport: Transport | None = None
    ) -> TranslationClient:
        return cls(
            host=settings["host"],
            endpoints=settings["endpoints"],
            credentials=settings["credentials"],
            policy=settings["poll_policy"],
            transport=(
                transport
                if transport is not None
                else HttpxTransport(timeout_seconds=settings["http_timeout_seconds"])
            ),
        )

    def __enter__(self) -> TranslationClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    @property
    def codec(self) -> TmsProtocolCodec:
        return self._codec

    @property
    def poll_policy(self) -> PollPolicy:
        return {
            "check_interval": self._policy["check_interval"],
            "max_execution_time": self._policy["max_execution_time"],
            "raise_on_timeout": self._policy["raise_on_timeout"],
        }

    @property
    def check_interval(self) -> float:
        return self._policy["check_interval"]

    @property
    def max_execution_time(self) -> float:
        return self._policy["max_execution_time"]

    def with_poll_policy(self, policy: PollPolicy) -> TranslationClient:
        """Return a client sharing this transport but polling with ``policy``."""
        return TranslationClient(
            host=self._host,
            endpoints=self._endpoints,
            credentials=self._credentials,
            policy=policy,
            transport=self._transport,
            poller=self._poller,
        )

    def with_check_interval(self, seconds: float) -> TranslationClient:
        return self.with_poll_policy(
            make_poll_policy(
                check_interval=seconds,
                max_execution_time=self._policy["max_execution_time"],
                raise_on_timeout=self._policy["raise_on_timeout"],
            )
        )

    def with_max_execution_time(self, seconds: float) -> TranslationClient:
        return self.with_poll_policy(
            make_poll_policy(
                check_interval=self._policy["check_interval"],
                max_execution_time=seconds,
                raise_on_timeout=self._policy["raise_on_timeout"],
            )
        )

    def export_translations(
        self,
        manager: TranslationManager,
        reader: TranslationReader,
        writer: TranslationWriter,
        export_file_path: Path,
        *,
        policy: PollPolicy | None = None,
    ) -> PollOutcome:
        """Write local translations to ``export_file_path``, upload it and wait for the job.

        ``writer`` must produce ``export_file_path``. The returned outcome tells
        whether the job was seen Done or the deadline passed first.
        """
        manager.copy_translations(reader, writer)
        if not export_file_path.is_file():
            raise _precondition_failure(
                TmsErrorCode.FILE_NOT_PRODUCED, "Export file not found", export_file_path
            )

        job_id = self._codec.submit_export_upload(export_file_path)
        _logger.info(
            "tms_export_submitted",
            extra={"job_id": int(job_id), "file_path": str(export_file_path)},
        )
        return self._wait("export_state", job_id, policy)

    def import_translations(
        self,
        manager: TranslationManager,
        reader: TranslationReader,
        writer: TranslationWriter,
        import_file_path: Path,
        *,
        policy: PollPolicy | None = None,
    ) -> PollOutcome:
        """Request translations for the manager's languages and merge them locally.

        The TMS file is downloaded into ``import_file_path``, which ``reader``
        must consume. The staging file is deleted after the merge, whether or not
        the merge succeeded.
        """
        _ensure_absent(import_file_path)

        job_id = self._codec.submit_import(manager.get_languages())
        _logger.info("tms_import_submitted", extra={"job_id": int(job_id)})
        outcome = self._wait("import_state", job_id, policy)

        # Something may have created the file while the job was running.
        _ensure_absent(import_file_path)

        self._codec.download_import_file(job_id, import_file_path)
        try:
            manager.copy_translations(reader, writer)
        finally:
            import_file_path.unlink(missing_ok=True)
            _logger.info(
                "tms_import_staging_removed",
                extra={"job_id": int(job_id), "file_path": str(import_file_path)},
            )
        return outcome

    def _wait(
        self, endpoint: StateEndpoint, job_id: JobId, policy: PollPolicy | None
    ) -> PollOutcome:
        effective = policy if policy is not None else self._policy

        def _poll() -> StateReport:
            return self._codec.poll_state(endpoint, job_id)

        return self._poller.await_done(_poll, effective)


def _ensure_absent(path: Path) -> None:
    if path.exists():
        raise _precondition_failure(
            TmsErrorCode.FILE_ALREADY_EXISTS, "Import file already exists", path
        )


def _precondition_failure(code: TmsErrorCode, message: str, path: Path) -> TmsClientError:
    _logger.error(
        "tms_precondition_failed",
        extra={
            "error_code": code.value,
            "error_kind": TmsErrorKind.PRECONDITION.value,
            "file_path": str(path),
        },
    )
    return TmsClientError(
        kind=TmsErrorKind.PRECONDITION,
        code=code,
        message=message,
        context={"file_path": str(path)},
    )


__all__ = ["TranslationClient"]
