from tms_client.client import TranslationClient
from tms_client.codec import TmsProtocolCodec
from tms_client.config import TmsSettings, configure_logging, load_tms_settings
from tms_client.errors import (
    TmsClientError,
    TmsConfigError,
    TmsErrorCode,
    TmsErrorKind,
    is_precondition_error,
    is_protocol_error,
    is_transport_error,
)
from tms_client.models import (
    Credentials,
    EndpointSet,
    JobId,
    JobState,
    PollOutcome,
    PollPolicy,
    StateReport,
    make_poll_policy,
)
from tms_client.poller import JobPoller
from tms_client.transport import HttpRequest, HttpResult, HttpxTransport, Transport
from tms_client.translation import TranslationManager, TranslationReader, TranslationWriter

__all__ = [
    "Credentials",
    "EndpointSet",
    "HttpRequest",
    "HttpResult",
    "HttpxTransport",
    "JobId",
    "JobPoller",
    "JobState",
    "PollOutcome",
    "PollPolicy",
    "StateReport",
    "TmsClientError",
    "TmsConfigError",
    "TmsErrorCode",
    "TmsErrorKind",
    "TmsProtocolCodec",
    "TmsSettings",
    "TranslationClient",
    "TranslationManager",
    "TranslationReader",
    "TranslationWriter",
    "Transport",
    "configure_logging",
    "is_precondition_error",
    "is_protocol_error",
    "is_transport_error",
    "load_tms_settings",
    "make_poll_policy",
]
