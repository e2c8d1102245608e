from __future__ import annotations

from enum import IntEnum
from typing import Literal, NewType, TypedDict

JobId = NewType("JobId", int)

StateEndpoint = Literal["import_state", "export_state"]
EndpointKey = Literal[
    "import_request",
    "import_state",
    "import_download",
    "export_upload",
    "export_state",
]


class JobState(IntEnum):
    """Job states reported by the TMS. Only DONE is terminal."""

    WAITING = 1
    RESERVED = 2
    DONE = 3


class StateReport:
    """One decoded poll answer.

    ``raw_state`` is kept verbatim; values outside JobState map to ``state is None``
    and are never treated as done.
    """

    __slots__ = ("job_id", "raw_state")

    def __init__(self, *, job_id: JobId, raw_state: int) -> None:
        self.job_id = job_id
        self.raw_state = int(raw_state)

    @property
    def state(self) -> JobState | None:
        for member in JobState:
            if member.value == self.raw_state:
                return member
        return None

    @property
    def is_done(self) -> bool:
        return self.state is JobState.DONE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StateReport):
            return NotImplemented
        return self.job_id == other.job_id and self.raw_state == other.raw_state

    def __hash__(self) -> int:
        return hash((self.job_id, self.raw_state))

    def __repr__(self) -> str:
        state = self.state
        label = state.name if state is not None else "UNKNOWN"
        return f"StateReport(job_id={self.job_id}, raw_state={self.raw_state}, state={label})"


class Credentials(TypedDict):
    access_token: str
    application_token: str


class EndpointSet(TypedDict):
    import_request: str
    import_state: str
    import_download: str
    export_upload: str
    export_state: str


class PollPolicy(TypedDict):
    check_interval: float
    max_execution_time: float
    raise_on_timeout: bool


DEFAULT_CHECK_INTERVAL: float = 5.0
DEFAULT_MAX_EXECUTION_TIME: float = 900.0


def make_poll_policy(
    *,
    check_interval: float = DEFAULT_CHECK_INTERVAL,
    max_execution_time: float = DEFAULT_MAX_EXECUTION_TIME,
    raise_on_timeout: bool = False,
) -> PollPolicy:
    if check_interval <= 0:
        raise ValueError("check_interval must be > 0")
    if max_execution_time < 0:
        raise ValueError("max_execution_time must be >= 0")
    return {
        "check_interval": float(check_interval),
        "max_execution_time": float(max_execution_time),
        "raise_on_timeout": bool(raise_on_timeout),
    }


class PollOutcome:
    """Result of one poll loop: the last report and whether the deadline cut it short."""

    __slots__ = ("elapsed_seconds", "last_report", "polls", "timed_out")

    def __init__(
        self,
        *,
        last_report: StateReport,
        polls: int,
        elapsed_seconds: float,
        timed_out: bool,
    ) -> None:
        self.last_report = last_report
        self.polls = polls
        self.elapsed_seconds = elapsed_seconds
        self.timed_out = timed_out

    @property
    def job_id(self) -> JobId:
        return self.last_report.job_id

    @property
    def state(self) -> JobState | None:
        return self.last_report.state

    @property
    def is_done(self) -> bool:
        return self.last_report.is_done

    def __repr__(self) -> str:
        return (
            f"PollOutcome(last_report={self.last_report!r}, polls={self.polls}, "
            f"elapsed_seconds={self.elapsed_seconds}, timed_out={self.timed_out})"
        )


__all__ = [
    "DEFAULT_CHECK_INTERVAL",
    "DEFAULT_MAX_EXECUTION_TIME",
    "Credentials",
    "EndpointKey",
    "EndpointSet",
    "JobId",
    "JobState",
    "PollOutcome",
    "PollPolicy",
    "StateEndpoint",
    "StateReport",
    "make_poll_policy",
]
