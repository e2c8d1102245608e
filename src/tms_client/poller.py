from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from tms_client import _test_hooks
from tms_client.errors import TmsClientError, TmsErrorCode, TmsErrorKind
from tms_client.logging import get_logger
from tms_client.models import PollOutcome, PollPolicy, StateReport

_logger = get_logger(__name__)

PollFn = Callable[[], StateReport]


class PollPhase(str, Enum):
    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    TERMINAL = "TERMINAL"


class JobPoller:
    """Polls one job until it reports Done or the deadline passes.

    Elapsed time is the sum of completed sleeps, so the number of polls is fully
    determined by the policy and the observed states. The sleep is the only
    suspension point and blocks the calling thread.
    """

    def __init__(self, *, sleep: _test_hooks.TimeSleepProto | None = None) -> None:
        self._sleep = sleep

    def await_done(self, poll_fn: PollFn, policy: PollPolicy) -> PollOutcome:
        interval = policy["check_interval"]
        deadline = policy["max_execution_time"]
        if interval <= 0:
            raise ValueError("check_interval must be > 0")
        phase = PollPhase.SUBMITTED
        elapsed = 0.0
        polls = 0
        timed_out = False
        last: StateReport | None = None

        while phase is not PollPhase.TERMINAL:
            if phase is PollPhase.SUBMITTED:
                phase = PollPhase.POLLING
            last = poll_fn()
            polls += 1
            _logger.debug(
                "tms_poll",
                extra={
                    "job_id": int(last.job_id),
                    "raw_state": last.raw_state,
                    "poll_count": polls,
                    "elapsed_seconds": elapsed,
                },
            )
            if last.is_done:
                phase = PollPhase.TERMINAL
                continue
            self._do_sleep(interval)
            elapsed += interval
            if elapsed >= deadline:
                timed_out = True
                phase = PollPhase.TERMINAL

        if last is None:
            raise RuntimeError("poll loop finished without a poll")
        outcome = PollOutcome(
            last_report=last, polls=polls, elapsed_seconds=elapsed, timed_out=timed_out
        )
        if timed_out:
            _on_deadline(outcome, policy)
        return outcome

    def _do_sleep(self, seconds: float) -> None:
        if self._sleep is not None:
            self._sleep(seconds)
        else:
            _test_hooks.time_sleep(seconds)


def _on_deadline(outcome: PollOutcome, policy: PollPolicy) -> None:
    report = outcome.last_report
    _logger.warning(
        "tms_poll_deadline_reached",
        extra={
            "job_id": int(report.job_id),
            "raw_state": report.raw_state,
            "poll_count": outcome.polls,
            "elapsed_seconds": outcome.elapsed_seconds,
        },
    )
    if policy["raise_on_timeout"]:
        raise TmsClientError(
            kind=TmsErrorKind.TIMEOUT,
            code=TmsErrorCode.JOB_TIMEOUT,
            message=(
                f"Job {int(report.job_id)} not done after {outcome.elapsed_seconds} seconds"
            ),
            context={"job_id": int(report.job_id), "raw_state": report.raw_state},
        )


def await_done(poll_fn: PollFn, policy: PollPolicy) -> PollOutcome:
    """Poll with the default sleep hook."""
    return JobPoller().await_done(poll_fn, policy)


__all__ = ["JobPoller", "PollFn", "PollPhase", "await_done"]
