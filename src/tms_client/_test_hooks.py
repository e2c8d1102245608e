"""Test hooks for tms_client - allows injecting test dependencies.

Production code calls these module-level callables directly. Tests assign
fakes before exercising the code under test; ``tests/conftest.py`` restores
the originals after each test.

Usage in tests:
    from tms_client import _test_hooks
    from tms_client.testing import FakeClock
    clock = FakeClock()
    _test_hooks.time_sleep = clock.sleep
"""

from __future__ import annotations

import time
from typing import Protocol

from tms_client.http_client import HttpxClient
from tms_client.http_client import build_client as _real_build_client


class BuildClientProtocol(Protocol):
    """Protocol for sync HTTP client builder."""

    def __call__(self, timeout_seconds: float | None) -> HttpxClient: ...


class TimeSleepProto(Protocol):
    """Protocol for time.sleep hook."""

    def __call__(self, seconds: float) -> None: ...


def _default_build_client(timeout_seconds: float | None) -> HttpxClient:
    return _real_build_client(timeout_seconds)


def _default_time_sleep(seconds: float) -> None:
    time.sleep(seconds)


build_client: BuildClientProtocol = _default_build_client
time_sleep: TimeSleepProto = _default_time_sleep


__all__ = ["BuildClientProtocol", "TimeSleepProto", "build_client", "time_sleep"]
