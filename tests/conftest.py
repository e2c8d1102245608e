"""Shared test fixtures for tms_client tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from tms_client import _test_hooks
from tms_client import json_utils as json_utils_mod
from tms_client.config import _test_hooks as config_hooks
from tms_client.testing import FakeClock


@pytest.fixture(autouse=True)
def _restore_hooks() -> Generator[None, None, None]:
    """Restore client hooks after each test."""
    original_build_client = _test_hooks.build_client
    original_time_sleep = _test_hooks.time_sleep
    yield
    _test_hooks.build_client = original_build_client
    _test_hooks.time_sleep = original_time_sleep


@pytest.fixture(autouse=True)
def _restore_config_hooks() -> Generator[None, None, None]:
    """Restore config hooks after each test."""
    original_get_env = config_hooks.get_env
    original_tomllib_loads = config_hooks.tomllib_loads
    yield
    config_hooks.get_env = original_get_env
    config_hooks.tomllib_loads = original_tomllib_loads


@pytest.fixture(autouse=True)
def _restore_json_utils_hooks() -> Generator[None, None, None]:
    """Restore json_utils hooks after each test."""
    original_json_loads = json_utils_mod._json_loads
    yield
    json_utils_mod._json_loads = original_json_loads


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock installed as the process-wide sleep hook."""
    fake = FakeClock()
    _test_hooks.time_sleep = fake.sleep
    return fake
