"""Shared fixtures for the rfc5545 test suite."""

from collections.abc import Generator
from typing import Any
from zoneinfo import ZoneInfo

import pytest

TEST_TIMEZONE = "America/Los_Angeles"


@pytest.fixture(autouse=True)
def clean_codec_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Pin the codec configuration for every test.

    Floating and date-only values are related to the configured local zone,
    so the host zone must never leak into assertions. Any config file or
    override from the developer's shell is cleared as well.
    """
    monkeypatch.delenv("RFC5545_CONFIG", raising=False)
    monkeypatch.delenv("RFC5545_PRODID", raising=False)
    monkeypatch.delenv("RFC5545_LOG_LEVEL", raising=False)
    monkeypatch.delenv("RFC5545_DEBUG", raising=False)
    monkeypatch.setenv("RFC5545_DEFAULT_TIMEZONE", TEST_TIMEZONE)
    yield


@pytest.fixture
def local_tz() -> ZoneInfo:
    """The deterministic local zone used by the tests."""
    return ZoneInfo(TEST_TIMEZONE)


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests against a third-party iCalendar library")
