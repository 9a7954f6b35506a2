"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from rarefind.core.config import get_settings

ENV_PREFIXES = ("AMAZON_", "RAPIDAPI_", "EBAY_")


class FakeClock:
    """Manually advanced monotonic clock whose sleep moves time forward."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    """Return a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove marketplace credentials from the environment and reset cached settings."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(os.path.dirname(__file__))
    get_settings.cache_clear()


def make_response(
    status_code: int = 200,
    json_data: object = None,
    text: str = "",
    headers: dict[str, str] | None = None,
) -> MagicMock:
    """Build a mock httpx response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    response.headers = headers or {}
    return response


def make_http(response: MagicMock | None = None) -> AsyncMock:
    """Build a mock httpx.AsyncClient returning ``response``."""
    http = AsyncMock()
    http.request.return_value = response
    return http
