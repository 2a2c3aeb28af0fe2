"""
Shared pytest fixtures for the Econ Forecaster test suite.

Provides:
  - ``make_series``: factory building a monthly ``Observation`` series from
    a list of values.
  - ``fake_clock``: a settable epoch clock for TTL tests.
  - ``memory_cache``: an ``ExpiringCache`` over ``InMemoryCache`` driven by
    ``fake_clock``.
  - ``app_config``: default ``AppConfig`` with no API keys.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import pytest

from econ_forecaster.config import AppConfig
from econ_forecaster.ingestion.cache import ExpiringCache, InMemoryCache
from econ_forecaster.models.observation import Observation


def month_start(start: date, offset: int) -> date:
    """First day of the month ``offset`` months after ``start``."""
    total = start.year * 12 + (start.month - 1) + offset
    year, month_index = divmod(total, 12)
    return date(year, month_index + 1, 1)


class FakeClock:
    """Callable epoch clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ── Series fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def make_series() -> Callable[..., list[Observation]]:
    """Return a factory: ``make_series([1.0, 2.0], start=date(2020, 1, 1))``."""

    def _make(values: list[float], start: date = date(2020, 1, 1)) -> list[Observation]:
        return [
            Observation(date=month_start(start, i), value=v)
            for i, v in enumerate(values)
        ]

    return _make


@pytest.fixture
def monthly_series(make_series) -> list[Observation]:
    """36 monthly observations rising by 1.0 from 100.0, Jan 2020 onward."""
    return make_series([100.0 + i for i in range(36)])


# ── Cache fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(fake_clock: FakeClock) -> ExpiringCache:
    return ExpiringCache(InMemoryCache(), ttl_seconds=24 * 3600, clock=fake_clock)


# ── Config fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def app_config() -> AppConfig:
    """Default config with no API keys (trend forecaster, FRED unavailable)."""
    return AppConfig()
