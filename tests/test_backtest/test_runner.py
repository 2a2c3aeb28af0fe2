"""
Tests for the backtest runner.

What we test
------------
1. sample_indices — every point for short series, step sampling plus the
   final index for long ones, bounds on sample_size.
2. No leakage — the forecaster only ever sees observations before the
   point being forecast (the first point gets itself as minimal context).
3. Failure isolation — a forecaster exception on one point is replaced by
   the trend fallback and the run continues.
4. Pacing — sleep is called between consecutive points, never after the last.
5. Progress callback and cancellation.
"""

from __future__ import annotations

import threading
from datetime import date

import pytest

from econ_forecaster.backtest.runner import MAX_SAMPLE_SIZE, BacktestRunner, sample_indices
from econ_forecaster.models.observation import Observation


# ── Helpers ────────────────────────────────────────────────────────────────────

class _RecordingForecaster:
    """Returns a constant and remembers every (context, target) it was given."""

    name = "recording"

    def __init__(self, value: float = 1.0, fail_on: set[date] | None = None) -> None:
        self.value = value
        self.fail_on = fail_on or set()
        self.calls: list[tuple[list[Observation], date]] = []

    def predict(self, history: list[Observation], target_date: date) -> float:
        self.calls.append((list(history), target_date))
        if target_date in self.fail_on:
            raise RuntimeError("model exploded")
        return self.value


def _runner(forecaster, **kwargs) -> tuple[BacktestRunner, list[float]]:
    sleeps: list[float] = []
    runner = BacktestRunner(forecaster, sleep=sleeps.append, **kwargs)
    return runner, sleeps


# ── sample_indices ─────────────────────────────────────────────────────────────

def test_sample_short_series_uses_every_point() -> None:
    assert sample_indices(10, 15) == list(range(10))
    assert sample_indices(15, 15) == list(range(15))


def test_sample_100_points_includes_final_index() -> None:
    indices = sample_indices(100, 15)
    assert indices[-1] == 99
    assert indices[0] == 0
    # step = 100 // 15 = 6
    assert all(i % 6 == 0 for i in indices[:-1])


def test_sample_final_index_not_duplicated_on_step_boundary() -> None:
    # n = 31, step = 2: index 30 is both a step multiple and the last index.
    indices = sample_indices(31, 15)
    assert indices.count(30) == 1
    assert indices == sorted(indices)


def test_sample_empty_series() -> None:
    assert sample_indices(0, 5) == []


@pytest.mark.parametrize("bad", [0, -1, MAX_SAMPLE_SIZE + 1])
def test_sample_size_out_of_bounds_raises(bad: int) -> None:
    with pytest.raises(ValueError):
        sample_indices(50, bad)


# ── No leakage ─────────────────────────────────────────────────────────────────

def test_context_is_strictly_prior(make_series) -> None:
    series = make_series([float(i) for i in range(40)])
    forecaster = _RecordingForecaster()
    runner, _ = _runner(forecaster, pacing_delay_s=0)

    runner.run(series, sample_size=10)

    for context, target in forecaster.calls[1:]:
        assert context, "non-first points always have history"
        assert all(obs.date < target for obs in context)


def test_first_point_gets_itself_as_minimal_context(make_series) -> None:
    series = make_series([5.0, 6.0, 7.0])
    forecaster = _RecordingForecaster()
    runner, _ = _runner(forecaster, pacing_delay_s=0)

    runner.run(series, sample_size=3)

    first_context, first_target = forecaster.calls[0]
    assert first_target == series[0].date
    assert first_context == [series[0]]


def test_results_pair_forecast_with_actual(make_series) -> None:
    series = make_series([10.0, 20.0, 30.0])
    runner, _ = _runner(_RecordingForecaster(value=25.0), pacing_delay_s=0)

    results = runner.run(series, sample_size=3)

    assert [r.date for r in results] == [obs.date for obs in series]
    assert [r.actual for r in results] == [10.0, 20.0, 30.0]
    assert all(r.predicted == 25.0 for r in results)
    assert results[1].error == pytest.approx(5.0)


# ── Failure isolation ──────────────────────────────────────────────────────────

def test_exception_on_one_point_uses_trend_fallback(make_series) -> None:
    series = make_series([100.0, 110.0, 120.0, 130.0])
    forecaster = _RecordingForecaster(value=999.0, fail_on={series[3].date})
    runner, _ = _runner(forecaster, pacing_delay_s=0)

    results = runner.run(series, sample_size=4)

    assert len(results) == 4
    assert results[2].predicted == 999.0
    # Trend over 100/110/120 continues the +10 step.
    assert results[3].predicted == pytest.approx(130.0)


# ── Pacing ─────────────────────────────────────────────────────────────────────

def test_pacing_sleeps_between_points_only(make_series) -> None:
    series = make_series([1.0, 2.0, 3.0, 4.0, 5.0])
    runner, sleeps = _runner(_RecordingForecaster(), pacing_delay_s=0.3)

    runner.run(series, sample_size=5)

    assert sleeps == [0.3] * 4


def test_zero_pacing_never_sleeps(make_series) -> None:
    runner, sleeps = _runner(_RecordingForecaster(), pacing_delay_s=0)
    runner.run(make_series([1.0, 2.0, 3.0]), sample_size=3)
    assert sleeps == []


# ── Progress and cancellation ──────────────────────────────────────────────────

def test_progress_callback_reports_each_point(make_series) -> None:
    seen: list[tuple[int, int]] = []
    runner, _ = _runner(
        _RecordingForecaster(), pacing_delay_s=0, on_progress=lambda d, t: seen.append((d, t)),
    )

    runner.run(make_series([1.0, 2.0, 3.0]), sample_size=3)

    assert seen == [(1, 3), (2, 3), (3, 3)]


def test_cancel_event_stops_before_next_point(make_series) -> None:
    cancel = threading.Event()

    def _cancel_after_two(done: int, total: int) -> None:
        if done == 2:
            cancel.set()

    forecaster = _RecordingForecaster()
    runner, _ = _runner(forecaster, pacing_delay_s=0, on_progress=_cancel_after_two)

    results = runner.run(make_series([1.0] * 6), sample_size=6, cancel_event=cancel)

    assert len(results) == 2
    assert len(forecaster.calls) == 2


def test_runs_do_not_share_results(make_series) -> None:
    runner, _ = _runner(_RecordingForecaster(), pacing_delay_s=0)
    first = runner.run(make_series([1.0, 2.0]), sample_size=2)
    second = runner.run(make_series([3.0]), sample_size=1)
    assert len(first) == 2
    assert len(second) == 1
