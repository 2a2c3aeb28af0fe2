"""
Forecast evaluation metrics.

Metric design rationale
-----------------------
MAE (Mean Absolute Error)
  "On average the forecast is off by X units of the indicator" — X
  percentage points of inflation, X trillion dollars of GDP. Equally weights
  all errors. Lower is better; 0 is perfect.

MAPE (Mean Absolute Percentage Error)
  Normalises each error by the actual value so indicators with very
  different scales (payrolls vs. the fed funds rate) can be compared.
  Reported in percent (5.0 = 5%). Points with an actual of exactly zero
  have no defined percentage error and are excluded from the mean.

RMSE (Root Mean Squared Error)
  Squares errors before averaging, so one badly missed turning point
  outweighs several small misses. RMSE >= MAE always; a wide gap means
  occasional large misses.

R² (Coefficient of Determination)
  1 - SS_res / SS_tot: the share of the actual series' variance the
  forecasts explain. 1.0 is a perfect fit, 0 is no better than predicting
  the mean, negative is worse than the mean. When the actual series is
  constant (SS_tot == 0) the ratio is undefined and R² is reported as 0.

Every metric of an empty result list is 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class BacktestResult:
    """One forecast-vs-actual comparison.

    Attributes:
        date:          Observation date being forecast.
        actual:        Observed value.
        predicted:     Forecast value.
        error:         ``predicted - actual``.
        error_percent: ``error / actual * 100``, or 0 when ``actual == 0``.
    """

    date: date
    actual: float
    predicted: float
    error: float
    error_percent: float

    @classmethod
    def from_pair(cls, obs_date: date, actual: float, predicted: float) -> "BacktestResult":
        error = predicted - actual
        error_percent = (error / actual) * 100 if actual != 0 else 0.0
        return cls(
            date=obs_date,
            actual=actual,
            predicted=predicted,
            error=error,
            error_percent=error_percent,
        )


@dataclass(frozen=True)
class BacktestMetrics:
    """Aggregate scores over a list of ``BacktestResult``.

    Attributes:
        mae:       Mean absolute error, indicator units.
        mape:      Mean absolute percentage error, percent.
        rmse:      Root mean squared error, indicator units.
        r_squared: Coefficient of determination.
        n_results: Number of results scored (label only).
    """

    mae: float
    mape: float
    rmse: float
    r_squared: float
    n_results: int = 0


def calculate_mae(results: list[BacktestResult]) -> float:
    if not results:
        return 0.0
    return sum(abs(r.error) for r in results) / len(results)


def calculate_mape(results: list[BacktestResult]) -> float:
    """Mean of ``|error_percent|`` over results with a non-zero actual."""
    valid = [r for r in results if r.actual != 0]
    if not valid:
        return 0.0
    return sum(abs(r.error_percent) for r in valid) / len(valid)


def calculate_rmse(results: list[BacktestResult]) -> float:
    if not results:
        return 0.0
    return math.sqrt(sum(r.error * r.error for r in results) / len(results))


def calculate_r_squared(results: list[BacktestResult]) -> float:
    """``1 - SS_res / SS_tot``; 0 for an empty list or a constant actual series."""
    if not results:
        return 0.0
    mean_actual = sum(r.actual for r in results) / len(results)
    ss_res = sum(r.error * r.error for r in results)
    ss_tot = sum((r.actual - mean_actual) ** 2 for r in results)
    if ss_tot == 0:
        return 0.0
    return 1 - ss_res / ss_tot


def calculate_metrics(results: list[BacktestResult]) -> BacktestMetrics:
    """Compute all four metrics for ``results``."""
    return BacktestMetrics(
        mae=calculate_mae(results),
        mape=calculate_mape(results),
        rmse=calculate_rmse(results),
        r_squared=calculate_r_squared(results),
        n_results=len(results),
    )


def generate_backtest_results(
    dates: list[date],
    actual_values: list[float],
    predicted_values: list[float],
) -> list[BacktestResult]:
    """Pair parallel date/actual/predicted lists into results.

    Raises:
        ValueError: If the three lists differ in length.
    """
    if not len(dates) == len(actual_values) == len(predicted_values):
        raise ValueError(
            "dates, actual_values and predicted_values must have equal length, got "
            f"{len(dates)}, {len(actual_values)}, {len(predicted_values)}."
        )
    return [
        BacktestResult.from_pair(d, a, p)
        for d, a, p in zip(dates, actual_values, predicted_values)
    ]
