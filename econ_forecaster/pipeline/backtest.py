"""
Backtest pipeline — validate a request, load real data, run, score.

Steps:
1. ``BacktestRequest`` validates user input before any network activity:
   known indicator, start date before end date, sample size within limits.
2. ``SeriesLoader.fetch_historical`` loads real observations for the range
   (cache first, then the data source; never placeholder data).
3. ``BacktestRunner`` forecasts the sampled points sequentially.
4. ``calculate_metrics`` scores the result list.

Each ``run`` builds a fresh result list and metrics object; nothing is
shared between runs.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from econ_forecaster.backtest.forecasters import Forecaster, LinearTrendForecaster
from econ_forecaster.backtest.metrics import BacktestMetrics, BacktestResult, calculate_metrics
from econ_forecaster.backtest.runner import MAX_SAMPLE_SIZE, BacktestRunner, ProgressCallback
from econ_forecaster.models.observation import Observation
from econ_forecaster.series.loader import SeriesLoader
from econ_forecaster.taxonomy.indicator_taxonomy import IndicatorType

log = logging.getLogger(__name__)


class BacktestRequest(BaseModel):
    """Validated backtest parameters.

    Attributes:
        indicator:   Indicator to evaluate.
        start_date:  First date of the evaluation window.
        end_date:    Last date of the evaluation window (inclusive).
        sample_size: Maximum number of points to forecast.
    """

    model_config = ConfigDict(frozen=True)

    indicator: IndicatorType
    start_date: date
    end_date: date
    sample_size: int = MAX_SAMPLE_SIZE

    @field_validator("sample_size")
    @classmethod
    def validate_sample_size(cls, v: int) -> int:
        if not 1 <= v <= MAX_SAMPLE_SIZE:
            raise ValueError(f"sample_size must be between 1 and {MAX_SAMPLE_SIZE}, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_date_ordering(self) -> "BacktestRequest":
        if self.start_date >= self.end_date:
            raise ValueError("Start date must be before end date.")
        return self


@dataclass(frozen=True)
class BacktestReport:
    """Everything one backtest run produced."""

    request: BacktestRequest
    forecaster_name: str
    series: list[Observation]
    results: list[BacktestResult]
    metrics: BacktestMetrics


class BacktestPipeline:
    """Wires the loader, runner and metrics together for one request.

    Args:
        loader:         Series loader (cache + data source).
        forecaster:     Forecasting strategy.
        pacing_delay_s: Delay between forecasts.
        on_progress:    Optional ``(done, total)`` callback.
        fallback:       Trend forecaster for points where ``forecaster`` raises.
    """

    def __init__(
        self,
        loader: SeriesLoader,
        forecaster: Forecaster,
        pacing_delay_s: float = 0.3,
        on_progress: Optional[ProgressCallback] = None,
        fallback: Optional[LinearTrendForecaster] = None,
    ) -> None:
        self.loader = loader
        self.forecaster = forecaster
        self.pacing_delay_s = pacing_delay_s
        self.on_progress = on_progress
        self.fallback = fallback

    def run(
        self,
        request: BacktestRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> BacktestReport:
        """Execute ``request``.

        Raises:
            SeriesUnavailableError: Real data could not be loaded.
            EmptySeriesError: The window contains no observations.
        """
        series = self.loader.fetch_historical(
            request.indicator, request.start_date, request.end_date,
        )

        runner = BacktestRunner(
            self.forecaster,
            pacing_delay_s=self.pacing_delay_s,
            on_progress=self.on_progress,
            fallback=self.fallback,
        )
        results = runner.run(series, request.sample_size, cancel_event=cancel_event)
        metrics = calculate_metrics(results)

        log.info(
            "Backtest %s | %s → %s | n=%d | MAE=%.4f MAPE=%.2f%% RMSE=%.4f R²=%.4f",
            request.indicator.value, request.start_date, request.end_date,
            metrics.n_results, metrics.mae, metrics.mape, metrics.rmse, metrics.r_squared,
        )
        return BacktestReport(
            request=request,
            forecaster_name=getattr(self.forecaster, "name", type(self.forecaster).__name__),
            series=series,
            results=results,
            metrics=metrics,
        )
