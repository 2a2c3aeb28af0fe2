"""
Backtest runner: forecast a sample of historical points using only the
data before each point, and pair every forecast with the actual value.

How it works
------------
1. Sample at most ``sample_size`` (<= 15) indices from the series:
   every point when the series is short enough, otherwise every
   ``step = n // sample_size``-th index plus the final index.
2. For each sampled index ``idx``:
   a. context = ``series[:idx]``. The first point has no history, so it
      gets ``[point]`` as a minimal context.
   b. predicted = ``forecaster.predict(context, point.date)``.
      If the forecaster raises, log it and use the linear-trend estimate
      on the same context. One bad point never voids the run.
   c. Emit ``BacktestResult(date, actual=point.value, predicted, ...)``.
3. Calls are strictly sequential with ``pacing_delay_s`` between
   consecutive calls (not after the last) to respect the forecasting
   service's rate limits.

Leakage proof
-------------
- The context slice ends before ``idx``; the actual value is read from the
  point itself only after the forecast is made.
- Forecasters additionally drop anything not strictly before the target
  date, so the minimal ``[point]`` context of the first point carries no
  information about its own value.

Cancellation
------------
An optional ``threading.Event`` is checked before each point. A cancelled
run returns the results completed so far.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from econ_forecaster.backtest.forecasters import Forecaster, LinearTrendForecaster
from econ_forecaster.backtest.metrics import BacktestResult
from econ_forecaster.models.observation import Observation

log = logging.getLogger(__name__)

MAX_SAMPLE_SIZE = 15

ProgressCallback = Callable[[int, int], None]


def sample_indices(n: int, sample_size: int) -> list[int]:
    """Pick the indices of a length-``n`` series to backtest.

    Args:
        n:           Series length.
        sample_size: Target sample size, 1..15.

    Returns:
        Ascending indices. All of ``range(n)`` when ``n <= sample_size``;
        otherwise multiples of ``n // sample_size`` plus ``n - 1``.

    Raises:
        ValueError: If ``sample_size`` is outside 1..15.
    """
    if not 1 <= sample_size <= MAX_SAMPLE_SIZE:
        raise ValueError(f"sample_size must be in 1..{MAX_SAMPLE_SIZE}, got {sample_size}")
    if n <= sample_size:
        return list(range(n))
    step = n // sample_size
    return [i for i in range(n) if i % step == 0 or i == n - 1]


class BacktestRunner:
    """Sequential, paced backtest over one series.

    Args:
        forecaster:     Strategy producing each forecast.
        pacing_delay_s: Pause between consecutive forecasts.
        sleep:          Sleep function (injected in tests).
        on_progress:    Called with ``(done, total)`` after each point.
        fallback:       Used when ``forecaster`` raises.
    """

    def __init__(
        self,
        forecaster: Forecaster,
        pacing_delay_s: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Optional[ProgressCallback] = None,
        fallback: Optional[LinearTrendForecaster] = None,
    ) -> None:
        self.forecaster = forecaster
        self.pacing_delay_s = pacing_delay_s
        self._sleep = sleep
        self._on_progress = on_progress
        self.fallback = fallback or LinearTrendForecaster()

    def run(
        self,
        series: list[Observation],
        sample_size: int = MAX_SAMPLE_SIZE,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[BacktestResult]:
        """Backtest ``series`` (sorted ascending).

        Returns:
            One result per sampled point, in date order. Fewer when cancelled.
        """
        indices = sample_indices(len(series), sample_size)
        total = len(indices)
        results: list[BacktestResult] = []

        for i, idx in enumerate(indices):
            if cancel_event is not None and cancel_event.is_set():
                log.info("Backtest cancelled after %d of %d points", len(results), total)
                break

            point = series[idx]
            context = series[:idx] if idx > 0 else [point]

            try:
                predicted = self.forecaster.predict(context, point.date)
            except Exception as exc:
                log.warning(
                    "Forecast failed for %s (%s); using trend fallback",
                    point.date, exc,
                )
                predicted = self.fallback.predict(context, point.date)

            results.append(BacktestResult.from_pair(point.date, point.value, predicted))

            if self._on_progress is not None:
                self._on_progress(i + 1, total)

            if i < total - 1 and self.pacing_delay_s > 0:
                self._sleep(self.pacing_delay_s)

        log.info(
            "Backtest complete | forecaster=%s | series=%d | sampled=%d | results=%d",
            getattr(self.forecaster, "name", type(self.forecaster).__name__),
            len(series), total, len(results),
        )
        return results
