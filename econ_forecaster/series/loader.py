"""
Series loader: the one fetch → cache → slice pipeline shared by every
indicator.

Load order for ``load(indicator)``:
  1. Cache hit (younger than the TTL)          → source ``cache``
  2. Fetch from the data source, write cache   → source ``api``
  3. Fetch failed and placeholders allowed     → source ``placeholder``
     (with a user-facing notice; never cached)
  4. Fetch failed and placeholders disallowed  → ``SeriesUnavailableError``

Backtests always load with ``allow_placeholder=False``: scoring a forecast
against synthetic data would be meaningless.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, Optional

from econ_forecaster.ingestion.cache import ExpiringCache
from econ_forecaster.ingestion.fred_client import FredAPIError
from econ_forecaster.ingestion.placeholder import generate_placeholder
from econ_forecaster.models.observation import Observation
from econ_forecaster.series.store import DateLike, filter_range, slice_recent, to_observations
from econ_forecaster.taxonomy.indicator_taxonomy import INDICATOR_CONFIG, IndicatorType

logger = logging.getLogger(__name__)

Fetcher = Callable[[IndicatorType], list[dict[str, Any]]]


class SeriesSource(StrEnum):
    CACHE = "cache"
    API = "api"
    PLACEHOLDER = "placeholder"


class SeriesUnavailableError(RuntimeError):
    """Real data for an indicator could not be obtained."""


class EmptySeriesError(ValueError):
    """A date range selected no observations."""


@dataclass(frozen=True)
class LoadedSeries:
    """Result of one ``SeriesLoader.load`` call.

    Attributes:
        indicator:    Which indicator was loaded.
        observations: Sorted observations.
        source:       Where the data came from.
        notice:       User-facing message when the data is degraded, else ``None``.
    """

    indicator: IndicatorType
    observations: list[Observation]
    source: SeriesSource
    notice: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.source is SeriesSource.PLACEHOLDER


class SeriesLoader:
    """Loads indicator series through the cache.

    Args:
        fetcher:            ``indicator -> feed rows``; usually ``FredClient.fetch_indicator``.
        cache:              TTL cache keyed by indicator value.
        placeholder_months: Length of the synthetic fallback series.
        rng:                Random source for placeholder jitter.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: ExpiringCache,
        placeholder_months: int = 120,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._fetch = fetcher
        self.cache = cache
        self.placeholder_months = placeholder_months
        self._rng = rng

    def load(
        self,
        indicator: IndicatorType,
        refresh: bool = False,
        allow_placeholder: bool = True,
    ) -> LoadedSeries:
        """Load the full series for ``indicator``.

        Args:
            indicator:         Indicator to load.
            refresh:           Skip the cache read (the fetched result is still cached).
            allow_placeholder: Degrade to synthetic data when the fetch fails.

        Raises:
            SeriesUnavailableError: Fetch failed and ``allow_placeholder`` is False.
        """
        spec = INDICATOR_CONFIG[indicator]
        key = indicator.value

        if not refresh:
            cached = self.cache.get_cached_data(key)
            if cached is not None:
                logger.debug("Cache hit for %s (%d rows)", key, len(cached))
                return LoadedSeries(
                    indicator=indicator,
                    observations=to_observations(cached, spec.value_field),
                    source=SeriesSource.CACHE,
                )

        try:
            rows = self._fetch(indicator)
        except FredAPIError as exc:
            logger.warning("Data source failed for %s: %s", key, exc)
            if not allow_placeholder:
                raise SeriesUnavailableError(f"Failed to fetch {key} data: {exc}") from exc
            placeholder = generate_placeholder(
                indicator, months=self.placeholder_months, rng=self._rng,
            )
            return LoadedSeries(
                indicator=indicator,
                observations=to_observations(placeholder, spec.value_field),
                source=SeriesSource.PLACEHOLDER,
                notice=f"Using demo data: real {spec.label} data unavailable.",
            )

        self.cache.set_cached_data(key, rows)
        return LoadedSeries(
            indicator=indicator,
            observations=to_observations(rows, spec.value_field),
            source=SeriesSource.API,
        )

    def load_display_range(
        self,
        indicator: IndicatorType,
        range_key: str,
        refresh: bool = False,
    ) -> tuple[LoadedSeries, list[Observation]]:
        """Load ``indicator`` and slice the most recent ``range_key`` periods."""
        loaded = self.load(indicator, refresh=refresh)
        return loaded, slice_recent(loaded.observations, range_key)

    def fetch_historical(
        self,
        indicator: IndicatorType,
        start_date: DateLike,
        end_date: DateLike,
    ) -> list[Observation]:
        """Real observations of ``indicator`` within ``[start_date, end_date]``.

        Raises:
            SeriesUnavailableError: If real data cannot be obtained.
            EmptySeriesError: If no observation falls inside the range.
        """
        loaded = self.load(indicator, allow_placeholder=False)
        selected = filter_range(loaded.observations, start_date, end_date)
        if not selected:
            raise EmptySeriesError("No historical data found for the selected date range.")
        logger.info(
            "Historical %s | %s → %s | %d observations (source=%s)",
            indicator.value, start_date, end_date, len(selected), loaded.source.value,
        )
        return selected
