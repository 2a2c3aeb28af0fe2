"""
Historical series helpers: turning feed rows into ordered observation
sequences and slicing them by date range or display range.

Ordering contract
-----------------
Every function here returns observations sorted ascending by date with no
duplicate dates. Upstream order is never trusted; the sort happens on the
way out. Missing months (gaps) are tolerated and not reported.

Unparseable rows
----------------
Rows whose date label does not parse, or whose value is missing, are
dropped silently: they cannot be placed on the time axis, so they are
unusable rather than erroneous.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Union

from econ_forecaster.models.observation import Observation
from econ_forecaster.taxonomy.indicator_taxonomy import RANGE_MAP
from econ_forecaster.utils.time_utils import parse_date_string

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def to_observations(rows: Iterable[dict[str, Any]], value_field: str) -> list[Observation]:
    """Convert feed rows ``{date, <value_field>}`` into a sorted series.

    When two rows share a date, the later row wins.

    Args:
        rows:        Feed rows as returned by the FRED client or the cache.
        value_field: Indicator value key (e.g. ``"gdp"``, ``"rate"``).

    Returns:
        Observations sorted ascending by date, one per date.
    """
    by_date: dict[date, Observation] = {}
    skipped = 0
    for row in rows:
        obs = Observation.from_row(row, value_field)
        if obs is None:
            skipped += 1
            continue
        by_date[obs.date] = obs

    if skipped:
        logger.debug("Dropped %d unusable rows (field=%s)", skipped, value_field)
    return [by_date[d] for d in sorted(by_date)]


def _coerce_date(value: DateLike, name: str) -> date:
    if isinstance(value, date):
        return value
    parsed = parse_date_string(value)
    if parsed is None:
        raise ValueError(f"{name} '{value}' is not a recognised date.")
    return parsed


def filter_range(
    series: Iterable[Observation],
    start_date: DateLike,
    end_date: DateLike,
) -> list[Observation]:
    """Return observations with ``start_date <= date <= end_date``.

    Both ends are inclusive; ``end_date`` covers the whole day, so an
    observation dated on the end date is kept. The result is re-sorted
    ascending regardless of input order.

    Args:
        series:     Observations in any order.
        start_date: Range start (``date`` or any label ``parse_date_string`` accepts).
        end_date:   Range end (same forms).

    Returns:
        Sorted observations within the range (possibly empty).

    Raises:
        ValueError: If a bound is a string that cannot be parsed.
    """
    start = _coerce_date(start_date, "start_date")
    end = _coerce_date(end_date, "end_date")
    kept = [obs for obs in series if start <= obs.date <= end]
    kept.sort(key=lambda obs: obs.date)
    return kept


def slice_recent(series: list[Observation], range_key: str) -> list[Observation]:
    """Return the most recent observations for a display range key.

    Args:
        series:    Sorted observations.
        range_key: One of ``3M``, ``1Y``, ``3Y``, ``5Y``, ``10Y``.

    Raises:
        ValueError: If ``range_key`` is unknown.
    """
    periods = RANGE_MAP.get(range_key)
    if periods is None:
        raise ValueError(f"Unknown range '{range_key}'. Must be one of {list(RANGE_MAP)}.")
    return list(series[-periods:])
