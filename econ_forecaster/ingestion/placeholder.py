"""
Synthetic demo series used when real data is unavailable.

Shape: a slow sine wave around the indicator's ``placeholder_base`` with a
small random jitter, one point per month ending at the current month::

    value[i] = base + sin(i / 6) * amplitude + U(0, 0.4 * amplitude)

Rows use the same ``{"date": "M/YYYY", <value_field>: v}`` shape as the
FRED feeds so the rest of the pipeline cannot tell them apart. They are
for display only; backtests refuse them.
"""

from __future__ import annotations

import math
import random
from datetime import date
from typing import Any, Optional

from econ_forecaster.taxonomy.indicator_taxonomy import INDICATOR_CONFIG, IndicatorType
from econ_forecaster.utils.time_utils import month_labels


def generate_placeholder(
    indicator: IndicatorType,
    months: int = 120,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> list[dict[str, Any]]:
    """Build a synthetic monthly series for ``indicator``.

    Args:
        indicator: Which indicator to imitate (controls base, swing, field name).
        months:    Number of monthly points.
        today:     Anchor for the last label; defaults to the current UTC date.
        rng:       Random source; pass a seeded instance for reproducible output.

    Returns:
        ``months`` rows, oldest first.
    """
    spec = INDICATOR_CONFIG[indicator]
    rng = rng or random.Random()
    base, amp = spec.placeholder_base, spec.placeholder_amplitude

    rows: list[dict[str, Any]] = []
    for idx, label in enumerate(month_labels(months, today)):
        value = base + math.sin(idx / 6) * amp + rng.random() * amp * 0.4
        rows.append({"date": label, spec.value_field: round(value, 2)})
    return rows
