"""
Observation model — one (date, value) point of an indicator series.

``date`` is a canonical, date-only value: the first day of the reporting
period for monthly/quarterly labels such as ``"03/24"``. Observations are
frozen after construction so series can be shared between the cache, the
range filters and the backtest runner without defensive copies.
"""

from __future__ import annotations

import datetime
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from econ_forecaster.utils.time_utils import format_date, parse_date_string


class Observation(BaseModel):
    """A single indicator observation.

    Attributes:
        date:  First day of the reporting period.
        value: Observed value in the indicator's units.
    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    value: float

    @field_validator("value")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Observation value must be finite, got {v}.")
        return v

    @classmethod
    def from_row(cls, row: dict[str, Any], value_field: str) -> Optional["Observation"]:
        """Build an observation from a feed row, or ``None`` if unusable.

        A row is unusable when it is not a dict, when its ``date`` label does
        not parse, or when its ``value_field`` is missing, ``None`` or
        non-numeric.
        """
        if not isinstance(row, dict):
            return None
        obs_date = parse_date_string(str(row.get("date") or ""))
        if obs_date is None:
            return None
        raw = row.get(value_field)
        if raw is None or isinstance(raw, bool):
            return None
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(value):
            return None
        return cls(date=obs_date, value=value)

    def to_row(self) -> dict[str, Any]:
        """Serialise to a ``{"date": "YYYY-MM-DD", "value": ...}`` dict."""
        return {"date": format_date(self.date), "value": self.value}
