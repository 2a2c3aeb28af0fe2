"""
Indicator registry: the static table mapping each supported indicator to
its FRED series, the value field name used in feed rows, and a label.

Every ``IndicatorType`` must have exactly one ``IndicatorSpec`` in
``INDICATOR_CONFIG``; ``tests/test_taxonomy/test_indicator_taxonomy.py``
checks the contract.

This module has NO imports from any other ``econ_forecaster`` package.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class IndicatorType(StrEnum):
    """Macroeconomic indicators available to the dashboard and backtests."""

    GDP = "gdp"
    INFLATION = "inflation"
    UNEMPLOYMENT = "unemployment"
    FED_FUNDS = "fed-funds"
    PAYROLLS = "payrolls"
    RETAIL_SALES = "retail-sales"
    INDUSTRIAL_PRODUCTION = "industrial-production"


class Transform(StrEnum):
    """How raw FRED values become feed values."""

    IDENTITY = "identity"
    BILLIONS_TO_TRILLIONS = "billions_to_trillions"
    YOY_PERCENT = "yoy_percent"


@dataclass(frozen=True)
class IndicatorSpec:
    """Static description of one indicator feed.

    Attributes:
        indicator:   Registry key.
        series_id:   FRED series identifier.
        value_field: Name of the value key in feed rows (``{"date", <value_field>}``).
        label:       Human-readable label, also used in forecast prompts.
        transform:   Value transform applied to raw FRED observations.
        placeholder_base:      Centre of the synthetic demo series.
        placeholder_amplitude: Swing of the synthetic demo series.
    """

    indicator: IndicatorType
    series_id: str
    value_field: str
    label: str
    transform: Transform = Transform.IDENTITY
    placeholder_base: float = 100.0
    placeholder_amplitude: float = 5.0


INDICATOR_CONFIG: dict[IndicatorType, IndicatorSpec] = {
    IndicatorType.GDP: IndicatorSpec(
        indicator=IndicatorType.GDP,
        series_id="GDP",
        value_field="gdp",
        label="GDP (Trillions of 2017 $)",
        transform=Transform.BILLIONS_TO_TRILLIONS,
        placeholder_base=25.0,
        placeholder_amplitude=1.5,
    ),
    IndicatorType.INFLATION: IndicatorSpec(
        indicator=IndicatorType.INFLATION,
        series_id="CPIAUCSL",
        value_field="inflation",
        label="Inflation Rate (%)",
        transform=Transform.YOY_PERCENT,
        placeholder_base=2.0,
        placeholder_amplitude=1.5,
    ),
    IndicatorType.UNEMPLOYMENT: IndicatorSpec(
        indicator=IndicatorType.UNEMPLOYMENT,
        series_id="UNRATE",
        value_field="unemployment",
        label="Unemployment Rate (%)",
        placeholder_base=4.5,
        placeholder_amplitude=1.0,
    ),
    IndicatorType.FED_FUNDS: IndicatorSpec(
        indicator=IndicatorType.FED_FUNDS,
        series_id="FEDFUNDS",
        value_field="rate",
        label="Federal Funds Rate (%)",
        placeholder_base=2.0,
        placeholder_amplitude=1.5,
    ),
    IndicatorType.PAYROLLS: IndicatorSpec(
        indicator=IndicatorType.PAYROLLS,
        series_id="PAYNSA",
        value_field="payrolls",
        label="Payrolls (k)",
        placeholder_base=155_000.0,
        placeholder_amplitude=2_000.0,
    ),
    IndicatorType.RETAIL_SALES: IndicatorSpec(
        indicator=IndicatorType.RETAIL_SALES,
        series_id="RSXFS",
        value_field="retail",
        label="Retail Sales (M$)",
        placeholder_base=600_000.0,
        placeholder_amplitude=25_000.0,
    ),
    IndicatorType.INDUSTRIAL_PRODUCTION: IndicatorSpec(
        indicator=IndicatorType.INDUSTRIAL_PRODUCTION,
        series_id="INDPRO",
        value_field="ip",
        label="Industrial Production",
        placeholder_base=95.0,
        placeholder_amplitude=6.0,
    ),
}

# Display range key → number of most recent periods shown.
RANGE_MAP: dict[str, int] = {"3M": 3, "1Y": 12, "3Y": 36, "5Y": 60, "10Y": 120}


def get_indicator_spec(indicator: str) -> IndicatorSpec:
    """Look up an indicator by its registry value (e.g. ``"fed-funds"``).

    Raises:
        ValueError: If ``indicator`` is not a known ``IndicatorType`` value.
    """
    try:
        key = IndicatorType(indicator)
    except ValueError:
        valid = [i.value for i in IndicatorType]
        raise ValueError(f"Unknown indicator '{indicator}'. Must be one of {valid}.") from None
    return INDICATOR_CONFIG[key]
