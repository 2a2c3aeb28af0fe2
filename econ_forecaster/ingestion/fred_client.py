"""
FRED (Federal Reserve Economic Data) client.

API:   https://api.stlouisfed.org/fred/series/observations
Docs:  https://fred.stlouisfed.org/docs/api/fred/series_observations.html

Credential setup (.env, gitignored):
  FRED_API_KEY=your_key_here

Every indicator is fetched in full (``sort_order=asc``) and reshaped into
feed rows keyed by the indicator's value field::

    [{"date": "03/2024", "gdp": 28.62}, {"date": "06/2024", "gdp": 29.02}, ...]

Missing observations (FRED reports them as ``"."``) are dropped before any
transform. Transforms per indicator live in the indicator registry:

  billions_to_trillions  value / 1000
  yoy_percent            100 * (v[i] - v[i-12]) / v[i-12], 2 decimals;
                         the first 12 observations have no base and are dropped
  identity               value as reported

Failures (no key, transport error, non-200 status, malformed body) raise
``FredAPIError``. Callers decide whether to degrade to cached or
placeholder data; this module never does.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from econ_forecaster.config import FredConfig
from econ_forecaster.taxonomy.indicator_taxonomy import (
    INDICATOR_CONFIG,
    IndicatorSpec,
    IndicatorType,
    Transform,
)
from econ_forecaster.utils.time_utils import format_month_label, parse_date_string

logger = logging.getLogger(__name__)

YOY_LAG = 12


class FredAPIError(RuntimeError):
    """The FRED API could not deliver usable observations."""


# ── Transforms ────────────────────────────────────────────────────────────────


def yoy_percent(observations: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Year-over-year percent change against the observation 12 steps back.

    Args:
        observations: ``[{"date": "YYYY-MM-DD", "value": float}]`` ascending.

    Returns:
        Same shape, starting at index 12. Points whose base value is zero
        are skipped.
    """
    out: list[dict[str, Any]] = []
    for i in range(YOY_LAG, len(observations)):
        prev = observations[i - YOY_LAG]["value"]
        if prev == 0:
            continue
        curr = observations[i]["value"]
        out.append({"date": observations[i]["date"], "value": round((curr - prev) / prev * 100, 2)})
    return out


def transform_observations(
    spec: IndicatorSpec,
    observations: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Apply ``spec.transform`` and reshape into ``{"date": "MM/YYYY", <field>: v}`` rows."""
    if spec.transform is Transform.YOY_PERCENT:
        values = yoy_percent(observations)
    elif spec.transform is Transform.BILLIONS_TO_TRILLIONS:
        values = [{"date": o["date"], "value": o["value"] / 1000} for o in observations]
    else:
        values = observations

    rows: list[dict[str, Any]] = []
    for o in values:
        obs_date = parse_date_string(o["date"])
        if obs_date is None:
            continue
        rows.append({"date": format_month_label(obs_date), spec.value_field: o["value"]})
    return rows


# ── Client ────────────────────────────────────────────────────────────────────


class FredClient:
    """Synchronous FRED client.

    Usage::

        with FredClient.from_config(config.fred) as client:
            rows = client.fetch_indicator(IndicatorType.GDP)

    Args:
        api_key:     FRED API key. ``None`` → every fetch raises ``FredAPIError``.
        base_url:    API root (``https://api.stlouisfed.org/fred``).
        timeout_s:   Per-request timeout.
        http_client: Optional pre-built ``httpx.Client`` (tests inject a
                     ``MockTransport`` here). Not closed by ``close()``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.stlouisfed.org/fred",
        timeout_s: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_s)

    @classmethod
    def from_config(
        cls,
        config: FredConfig,
        http_client: Optional[httpx.Client] = None,
    ) -> "FredClient":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            http_client=http_client,
        )

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "FredClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Raw observations ──────────────────────────────────────────────────────

    def fetch_observations(self, series_id: str) -> list[dict[str, Any]]:
        """Fetch all observations of a FRED series, oldest first.

        Returns:
            ``[{"date": "YYYY-MM-DD", "value": float}]`` with missing values dropped.

        Raises:
            FredAPIError: On missing key, transport failure, non-200 status,
                or a body without an ``observations`` list.
        """
        if not self.api_key:
            raise FredAPIError("FRED API key missing. Set FRED_API_KEY in .env.")

        try:
            resp = self._http.get(
                f"{self.base_url}/series/observations",
                params={
                    "series_id": series_id,
                    "api_key": self.api_key,
                    "file_type": "json",
                    "sort_order": "asc",
                },
            )
        except httpx.HTTPError as exc:
            raise FredAPIError(f"FRED request for {series_id} failed: {exc}") from exc

        if resp.status_code != 200:
            raise FredAPIError(f"FRED error for {series_id}: HTTP {resp.status_code}")

        try:
            body = resp.json()
            raw_obs = body["observations"]
        except (ValueError, KeyError, TypeError) as exc:
            raise FredAPIError(f"Malformed FRED response for {series_id}") from exc

        observations: list[dict[str, Any]] = []
        for o in raw_obs:
            raw_value = o.get("value")
            if raw_value in (None, "."):
                continue
            try:
                observations.append({"date": o["date"], "value": float(raw_value)})
            except (KeyError, TypeError, ValueError):
                continue

        logger.debug("FRED %s: %d observations", series_id, len(observations))
        return observations

    # ── Indicator feeds ───────────────────────────────────────────────────────

    def fetch_indicator(self, indicator: IndicatorType) -> list[dict[str, Any]]:
        """Fetch one indicator as feed rows ``{"date": "MM/YYYY", <value_field>: v}``.

        Raises:
            FredAPIError: See ``fetch_observations``.
        """
        spec = INDICATOR_CONFIG[indicator]
        rows = transform_observations(spec, self.fetch_observations(spec.series_id))
        logger.info("Fetched %s | series=%s | rows=%d", indicator.value, spec.series_id, len(rows))
        return rows

    def fetch_tradeoff(self) -> list[dict[str, Any]]:
        """Monthly inflation joined with GDP for the policy trade-off view.

        Rows are ``{"date": "M/YY", "inflation": float, "growth": float | None}``.
        ``growth`` (GDP in trillions, 2 decimals) is only set for months with
        a GDP observation; GDP is quarterly, so most months have ``None``.
        """
        gdp_obs = self.fetch_observations(INDICATOR_CONFIG[IndicatorType.GDP].series_id)
        cpi_obs = self.fetch_observations(INDICATOR_CONFIG[IndicatorType.INFLATION].series_id)

        gdp_by_month = {o["date"][:7]: o["value"] / 1000 for o in gdp_obs}

        rows: list[dict[str, Any]] = []
        for o in yoy_percent(cpi_obs):
            year, month = o["date"][:4], o["date"][5:7]
            gdp = gdp_by_month.get(f"{year}-{month}")
            rows.append({
                "date": f"{int(month)}/{year[-2:]}",
                "inflation": o["value"],
                "growth": round(gdp, 2) if gdp is not None else None,
            })
        return rows
