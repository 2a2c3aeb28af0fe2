"""
Forecasters: given the observations before a target date, produce one
numeric forecast for that date.

Interface contract
------------------
All forecasters implement:

  predict(history: list[Observation], target_date: date) -> float
    ``history`` is sorted ascending. Only observations strictly before
    ``target_date`` are used; later points are ignored even if supplied.
    Never raises for model or service failures.

  name: str
    Short identifier shown in reports.

Implementations
---------------
  LinearTrendForecaster   → "The last few periods' average step continues."
                            Uses the last ``window`` (default 3) values:
                            trend = (last - first) / (count - 1); forecast = last + trend.
                            One value → that value; none → 0.

  RemoteModelForecaster   → Asks a generative model, with the last 12 prior
                            observations serialised into the prompt, and takes
                            the first number in its reply. Falls back to
                            LinearTrendForecaster on any service failure or a
                            reply with no number.

``build_forecaster`` picks the remote model when an API key is configured and
the linear trend otherwise.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Optional, Protocol

from econ_forecaster.config import AppConfig
from econ_forecaster.ingestion.gemini_client import GeminiClient, GeminiError
from econ_forecaster.models.observation import Observation
from econ_forecaster.taxonomy.indicator_taxonomy import INDICATOR_CONFIG, IndicatorType
from econ_forecaster.utils.time_utils import format_date

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"-?\d{1,3}(?:,\d{3})+(?:\.\d+)?|-?\d+(?:\.\d+)?|-?\.\d+")


class Forecaster(Protocol):
    name: str

    def predict(self, history: list[Observation], target_date: date) -> float: ...


def context_before(
    history: list[Observation],
    target_date: date,
    limit: Optional[int] = None,
) -> list[Observation]:
    """Return up to the last ``limit`` observations strictly before ``target_date``."""
    prior = [obs for obs in history if obs.date < target_date]
    if limit is not None:
        prior = prior[-limit:] if limit > 0 else []
    return prior


def extract_number(text: str) -> Optional[float]:
    """Return the first number in ``text`` (thousands separators allowed), or ``None``."""
    match = _NUMBER_RE.search(text or "")
    if match is None:
        return None
    return float(match.group(0).replace(",", ""))


def trend_estimate(values: list[float]) -> float:
    """Linear extrapolation one step past ``values``.

    ``values`` are the most recent context values, oldest first.
    """
    if not values:
        return 0.0
    if len(values) == 1:
        return values[0]
    trend = (values[-1] - values[0]) / (len(values) - 1)
    return values[-1] + trend


class LinearTrendForecaster:
    """Extrapolates the average step of the last ``window`` prior values."""

    name = "linear_trend"

    def __init__(self, window: int = 3) -> None:
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self.window = window

    def predict(self, history: list[Observation], target_date: date) -> float:
        context = context_before(history, target_date, self.window)
        return trend_estimate([obs.value for obs in context])


def build_prompt(label: str, target_date: date, context: list[Observation]) -> str:
    """Render the forecasting prompt sent to the generative model."""
    target = format_date(target_date)
    serialized = json.dumps([obs.to_row() for obs in context], indent=2)
    return (
        f"You are an AI Economist Assistant. Based on the historical {label} data "
        f"provided, predict the value for {target}.\n\n"
        f"Historical Data (last {len(context)} observations before {target}):\n"
        f"{serialized}\n\n"
        f"Provide ONLY a numeric prediction value for {target}. Do not include any "
        f"explanation, text, or formatting. Just the number.\n\n"
        f"Prediction for {target}:"
    )


class RemoteModelForecaster:
    """Generative-model forecaster with a linear-trend fallback.

    Args:
        client:       Text-generation client.
        label:        Indicator label used in the prompt.
        context_size: Number of prior observations put in the prompt.
        fallback:     Forecaster used when the model fails or answers without a number.
    """

    name = "remote_model"

    def __init__(
        self,
        client: GeminiClient,
        label: str,
        context_size: int = 12,
        fallback: Optional[LinearTrendForecaster] = None,
    ) -> None:
        self.client = client
        self.label = label
        self.context_size = context_size
        self.fallback = fallback or LinearTrendForecaster()

    def predict(self, history: list[Observation], target_date: date) -> float:
        context = context_before(history, target_date, self.context_size)
        prompt = build_prompt(self.label, target_date, context)

        try:
            reply = self.client.generate(prompt)
        except GeminiError as exc:
            logger.warning("Model forecast failed for %s, using trend: %s", target_date, exc)
            return self.fallback.predict(context, target_date)

        value = extract_number(reply)
        if value is None:
            logger.warning("No number in model reply for %s: %r", target_date, reply[:80])
            return self.fallback.predict(context, target_date)
        return value


def build_forecaster(
    config: AppConfig,
    indicator: IndicatorType,
    use_remote: bool = True,
    client: Optional[GeminiClient] = None,
) -> Forecaster:
    """Choose a forecaster by availability.

    Returns ``RemoteModelForecaster`` when ``use_remote`` is set and a Gemini
    API key is configured (or a ready client is passed), else
    ``LinearTrendForecaster``.
    """
    trend = LinearTrendForecaster(window=config.backtest.trend_window)
    if not use_remote:
        return trend

    if client is None:
        if not config.gemini.api_key:
            logger.info("No Gemini API key configured; using linear trend forecaster.")
            return trend
        client = GeminiClient.from_config(config.gemini)
    elif not client.is_available:
        logger.info("Gemini client has no API key; using linear trend forecaster.")
        return trend

    return RemoteModelForecaster(
        client=client,
        label=INDICATOR_CONFIG[indicator].label,
        context_size=config.backtest.context_size,
        fallback=trend,
    )
