"""
Tests for forecasting strategies.

What we test
------------
1. trend_estimate / LinearTrendForecaster — +10/period extrapolation,
   single-value and empty contexts, window limit, strict-before filtering.
2. extract_number — first numeric token, signs, thousands separators.
3. build_prompt — target date and serialised context appear in the prompt.
4. RemoteModelForecaster — parses the model reply; falls back to the trend
   on a client error or a reply with no number; never sends future data.
5. build_forecaster — selection by API-key availability and --no-ai.
"""

from __future__ import annotations

import json
from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest

from econ_forecaster.backtest.forecasters import (
    LinearTrendForecaster,
    RemoteModelForecaster,
    build_forecaster,
    build_prompt,
    context_before,
    extract_number,
    trend_estimate,
)
from econ_forecaster.config import AppConfig, GeminiConfig
from econ_forecaster.ingestion.gemini_client import GeminiClient, GeminiError
from econ_forecaster.models.observation import Observation
from econ_forecaster.taxonomy.indicator_taxonomy import IndicatorType
from econ_forecaster.utils.time_utils import parse_date_string


# ── Helpers ────────────────────────────────────────────────────────────────────

def _obs(label: str, value: float) -> Observation:
    return Observation(date=parse_date_string(label), value=value)


def _gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


# ── Linear trend ───────────────────────────────────────────────────────────────

def test_trend_extrapolates_plus_ten() -> None:
    """100, 110, 120 for 1/24..3/24 → 130 for 4/24."""
    history = [_obs("1/24", 100.0), _obs("2/24", 110.0), _obs("3/24", 120.0)]
    forecast = LinearTrendForecaster().predict(history, parse_date_string("4/24"))
    assert forecast == pytest.approx(130.0)


def test_trend_estimate_two_points() -> None:
    assert trend_estimate([100.0, 110.0]) == pytest.approx(120.0)


def test_trend_estimate_single_value_is_that_value() -> None:
    assert trend_estimate([42.0]) == 42.0


def test_trend_estimate_empty_is_zero() -> None:
    assert trend_estimate([]) == 0.0


def test_trend_uses_only_last_window_values() -> None:
    history = [_obs(f"{m}/23", v) for m, v in [(1, 0.0), (2, 500.0), (3, 10.0), (4, 20.0), (5, 30.0)]]
    forecast = LinearTrendForecaster(window=3).predict(history, parse_date_string("6/23"))
    assert forecast == pytest.approx(40.0)


def test_trend_ignores_points_on_or_after_target() -> None:
    history = [_obs("1/24", 100.0), _obs("2/24", 110.0), _obs("3/24", 9999.0)]
    forecast = LinearTrendForecaster().predict(history, parse_date_string("3/24"))
    assert forecast == pytest.approx(120.0)


def test_trend_window_must_be_positive() -> None:
    with pytest.raises(ValueError):
        LinearTrendForecaster(window=0)


def test_context_before_limit() -> None:
    history = [_obs(f"{m}/24", float(m)) for m in range(1, 7)]
    ctx = context_before(history, parse_date_string("5/24"), limit=2)
    assert [o.value for o in ctx] == [3.0, 4.0]


# ── extract_number ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "text, expected",
    [
        ("3.45", 3.45),
        ("The prediction is 27.9 trillion.", 27.9),
        ("-0.25", -0.25),
        ("158,432", 158432.0),
        ("1,234.5 jobs", 1234.5),
        (".5", 0.5),
        ("42", 42.0),
    ],
)
def test_extract_number(text: str, expected: float) -> None:
    assert extract_number(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", "no idea", "N/A"])
def test_extract_number_none(text: str) -> None:
    assert extract_number(text) is None


# ── build_prompt ───────────────────────────────────────────────────────────────

def test_prompt_contains_target_and_context() -> None:
    context = [_obs("1/24", 3.1), _obs("2/24", 3.2)]
    prompt = build_prompt("Inflation Rate (%)", date(2024, 3, 1), context)
    assert "Inflation Rate (%)" in prompt
    assert "2024-03-01" in prompt
    assert '"date": "2024-02-01"' in prompt
    assert "last 2 observations" in prompt


# ── RemoteModelForecaster ──────────────────────────────────────────────────────

def test_remote_forecaster_uses_model_number() -> None:
    client = MagicMock(spec=GeminiClient)
    client.generate.return_value = "3.7"
    forecaster = RemoteModelForecaster(client, label="Unemployment Rate (%)")

    value = forecaster.predict([_obs("1/24", 3.5)], date(2024, 2, 1))

    assert value == pytest.approx(3.7)
    client.generate.assert_called_once()


def test_remote_forecaster_falls_back_on_error() -> None:
    client = MagicMock(spec=GeminiClient)
    client.generate.side_effect = GeminiError("all models failed")
    forecaster = RemoteModelForecaster(client, label="GDP")
    history = [_obs("1/24", 100.0), _obs("2/24", 110.0)]

    assert forecaster.predict(history, date(2024, 3, 1)) == pytest.approx(120.0)


def test_remote_forecaster_falls_back_on_non_numeric_reply() -> None:
    client = MagicMock(spec=GeminiClient)
    client.generate.return_value = "I cannot predict the future."
    forecaster = RemoteModelForecaster(client, label="GDP")

    assert forecaster.predict([_obs("1/24", 50.0)], date(2024, 2, 1)) == 50.0


def test_remote_forecaster_prompt_has_no_future_values() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=_gemini_reply("121"))

    client = GeminiClient(api_key="k", models=["m1"], http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    forecaster = RemoteModelForecaster(client, label="Industrial Production", context_size=2)
    history = [_obs("1/24", 100.0), _obs("2/24", 110.0), _obs("3/24", 120.0), _obs("4/24", 777.0)]

    value = forecaster.predict(history, date(2024, 4, 1))

    prompt = seen[0]["contents"][0]["parts"][0]["text"]
    assert value == 121.0
    assert "777" not in prompt
    assert "100.0" not in prompt  # outside the 2-point context window
    assert "110.0" in prompt and "120.0" in prompt


# ── build_forecaster ───────────────────────────────────────────────────────────

def test_build_forecaster_without_key_is_trend(app_config: AppConfig) -> None:
    forecaster = build_forecaster(app_config, IndicatorType.GDP)
    assert forecaster.name == "linear_trend"


def test_build_forecaster_with_key_is_remote() -> None:
    config = AppConfig(gemini=GeminiConfig(api_key="secret"))
    forecaster = build_forecaster(config, IndicatorType.INFLATION)
    assert forecaster.name == "remote_model"
    assert forecaster.label == "Inflation Rate (%)"
    assert forecaster.context_size == config.backtest.context_size
    forecaster.client.close()


def test_build_forecaster_no_ai_flag_forces_trend() -> None:
    config = AppConfig(gemini=GeminiConfig(api_key="secret"))
    assert build_forecaster(config, IndicatorType.GDP, use_remote=False).name == "linear_trend"


def test_build_forecaster_client_without_key_is_trend(app_config: AppConfig) -> None:
    client = GeminiClient(api_key=None)
    assert build_forecaster(app_config, IndicatorType.GDP, client=client).name == "linear_trend"
    client.close()
