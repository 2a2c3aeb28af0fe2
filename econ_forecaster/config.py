"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``ECON_FORECASTER_*`` prefix, plus the
                                    provider secrets ``FRED_API_KEY`` and
                                    ``GEMINI_API_KEY``

Entry point: ``load_config(config_path=None) -> AppConfig``

All pipeline stages and CLI commands receive an ``AppConfig`` instance —
never raw dicts or individual env var lookups scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from econ_forecaster.taxonomy.indicator_taxonomy import RANGE_MAP

# ── Sub-config models ─────────────────────────────────────────────────────────


class FredConfig(BaseModel):
    """FRED statistics API connection settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://api.stlouisfed.org/fred"
    timeout_s: float = 30.0
    api_key: Optional[str] = None


class GeminiConfig(BaseModel):
    """Generative forecasting service settings.

    ``models`` is tried in order; the first model that answers wins.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    models: list[str] = ["gemini-2.5-flash", "gemini-2.5-flash-lite", "gemini-2.5-pro"]
    timeout_s: float = 60.0
    temperature: float = 0.2
    max_output_tokens: int = 1024
    api_key: Optional[str] = None

    @field_validator("max_output_tokens")
    @classmethod
    def validate_max_output_tokens(cls, v: int) -> int:
        if v < 256:
            raise ValueError(f"gemini.max_output_tokens must be >= 256, got {v}.")
        return v

    @field_validator("models")
    @classmethod
    def validate_models(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("gemini.models must list at least one model id.")
        return v


class CacheConfig(BaseModel):
    """Observation cache settings."""

    model_config = ConfigDict(frozen=True)

    backend: str = "file"
    cache_dir: str = "data/cache"
    ttl_hours: float = 24.0

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        valid = {"file", "memory"}
        if v not in valid:
            raise ValueError(f"cache.backend must be one of {sorted(valid)}, got '{v}'.")
        return v

    @field_validator("ttl_hours")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"cache.ttl_hours must be > 0, got {v}.")
        return v


class BacktestConfig(BaseModel):
    """Backtest sampling and pacing parameters."""

    model_config = ConfigDict(frozen=True)

    sample_size: int = 15
    pacing_delay_s: float = 0.3
    context_size: int = 12
    trend_window: int = 3
    progress_every: int = 5

    @field_validator("sample_size", "context_size", "trend_window")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Backtest sizes must be >= 1, got {v}.")
        return v

    @field_validator("pacing_delay_s")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"pacing_delay_s must be >= 0, got {v}.")
        return v


class DisplayConfig(BaseModel):
    """Series display defaults for ``show-series``."""

    model_config = ConfigDict(frozen=True)

    default_range: str = "1Y"
    placeholder_months: int = 120

    @field_validator("default_range")
    @classmethod
    def validate_range(cls, v: str) -> str:
        if v not in RANGE_MAP:
            raise ValueError(f"default_range must be one of {list(RANGE_MAP)}, got '{v}'.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/econ_forecaster.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    fred: FredConfig = FredConfig()
    gemini: GeminiConfig = GeminiConfig()
    cache: CacheConfig = CacheConfig()
    backtest: BacktestConfig = BacktestConfig()
    display: DisplayConfig = DisplayConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      FRED_API_KEY                    → raw["fred"]["api_key"]
      GEMINI_API_KEY                  → raw["gemini"]["api_key"]
      ECON_FORECASTER_CACHE_DIR       → raw["cache"]["cache_dir"]
      ECON_FORECASTER_LOG_LEVEL       → raw["logging"]["level"]
      ECON_FORECASTER_PACING_DELAY_S  → raw["backtest"]["pacing_delay_s"]
      ECON_FORECASTER_DEBUG           → raw["debug"]
    """
    if fred_key := os.environ.get("FRED_API_KEY"):
        raw.setdefault("fred", {})["api_key"] = fred_key

    if gemini_key := os.environ.get("GEMINI_API_KEY"):
        raw.setdefault("gemini", {})["api_key"] = gemini_key

    if cache_dir := os.environ.get("ECON_FORECASTER_CACHE_DIR"):
        raw.setdefault("cache", {})["cache_dir"] = cache_dir

    if log_level := os.environ.get("ECON_FORECASTER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if delay := os.environ.get("ECON_FORECASTER_PACING_DELAY_S"):
        raw.setdefault("backtest", {})["pacing_delay_s"] = float(delay)

    if debug := os.environ.get("ECON_FORECASTER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        fred=FredConfig(**raw.get("fred", {})),
        gemini=GeminiConfig(**raw.get("gemini", {})),
        cache=CacheConfig(**raw.get("cache", {})),
        backtest=BacktestConfig(**raw.get("backtest", {})),
        display=DisplayConfig(**raw.get("display", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
