"""
Economic Indicator Forecaster — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs (before any network activity).
  4. Execute action (load a series, run a backtest, clear the cache).
  5. Report result to stdout.

Install and run::

    pip install -e .
    econ-forecaster --help
    econ-forecaster validate-config
    econ-forecaster indicators
    econ-forecaster show-series gdp --range 5Y
    econ-forecaster backtest inflation --start-date 2019-01-01 --end-date 2024-01-01
    econ-forecaster tradeoff --last 24
    econ-forecaster clear-cache
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="econ-forecaster",
    help="Economic Indicator Forecaster — FRED series, AI backtests, plain-text reports.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from econ_forecaster.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from econ_forecaster.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _indicator_or_exit(name: str):
    """Resolve an indicator name, exiting with the list of valid names if unknown."""
    from econ_forecaster.taxonomy.indicator_taxonomy import get_indicator_spec

    try:
        return get_indicator_spec(name)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _first_error_message(exc) -> str:
    """Pull the human message out of a pydantic ``ValidationError``."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    msg = str(errors[0].get("msg", exc))
    return msg.removeprefix("Value error, ")


def _build_loader(config):
    """Wire FRED client, cache and loader from config. Returns ``(loader, client)``."""
    from econ_forecaster.ingestion.cache import build_cache
    from econ_forecaster.ingestion.fred_client import FredClient
    from econ_forecaster.series.loader import SeriesLoader

    client = FredClient.from_config(config.fred)
    loader = SeriesLoader(
        fetcher=client.fetch_indicator,
        cache=build_cache(config.cache),
        placeholder_months=config.display.placeholder_months,
    )
    return loader, client


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  FRED API key:     {'set' if config.fred.api_key else 'missing (demo data only)'}")
    typer.echo(f"  Gemini API key:   {'set' if config.gemini.api_key else 'missing (trend forecasts only)'}")
    typer.echo(f"  Gemini models:    {', '.join(config.gemini.models)}")
    typer.echo(f"  Cache:            {config.cache.backend} @ {config.cache.cache_dir} (ttl {config.cache.ttl_hours}h)")
    typer.echo(f"  Backtest sample:  {config.backtest.sample_size} (pacing {config.backtest.pacing_delay_s}s)")
    typer.echo(f"  Default range:    {config.display.default_range}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        full = config.model_dump()
        full["fred"]["api_key"] = "***" if config.fred.api_key else None
        full["gemini"]["api_key"] = "***" if config.gemini.api_key else None
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(full, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("indicators")
def indicators() -> None:
    """List the supported indicators and their FRED series."""
    from econ_forecaster.reporting.formatters import format_indicator_table

    typer.echo(format_indicator_table())


@app.command("show-series")
def show_series(
    indicator: str = typer.Argument(..., help="Indicator name, e.g. gdp or inflation."),
    range_key: Optional[str] = typer.Option(
        None,
        "--range",
        help="Display range: 3M, 1Y, 3Y, 5Y or 10Y (default from config).",
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh",
        help="Ignore the cache and fetch from FRED.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Load an indicator (cache → FRED → demo data) and print its recent values."""
    from econ_forecaster.reporting.formatters import format_series_table
    from econ_forecaster.taxonomy.indicator_taxonomy import RANGE_MAP

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    spec = _indicator_or_exit(indicator)
    key = range_key or config.display.default_range
    if key not in RANGE_MAP:
        typer.echo(f"[ERROR] --range must be one of {list(RANGE_MAP)}, got '{key}'.", err=True)
        raise typer.Exit(code=1)

    loader, client = _build_loader(config)
    try:
        loaded, recent = loader.load_display_range(spec.indicator, key, refresh=refresh)
    finally:
        client.close()

    if loaded.notice:
        typer.echo(f"[WARN] {loaded.notice}", err=True)
    typer.echo(format_series_table(loaded, recent, key))


@app.command("backtest")
def backtest(
    indicator: str = typer.Argument(..., help="Indicator name, e.g. gdp or inflation."),
    start_date: str = typer.Option(
        ...,
        "--start-date",
        help="Window start (YYYY-MM-DD, MM/YYYY or MM/YY).",
    ),
    end_date: str = typer.Option(
        ...,
        "--end-date",
        help="Window end, inclusive (YYYY-MM-DD, MM/YYYY or MM/YY).",
    ),
    sample_size: Optional[int] = typer.Option(
        None,
        "--sample-size",
        help="Points to forecast, 1..15 (default from config).",
    ),
    no_ai: bool = typer.Option(
        False,
        "--no-ai",
        help="Use the linear-trend forecaster even if a Gemini key is set.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Forecast sampled historical points using only prior data, then score them.

    Real data only: the backtest fails rather than score against demo data.
    """
    from pydantic import ValidationError

    from econ_forecaster.backtest.forecasters import LinearTrendForecaster, build_forecaster
    from econ_forecaster.pipeline.backtest import BacktestPipeline, BacktestRequest
    from econ_forecaster.reporting.formatters import format_backtest_report
    from econ_forecaster.series.loader import EmptySeriesError, SeriesUnavailableError
    from econ_forecaster.utils.time_utils import format_date, parse_date_string

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    spec = _indicator_or_exit(indicator)

    start = parse_date_string(start_date)
    end = parse_date_string(end_date)
    if start is None or end is None:
        bad = start_date if start is None else end_date
        typer.echo(f"[ERROR] Invalid date: '{bad}'. Use YYYY-MM-DD, MM/YYYY or MM/YY.", err=True)
        raise typer.Exit(code=1)

    try:
        request = BacktestRequest(
            indicator=spec.indicator,
            start_date=start,
            end_date=end,
            sample_size=sample_size or config.backtest.sample_size,
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] {_first_error_message(exc)}", err=True)
        raise typer.Exit(code=1)

    every = max(1, config.backtest.progress_every)

    def _progress(done: int, total: int) -> None:
        if done % every == 0 or done == total:
            typer.echo(f"  Progress: {done}/{total}")

    forecaster = build_forecaster(config, spec.indicator, use_remote=not no_ai)
    loader, client = _build_loader(config)
    pipeline = BacktestPipeline(
        loader,
        forecaster,
        pacing_delay_s=config.backtest.pacing_delay_s,
        on_progress=_progress,
        fallback=LinearTrendForecaster(window=config.backtest.trend_window),
    )

    typer.echo(
        f"Backtest | {spec.label} | {format_date(start)} → {format_date(end)} | "
        f"sample={request.sample_size} | forecaster={forecaster.name}"
    )
    try:
        report = pipeline.run(request)
    except (SeriesUnavailableError, EmptySeriesError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    finally:
        client.close()
        remote_client = getattr(forecaster, "client", None)
        if remote_client is not None:
            remote_client.close()

    typer.echo(format_backtest_report(
        label=spec.label,
        start=format_date(start),
        end=format_date(end),
        forecaster_name=report.forecaster_name,
        results=report.results,
        metrics=report.metrics,
    ))
    typer.echo("")
    typer.echo("[OK] Backtest complete.")


@app.command("tradeoff")
def tradeoff(
    last: int = typer.Option(
        24,
        "--last",
        help="Number of most recent months to print.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print monthly CPI inflation (YoY %) alongside GDP for the policy trade-off view."""
    from econ_forecaster.ingestion.fred_client import FredAPIError, FredClient
    from econ_forecaster.reporting.formatters import format_tradeoff_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with FredClient.from_config(config.fred) as client:
            rows = client.fetch_tradeoff()
    except FredAPIError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_tradeoff_table(rows, last=last))


@app.command("clear-cache")
def clear_cache(
    indicator: Optional[str] = typer.Argument(
        None,
        help="Indicator to clear (default: all indicators).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Delete cached observations for one indicator or all of them."""
    from econ_forecaster.ingestion.cache import build_cache
    from econ_forecaster.taxonomy.indicator_taxonomy import IndicatorType

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    targets = [_indicator_or_exit(indicator).indicator] if indicator else list(IndicatorType)
    cache = build_cache(config.cache)
    for target in targets:
        cache.clear(target.value)

    typer.echo(f"[OK] Cleared cache for: {', '.join(t.value for t in targets)}")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
