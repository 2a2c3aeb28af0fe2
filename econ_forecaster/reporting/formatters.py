"""
ASCII terminal formatters for CLI commands.

All formatters accept domain objects and return plain multi-line strings
suitable for ``typer.echo()``. No third-party dependencies.

Source banners
--------------
Series output starts with a banner saying where the data came from, so a
reader never mistakes demo data for real data::

  [API]          Fetched from FRED
  [CACHE]        Served from local cache
  [PLACEHOLDER]  Using demo data: real GDP data unavailable.
"""

from __future__ import annotations

from econ_forecaster.backtest.metrics import BacktestMetrics, BacktestResult
from econ_forecaster.models.observation import Observation
from econ_forecaster.series.loader import LoadedSeries, SeriesSource
from econ_forecaster.taxonomy.indicator_taxonomy import INDICATOR_CONFIG, IndicatorSpec
from econ_forecaster.utils.time_utils import format_date

_SOURCE_TEXT = {
    SeriesSource.API: "Fetched from FRED",
    SeriesSource.CACHE: "Served from local cache",
}


def format_source_banner(loaded: LoadedSeries) -> str:
    """Return a one-line indicator of where a series came from."""
    tag = f"[{loaded.source.value.upper()}]"
    text = loaded.notice or _SOURCE_TEXT.get(loaded.source, "")
    return f"  {tag} {text}".rstrip()


# ── Indicators ────────────────────────────────────────────────────────────────


def format_indicator_table(specs: list[IndicatorSpec] | None = None) -> str:
    """List the indicator registry."""
    specs = specs if specs is not None else list(INDICATOR_CONFIG.values())
    header = f"  {'Indicator':<22}  {'FRED series':<10}  {'Field':<12}  Label"
    lines = ["", "=== Indicators ===", header, "  " + "-" * (len(header) - 2)]
    for spec in specs:
        lines.append(
            f"  {spec.indicator.value:<22}  {spec.series_id:<10}  "
            f"{spec.value_field:<12}  {spec.label}"
        )
    return "\n".join(lines)


# ── Series ────────────────────────────────────────────────────────────────────


def format_series_table(
    loaded: LoadedSeries,
    observations: list[Observation],
    range_key: str,
) -> str:
    """Format a display-range slice of a series.

        Date          Value
        ------------------------
        2024-03-01   28.6240
    """
    spec = INDICATOR_CONFIG[loaded.indicator]
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {spec.label} — last {range_key} ===")
    lines.append(format_source_banner(loaded))

    if not observations:
        lines.append("")
        lines.append("  (no observations)")
        return "\n".join(lines)

    header = f"    {'Date':<10}  {'Value':>14}"
    lines.append("")
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for obs in observations:
        lines.append(f"    {format_date(obs.date):<10}  {obs.value:>14.4f}")
    return "\n".join(lines)


# ── Backtest ──────────────────────────────────────────────────────────────────


def format_results_table(results: list[BacktestResult]) -> str:
    """Per-point actual vs. predicted table."""
    if not results:
        return "  (no backtest results)"
    header = (
        f"    {'Date':<10}  {'Actual':>14}  {'Predicted':>14}  "
        f"{'Error':>12}  {'Error %':>9}"
    )
    lines = [header, "    " + "-" * (len(header) - 4)]
    for r in results:
        lines.append(
            f"    {format_date(r.date):<10}  {r.actual:>14.4f}  {r.predicted:>14.4f}  "
            f"{r.error:>+12.4f}  {r.error_percent:>+8.2f}%"
        )
    return "\n".join(lines)


def format_metrics_block(metrics: BacktestMetrics) -> str:
    """Four-line metrics summary."""
    return "\n".join([
        f"  MAE:   {metrics.mae:.4f}",
        f"  MAPE:  {metrics.mape:.2f}%",
        f"  RMSE:  {metrics.rmse:.4f}",
        f"  R²:    {metrics.r_squared:.4f}",
    ])


def format_backtest_report(
    label: str,
    start: str,
    end: str,
    forecaster_name: str,
    results: list[BacktestResult],
    metrics: BacktestMetrics,
) -> str:
    """Full backtest report: header, per-point table, metrics."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Backtest Results ===")
    lines.append(f"  Indicator:  {label}")
    lines.append(f"  Window:     {start} → {end}")
    lines.append(f"  Forecaster: {forecaster_name}")
    lines.append(f"  Points:     {metrics.n_results}")
    lines.append("")
    lines.append(format_results_table(results))
    lines.append("")
    lines.append("=== Model Performance ===")
    lines.append(format_metrics_block(metrics))
    return "\n".join(lines)


# ── Policy trade-off ──────────────────────────────────────────────────────────


def format_tradeoff_table(rows: list[dict], last: int | None = None) -> str:
    """Inflation vs. GDP growth, one row per month.

    Months without a GDP observation show ``-`` in the growth column.
    """
    if last is not None:
        rows = rows[-last:] if last > 0 else []
    lines = ["", "=== Policy Trade-off ==="]
    if not rows:
        lines.append("  (no rows)")
        return "\n".join(lines)

    header = f"    {'Month':<6}  {'Inflation %':>11}  {'GDP (T$)':>9}"
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for row in rows:
        growth = row.get("growth")
        growth_str = f"{growth:>9.2f}" if growth is not None else f"{'-':>9}"
        lines.append(f"    {row['date']:<6}  {row['inflation']:>11.2f}  {growth_str}")
    return "\n".join(lines)
