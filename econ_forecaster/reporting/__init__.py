"""
econ_forecaster.reporting — Plain-text formatting for CLI output.

Modules:
  formatters — ASCII terminal table formatters for Typer CLI commands.
"""
