"""
Leakage-free backtesting for indicator forecasts.

Modules
-------
forecasters  Forecaster protocol, linear-trend and generative-model strategies.
runner       Sampling, pacing and per-point fallback over one series.
metrics      MAE, MAPE, RMSE, R² and the per-point result type.
"""
