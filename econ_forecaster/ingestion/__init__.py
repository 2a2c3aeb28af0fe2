"""
Ingestion layer — provider clients, the observation cache, and demo data.

Submodules:
  fred_client    — FRED series observations and per-indicator transforms
  gemini_client  — Gemini generateContent text completions
  cache          — TTL cache over in-memory or JSON-file storage
  placeholder    — Synthetic series shown when real data is unavailable

Credential placement (.env, gitignored):
  FRED_API_KEY    — FRED API key
  GEMINI_API_KEY  — Google Gemini API key
"""
