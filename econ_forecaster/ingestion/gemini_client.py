"""
Google Gemini client — plain-text completions over the REST API.

API:   POST {base_url}/models/{model}:generateContent?key=...
Docs:  https://ai.google.dev/api/generate-content

Credential setup (.env, gitignored):
  GEMINI_API_KEY=your_key_here

Model selection: the configured ``models`` list is tried in order and the
first model that returns text wins. A model fails over to the next on a
transport error, a non-200 status, or a response with no text part.

The service is treated as unreliable. ``GeminiError`` is the only
exception this module raises; forecasters catch it and fall back.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from econ_forecaster.config import GeminiConfig

logger = logging.getLogger(__name__)

DEFAULT_MODELS = ("gemini-2.5-flash", "gemini-2.5-flash-lite", "gemini-2.5-pro")


class GeminiError(RuntimeError):
    """No configured model produced a usable completion."""


def extract_text(payload: Any) -> Optional[str]:
    """Pull the reply text out of a ``generateContent`` response body.

    Concatenates every text part of the first candidate. Returns ``None``
    when the body has no candidate text (blocked prompt, empty reply).
    """
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    if not texts:
        return None
    return "".join(texts)


class GeminiClient:
    """Minimal text-generation client.

    Args:
        api_key:     Gemini API key. ``None`` → ``generate`` raises ``GeminiError``.
        models:      Model ids in preference order.
        base_url:    API root.
        timeout_s:   Per-request timeout.
        temperature: Sampling temperature.
        max_output_tokens: Reply token limit. Gemini 2.5 spends thinking tokens
                     from the same budget, so small limits yield empty replies.
        http_client: Optional pre-built ``httpx.Client``. Not closed by ``close()``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        models: tuple[str, ...] | list[str] = DEFAULT_MODELS,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_s: float = 60.0,
        temperature: float = 0.2,
        max_output_tokens: int = 1024,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.models = list(models)
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_s)

    @classmethod
    def from_config(
        cls,
        config: GeminiConfig,
        http_client: Optional[httpx.Client] = None,
    ) -> "GeminiClient":
        return cls(
            api_key=config.api_key,
            models=config.models,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            temperature=config.temperature,
            max_output_tokens=config.max_output_tokens,
            http_client=http_client,
        )

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def generate(self, prompt: str) -> str:
        """Return the first model's reply text for ``prompt``.

        Raises:
            GeminiError: If no API key is set or every model fails.
        """
        if not self.api_key:
            raise GeminiError("GEMINI_API_KEY is not set.")

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        errors: list[str] = []
        for model in self.models:
            try:
                resp = self._http.post(
                    f"{self.base_url}/models/{model}:generateContent",
                    params={"key": self.api_key},
                    json=body,
                )
            except httpx.HTTPError as exc:
                errors.append(f"{model}: {exc}")
                continue

            if resp.status_code != 200:
                errors.append(f"{model}: HTTP {resp.status_code}")
                continue

            try:
                text = extract_text(resp.json())
            except ValueError:
                text = None
            if text is None:
                errors.append(f"{model}: empty response")
                continue

            logger.debug("Gemini reply from %s: %r", model, text[:80])
            return text

        raise GeminiError(
            f"No available Gemini model. Tried: {', '.join(self.models)}. "
            f"Errors: {'; '.join(errors)}"
        )
