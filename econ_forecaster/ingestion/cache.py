"""
Expiring observation cache.

Storage is behind a small port so the backend can be swapped or mocked::

    get(key)          -> CacheEntry | None
    set(key, entry)   -> None
    delete(key)       -> None

Backends:
  InMemoryCache   — process-local dict (tests, one-shot CLI runs)
  JsonFileCache   — one JSON file per key under ``cache_dir``

``ExpiringCache`` layers the TTL policy on top of any port. Entries older
than the TTL are treated as absent and deleted on the read that finds them.

File layout (JsonFileCache)::

    data/cache/
      chartData_gdp.json
      chartData_inflation.json

Each file contains::

    {"data": [{"date": "03/2024", "gdp": 28.6}, ...], "timestamp": 1760778000.0}

The cache is advisory: everything in it can be regenerated from the API.
Read/write failures are logged and behave as a miss / no-op. There is no
locking; writers to different keys never touch the same file, and
concurrent writers to one key may race (last write wins).
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from econ_forecaster.config import CacheConfig

logger = logging.getLogger(__name__)

KEY_PREFIX = "chartData_"


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the epoch second it was written."""

    data: list[dict[str, Any]]
    timestamp: float


class CachePort(Protocol):
    """Minimal key-value storage contract used by ``ExpiringCache``."""

    def get(self, key: str) -> Optional[CacheEntry]: ...

    def set(self, key: str, entry: CacheEntry) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCache:
    """Dict-backed ``CachePort``."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class JsonFileCache:
    """File-backed ``CachePort``: one JSON document per key.

    Args:
        cache_dir: Directory holding the cache files. Created on first write.
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir)

    def path_for(self, key: str) -> Path:
        """Return the file path for ``key`` (unsafe characters become ``_``)."""
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.cache_dir / f"{KEY_PREFIX}{safe}.json"

    def get(self, key: str) -> Optional[CacheEntry]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
        data = payload["data"]
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError(f"{path.name}: \"data\" must be a list of objects")
        return CacheEntry(data=data, timestamp=float(payload["timestamp"]))

    def set(self, key: str, entry: CacheEntry) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"data": entry.data, "timestamp": entry.timestamp}, f, default=str)

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class ExpiringCache:
    """TTL policy over a ``CachePort``.

    Args:
        port:        Storage backend.
        ttl_seconds: Maximum entry age. Defaults to 24 hours.
        clock:       Returns the current epoch time in seconds.
    """

    def __init__(
        self,
        port: CachePort,
        ttl_seconds: float = 24 * 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.port = port
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def get_cached_data(self, key: str) -> Optional[list[dict[str, Any]]]:
        """Return the cached rows for ``key``, or ``None`` if absent or expired."""
        try:
            entry = self.port.get(key)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Error reading cache key=%s: %s", key, exc)
            return None
        if entry is None:
            return None

        age = self._clock() - entry.timestamp
        if age > self.ttl_seconds:
            logger.debug("Cache entry expired key=%s age=%.0fs", key, age)
            self.clear(key)
            return None
        return entry.data

    def set_cached_data(self, key: str, data: list[dict[str, Any]]) -> None:
        """Store ``data`` under ``key`` stamped with the current time."""
        try:
            self.port.set(key, CacheEntry(data=list(data), timestamp=self._clock()))
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error writing cache key=%s: %s", key, exc)

    def clear(self, key: str) -> None:
        """Remove ``key`` from the cache (no-op if absent)."""
        try:
            self.port.delete(key)
        except OSError as exc:
            logger.error("Error deleting cache key=%s: %s", key, exc)


def build_cache(config: CacheConfig) -> ExpiringCache:
    """Construct the configured cache backend wrapped in the TTL policy."""
    port: CachePort
    if config.backend == "memory":
        port = InMemoryCache()
    else:
        port = JsonFileCache(config.cache_dir)
    return ExpiringCache(port, ttl_seconds=config.ttl_hours * 3600)
