"""
Tests for the expiring observation cache.

What we test
------------
1. Round trip — set then get returns the data unchanged (memory and file).
2. TTL — entries older than the TTL read as absent and are deleted.
3. clear — removes one key only.
4. Corrupt or wrongly shaped files read as a miss instead of raising.
5. build_cache — backend selection from CacheConfig.
"""

from __future__ import annotations

import json

import pytest

from econ_forecaster.config import CacheConfig
from econ_forecaster.ingestion.cache import (
    CacheEntry,
    ExpiringCache,
    InMemoryCache,
    JsonFileCache,
    build_cache,
)

_ROWS = [{"date": "01/2024", "gdp": 28.1}, {"date": "04/2024", "gdp": 28.6}]


# ── Round trip ────────────────────────────────────────────────────────────────

def test_memory_round_trip(memory_cache: ExpiringCache) -> None:
    memory_cache.set_cached_data("x", _ROWS)
    assert memory_cache.get_cached_data("x") == _ROWS


def test_missing_key_is_none(memory_cache: ExpiringCache) -> None:
    assert memory_cache.get_cached_data("nope") is None


def test_file_round_trip(tmp_path, fake_clock) -> None:
    cache = ExpiringCache(JsonFileCache(tmp_path), clock=fake_clock)
    cache.set_cached_data("gdp", _ROWS)

    assert cache.get_cached_data("gdp") == _ROWS
    stored = json.loads((tmp_path / "chartData_gdp.json").read_text(encoding="utf-8"))
    assert stored == {"data": _ROWS, "timestamp": fake_clock.now}


def test_file_key_is_sanitised(tmp_path) -> None:
    port = JsonFileCache(tmp_path)
    assert port.path_for("../etc/passwd").parent == tmp_path


# ── TTL ───────────────────────────────────────────────────────────────────────

def test_entry_valid_until_ttl(memory_cache: ExpiringCache, fake_clock) -> None:
    memory_cache.set_cached_data("x", _ROWS)
    fake_clock.advance(24 * 3600)
    assert memory_cache.get_cached_data("x") == _ROWS


def test_expired_entry_is_none_and_deleted(fake_clock) -> None:
    port = InMemoryCache()
    cache = ExpiringCache(port, ttl_seconds=60, clock=fake_clock)
    cache.set_cached_data("x", _ROWS)

    fake_clock.advance(61)

    assert cache.get_cached_data("x") is None
    assert port.get("x") is None


# ── clear ─────────────────────────────────────────────────────────────────────

def test_clear_removes_only_that_key(memory_cache: ExpiringCache) -> None:
    memory_cache.set_cached_data("a", _ROWS)
    memory_cache.set_cached_data("b", _ROWS)
    memory_cache.clear("a")
    assert memory_cache.get_cached_data("a") is None
    assert memory_cache.get_cached_data("b") == _ROWS


def test_clear_missing_file_is_noop(tmp_path) -> None:
    ExpiringCache(JsonFileCache(tmp_path)).clear("never-written")


# ── Failure handling ──────────────────────────────────────────────────────────

def test_corrupt_file_reads_as_miss(tmp_path, fake_clock) -> None:
    port = JsonFileCache(tmp_path)
    port.path_for("gdp").write_text("{not json", encoding="utf-8")
    cache = ExpiringCache(port, clock=fake_clock)
    assert cache.get_cached_data("gdp") is None


def test_file_missing_fields_reads_as_miss(tmp_path, fake_clock) -> None:
    port = JsonFileCache(tmp_path)
    port.path_for("gdp").write_text(json.dumps({"data": []}), encoding="utf-8")
    assert ExpiringCache(port, clock=fake_clock).get_cached_data("gdp") is None


@pytest.mark.parametrize("data", [["oops"], "oops", {"date": "01/2024"}, [{"date": "01/2024"}, 3]])
def test_file_wrong_data_shape_reads_as_miss(tmp_path, fake_clock, data) -> None:
    port = JsonFileCache(tmp_path)
    payload = {"data": data, "timestamp": fake_clock()}
    port.path_for("gdp").write_text(json.dumps(payload), encoding="utf-8")
    assert ExpiringCache(port, clock=fake_clock).get_cached_data("gdp") is None


def test_write_failure_is_swallowed(fake_clock) -> None:
    class _BrokenPort(InMemoryCache):
        def set(self, key: str, entry: CacheEntry) -> None:
            raise OSError("disk full")

    cache = ExpiringCache(_BrokenPort(), clock=fake_clock)
    cache.set_cached_data("x", _ROWS)
    assert cache.get_cached_data("x") is None


# ── build_cache ───────────────────────────────────────────────────────────────

def test_build_cache_memory_backend() -> None:
    cache = build_cache(CacheConfig(backend="memory", ttl_hours=2))
    assert isinstance(cache.port, InMemoryCache)
    assert cache.ttl_seconds == 7200


def test_build_cache_file_backend(tmp_path) -> None:
    cache = build_cache(CacheConfig(backend="file", cache_dir=str(tmp_path)))
    assert isinstance(cache.port, JsonFileCache)
    assert cache.port.cache_dir == tmp_path
