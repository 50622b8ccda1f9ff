"""Tests for domain entities."""
from __future__ import annotations

import dataclasses

import pytest

from query_cache.domain.entities import CacheEntry, CacheStats
from query_cache.domain.exceptions import ApiError, QueryCacheError, ValidationError
from query_cache.domain.value_objects import FetchOrigin


def test_cache_entry_is_frozen() -> None:
    entry = CacheEntry(value={"n": 1}, stored_at=1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.stored_at = 2.0  # type: ignore[misc]


def test_cache_stats_to_dict_copies_keys() -> None:
    stats = CacheStats(size=2, keys=["a", "b"])
    as_dict = stats.to_dict()
    assert as_dict == {"size": 2, "keys": ["a", "b"]}
    as_dict["keys"].append("c")
    assert stats.keys == ["a", "b"]


def test_cache_stats_default_keys_empty() -> None:
    assert CacheStats(size=0).keys == []


def test_api_error_default_message() -> None:
    exc = ApiError(503)
    assert exc.status_code == 503
    assert "503" in str(exc)
    assert isinstance(exc, QueryCacheError)


def test_validation_error_is_query_cache_error() -> None:
    assert issubclass(ValidationError, QueryCacheError)


def test_fetch_origin_values_are_strings() -> None:
    assert FetchOrigin.BACKGROUND == "background"
    assert {o.value for o in FetchOrigin} == {"cold", "background", "refetch"}
