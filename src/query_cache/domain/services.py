from __future__ import annotations

from query_cache.domain.entities import CacheEntry
from query_cache.domain.exceptions import ValidationError


def entry_age(entry: CacheEntry, now: float) -> float:
    """Return seconds elapsed since the entry was stored.

    Clamped to 0 so a clock that steps backwards never yields a negative age.
    """
    return max(0.0, now - entry.stored_at)


def is_fresh(entry: CacheEntry, ttl: float, now: float) -> bool:
    """Return True when now - stored_at < ttl.

    TTL belongs to the read, not the entry: two callers may read the same key
    with different TTLs and get different answers.
    """
    return now - entry.stored_at < ttl


def is_past_retention(entry: CacheEntry, max_age: float, now: float) -> bool:
    """Return True when the entry is older than the sweep retention horizon."""
    return entry_age(entry, now) > max_age


def validate_key(key: str) -> str:
    """Return key unchanged, raising ValidationError when it is not a string.

    Any string is a valid key, including the empty string.
    """
    if not isinstance(key, str):
        raise ValidationError(f"Cache key must be a string, got {key!r}")
    return key


def validate_ttl(ttl: float) -> float:
    """Return ttl as float, raising ValidationError when it is negative or not a number.

    ttl=0 is allowed: no entry is ever fresh, so every read calls the producer.
    """
    if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        raise ValidationError(f"TTL must be a number of seconds, got {ttl!r}")
    if ttl < 0:
        raise ValidationError(f"TTL cannot be negative, got {ttl!r}")
    return float(ttl)
