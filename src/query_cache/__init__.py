"""In-process query result cache with TTL, background refresh and invalidation."""
from __future__ import annotations

from query_cache.application.cached_query import CachedQuery
from query_cache.application.query_cache import (
    QueryCache,
    clear_cache,
    create_query_cache,
    get_cache_stats,
    get_default_cache,
    invalidate_cache,
    reset_default_cache,
    use_cached_query,
)
from query_cache.domain.entities import CacheEntry, CacheStats
from query_cache.infrastructure.cache import CacheStore

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "CachedQuery",
    "QueryCache",
    "clear_cache",
    "create_query_cache",
    "get_cache_stats",
    "get_default_cache",
    "invalidate_cache",
    "reset_default_cache",
    "use_cached_query",
]
