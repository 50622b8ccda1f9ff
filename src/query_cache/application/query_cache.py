from __future__ import annotations

import logging
from typing import TypeVar

from query_cache.application.cached_query import CachedQuery, QueryFn
from query_cache.application.coordination import InFlightRegistry, WriteSequencer
from query_cache.domain.entities import CacheStats
from query_cache.infrastructure.cache import CacheStore
from query_cache.infrastructure.config import DEFAULT_TTL, CacheSettings
from query_cache.infrastructure.sweeper import (
    DEFAULT_RETENTION,
    DEFAULT_SWEEP_INTERVAL,
    CacheSweeper,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryCache:
    """Owns one CacheStore and hands out CachedQuery accessors bound to it.

    Also the single place for invalidation, diagnostics and the sweeper
    lifecycle. Use as `async with QueryCache() as cache:` to run the sweeper
    for the duration of the block.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        *,
        default_ttl: float = DEFAULT_TTL,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        retention: float = DEFAULT_RETENTION,
        dedupe_in_flight: bool = False,
        guard_out_of_order: bool = False,
    ) -> None:
        self._store = store if store is not None else CacheStore()
        self._default_ttl = default_ttl
        self._sweeper = CacheSweeper(self._store, interval=sweep_interval, retention=retention)
        self._flights = InFlightRegistry() if dedupe_in_flight else None
        self._sequencer = WriteSequencer() if guard_out_of_order else None

    @classmethod
    def from_settings(cls, settings: CacheSettings, store: CacheStore | None = None) -> QueryCache:
        return cls(
            store,
            default_ttl=settings.default_ttl,
            sweep_interval=settings.sweep_interval,
            retention=settings.retention,
            dedupe_in_flight=settings.dedupe_in_flight,
            guard_out_of_order=settings.guard_out_of_order,
        )

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def sweeper(self) -> CacheSweeper:
        return self._sweeper

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def query(
        self,
        key: str,
        query_fn: QueryFn[T],
        ttl: float | None = None,
        refetch_in_background: bool = False,
    ) -> CachedQuery[T]:
        """Create an accessor for key. Nothing is fetched until load() is awaited."""
        return CachedQuery(
            self._store,
            key,
            query_fn,
            ttl=ttl if ttl is not None else self._default_ttl,
            refetch_in_background=refetch_in_background,
            flights=self._flights,
            sequencer=self._sequencer,
        )

    async def use_cached_query(
        self,
        key: str,
        query_fn: QueryFn[T],
        ttl: float | None = None,
        refetch_in_background: bool = False,
    ) -> CachedQuery[T]:
        """Create an accessor for key, load it, and return it."""
        cached = self.query(key, query_fn, ttl=ttl, refetch_in_background=refetch_in_background)
        await cached.load()
        return cached

    def invalidate(self, key: str) -> None:
        """Evict key so the next read is a guaranteed miss.

        Call after any create/update/delete of the resource behind key.
        Absent keys (including the empty string) are a no-op.
        """
        self._store.delete(key)
        if self._flights is not None:
            self._flights.forget(key)
        if self._sequencer is not None:
            self._sequencer.forget(key)
        logger.debug("Invalidated cache key %r", key)

    def clear(self) -> int:
        """Evict every entry (e.g. on sign-out). Returns the number removed."""
        removed = len(self._store)
        self._store.clear()
        if self._flights is not None:
            self._flights.clear()
        if self._sequencer is not None:
            self._sequencer.clear()
        logger.info("Cleared %d cache entries", removed)
        return removed

    def stats(self) -> CacheStats:
        return self._store.stats()

    def start(self) -> None:
        """Start the periodic sweeper on the running event loop."""
        self._sweeper.start()

    def ensure_started(self) -> None:
        if not self._sweeper.running:
            self._sweeper.start()

    async def aclose(self) -> None:
        """Stop the sweeper. Entries are kept."""
        await self._sweeper.stop()

    async def __aenter__(self) -> QueryCache:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


_default_cache: QueryCache | None = None


def create_query_cache(
    settings: CacheSettings | None = None, store: CacheStore | None = None
) -> QueryCache:
    """Build an isolated QueryCache, reading settings from the environment when omitted."""
    return QueryCache.from_settings(settings or CacheSettings.from_env(), store)


def get_default_cache() -> QueryCache:
    """Return the process-wide QueryCache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        _default_cache = create_query_cache()
    return _default_cache


async def reset_default_cache() -> None:
    """Stop and drop the process-wide cache. The next access creates a fresh one."""
    global _default_cache
    cache, _default_cache = _default_cache, None
    if cache is not None:
        await cache.aclose()


async def use_cached_query(
    key: str,
    query_fn: QueryFn[T],
    ttl: float | None = None,
    refetch_in_background: bool = False,
) -> CachedQuery[T]:
    """Load key through the process-wide cache, starting its sweeper if needed."""
    cache = get_default_cache()
    cache.ensure_started()
    return await cache.use_cached_query(
        key, query_fn, ttl=ttl, refetch_in_background=refetch_in_background
    )


def invalidate_cache(key: str) -> None:
    get_default_cache().invalidate(key)


def clear_cache() -> None:
    get_default_cache().clear()


def get_cache_stats() -> CacheStats:
    return get_default_cache().stats()
