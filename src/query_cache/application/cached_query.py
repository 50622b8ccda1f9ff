from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from query_cache.application.coordination import InFlightRegistry, WriteSequencer
from query_cache.domain.exceptions import ValidationError
from query_cache.domain.services import is_fresh, validate_key, validate_ttl
from query_cache.domain.value_objects import FetchOrigin
from query_cache.infrastructure.cache import CacheStore
from query_cache.infrastructure.config import DEFAULT_TTL

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryFn = Callable[[], Awaitable[T]]


class CachedQuery(Generic[T]):
    """Per-caller view of one cache key: data, loading and error, plus refetch().

    load() serves a fresh entry straight from the store and otherwise awaits the
    producer (the cold path). With refetch_in_background a fresh hit also
    schedules a refresh task that never touches loading or error.

    Producer failures are Exception instances stored verbatim in `error`;
    a failed fetch never writes the store.
    """

    def __init__(
        self,
        store: CacheStore,
        key: str,
        query_fn: QueryFn[T],
        ttl: float = DEFAULT_TTL,
        refetch_in_background: bool = False,
        *,
        flights: InFlightRegistry | None = None,
        sequencer: WriteSequencer | None = None,
    ) -> None:
        if not callable(query_fn):
            raise ValidationError("query_fn must be a zero-argument async callable")
        self.key = validate_key(key)
        self.ttl = validate_ttl(ttl)
        self.refetch_in_background = refetch_in_background
        self._store = store
        self._query_fn = query_fn
        self._flights = flights  # None → every fetch invokes the producer
        self._sequencer = sequencer  # None → last completion wins
        self._tickets = 0
        self._pending = 0  # outstanding cold fetches and refetches
        self._background: set[asyncio.Task[None]] = set()

        self.data: T | None = None
        self.loading = False
        self.error: Exception | None = None

    async def load(self) -> T | None:
        """Read the key through the cache and return the resulting data.

        Steps:
        1. Fresh entry → data = entry value, loading stays False; optionally
           schedule a background refresh.
        2. Miss or stale → cold fetch (loading=True until the producer settles).
        """
        entry = self._store.get(self.key)
        if entry is not None and is_fresh(entry, self.ttl, self._store.now()):
            self.data = entry.value
            self.loading = self._pending > 0
            if self.refetch_in_background:
                self._schedule_background_refresh()
            return self.data

        await self._fetch(FetchOrigin.COLD)
        return self.data

    async def refetch(self) -> None:
        """Invoke the producer unconditionally and overwrite the store on success."""
        await self._fetch(FetchOrigin.REFETCH)

    async def wait_background(self) -> None:
        """Wait until every scheduled background refresh has settled."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @property
    def refreshing(self) -> bool:
        return bool(self._background)

    def snapshot(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "data": self.data,
            "loading": self.loading,
            "error": str(self.error) if self.error is not None else None,
        }

    async def _fetch(self, origin: FetchOrigin) -> None:
        ticket = self._next_ticket()
        self._pending += 1
        self.loading = True
        self.error = None
        try:
            value = await self._produce(origin)
        except Exception as exc:
            if self._is_current(ticket):
                self.error = exc
            logger.error("Error fetching %r (%s): %s", self.key, origin.value, exc)
        else:
            if self._is_current(ticket):
                self.data = value
        finally:
            self._pending -= 1
            self.loading = self._pending > 0

    def _schedule_background_refresh(self) -> None:
        task = asyncio.create_task(
            self._refresh_in_background(), name=f"query-cache-refresh:{self.key}"
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_in_background(self) -> None:
        ticket = self._next_ticket()
        try:
            value = await self._produce(FetchOrigin.BACKGROUND)
        except Exception as exc:
            # Stale data keeps being served; error is left alone.
            logger.warning("Background refresh failed for %r: %s", self.key, exc)
            return
        if self._is_current(ticket):
            self.data = value

    async def _produce(self, origin: FetchOrigin) -> T:
        if self._flights is None or origin is FetchOrigin.REFETCH:
            return await self._produce_and_store(origin)
        return await self._flights.run(self.key, lambda: self._produce_and_store(origin))

    async def _produce_and_store(self, origin: FetchOrigin) -> T:
        seq = self._sequencer.issue(self.key) if self._sequencer is not None else None
        logger.debug("Invoking producer for %r (%s)", self.key, origin.value)
        try:
            value = await self._query_fn()
        except Exception:
            if seq is not None:
                self._sequencer.abandon(self.key, seq)  # type: ignore[union-attr]
            raise

        if seq is None or self._sequencer.complete(self.key, seq):  # type: ignore[union-attr]
            self._store.set(self.key, value)
        else:
            logger.debug("Discarding out-of-order result for %r", self.key)
        return value

    def _next_ticket(self) -> int:
        self._tickets += 1
        return self._tickets

    def _is_current(self, ticket: int) -> bool:
        """Without the order guard every completion updates this view (last one wins)."""
        return self._sequencer is None or ticket == self._tickets
