from __future__ import annotations

import logging
from typing import Any

from query_cache.domain.entities import CacheEntry, CacheStats
from query_cache.domain.services import is_past_retention
from query_cache.infrastructure.time_utils import Clock, monotonic_now

logger = logging.getLogger(__name__)


class CacheStore:
    """In-process key -> CacheEntry map. Single event loop; no locking added.

    Freshness is decided by the reader (see domain.services.is_fresh), so get()
    never evicts. Entries leave only through delete(), clear() or sweep().
    """

    def __init__(self, clock: Clock = monotonic_now) -> None:
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}

    def now(self) -> float:
        """Return the store's current time, in the same units as stored_at."""
        return self._clock()

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for key, or None. No side effects."""
        return self._store.get(key)

    def set(self, key: str, value: Any) -> CacheEntry:
        """Overwrite the entry for key, stamping stored_at with the current time."""
        entry = CacheEntry(value=value, stored_at=self._clock())
        self._store[key] = entry
        return entry

    def delete(self, key: str) -> None:
        """Remove a specific key immediately. No-op when absent."""
        self._store.pop(key, None)

    def clear(self) -> None:
        """Remove all cached entries."""
        self._store.clear()

    def stats(self) -> CacheStats:
        """Return size and keys. Informational only."""
        keys = list(self._store)
        return CacheStats(size=len(keys), keys=keys)

    def sweep(self, max_age: float) -> list[str]:
        """Remove every entry older than max_age seconds; return the evicted keys."""
        now = self._clock()
        expired_keys = [
            k for k, entry in self._store.items() if is_past_retention(entry, max_age, now)
        ]
        for k in expired_keys:
            del self._store[k]
        if expired_keys:
            logger.debug("Swept %d cache entries older than %.0fs", len(expired_keys), max_age)
        return expired_keys

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store
