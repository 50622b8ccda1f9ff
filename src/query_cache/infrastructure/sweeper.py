from __future__ import annotations

import asyncio
import logging

from query_cache.domain.exceptions import SweeperError
from query_cache.infrastructure.cache import CacheStore
from query_cache.infrastructure.time_utils import minutes

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = minutes(10)
DEFAULT_RETENTION = minutes(30)  # coarse GC horizon, independent of per-read TTL


class CacheSweeper:
    """Periodically removes entries older than the retention horizon.

    Runs as a single asyncio task on the loop that called start(). Each tick is
    a full scan of the store, which is fine for hundreds of entries.
    """

    def __init__(
        self,
        store: CacheStore,
        interval: float = DEFAULT_SWEEP_INTERVAL,
        retention: float = DEFAULT_RETENTION,
    ) -> None:
        self._store = store
        self._interval = interval
        self._retention = retention
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop.

        Raises SweeperError when already running or when called outside a loop.
        """
        if self.running:
            raise SweeperError("Sweeper is already running")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise SweeperError("Sweeper requires a running event loop")
        self._task = loop.create_task(self._run(), name="query-cache-sweeper")
        logger.debug(
            "Cache sweeper started (interval=%.0fs, retention=%.0fs)",
            self._interval,
            self._retention,
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish. Safe to call twice."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Cache sweeper stopped")

    def sweep_once(self) -> list[str]:
        """Run a single sweep pass immediately."""
        return self._store.sweep(self._retention)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("Cache sweep failed")
