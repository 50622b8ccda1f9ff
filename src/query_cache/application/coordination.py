from __future__ import annotations

import asyncio
import itertools
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


class InFlightRegistry:
    """Maps cache key -> the producer task currently running for it.

    Concurrent callers for the same key await one shared task instead of each
    invoking the producer. The task is shielded so a cancelled caller does not
    cancel the fetch for everyone else.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Future[Any]] = {}

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._tasks.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        return await asyncio.shield(task)  # type: ignore[no-any-return]

    def forget(self, key: str) -> None:
        """Detach key so the next caller starts a new fetch. The old task keeps running."""
        self._tasks.pop(key, None)

    def clear(self) -> None:
        self._tasks.clear()

    def _release(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if not task.cancelled():
            task.exception()  # mark retrieved; awaiting callers re-raise it

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)


class WriteSequencer:
    """Lets only the most recently issued producer call for a key write the store.

    Sequence numbers come from one process-wide counter. A key is tracked only
    while a call for it is outstanding; forget() makes every call issued
    before it lose the race, so an invalidated key is not repopulated by a
    fetch that started before the invalidation.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def issue(self, key: str) -> int:
        seq = next(self._counter)
        self._latest[key] = seq
        return seq

    def complete(self, key: str, seq: int) -> bool:
        """Return True when seq is still the latest for key, releasing the key."""
        if self._latest.get(key) != seq:
            return False
        del self._latest[key]
        return True

    def abandon(self, key: str, seq: int) -> None:
        """Release key after a failed call, unless a newer call has been issued."""
        if self._latest.get(key) == seq:
            del self._latest[key]

    def forget(self, key: str) -> None:
        self._latest.pop(key, None)

    def clear(self) -> None:
        self._latest.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._latest
