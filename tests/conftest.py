"""Shared pytest fixtures for the query cache test suite."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from query_cache.application.query_cache import QueryCache, reset_default_cache
from query_cache.infrastructure.cache import CacheStore


class FakeClock:
    """Manually advanced stand-in for time.monotonic()."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingProducer:
    """Async producer returning queued results in order; exceptions are raised."""

    def __init__(self, *results: Any) -> None:
        self._results = list(results)
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


class GatedProducer:
    """Async producer that blocks until release() is called for that call."""

    def __init__(self) -> None:
        self.calls = 0
        self._gates: list[asyncio.Future[Any]] = []

    async def __call__(self) -> Any:
        self.calls += 1
        gate: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._gates.append(gate)
        return await gate

    def release(self, index: int, value: Any) -> None:
        self._gates[index].set_result(value)

    def fail(self, index: int, exc: Exception) -> None:
        self._gates[index].set_exception(exc)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    return CacheStore(clock=clock)


@pytest.fixture
def cache(store: CacheStore) -> QueryCache:
    return QueryCache(store, default_ttl=5.0)


@pytest.fixture
async def default_cache_reset() -> AsyncIterator[None]:
    """Give a test a fresh process-wide cache and stop its sweeper afterwards."""
    await reset_default_cache()
    yield
    await reset_default_cache()
