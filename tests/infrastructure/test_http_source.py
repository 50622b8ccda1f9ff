"""Tests for HttpQuerySource using respx to mock HTTP calls."""
from __future__ import annotations

import httpx
import pytest
import respx

from query_cache.application.query_cache import QueryCache
from query_cache.domain.exceptions import ApiError
from query_cache.infrastructure.http_source import HttpQuerySource

BASE_URL = "https://api.example.com"


def make_source() -> HttpQuerySource:
    return HttpQuerySource(httpx.AsyncClient())


def test_cache_key_without_params() -> None:
    assert HttpQuerySource.cache_key(f"{BASE_URL}/properties") == f"{BASE_URL}/properties"


def test_cache_key_sorts_params() -> None:
    key_a = HttpQuerySource.cache_key(f"{BASE_URL}/properties", {"user": "x", "limit": 10})
    key_b = HttpQuerySource.cache_key(f"{BASE_URL}/properties", {"limit": 10, "user": "x"})
    assert key_a == key_b == f"{BASE_URL}/properties?limit=10&user=x"


def test_cache_key_encodes_reserved_characters() -> None:
    smuggled = HttpQuerySource.cache_key(f"{BASE_URL}/properties", {"a": "1&b=2"})
    split = HttpQuerySource.cache_key(f"{BASE_URL}/properties", {"a": "1", "b": "2"})
    assert smuggled != split
    assert smuggled == f"{BASE_URL}/properties?a=1%26b%3D2"


def test_cache_key_merges_into_existing_query() -> None:
    key = HttpQuerySource.cache_key(f"{BASE_URL}/properties?page=2", {"limit": 10})
    assert key == f"{BASE_URL}/properties?page=2&limit=10"


@respx.mock
async def test_json_producer_fetches_json() -> None:
    route = respx.get(f"{BASE_URL}/properties").mock(
        return_value=httpx.Response(200, json=[{"id": 1}])
    )
    source = make_source()

    produce = source.json_producer(f"{BASE_URL}/properties", {"user": "x"})
    result = await produce()

    assert result == [{"id": 1}]
    assert route.called
    assert route.calls[0].request.url.params["user"] == "x"
    await source.close()


@respx.mock
async def test_producer_is_lazy() -> None:
    route = respx.get(f"{BASE_URL}/properties").mock(return_value=httpx.Response(200, json=[]))
    source = make_source()

    source.json_producer(f"{BASE_URL}/properties")

    assert not route.called
    await source.close()


@respx.mock
async def test_api_error_on_500() -> None:
    respx.get(f"{BASE_URL}/properties").mock(return_value=httpx.Response(500))
    source = make_source()

    with pytest.raises(ApiError) as exc_info:
        await source.get_json(f"{BASE_URL}/properties")

    assert exc_info.value.status_code == 500
    await source.close()


@respx.mock
async def test_api_error_on_404_mentions_url() -> None:
    respx.get(f"{BASE_URL}/missing").mock(return_value=httpx.Response(404))
    source = make_source()

    with pytest.raises(ApiError, match="404"):
        await source.get_json(f"{BASE_URL}/missing")
    await source.close()


@respx.mock
async def test_cache_used_on_second_read(cache: QueryCache) -> None:
    """Second read within TTL must not make another HTTP request."""
    route = respx.get(f"{BASE_URL}/properties").mock(
        return_value=httpx.Response(200, json=[{"id": 1}])
    )
    source = make_source()
    url = f"{BASE_URL}/properties"

    first = await cache.use_cached_query(source.cache_key(url), source.json_producer(url))
    second = await cache.use_cached_query(source.cache_key(url), source.json_producer(url))

    assert route.call_count == 1
    assert first.data == second.data == [{"id": 1}]
    await source.close()


@respx.mock
async def test_http_failure_surfaces_as_error_and_is_not_cached(cache: QueryCache) -> None:
    respx.get(f"{BASE_URL}/properties").mock(return_value=httpx.Response(502))
    source = make_source()
    url = f"{BASE_URL}/properties"

    query = await cache.use_cached_query(url, source.json_producer(url))

    assert isinstance(query.error, ApiError)
    assert query.data is None
    assert url not in cache.store
    await source.close()
