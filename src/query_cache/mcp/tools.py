from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from mcp import types
from mcp.server.fastmcp import FastMCP

from query_cache.application.query_cache import QueryCache
from query_cache.domain.exceptions import ApiError, ValidationError
from query_cache.infrastructure.http_source import HttpQuerySource

logger = logging.getLogger(__name__)

_RESULT_URI = "mcp://query-cache/result"


def _as_resource(json_str: str) -> list[types.EmbeddedResource]:
    """Wrap a JSON string as an embedded resource so the LLM does not narrate it."""
    return [
        types.EmbeddedResource(
            type="resource",
            resource=types.TextResourceContents(
                uri=_RESULT_URI,  # type: ignore[arg-type]
                mimeType="application/json",
                text=json_str,
            ),
        )
    ]


def _ok(payload: dict[str, Any]) -> list[types.EmbeddedResource]:
    return _as_resource(json.dumps(payload, default=str, ensure_ascii=False))


def _error_json(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


def _handle_exception(exc: Exception) -> list[types.EmbeddedResource]:
    if isinstance(exc, ValidationError):
        return _as_resource(_error_json(str(exc)))
    if isinstance(exc, ApiError):
        if exc.status_code == 400:
            return _as_resource(_error_json("Invalid request. Please check your inputs."))
        if exc.status_code == 404:
            return _as_resource(_error_json("Resource not found."))
        if exc.status_code >= 500:
            return _as_resource(
                _error_json(f"Upstream API error ({exc.status_code}). Please try again later.")
            )
        return _as_resource(_error_json(str(exc)))
    if isinstance(exc, httpx.TimeoutException):
        return _as_resource(_error_json("Request timed out. Please try again."))
    if isinstance(exc, httpx.HTTPError):
        return _as_resource(_error_json(f"HTTP request failed: {exc}"))
    if isinstance(exc, ValueError):
        return _as_resource(_error_json(str(exc)))
    logger.exception("Unexpected error in MCP tool: %s", exc)
    return _as_resource(_error_json("An unexpected error occurred."))


def _validate_url(url: str) -> str:
    url = url.strip()
    if not url:
        raise ValidationError("url cannot be empty")
    if not url.startswith(("http://", "https://")):
        raise ValidationError(f"Unsupported URL scheme: {url}")
    return url


def register_tools(mcp: FastMCP, cache: QueryCache, source: HttpQuerySource) -> None:
    """Bind all @mcp.tool decorators. Called once during server setup."""

    @mcp.tool()
    async def cached_fetch(
        url: str,
        ttl_seconds: float | None = None,
        refetch_in_background: bool = False,
    ) -> list[types.EmbeddedResource]:
        """Fetch a JSON URL through the query cache.

        Args:
            url: Absolute http(s) URL returning JSON.
            ttl_seconds: Freshness window for this read. Server default when omitted.
            refetch_in_background: Serve a fresh cached value and refresh it
                                   without waiting.
        """
        try:
            cache.ensure_started()
            url = _validate_url(url)
            key = source.cache_key(url)
            before = cache.store.get(key)
            query = await cache.use_cached_query(
                key,
                source.json_producer(url),
                ttl=ttl_seconds,
                refetch_in_background=refetch_in_background,
            )
            if query.error is not None:
                return _handle_exception(query.error)
            # Same entry object before and after load() → served without a producer call
            served_from_cache = before is not None and cache.store.get(key) is before
            return _ok({"key": key, "data": query.data, "cached": served_from_cache})
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def get_cache_stats() -> list[types.EmbeddedResource]:
        """Report how many entries the cache holds and their keys."""
        return _ok(cache.stats().to_dict())

    @mcp.tool()
    async def invalidate_cache(key: str) -> list[types.EmbeddedResource]:
        """Evict one cache key so the next read fetches fresh data.

        Args:
            key: Exact cache key, as reported by get_cache_stats or cached_fetch.
        """
        try:
            if not key.strip():
                return _as_resource(_error_json("key cannot be empty"))
            cache.invalidate(key)
            return _ok({"invalidated": key})
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def clear_cache() -> list[types.EmbeddedResource]:
        """Evict every cache entry."""
        return _ok({"cleared": cache.clear()})
