from __future__ import annotations

import httpx
from mcp.server.fastmcp import FastMCP

from query_cache.application.query_cache import QueryCache
from query_cache.infrastructure.config import CacheSettings
from query_cache.infrastructure.http_source import HttpQuerySource
from query_cache.mcp.resources import register_resources
from query_cache.mcp.tools import register_tools


def create_mcp_app(
    cache: QueryCache | None = None,
    source: HttpQuerySource | None = None,
    settings: CacheSettings | None = None,
) -> FastMCP:
    """Create and configure the FastMCP application with all services wired."""
    settings = settings or CacheSettings.from_env()
    if cache is None:
        cache = QueryCache.from_settings(settings)
    if source is None:
        http_client = httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True)
        source = HttpQuerySource(http_client)

    mcp = FastMCP("Query Cache MCP", stateless_http=True)
    register_tools(mcp, cache, source)
    register_resources(mcp, cache)
    return mcp
