from __future__ import annotations

import json

from mcp.server.fastmcp import FastMCP

from query_cache.application.query_cache import QueryCache

STATS_URI = "cache://stats"


def register_resources(mcp: FastMCP, cache: QueryCache) -> None:
    """Register read-only diagnostic resources. Called once during server setup."""

    @mcp.resource(STATS_URI, mime_type="application/json")
    def cache_stats() -> str:
        """Current cache occupancy: entry count and keys."""
        return json.dumps(cache.stats().to_dict(), ensure_ascii=False)
