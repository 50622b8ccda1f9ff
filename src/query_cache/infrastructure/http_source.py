from __future__ import annotations

from typing import Any, Awaitable, Callable

import httpx

from query_cache.domain.exceptions import ApiError

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Cache-Control": "no-cache",
}


class HttpQuerySource:
    """Builds cache producers backed by JSON GET requests.

    A single httpx.AsyncClient instance is shared by every producer this source
    creates, so connection pooling and cookies persist across calls.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    @staticmethod
    def cache_key(url: str, params: dict[str, Any] | None = None) -> str:
        """Build a stable cache key from (url, sorted params).

        Params are percent-encoded by httpx and merged into any query already on url.
        """
        if not params:
            return url
        return str(httpx.URL(url).copy_merge_params(sorted(params.items())))

    def json_producer(
        self, url: str, params: dict[str, Any] | None = None
    ) -> Callable[[], Awaitable[Any]]:
        """Return a zero-argument coroutine function that fetches url as JSON."""

        async def produce() -> Any:
            return await self.get_json(url, params)

        return produce

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET url and return the decoded JSON body. Raises ApiError on non-2xx."""
        response = await self._http.get(url, params=params, headers=DEFAULT_HEADERS)
        self._raise_for_status(response)
        return response.json()

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise ApiError for non-2xx responses."""
        if response.status_code == 404:
            raise ApiError(404, f"Resource not found (404): {response.url}")
        if response.status_code >= 400:
            raise ApiError(response.status_code)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()
