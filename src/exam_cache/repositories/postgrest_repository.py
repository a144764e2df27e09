"""PostgREST (Supabase REST) implementation of TableStore.

Talks to the question bank over the PostgREST HTTP dialect:

- equality filters as ``column=eq.value``, non-null as ``column=not.is.null``
- row windows through the ``Range`` header (inclusive bounds)
- exact counts through ``Prefer: count=exact`` and ``Content-Range``
- stored procedures through ``POST /rpc/{name}``

Every transport or HTTP failure is raised as UpstreamFetchError.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from exam_cache.config import get_store_client
from exam_cache.errors import UpstreamFetchError
from exam_cache.protocols import Filters

logger = logging.getLogger(__name__)


def _filter_params(filters: Filters) -> dict[str, str]:
    params = {}
    for column, value in filters.items():
        if value is None:
            params[column] = "not.is.null"
        else:
            params[column] = f"eq.{value}"
    return params


def _json(response: httpx.Response, *, table: str, operation: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        logger.warning("Store returned a non-JSON body for %s %s", operation, table)
        raise UpstreamFetchError(
            f"Non-JSON response from {table}: {response.text[:200]!r}",
            table=table,
            operation=operation,
        ) from e


class PostgRESTTableStore:
    """PostgREST implementation of the TableStore protocol.

    This class satisfies the TableStore protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        store = PostgRESTTableStore.create()
        rows = await store.select(
            "examtracker",
            ["difficulty", "chapter"],
            {"category": "CAT"},
            (0, 999),
        )
        ```
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the PostgREST store.

        Args:
            client: Configured async HTTP client. If None, creates default
                from settings (base URL, API key headers, timeout).
        """
        self._client = client or get_store_client()

    @classmethod
    def create(cls, client: httpx.AsyncClient | None = None) -> "PostgRESTTableStore":
        """Factory method to create PostgRESTTableStore with defaults.

        Args:
            client: HTTP client. If None, uses settings.

        Returns:
            Configured PostgRESTTableStore
        """
        return cls(client=client)

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        filters: Filters,
        range_: tuple[int, int],
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": ",".join(columns), **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.asc"
        first, last = range_
        headers = {"Range-Unit": "items", "Range": f"{first}-{last}"}

        response = await self._request("GET", f"/{table}", table=table, params=params, headers=headers)
        data = _json(response, table=table, operation="select")
        if not isinstance(data, list):
            raise UpstreamFetchError(
                f"Unexpected response format from {table}: {data!r}",
                table=table,
                operation="select",
            )
        return data

    async def count(self, table: str, filters: Filters) -> int:
        params = {"select": "*", **_filter_params(filters)}
        headers = {"Prefer": "count=exact", "Range-Unit": "items", "Range": "0-0"}

        response = await self._request("HEAD", f"/{table}", table=table, params=params, headers=headers)
        # Content-Range: 0-0/1234 (or */0 when empty)
        content_range = response.headers.get("content-range", "")
        _, _, total = content_range.partition("/")
        if not total.isdigit():
            raise UpstreamFetchError(
                f"Missing exact count in Content-Range: {content_range!r}",
                table=table,
                operation="count",
            )
        return int(total)

    async def rpc(self, name: str, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        response = await self._request("POST", f"/rpc/{name}", table=name, json=dict(params))
        data = _json(response, table=name, operation="rpc")
        if data is None:
            return []
        if not isinstance(data, list):
            raise UpstreamFetchError(
                f"Unexpected response format from rpc {name}: {data!r}",
                table=name,
                operation="rpc",
            )
        return data

    async def is_available(self) -> bool:
        """Check if the PostgREST endpoint answers.

        Returns:
            True if reachable, False otherwise
        """
        try:
            response = await self._client.get("/")
            return response.status_code < 500
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        await self._client.aclose()

    async def _request(self, method: str, url: str, *, table: str, **kwargs: Any) -> httpx.Response:
        operation = "rpc" if url.startswith("/rpc/") else method.lower()
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.warning("Store returned %s for %s %s", e.response.status_code, method, url)
            raise UpstreamFetchError(
                f"Store error {e.response.status_code} on {table}: {e.response.text[:200]}",
                table=table,
                operation=operation,
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Store request failed for %s %s: %s", method, url, e)
            raise UpstreamFetchError(
                f"Store request failed on {table}: {e}",
                table=table,
                operation=operation,
            ) from e
