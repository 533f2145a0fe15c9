"""Notion API client for reading personnel pages and calendar data rows.

The client wraps the Notion REST API with an httpx.AsyncClient and translates
HTTP failures into feed errors so callers never handle httpx exceptions.

Only read operations are needed: retrieving a single page and querying a
database with cursor pagination.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .debug import log_notion_request, log_notion_response
from .errors import PersonNotFoundError, UpstreamRequestError


@dataclass
class NotionConfig:
    """Configuration for the Notion API client."""

    # Internal integration token
    api_key: str = ""

    # API configuration
    base_url: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"
    timeout: float = 30.0  # Request timeout in seconds


class NotionAPIClient:
    """Async client for the Notion REST API."""

    def __init__(
        self,
        config: NotionConfig | None = None,
        debug: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Notion API client.

        Args:
            config: Notion API configuration (uses default if None)
            debug: Log request/response bodies to the notion logger
            transport: Optional httpx transport (used by tests)
        """
        self.config = config or NotionConfig()
        self.debug = debug
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Notion-Version": self.config.notion_version,
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> NotionAPIClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _make_request(
        self,
        method: str,
        path: str,
        page_lookup: bool = False,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make a request to the Notion API and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path (e.g., "/pages/<id>")
            page_lookup: Treat a missing or malformed page id as PersonNotFoundError
            **kwargs: Additional arguments for httpx request

        Returns:
            Decoded JSON response

        Raises:
            PersonNotFoundError: If page_lookup is set and Notion answers 404
                or rejects the id as invalid
            UpstreamRequestError: For any other HTTP or transport failure
        """
        client = await self._get_http_client()

        if self.debug:
            log_notion_request(
                method, f"{client.base_url}{path}", dict(client.headers), kwargs.get("json")
            )

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamRequestError(f"Notion request {method} {path} failed", e) from e

        if self.debug:
            log_notion_response(response.status_code, _safe_json(response))

        if page_lookup and response.status_code in (400, 404) and _notion_error_code(response) in (
            "object_not_found",
            "validation_error",
        ):
            raise PersonNotFoundError(f"Notion object not found: {path}")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamRequestError(
                f"Notion request {method} {path} returned {response.status_code}", e
            ) from e

        data: dict[str, Any] = response.json()
        return data

    async def retrieve_page(self, page_id: str) -> dict[str, Any]:
        """Get a single page with all of its properties.

        Args:
            page_id: Hyphenated page identifier

        Returns:
            Page object (with computed formula values under "properties")
        """
        return await self._make_request("GET", f"/pages/{page_id}", page_lookup=True)

    async def query_database(
        self,
        database_id: str,
        start_cursor: str | None = None,
        page_size: int = 100,
        filter_properties: list[str] | None = None,
    ) -> dict[str, Any]:
        """Query one page of database rows.

        Args:
            database_id: Database identifier
            start_cursor: Cursor returned by the previous page
            page_size: Rows per page (max 100)
            filter_properties: Property names/ids to return; skips computing
                expensive formulas on the other properties

        Returns:
            Dictionary with 'results', 'has_more' and 'next_cursor' keys
        """
        payload: dict[str, Any] = {"page_size": min(page_size, 100)}
        if start_cursor:
            payload["start_cursor"] = start_cursor

        params: list[tuple[str, str]] = []
        for prop in filter_properties or []:
            params.append(("filter_properties", prop))

        return await self._make_request(
            "POST",
            f"/databases/{database_id}/query",
            json=payload,
            params=params,
        )

    async def query_all_rows(
        self,
        database_id: str,
        filter_properties: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every row of a database, following next_cursor until exhausted."""
        rows: list[dict[str, Any]] = []
        cursor: str | None = None

        while True:
            data = await self.query_database(
                database_id,
                start_cursor=cursor,
                filter_properties=filter_properties,
            )
            rows.extend(data.get("results", []))

            if not data.get("has_more") or not data.get("next_cursor"):
                break
            cursor = data["next_cursor"]

        return rows


def formula_string(page: dict[str, Any], property_name: str) -> str | None:
    """Return the computed string of a formula property, or None if absent."""
    prop = (page.get("properties") or {}).get(property_name)
    if not isinstance(prop, dict):
        return None
    formula = prop.get("formula")
    if not isinstance(formula, dict):
        return None
    value = formula.get("string")
    return value if isinstance(value, str) else None


def first_relation_id(page: dict[str, Any], property_name: str) -> str | None:
    """Return the id of the first page linked by a relation property."""
    prop = (page.get("properties") or {}).get(property_name)
    if not isinstance(prop, dict):
        return None
    relation = prop.get("relation") or []
    if relation and isinstance(relation[0], dict):
        return relation[0].get("id")
    return None


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _notion_error_code(response: httpx.Response) -> str | None:
    body = _safe_json(response)
    if isinstance(body, dict):
        return body.get("code")
    return None
