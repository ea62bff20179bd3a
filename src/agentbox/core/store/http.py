"""HttpStore: a :class:`DurableStore` client for a remote document store.

Wire protocol (JSON over HTTP)::

    POST  /api/tables/{table}          {"document": {...}}          -> {"id": "..."}
    PATCH /api/documents/{id}          {"fields": {...}}            -> 204
    GET   /api/documents/{id}                                       -> {...} | 404
    POST  /api/tables/{table}/query    {"index", "values", "order", "limit"}
                                                                    -> {"documents": [...]}
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from agentbox.core.store.backend import OrderDirection, Query, Record
from agentbox.core.store.schema import TABLE_INDEXES
from agentbox.errors import StoreError

logger = logging.getLogger(__name__)


class HttpStore:
    """Async HTTP client satisfying :class:`~agentbox.core.store.backend.DurableStore`.

    Usage::

        async with HttpStore("https://cloud.example.com", token=token) as store:
            doc = await store.get(session_id)
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._client = client

    async def __aenter__(self) -> HttpStore:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def insert(self, table: str, record: Record) -> str:
        response = await self._request("POST", f"/api/tables/{table}", json={"document": record})
        doc_id: str = response.json()["id"]
        return doc_id

    async def patch(self, doc_id: str, fields: Record) -> None:
        await self._request("PATCH", f"/api/documents/{doc_id}", json={"fields": fields})

    async def get(self, doc_id: str) -> Record | None:
        response = await self._request("GET", f"/api/documents/{doc_id}", allow_missing=True)
        if response.status_code == 404:
            return None
        result: Record = response.json()
        return result

    def query(self, table: str) -> Query:
        indexes = TABLE_INDEXES.get(table)
        if indexes is None:
            raise ValueError(f"Unknown table: {table!r}")
        return Query(table, indexes, self._run_query)

    async def _run_query(
        self,
        table: str,
        index: str | None,
        values: dict[str, Any],
        order: OrderDirection,
        limit: int | None,
    ) -> list[Record]:
        payload = {"index": index, "values": values, "order": order, "limit": limit}
        response = await self._request("POST", f"/api/tables/{table}/query", json=payload)
        documents: list[Record] = response.json()["documents"]
        return documents

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        allow_missing: bool = False,
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._get_client().request(
                method, f"{self.base_url}{path}", headers=headers, json=json
            )
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if allow_missing and response.status_code == 404:
            return response
        if response.is_error:
            logger.debug("Store request %s %s -> %s", method, path, response.status_code)
            raise StoreError(
                f"{method} {path} failed with status {response.status_code}: {response.text}"
            )
        return response

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client
