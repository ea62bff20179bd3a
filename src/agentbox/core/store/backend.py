"""Durable store contract and the in-memory implementation.

:class:`DurableStore` defines the async persistence protocol every component
talks to.  :class:`InMemoryStore` provides a dict-based implementation
suitable for testing and single-process sessions.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any, Literal, Protocol
from uuid import uuid4

from agentbox.core.store.schema import TABLE_INDEXES
from agentbox.errors import NotFoundError
from agentbox.utils import clock

Record = dict[str, Any]
OrderDirection = Literal["asc", "desc"]

QueryRunner = Callable[
    [str, "str | None", "dict[str, Any]", OrderDirection, "int | None"],
    Awaitable[list[Record]],
]


class Query:
    """Fluent indexed query over one table.

    Usage::

        entries = await (
            store.query("blackboardEntries")
            .by_index("by_session_namespace", session_id=sid, namespace="artifacts")
            .collect()
        )
    """

    def __init__(
        self,
        table: str,
        indexes: dict[str, tuple[str, ...]],
        runner: QueryRunner,
    ) -> None:
        self._table = table
        self._indexes = indexes
        self._runner = runner
        self._index: str | None = None
        self._values: dict[str, Any] = {}
        self._order: OrderDirection = "asc"

    def by_index(self, index: str, **values: Any) -> Query:
        """Restrict results to records whose index fields equal *values*.

        Raises:
            ValueError: If the index is unknown or *values* is not a prefix of
                the index's fields.
        """
        fields = self._indexes.get(index)
        if fields is None:
            raise ValueError(f"Unknown index {index!r} on table {self._table!r}")
        if tuple(values) != fields[: len(values)]:
            raise ValueError(
                f"Index {index!r} on {self._table!r} covers {list(fields)}, got {list(values)}"
            )
        self._index = index
        self._values = dict(values)
        return self

    def order(self, direction: OrderDirection) -> Query:
        """Order results by creation time (``"asc"`` is the default)."""
        if direction not in ("asc", "desc"):
            raise ValueError(f"Invalid order direction: {direction!r}")
        self._order = direction
        return self

    async def collect(self) -> list[Record]:
        return await self._runner(self._table, self._index, self._values, self._order, None)

    async def take(self, n: int) -> list[Record]:
        return await self._runner(self._table, self._index, self._values, self._order, n)

    async def first(self) -> Record | None:
        results = await self.take(1)
        return results[0] if results else None


class DurableStore(Protocol):
    """Async persistence protocol shared by every store-backed component."""

    async def insert(self, table: str, record: Record) -> str:
        """Insert *record* into *table* and return its new document id."""
        ...

    async def patch(self, doc_id: str, fields: Record) -> None:
        """Shallow-update the document *doc_id* with *fields*."""
        ...

    async def get(self, doc_id: str) -> Record | None:
        """Return the document *doc_id*, or ``None`` if it does not exist."""
        ...

    def query(self, table: str) -> Query:
        """Start an indexed query over *table*."""
        ...


class InMemoryStore:
    """Dict-backed :class:`DurableStore` implementation.

    Stores documents as serialised JSON bytes so that every read returns a
    fresh, independent copy (mimicking a real persistence layer).  Documents
    carry ``_id`` and ``_creation_time`` system fields; insertion order is
    creation order.
    """

    def __init__(self, indexes: dict[str, dict[str, tuple[str, ...]]] | None = None) -> None:
        self._indexes = indexes if indexes is not None else TABLE_INDEXES
        self._tables: dict[str, dict[str, bytes]] = {t: {} for t in self._indexes}
        self._locations: dict[str, str] = {}

    async def insert(self, table: str, record: Record) -> str:
        docs = self._table(table)
        doc_id = f"{table}:{uuid4().hex[:16]}"
        doc = {**record, "_id": doc_id, "_creation_time": clock.now_ms()}
        docs[doc_id] = json.dumps(doc).encode()
        self._locations[doc_id] = table
        return doc_id

    async def patch(self, doc_id: str, fields: Record) -> None:
        table = self._locations.get(doc_id)
        if table is None:
            raise NotFoundError("Document", doc_id)
        doc = json.loads(self._tables[table][doc_id])
        doc.update({k: v for k, v in fields.items() if k not in ("_id", "_creation_time")})
        self._tables[table][doc_id] = json.dumps(doc).encode()

    async def get(self, doc_id: str) -> Record | None:
        table = self._locations.get(doc_id)
        if table is None:
            return None
        result: Record = json.loads(self._tables[table][doc_id])
        return result

    def query(self, table: str) -> Query:
        self._table(table)
        return Query(table, self._indexes[table], self._run_query)

    def dump(self) -> dict[str, list[Record]]:
        """Return every table's documents (in creation order)."""
        return {
            table: [json.loads(raw) for raw in docs.values()]
            for table, docs in self._tables.items()
        }

    def _table(self, table: str) -> dict[str, bytes]:
        docs = self._tables.get(table)
        if docs is None:
            raise ValueError(f"Unknown table: {table!r}")
        return docs

    async def _run_query(
        self,
        table: str,
        index: str | None,
        values: dict[str, Any],
        order: OrderDirection,
        limit: int | None,
    ) -> list[Record]:
        docs = [json.loads(raw) for raw in self._tables[table].values()]
        if values:
            docs = [d for d in docs if all(d.get(k) == v for k, v in values.items())]
        if order == "desc":
            docs.reverse()
        if limit is not None:
            docs = docs[:limit]
        return docs
