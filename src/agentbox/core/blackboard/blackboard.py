"""Blackboard: session-scoped, namespaced key-value memory shared by agents.

Entries are upserted by ``(session_id, namespace, key)`` and never deleted.
Concurrent writers to the same key race with last-write-wins; there is no
version token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentbox.core.blackboard.models import BlackboardEntry
from agentbox.core.store.schema import BLACKBOARD_ENTRIES
from agentbox.utils import clock

if TYPE_CHECKING:
    from agentbox.core.store.backend import DurableStore

logger = logging.getLogger(__name__)


class Blackboard:
    """Read/write access to blackboard entries held in a :class:`DurableStore`."""

    def __init__(self, store: DurableStore) -> None:
        self._store = store

    async def write(
        self,
        session_id: str,
        namespace: str,
        key: str,
        value: Any,
        agent_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Upsert an entry and return its document id.

        * ``value`` is always replaced.
        * ``agent_id`` is replaced only when one is supplied.
        * ``metadata`` is shallow-merged into the existing metadata.
        """
        now = clock.now_ms()
        existing = await self._find(session_id, namespace, key)

        if existing is not None:
            doc_id: str = existing["_id"]
            await self._store.patch(
                doc_id,
                {
                    "value": value,
                    "agent_id": agent_id if agent_id is not None else existing.get("agent_id"),
                    "metadata": {**(existing.get("metadata") or {}), **(metadata or {})},
                    "updated_at": now,
                },
            )
            logger.debug("Blackboard update %s/%s/%s", session_id, namespace, key)
            return doc_id

        logger.debug("Blackboard insert %s/%s/%s", session_id, namespace, key)
        return await self._store.insert(
            BLACKBOARD_ENTRIES,
            {
                "session_id": session_id,
                "namespace": namespace,
                "key": key,
                "value": value,
                "agent_id": agent_id,
                "metadata": dict(metadata or {}),
                "created_at": now,
                "updated_at": now,
            },
        )

    async def search(
        self,
        session_id: str,
        namespace: str | None = None,
        key: str | None = None,
        pattern: str | None = None,
    ) -> list[BlackboardEntry]:
        """Return entries of a session matching every supplied filter.

        ``namespace`` and ``key`` match exactly.  ``pattern`` is a
        case-insensitive substring match against string values only; entries
        holding any other value type are excluded whenever a pattern is given.
        """
        records = await self._store.query(BLACKBOARD_ENTRIES).by_index(
            "by_session", session_id=session_id
        ).collect()

        needle = pattern.lower() if pattern else None
        results: list[BlackboardEntry] = []
        for record in records:
            if namespace and record.get("namespace") != namespace:
                continue
            if key and record.get("key") != key:
                continue
            if needle is not None:
                value = record.get("value")
                if not isinstance(value, str) or needle not in value.lower():
                    continue
            results.append(BlackboardEntry.from_record(record))
        return results

    async def get_namespace(self, session_id: str, namespace: str) -> list[BlackboardEntry]:
        """Return every entry under one namespace (no pattern filtering)."""
        records = await self._store.query(BLACKBOARD_ENTRIES).by_index(
            "by_session_namespace", session_id=session_id, namespace=namespace
        ).collect()
        return [BlackboardEntry.from_record(r) for r in records]

    async def get(self, session_id: str, namespace: str, key: str) -> BlackboardEntry | None:
        """Return a single entry, or ``None`` if absent."""
        record = await self._find(session_id, namespace, key)
        return BlackboardEntry.from_record(record) if record is not None else None

    async def _find(self, session_id: str, namespace: str, key: str) -> dict[str, Any] | None:
        records = await self._store.query(BLACKBOARD_ENTRIES).by_index(
            "by_session_key", session_id=session_id, key=key
        ).collect()
        for record in records:
            if record.get("namespace") == namespace:
                return record
        return None
