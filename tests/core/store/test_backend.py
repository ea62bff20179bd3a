"""Tests for the in-memory durable store and its query builder."""

from __future__ import annotations

import pytest

from agentbox.core.store.backend import InMemoryStore
from agentbox.errors import NotFoundError


class TestInMemoryStore:
    async def test_insert_adds_system_fields(self, store: InMemoryStore) -> None:
        doc_id = await store.insert("sessions", {"workspace_id": "w1"})
        doc = await store.get(doc_id)
        assert doc is not None
        assert doc["_id"] == doc_id
        assert "_creation_time" in doc
        assert doc["workspace_id"] == "w1"

    async def test_get_missing_returns_none(self, store: InMemoryStore) -> None:
        assert await store.get("sessions:nope") is None

    async def test_patch_updates_fields(self, store: InMemoryStore) -> None:
        doc_id = await store.insert("sessions", {"workspace_id": "w1", "status": "initializing"})
        await store.patch(doc_id, {"status": "running"})
        doc = await store.get(doc_id)
        assert doc is not None
        assert doc["status"] == "running"
        assert doc["workspace_id"] == "w1"

    async def test_patch_cannot_overwrite_id(self, store: InMemoryStore) -> None:
        doc_id = await store.insert("sessions", {"workspace_id": "w1"})
        await store.patch(doc_id, {"_id": "other"})
        doc = await store.get(doc_id)
        assert doc is not None
        assert doc["_id"] == doc_id

    async def test_patch_missing_raises(self, store: InMemoryStore) -> None:
        with pytest.raises(NotFoundError):
            await store.patch("sessions:nope", {"status": "running"})

    async def test_reads_are_copies(self, store: InMemoryStore) -> None:
        doc_id = await store.insert("sessions", {"metadata": {"a": 1}})
        doc = await store.get(doc_id)
        assert doc is not None
        doc["metadata"]["a"] = 2
        again = await store.get(doc_id)
        assert again is not None
        assert again["metadata"] == {"a": 1}

    async def test_insert_unknown_table(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError, match="Unknown table"):
            await store.insert("nope", {})

    async def test_dump(self, store: InMemoryStore) -> None:
        await store.insert("artifacts", {"session_id": "s1"})
        dumped = store.dump()
        assert len(dumped["artifacts"]) == 1
        assert dumped["sessions"] == []


class TestQuery:
    @pytest.fixture
    async def populated(self, store: InMemoryStore) -> InMemoryStore:
        for session_id, ns, key in [
            ("s1", "research", "a"),
            ("s1", "research", "b"),
            ("s1", "artifacts", "c"),
            ("s2", "research", "a"),
        ]:
            await store.insert(
                "blackboardEntries",
                {"session_id": session_id, "namespace": ns, "key": key, "value": key},
            )
        return store

    async def test_collect_by_prefix(self, populated: InMemoryStore) -> None:
        docs = await populated.query("blackboardEntries").by_index(
            "by_session", session_id="s1"
        ).collect()
        assert [d["key"] for d in docs] == ["a", "b", "c"]

    async def test_collect_full_index(self, populated: InMemoryStore) -> None:
        docs = await populated.query("blackboardEntries").by_index(
            "by_session_namespace", session_id="s1", namespace="research"
        ).collect()
        assert [d["key"] for d in docs] == ["a", "b"]

    async def test_order_desc_and_take(self, populated: InMemoryStore) -> None:
        docs = await populated.query("blackboardEntries").by_index(
            "by_session", session_id="s1"
        ).order("desc").take(2)
        assert [d["key"] for d in docs] == ["c", "b"]

    async def test_first(self, populated: InMemoryStore) -> None:
        doc = await populated.query("blackboardEntries").by_index(
            "by_session_key", session_id="s2", key="a"
        ).first()
        assert doc is not None
        assert doc["session_id"] == "s2"

    async def test_first_empty(self, populated: InMemoryStore) -> None:
        doc = await populated.query("blackboardEntries").by_index(
            "by_session", session_id="s9"
        ).first()
        assert doc is None

    def test_unknown_index(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError, match="Unknown index"):
            store.query("blackboardEntries").by_index("by_nothing", session_id="s1")

    def test_non_prefix_fields_rejected(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError, match="covers"):
            store.query("blackboardEntries").by_index("by_session_namespace", namespace="x")

    def test_invalid_order(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError, match="order"):
            store.query("sessions").order("sideways")  # type: ignore[arg-type]
