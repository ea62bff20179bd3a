"""Tests for the ToolBus registry, validation and execution log."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agentbox.core.blackboard.blackboard import Blackboard
from agentbox.core.store.backend import InMemoryStore
from agentbox.core.tasks.models import ExecutionStatus
from agentbox.core.tasks.store import TaskStore
from agentbox.core.toolbus.bus import ToolBus
from agentbox.errors import (
    ToolExecutionError,
    ToolValidationError,
    UnimplementedError,
)


def search_manifest(**overrides: Any) -> dict[str, Any]:
    manifest: dict[str, Any] = {
        "id": "search_web",
        "name": "Web Search",
        "version": "1.0.0",
        "type": "api",
        "schema": {
            "description": "Search the web",
            "parameters": {
                "type": "object",
                "properties": {"query": {"type": "string"}, "limit": {"type": "number"}},
                "required": ["query"],
            },
        },
        "metadata": {
            "endpoint": "https://tools.test/search",
            "costEstimate": {"perRequest": 0.25, "currency": "USD"},
        },
        "isEnabled": True,
        "isPublic": False,
    }
    manifest.update(overrides)
    return manifest


def _mock_http(status: int = 200, body: Any = None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.is_success = 200 <= status < 300
    response.json.return_value = body
    response.text = text

    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.post = AsyncMock(return_value=response)
    return client


@pytest.fixture
def execution_log(store: InMemoryStore) -> TaskStore:
    return TaskStore(store)


@pytest.fixture
def bus(execution_log: TaskStore, store: InMemoryStore) -> ToolBus:
    return ToolBus("s1", execution_log, blackboard=Blackboard(store))


class TestInitialize:
    async def test_registry_keyed_by_manifest_id(self, bus: ToolBus) -> None:
        await bus.initialize([search_manifest()])
        tools = bus.registered_tools()
        assert list(tools) == ["search_web"]
        assert tools["search_web"].description == "Search the web"

    async def test_registered_tools_is_a_copy(self, bus: ToolBus) -> None:
        await bus.initialize([search_manifest()])
        bus.registered_tools().clear()
        assert "search_web" in bus

    async def test_bad_manifest_skipped(self, bus: ToolBus) -> None:
        await bus.initialize(
            [
                search_manifest(),
                {"id": "broken", "name": "Broken", "type": "carrier-pigeon"},
                {"id": "teleport", "name": "Teleport", "type": "builtin"},
                {"id": "no_endpoint", "name": "No endpoint", "type": "api"},
            ]
        )
        assert list(bus.registered_tools()) == ["search_web"]

    async def test_mcp_tool_registers(self, bus: ToolBus) -> None:
        await bus.initialize([{"id": "fs_read", "name": "Read", "type": "mcp"}])
        assert "fs_read" in bus

    async def test_tool_schemas(self, bus: ToolBus) -> None:
        await bus.initialize(
            [search_manifest(), {"id": "generate_document", "name": "Doc", "type": "builtin"}]
        )
        schemas = bus.tool_schemas()
        names = [s["function"]["name"] for s in schemas]
        assert names == ["search_web", "generate_document"]
        assert schemas[0]["function"]["parameters"]["required"] == ["query"]

    async def test_manifest_without_parameters_gets_empty_object(self, bus: ToolBus) -> None:
        await bus.initialize([search_manifest(schema={"description": "bare"})])
        [schema] = bus.tool_schemas()
        assert schema["function"]["parameters"] == {"type": "object", "properties": {}}


class TestExecute:
    async def test_success_records_execution_and_cost(
        self, bus: ToolBus, execution_log: TaskStore
    ) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http(body={"hits": 2})

        with patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client):
            result = await bus.execute("search_web", {"query": "llm", "junk": 1}, agent_id="researcher")

        assert result == {"hits": 2}
        client.post.assert_awaited_once()
        assert client.post.call_args.kwargs["json"] == {"query": "llm"}

        [record] = await execution_log.list_tool_executions("s1")
        assert record.status is ExecutionStatus.SUCCESS
        assert record.tool_id == "search_web"
        assert record.tool_name == "Web Search"
        assert record.agent_id == "researcher"
        assert record.input == {"query": "llm", "junk": 1}
        assert record.output == {"hits": 2}
        assert record.duration is not None
        assert bus.total_cost == pytest.approx(0.25)

    async def test_validation_error_recorded_then_raised(
        self, bus: ToolBus, execution_log: TaskStore
    ) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http(body={})

        with patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client):
            with pytest.raises(ToolValidationError):
                await bus.execute("search_web", {"limit": 3})

        client.post.assert_not_awaited()
        [record] = await execution_log.list_tool_executions("s1")
        assert record.status is ExecutionStatus.ERROR
        assert record.error
        assert bus.total_cost == 0

    async def test_http_error_recorded_then_raised(
        self, bus: ToolBus, execution_log: TaskStore
    ) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http(status=500, text="kaput")

        with patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client):
            with pytest.raises(ToolExecutionError) as exc_info:
                await bus.execute("search_web", {"query": "llm"})

        assert exc_info.value.status_code == 500
        [record] = await execution_log.list_tool_executions("s1")
        assert record.status is ExecutionStatus.ERROR
        assert "kaput" in (record.error or "")

    async def test_unexpected_exception_wrapped(self, bus: ToolBus) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http()
        client.post = AsyncMock(side_effect=RuntimeError("socket closed"))

        with patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client):
            with pytest.raises(ToolExecutionError, match="socket closed") as exc_info:
                await bus.execute("search_web", {"query": "llm"})

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_mcp_fails_at_call_and_is_recorded(
        self, bus: ToolBus, execution_log: TaskStore
    ) -> None:
        await bus.initialize([{"id": "fs_read", "name": "Read", "type": "mcp"}])
        with pytest.raises(UnimplementedError):
            await bus.execute("fs_read", {})
        [record] = await execution_log.list_tool_executions("s1")
        assert record.status is ExecutionStatus.ERROR

    async def test_unknown_tool(self, bus: ToolBus) -> None:
        with pytest.raises(KeyError):
            await bus.execute("nope", {})

    async def test_logging_failure_does_not_mask_result(self, bus: ToolBus) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http(body={"hits": 1})

        with (
            patch.object(
                TaskStore, "record_tool_execution", AsyncMock(side_effect=RuntimeError("db down"))
            ),
            patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client),
        ):
            result = await bus.execute("search_web", {"query": "llm"})

        assert result == {"hits": 1}

    async def test_terminal_record_complete_when_running_write_fails(
        self, bus: ToolBus, execution_log: TaskStore
    ) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http(body={"hits": 1})
        record = execution_log.record_tool_execution

        async def drop_running(
            session_id: str, execution_id: str, status: ExecutionStatus, **fields: Any
        ) -> str:
            if status is ExecutionStatus.RUNNING:
                raise RuntimeError("db down")
            return await record(session_id, execution_id, status, **fields)

        with (
            patch.object(execution_log, "record_tool_execution", side_effect=drop_running),
            patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client),
        ):
            await bus.execute("search_web", {"query": "llm"}, agent_id="researcher")

        [execution] = await execution_log.list_tool_executions("s1")
        assert execution.status is ExecutionStatus.SUCCESS
        assert execution.tool_id == "search_web"
        assert execution.tool_name == "Web Search"
        assert execution.agent_id == "researcher"
        assert execution.input == {"query": "llm"}
        assert execution.duration == 0

    async def test_logging_failure_does_not_mask_tool_error(self, bus: ToolBus) -> None:
        await bus.initialize([search_manifest()])
        client = _mock_http(status=404, text="missing")

        with (
            patch.object(
                TaskStore, "record_tool_execution", AsyncMock(side_effect=RuntimeError("db down"))
            ),
            patch("agentbox.core.toolbus.loaders.httpx.AsyncClient", return_value=client),
        ):
            with pytest.raises(ToolExecutionError) as exc_info:
                await bus.execute("search_web", {"query": "llm"})

        assert exc_info.value.status_code == 404

    async def test_generate_document_writes_to_blackboard(
        self, bus: ToolBus, store: InMemoryStore
    ) -> None:
        await bus.initialize([{"id": "generate_document", "name": "Doc", "type": "builtin"}])
        result = await bus.execute(
            "generate_document", {"title": "Notes", "content": "body"}, agent_id="writer"
        )
        entries = await Blackboard(store).get_namespace("s1", "artifacts")
        assert [e.key for e in entries] == [result["documentId"]]
