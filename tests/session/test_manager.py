"""Tests for SessionManager and artifact harvesting."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agentbox.core.agents.models import AgentConfig, SpecialistConfig
from agentbox.core.blackboard.models import BlackboardEntry
from agentbox.core.interface.models import ChatMessage, ToolCall
from agentbox.core.store.backend import InMemoryStore
from agentbox.core.store.schema import SESSIONS
from agentbox.core.tasks.models import TaskStatus
from agentbox.core.toolbus.models import ToolManifest
from agentbox.errors import StoreError
from agentbox.session.manager import SessionManager, SessionManagerConfig, harvest_artifact
from agentbox.session.models import ArtifactType, SessionStatus
from agentbox.session.store import SessionStore

HAPPY_PATH = [
    SessionStatus.INITIALIZING,
    SessionStatus.LOADING_TOOLS,
    SessionStatus.RUNNING,
    SessionStatus.COMPLETING,
    SessionStatus.COMPLETED,
]


def _client(*replies: ChatMessage | Exception) -> MagicMock:
    client = MagicMock()
    client.generate = AsyncMock(side_effect=list(replies))
    return client


def _entry(key: str, value: object) -> BlackboardEntry:
    return BlackboardEntry(
        session_id="s1", namespace="artifacts", key=key, value=value, created_at=1, updated_at=1
    )


@pytest.fixture
def cloud() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def local() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
async def session_id(cloud: InMemoryStore) -> str:
    return await SessionStore(cloud).create_session(
        "w1",
        "u1",
        "Tides",
        tool_manifests=[
            ToolManifest.model_validate({"id": "generate_document", "name": "Doc", "type": "builtin"})
        ],
    )


def _manager(
    session_id: str,
    cloud: InMemoryStore,
    local: InMemoryStore,
    clients: dict[str, MagicMock],
) -> SessionManager:
    config = SessionManagerConfig(
        session_id=session_id,
        workspace_id="w1",
        agent=AgentConfig(
            model="orchestrator-model",
            sub_agents=[
                SpecialistConfig(name="researcher", model="researcher-model", instructions="Research.")
            ],
        ),
    )
    return SessionManager(
        config, cloud_store=cloud, local_store=local, client_factory=clients.__getitem__
    )


class TestHarvestArtifact:
    def test_dict_value(self) -> None:
        artifact = harvest_artifact(
            _entry(
                "doc_1",
                {"type": "canvas", "title": "Board", "content": "{}", "metadata": {"w": 2}},
            )
        )
        assert artifact.type is ArtifactType.CANVAS
        assert artifact.title == "Board"
        assert artifact.content == "{}"
        assert artifact.metadata == {"w": 2}

    def test_dict_defaults(self) -> None:
        artifact = harvest_artifact(
            _entry("doc_2", {"type": "poster", "content": {"rows": [1, 2]}, "metadata": "x"})
        )
        assert artifact.type is ArtifactType.DOCUMENT
        assert artifact.title == "doc_2"
        assert artifact.content == '{"rows": [1, 2]}'
        assert artifact.metadata == {}

    def test_plain_value(self) -> None:
        artifact = harvest_artifact(_entry("notes", "just text"))
        assert artifact.type is ArtifactType.DOCUMENT
        assert artifact.title == "notes"
        assert artifact.content == "just text"

    def test_missing_content(self) -> None:
        assert harvest_artifact(_entry("empty", {"title": "Empty"})).content == ""


class TestStart:
    async def test_happy_path(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        clients = {
            "orchestrator-model": _client(
                ChatMessage.assistant(
                    tool_calls=[
                        ToolCall(
                            id="c1",
                            name="generate_document",
                            arguments={"title": "Tides", "content": "# Tides\n\nThe moon."},
                        )
                    ]
                ),
                ChatMessage.assistant(
                    tool_calls=[
                        ToolCall(
                            id="c2",
                            name="delegate_task",
                            arguments={"agentId": "researcher", "task": "Check facts"},
                        )
                    ]
                ),
                ChatMessage.assistant("Report ready"),
            ),
            "researcher-model": _client(ChatMessage.assistant("Facts check out")),
        }
        manager = _manager(session_id, cloud, local, clients)

        await manager.start("Write about tides")

        assert manager.get_status() is SessionStatus.COMPLETED
        assert manager.history == HAPPY_PATH
        assert manager.result == "Report ready"

        state = await manager.sessions.get_session_state(session_id)
        assert state is not None
        assert state.session.status is SessionStatus.COMPLETED
        assert state.session.started_at is not None
        assert state.session.completed_at is not None
        assert state.session.metadata.result_summary == "Report ready"
        assert state.session.metadata.total_cost == 0
        [artifact] = state.artifacts
        assert artifact.title == "Tides"
        assert artifact.type is ArtifactType.DOCUMENT
        assert artifact.content_metadata["format"] == "markdown"
        assert state.session.output_document_ids == [artifact.id]

        [task] = await manager.tasks.list_tasks(session_id)
        assert task.delegated_to == "researcher"
        assert task.status is TaskStatus.COMPLETED
        [execution] = await manager.tasks.list_tool_executions(session_id)
        assert execution.tool_id == "generate_document"

    async def test_missing_session_fails_at_load(
        self, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        manager = _manager("sessions:missing", cloud, local, {})

        await manager.start("anything")

        assert manager.get_status() is SessionStatus.FAILED
        assert manager.history == [
            SessionStatus.INITIALIZING,
            SessionStatus.LOADING_TOOLS,
            SessionStatus.FAILED,
        ]
        assert manager.orchestrator is None

    async def test_model_error_fails_session_with_message(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        clients = {
            "orchestrator-model": _client(RuntimeError("model offline")),
            "researcher-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)

        await manager.start("anything")

        assert manager.history[-2:] == [SessionStatus.RUNNING, SessionStatus.FAILED]
        session = await manager.sessions.get_session(session_id)
        assert session is not None
        assert session.status is SessionStatus.FAILED
        assert session.metadata.error == "model offline"
        assert session.completed_at is not None

    async def test_status_push_failures_are_ignored(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        clients = {
            "orchestrator-model": _client(ChatMessage.assistant("done")),
            "researcher-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)

        with patch.object(
            manager.sessions,
            "update_session_status",
            AsyncMock(side_effect=ConnectionError("store down")),
        ):
            await manager.start("anything")

        assert manager.get_status() is SessionStatus.COMPLETED
        assert manager.history == HAPPY_PATH

    async def test_second_start_is_a_noop(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        clients = {
            "orchestrator-model": _client(ChatMessage.assistant("done")),
            "researcher-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)

        await manager.start("anything")
        await manager.start("again")

        assert manager.get_status() is SessionStatus.COMPLETED
        assert manager.history == HAPPY_PATH
        assert clients["orchestrator-model"].generate.await_count == 1

    async def test_specialists_receive_only_their_tools(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        clients = {
            "orchestrator-model": _client(ChatMessage.assistant("done")),
            "writer-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)
        manager.config.agent.sub_agents = [
            SpecialistConfig(
                name="writer",
                model="writer-model",
                instructions="Write.",
                tools=["generate_document", "search_web"],
            )
        ]

        await manager.start("anything")

        assert manager.orchestrator is not None
        writer = manager.orchestrator.specialists["writer"]
        assert [t.name for t in writer.tools] == ["generate_document"]


class TestToolSnapshot:
    async def test_malformed_manifest_is_skipped(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        await cloud.patch(
            session_id,
            {
                "tool_manifests": [
                    {"id": "generate_document", "name": "Doc", "type": "builtin"},
                    {"id": "legacy", "name": "Legacy", "type": "graphql"},
                    {"id": "nameless", "type": "api"},
                ]
            },
        )
        clients = {
            "orchestrator-model": _client(ChatMessage.assistant("done")),
            "researcher-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)

        await manager.start("anything")

        assert manager.get_status() is SessionStatus.COMPLETED
        assert list(manager.bus.registered_tools()) == ["generate_document"]

    async def test_absent_snapshot_fails_at_load(
        self, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        session_id = await cloud.insert(
            SESSIONS,
            {
                "workspace_id": "w1",
                "user_id": "u1",
                "title": "No tools",
                "status": "initializing",
                "created_at": 1,
                "expires_at": 2,
            },
        )
        manager = _manager(session_id, cloud, local, {})

        await manager.start("anything")

        assert manager.history == [
            SessionStatus.INITIALIZING,
            SessionStatus.LOADING_TOOLS,
            SessionStatus.FAILED,
        ]
        session = await manager.sessions.get_session(session_id)
        assert session is not None
        assert session.status is SessionStatus.FAILED
        assert "no tool manifests" in (session.metadata.error or "")

    async def test_empty_snapshot_is_allowed(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        await cloud.patch(session_id, {"tool_manifests": []})
        clients = {
            "orchestrator-model": _client(ChatMessage.assistant("done")),
            "researcher-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)

        await manager.start("anything")

        assert manager.get_status() is SessionStatus.COMPLETED
        assert len(manager.bus) == 0


class TestFailurePhases:
    async def test_construct_failure(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        manager = _manager(session_id, cloud, local, {})

        await manager.start("anything")

        assert manager.history == [
            SessionStatus.INITIALIZING,
            SessionStatus.LOADING_TOOLS,
            SessionStatus.FAILED,
        ]
        assert manager.orchestrator is None
        session = await manager.sessions.get_session(session_id)
        assert session is not None
        assert session.status is SessionStatus.FAILED
        assert session.metadata.error

    async def test_completing_failure(
        self, session_id: str, cloud: InMemoryStore, local: InMemoryStore
    ) -> None:
        clients = {
            "orchestrator-model": _client(ChatMessage.assistant("done")),
            "researcher-model": _client(),
        }
        manager = _manager(session_id, cloud, local, clients)

        with patch.object(
            manager.sessions,
            "sync_session_results",
            AsyncMock(side_effect=StoreError("write rejected")),
        ):
            await manager.start("anything")

        assert manager.history[-2:] == [SessionStatus.COMPLETING, SessionStatus.FAILED]
        assert SessionStatus.COMPLETED not in manager.history
        session = await manager.sessions.get_session(session_id)
        assert session is not None
        assert session.status is SessionStatus.FAILED
        assert session.metadata.error == "write rejected"
