"""SessionManager: drives one session from start to a terminal status.

Lifecycle::

    initializing -> loading_tools -> running -> completing -> completed
          \\              \\             \\            \\
           +--------------+-------------+------------+--> failed

Each phase runs once.  Any exception aborts the remaining phases and moves
the session straight to ``failed`` with the error message recorded; there
is no retry and no resume.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from agentbox.core.agents.models import AgentConfig
from agentbox.core.agents.orchestrator import Orchestrator
from agentbox.core.agents.specialist import Specialist
from agentbox.core.blackboard.blackboard import Blackboard
from agentbox.core.blackboard.models import ARTIFACTS_NAMESPACE, BlackboardEntry
from agentbox.core.interface.client import ModelClient
from agentbox.core.interface.config import ModelConfig
from agentbox.core.interface.models import UsageTracker
from agentbox.core.tasks.store import TaskStore
from agentbox.core.toolbus.bus import ToolBus
from agentbox.errors import ConfigurationError, SessionStateError
from agentbox.session.models import TRANSITIONS, ArtifactInput, ArtifactType, Session, SessionStatus
from agentbox.session.store import SessionStore
from agentbox.utils.telemetry import ATTR_SESSION_ID, ATTR_SESSION_PHASE, get_tracer

if TYPE_CHECKING:
    from agentbox.core.store.backend import DurableStore
    from agentbox.runtime.sandbox.executor import SandboxExecutor

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

ClientFactory = Callable[[str], ModelClient]


class SessionManagerConfig(BaseModel):
    """What a worker knows about its session before it starts."""

    session_id: str
    workspace_id: str
    user_id: str = "anonymous"
    backend_url: str = "http://localhost:3010"
    auth_token: str | None = Field(default=None, repr=False)
    agent: AgentConfig = Field(default_factory=AgentConfig)


def harvest_artifact(entry: BlackboardEntry) -> ArtifactInput:
    """Turn one ``artifacts`` blackboard entry into an artifact to store.

    Dict values supply ``type``, ``title``, ``content`` and ``metadata``;
    anything else becomes a document titled by the entry key.
    """
    value = entry.value
    if not isinstance(value, dict):
        return ArtifactInput(title=entry.key, content=_as_text(value))

    try:
        artifact_type = ArtifactType(value.get("type"))
    except ValueError:
        artifact_type = ArtifactType.DOCUMENT
    metadata = value.get("metadata")
    return ArtifactInput(
        type=artifact_type,
        title=str(value.get("title") or entry.key),
        content=_as_text(value.get("content")),
        metadata=metadata if isinstance(metadata, dict) else {},
    )


def _as_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return json.dumps(content, default=str)


class SessionManager:
    """Runs a session's phases against its cloud and local stores.

    ``cloud_store`` holds the session record and artifacts; ``local_store``
    holds the session's blackboard, tasks and tool execution log.

    Usage::

        manager = SessionManager(config, cloud_store=cloud, local_store=local)
        await manager.start("Research the history of the transistor")
        manager.get_status()  # SessionStatus.COMPLETED or SessionStatus.FAILED
    """

    def __init__(
        self,
        config: SessionManagerConfig,
        *,
        cloud_store: DurableStore,
        local_store: DurableStore,
        client_factory: ClientFactory | None = None,
        sandbox: SandboxExecutor | None = None,
    ) -> None:
        self.config = config
        self.sessions = SessionStore(cloud_store)
        self.blackboard = Blackboard(local_store)
        self.tasks = TaskStore(local_store)
        self.usage = UsageTracker()
        self.bus = ToolBus(config.session_id, self.tasks, blackboard=self.blackboard, sandbox=sandbox)
        self._client_factory = client_factory or self._default_client
        self._status = SessionStatus.INITIALIZING
        self.history: list[SessionStatus] = []
        self.orchestrator: Orchestrator | None = None
        self.result: str | None = None

    @property
    def session_id(self) -> str:
        return self.config.session_id

    def get_status(self) -> SessionStatus:
        return self._status

    async def start(self, user_request: str) -> None:
        """Run every phase; never raises.

        Check :meth:`get_status` afterwards for the outcome.
        """
        try:
            await self._set_status(SessionStatus.INITIALIZING)

            await self._set_status(SessionStatus.LOADING_TOOLS)
            with self._phase("loading_tools"):
                session = await self._load_tools()

            with self._phase("construct"):
                self.orchestrator = self._build_orchestrator(session)

            await self._set_status(SessionStatus.RUNNING)
            with self._phase("running"):
                self.result = await self.orchestrator.run(user_request)

            await self._set_status(SessionStatus.COMPLETING)
            with self._phase("completing"):
                await self._finalize(self.result)

            await self._set_status(SessionStatus.COMPLETED)
            logger.info("Session %s completed", self.session_id)
        except Exception as exc:
            logger.exception("Session %s failed", self.session_id)
            if self._status.is_terminal:
                return
            await self._set_status(SessionStatus.FAILED, {"error": str(exc)})

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _load_tools(self) -> Session:
        state = await self.sessions.get_session_state(self.session_id)
        if state is None:
            raise ConfigurationError(
                f"Could not find session configuration for {self.session_id}"
            )
        if state.session.tool_manifests is None:
            raise ConfigurationError(f"Session {self.session_id} has no tool manifests")
        await self.bus.initialize(list(state.session.tool_manifests))
        return state.session

    def _build_orchestrator(self, session: Session) -> Orchestrator:
        agent = self.config.agent
        max_rounds = session.execution_limits.max_tool_rounds
        bus_tools = self.bus.registered_tools()

        specialists: dict[str, Specialist] = {}
        for specialist_config in agent.sub_agents:
            tools = [bus_tools[t] for t in specialist_config.tools if t in bus_tools]
            specialists[specialist_config.name] = Specialist(
                specialist_config,
                self._client_factory(specialist_config.model),
                tools,
                max_rounds=max_rounds,
            )

        logger.info(
            "Built orchestrator with %d specialist(s): %s",
            len(specialists),
            ", ".join(specialists) or "none",
        )
        return Orchestrator(
            self.session_id,
            self._client_factory(agent.model),
            self.bus,
            self.blackboard,
            self.tasks,
            instructions=agent.instructions,
            specialists=specialists,
            max_rounds=max_rounds,
        )

    async def _finalize(self, result: str) -> None:
        entries = await self.blackboard.get_namespace(self.session_id, ARTIFACTS_NAMESPACE)
        artifacts = [harvest_artifact(entry) for entry in entries]
        await self.sessions.sync_session_results(
            self.session_id,
            artifacts,
            {
                "total_tokens_used": self.usage.total_tokens,
                "total_cost": self.bus.total_cost,
                "result_summary": result,
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _set_status(self, status: SessionStatus, metadata: dict[str, Any] | None = None) -> None:
        if self.history and status not in TRANSITIONS[self._status]:
            raise SessionStateError(
                f"Invalid session transition {self._status.value} -> {status.value}"
            )
        self._status = status
        self.history.append(status)
        logger.info("Session %s status: %s", self.session_id, status.value)

        try:
            await self.sessions.update_session_status(self.session_id, status, metadata)
        except Exception as exc:
            logger.warning("Failed to push status %s for session %s: %s", status.value, self.session_id, exc)

    @contextmanager
    def _phase(self, name: str) -> Iterator[None]:
        with _tracer.start_as_current_span("session.phase") as span:
            span.set_attribute(ATTR_SESSION_ID, self.session_id)
            span.set_attribute(ATTR_SESSION_PHASE, name)
            yield

    def _default_client(self, model: str) -> ModelClient:
        agent = self.config.agent
        return ModelClient(
            ModelConfig(
                model=model,
                api_key=self.config.auth_token,
                api_base=self.config.backend_url,
                temperature=agent.temperature,
                max_tokens=agent.max_tokens,
            ),
            usage=self.usage,
        )
