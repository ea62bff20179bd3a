"""Session records and lifecycle states."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentbox.core.agents.models import DEFAULT_MAX_TOOL_ROUNDS, AgentConfig

SESSION_TTL_MS = 24 * 60 * 60 * 1000


class SessionStatus(StrEnum):
    INITIALIZING = "initializing"
    LOADING_TOOLS = "loading_tools"
    RUNNING = "running"
    COMPLETING = "completing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)

    @property
    def is_active(self) -> bool:
        return self in (
            SessionStatus.INITIALIZING,
            SessionStatus.LOADING_TOOLS,
            SessionStatus.RUNNING,
        )


# Allowed forward moves; FAILED is reachable from every non-terminal state.
TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.INITIALIZING: frozenset({SessionStatus.LOADING_TOOLS, SessionStatus.FAILED}),
    SessionStatus.LOADING_TOOLS: frozenset({SessionStatus.RUNNING, SessionStatus.FAILED}),
    SessionStatus.RUNNING: frozenset({SessionStatus.COMPLETING, SessionStatus.FAILED}),
    SessionStatus.COMPLETING: frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED}),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.FAILED: frozenset(),
}


class SessionMode(StrEnum):
    RESEARCH = "research"
    CONTENT = "content"
    ANALYSIS = "analysis"
    CUSTOM = "custom"


class ArtifactType(StrEnum):
    DOCUMENT = "document"
    CANVAS = "canvas"
    ANALYSIS = "analysis"
    TRANSCRIPT = "transcript"


class ExecutionLimits(BaseModel):
    max_duration_ms: int = 30 * 60 * 1000
    max_tokens_per_request: int | None = None
    max_concurrent_tools: int = 3
    max_api_calls_per_minute: int = 10
    cost_limit: float | None = None
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS


class SessionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_tokens_used: int = 0
    total_cost: float = 0.0
    error: str | None = None
    result_summary: str | None = None


class Session(BaseModel):
    """A durable session record.

    ``tool_manifests`` is the raw snapshot; the ToolBus validates each entry
    as it loads.  ``None`` means the snapshot is absent.
    """

    id: str
    workspace_id: str
    user_id: str
    title: str
    mode: SessionMode = SessionMode.CUSTOM
    status: SessionStatus = SessionStatus.INITIALIZING
    created_at: int
    started_at: int | None = None
    completed_at: int | None = None
    expires_at: int
    agent_config: AgentConfig = Field(default_factory=AgentConfig)
    tool_manifests: list[dict[str, Any]] | None = None
    execution_limits: ExecutionLimits = Field(default_factory=ExecutionLimits)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    output_document_ids: list[str] = Field(default_factory=list)
    canvas_artifact_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Session:
        data = {k: v for k, v in record.items() if not k.startswith("_")}
        return cls(id=record["_id"], **data)


class ArtifactInput(BaseModel):
    """An artifact harvested from the blackboard, before it is stored."""

    type: ArtifactType = ArtifactType.DOCUMENT
    title: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Artifact(BaseModel):
    id: str
    artifact_id: str
    session_id: str
    workspace_id: str
    type: ArtifactType
    title: str
    content: str
    content_metadata: dict[str, Any] = Field(default_factory=dict)
    generated_by: str = "agent"
    created_at: int

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Artifact:
        data = {k: v for k, v in record.items() if not k.startswith("_")}
        return cls(id=record["_id"], **data)


class SessionState(BaseModel):
    session: Session
    artifacts: list[Artifact] = Field(default_factory=list)
    is_active: bool
