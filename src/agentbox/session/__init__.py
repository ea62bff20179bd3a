"""Session lifecycle: durable session records, the manager and the event bridge."""

from agentbox.session.bridge import AgentEvent, SessionEventBridge
from agentbox.session.manager import SessionManager, SessionManagerConfig, harvest_artifact
from agentbox.session.models import (
    Artifact,
    ArtifactType,
    ExecutionLimits,
    Session,
    SessionMode,
    SessionState,
    SessionStatus,
)
from agentbox.session.settings import WorkerSettings
from agentbox.session.store import SessionStore

__all__ = [
    "AgentEvent",
    "Artifact",
    "ArtifactType",
    "ExecutionLimits",
    "Session",
    "SessionEventBridge",
    "SessionManager",
    "SessionManagerConfig",
    "SessionMode",
    "SessionState",
    "SessionStatus",
    "SessionStore",
    "WorkerSettings",
    "harvest_artifact",
]
