"""SessionStore: durable session records and their artifacts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from agentbox.core.agents.models import AgentConfig
from agentbox.core.store.schema import ARTIFACTS, SESSIONS
from agentbox.core.toolbus.models import ToolManifest
from agentbox.errors import NotFoundError, SessionStateError
from agentbox.session.models import (
    SESSION_TTL_MS,
    Artifact,
    ArtifactInput,
    ArtifactType,
    ExecutionLimits,
    Session,
    SessionMode,
    SessionState,
    SessionStatus,
)
from agentbox.utils import clock

if TYPE_CHECKING:
    from agentbox.core.store.backend import DurableStore

logger = logging.getLogger(__name__)


class SessionStore:
    """Session lifecycle persistence on top of a :class:`DurableStore`.

    A session id is the store document id of its record.  Once a session
    reaches ``completed`` or ``failed`` its status can no longer change.
    """

    def __init__(self, store: DurableStore) -> None:
        self._store = store

    async def create_session(
        self,
        workspace_id: str,
        user_id: str,
        title: str,
        *,
        mode: SessionMode | str = SessionMode.CUSTOM,
        agent_config: AgentConfig | None = None,
        tool_manifests: list[ToolManifest] | None = None,
        execution_limits: ExecutionLimits | None = None,
    ) -> str:
        """Insert an ``initializing`` session that expires 24 hours from now."""
        now = clock.now_ms()
        manifests = [m for m in (tool_manifests or []) if m.is_enabled]
        return await self._store.insert(
            SESSIONS,
            {
                "workspace_id": workspace_id,
                "user_id": user_id,
                "title": title,
                "mode": SessionMode(mode).value,
                "status": SessionStatus.INITIALIZING.value,
                "created_at": now,
                "expires_at": now + SESSION_TTL_MS,
                "agent_config": (agent_config or AgentConfig()).model_dump(mode="json"),
                "tool_manifests": [m.model_dump(mode="json", by_alias=True) for m in manifests],
                "execution_limits": (execution_limits or ExecutionLimits()).model_dump(mode="json"),
                "metadata": {"total_tokens_used": 0, "total_cost": 0.0},
                "output_document_ids": [],
                "canvas_artifact_ids": [],
            },
        )

    async def get_session(self, session_id: str) -> Session | None:
        record = await self._store.get(session_id)
        return Session.from_record(record) if record is not None else None

    async def update_session_status(
        self,
        session_id: str,
        status: SessionStatus | str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Set the session status and shallow-merge *metadata*.

        ``started_at`` is stamped the first time the session enters
        ``running``; ``completed_at`` when it enters a terminal status.

        Raises:
            NotFoundError: If the session does not exist.
            SessionStateError: If the session is already terminal.
        """
        status = SessionStatus(status)
        record = await self._require(session_id)
        current = SessionStatus(record["status"])
        if current.is_terminal:
            raise SessionStateError(
                f"Session {session_id} is {current.value}; cannot move to {status.value}"
            )

        update: dict[str, Any] = {"status": status.value}
        if status is SessionStatus.RUNNING and not record.get("started_at"):
            update["started_at"] = clock.now_ms()
        elif status.is_terminal:
            update["completed_at"] = clock.now_ms()
        if metadata:
            update["metadata"] = {**(record.get("metadata") or {}), **metadata}

        await self._store.patch(session_id, update)

    async def sync_session_results(
        self,
        session_id: str,
        artifacts: list[ArtifactInput],
        final_metadata: dict[str, Any],
    ) -> list[str]:
        """Store harvested artifacts and merge the final metadata.

        Document and canvas artifact ids are recorded on the session.  The
        session status is left untouched.

        Returns:
            The document ids of the inserted artifacts, in input order.
        """
        record = await self._require(session_id)
        now = clock.now_ms()

        artifact_ids: list[str] = []
        for artifact in artifacts:
            artifact_ids.append(
                await self._store.insert(
                    ARTIFACTS,
                    {
                        "session_id": session_id,
                        "workspace_id": record["workspace_id"],
                        "artifact_id": uuid4().hex,
                        "type": artifact.type.value,
                        "title": artifact.title,
                        "content": artifact.content,
                        "content_metadata": artifact.metadata,
                        "generated_by": "agent",
                        "created_at": now,
                    },
                )
            )

        def ids_of(kind: ArtifactType) -> list[str]:
            return [doc_id for doc_id, a in zip(artifact_ids, artifacts) if a.type is kind]

        await self._store.patch(
            session_id,
            {
                "output_document_ids": [
                    *record.get("output_document_ids", []),
                    *ids_of(ArtifactType.DOCUMENT),
                ],
                "canvas_artifact_ids": [
                    *record.get("canvas_artifact_ids", []),
                    *ids_of(ArtifactType.CANVAS),
                ],
                "metadata": {**(record.get("metadata") or {}), **final_metadata},
            },
        )
        logger.info("Synced %d artifact(s) for session %s", len(artifact_ids), session_id)
        return artifact_ids

    async def get_session_state(self, session_id: str) -> SessionState | None:
        """Return the session with its artifacts (newest first), or ``None``."""
        record = await self._store.get(session_id)
        if record is None:
            return None
        session = Session.from_record(record)
        artifacts = await self._store.query(ARTIFACTS).by_index(
            "by_session", session_id=session_id
        ).order("desc").collect()
        return SessionState(
            session=session,
            artifacts=[Artifact.from_record(a) for a in artifacts],
            is_active=session.status.is_active,
        )

    async def list_sessions(self, workspace_id: str, limit: int = 50) -> list[Session]:
        records = await self._store.query(SESSIONS).by_index(
            "by_workspace", workspace_id=workspace_id
        ).order("desc").take(limit)
        return [Session.from_record(r) for r in records]

    async def _require(self, session_id: str) -> dict[str, Any]:
        record = await self._store.get(session_id)
        if record is None:
            raise NotFoundError("Session", session_id)
        return record
