"""Blackboard data models."""

from typing import Any

from pydantic import BaseModel

ARTIFACTS_NAMESPACE = "artifacts"


class BlackboardEntry(BaseModel):
    """A single value on the session blackboard.

    Unique by ``(session_id, namespace, key)``.
    """

    id: str | None = None
    session_id: str
    namespace: str
    key: str
    value: Any = None
    agent_id: str | None = None
    metadata: dict[str, Any] = {}
    created_at: int
    updated_at: int

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "BlackboardEntry":
        data = {k: v for k, v in record.items() if not k.startswith("_")}
        return cls(id=record.get("_id"), **data)
