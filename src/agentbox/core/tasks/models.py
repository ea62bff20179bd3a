"""Task, plan and tool-execution records."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class TaskStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class PlanStatus(StrEnum):
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionStatus(StrEnum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class _Record(BaseModel):
    id: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]):  # type: ignore[no-untyped-def]
        data = {k: v for k, v in record.items() if not k.startswith("_")}
        return cls(id=record.get("_id"), **data)


class AgentTask(_Record):
    """One delegation from an orchestrator to a specialist."""

    session_id: str
    task_id: str
    delegated_from: str | None = None
    delegated_to: str
    task: str
    context: Any = None
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    error: str | None = None
    created_at: int
    completed_at: int | None = None


class PlanStep(BaseModel):
    """A single step of an :class:`ExecutionPlan`."""

    id: str
    description: str
    agent_id: str
    task: str
    dependencies: list[str] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    error: str | None = None


class ExecutionPlan(_Record):
    """A dependency graph of delegated steps for a session."""

    session_id: str
    plan_id: str
    description: str
    steps: list[PlanStep] = []
    status: PlanStatus = PlanStatus.PLANNING
    created_at: int
    updated_at: int


class ToolExecution(_Record):
    """Telemetry record of one tool invocation."""

    session_id: str
    execution_id: str
    tool_id: str
    tool_name: str
    status: ExecutionStatus
    input: Any = None
    output: Any = None
    error: str | None = None
    start_time: int
    end_time: int | None = None
    duration: int | None = None
    agent_id: str | None = None
