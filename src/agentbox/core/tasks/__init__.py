"""Task/Plan store: delegation records, execution plans and tool telemetry."""

from agentbox.core.tasks.models import (
    AgentTask,
    ExecutionPlan,
    ExecutionStatus,
    PlanStatus,
    PlanStep,
    TaskStatus,
    ToolExecution,
)
from agentbox.core.tasks.planning import ready_steps, topological_order, validate_plan
from agentbox.core.tasks.store import TaskStore

__all__ = [
    "AgentTask",
    "ExecutionPlan",
    "ExecutionStatus",
    "PlanStatus",
    "PlanStep",
    "TaskStatus",
    "TaskStore",
    "ToolExecution",
    "ready_steps",
    "topological_order",
    "validate_plan",
]
