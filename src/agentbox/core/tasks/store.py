"""TaskStore: delegated task lifecycle, execution plans and tool telemetry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentbox.core.store.schema import AGENT_TASKS, EXECUTION_PLANS, TOOL_EXECUTIONS
from agentbox.core.tasks.models import (
    AgentTask,
    ExecutionPlan,
    ExecutionStatus,
    PlanStatus,
    PlanStep,
    TaskStatus,
    ToolExecution,
)
from agentbox.errors import NotFoundError
from agentbox.utils import clock

if TYPE_CHECKING:
    from agentbox.core.store.backend import DurableStore

logger = logging.getLogger(__name__)


class TaskStore:
    """Persistence for :class:`AgentTask`, :class:`ExecutionPlan` and
    :class:`ToolExecution` records of a :class:`DurableStore`.
    """

    def __init__(self, store: DurableStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Agent tasks
    # ------------------------------------------------------------------

    async def create_task(
        self,
        session_id: str,
        task_id: str,
        delegated_to: str,
        task: str,
        *,
        delegated_from: str | None = None,
        context: Any = None,
    ) -> str:
        """Insert a new ``pending`` task and return its document id."""
        return await self._store.insert(
            AGENT_TASKS,
            {
                "session_id": session_id,
                "task_id": task_id,
                "delegated_from": delegated_from,
                "delegated_to": delegated_to,
                "task": task,
                "context": context,
                "status": TaskStatus.PENDING.value,
                "created_at": clock.now_ms(),
            },
        )

    async def update_task_status(
        self,
        session_id: str,
        task_id: str,
        status: TaskStatus | str,
        result: Any = None,
        error: str | None = None,
    ) -> None:
        """Move a task to *status*.

        Terminal statuses also stamp ``completed_at`` and persist ``result``
        and ``error``; other transitions only change ``status``.

        Raises:
            NotFoundError: If no task matches ``(session_id, task_id)``.
        """
        status = TaskStatus(status)
        existing = await self._find_task(session_id, task_id)
        if existing is None:
            raise NotFoundError("Task", task_id)

        update: dict[str, Any] = {"status": status.value}
        if status.is_terminal:
            update["completed_at"] = clock.now_ms()
            update["result"] = result
            update["error"] = error

        await self._store.patch(existing["_id"], update)

    async def get_task(self, session_id: str, task_id: str) -> AgentTask | None:
        record = await self._find_task(session_id, task_id)
        return AgentTask.from_record(record) if record is not None else None

    async def list_tasks(self, session_id: str) -> list[AgentTask]:
        records = await self._store.query(AGENT_TASKS).by_index(
            "by_session", session_id=session_id
        ).collect()
        return [AgentTask.from_record(r) for r in records]

    async def _find_task(self, session_id: str, task_id: str) -> dict[str, Any] | None:
        return await self._store.query(AGENT_TASKS).by_index(
            "by_session_task", session_id=session_id, task_id=task_id
        ).first()

    # ------------------------------------------------------------------
    # Execution plans
    # ------------------------------------------------------------------

    async def save_execution_plan(
        self,
        session_id: str,
        plan_id: str,
        description: str,
        steps: list[PlanStep],
        status: PlanStatus | str = PlanStatus.PLANNING,
    ) -> str:
        """Create or wholesale-replace a plan (last writer wins).

        Steps are not merged and the dependency graph is not validated here;
        see :func:`agentbox.core.tasks.planning.validate_plan`.
        """
        now = clock.now_ms()
        fields: dict[str, Any] = {
            "description": description,
            "steps": [s.model_dump(mode="json") for s in steps],
            "status": PlanStatus(status).value,
            "updated_at": now,
        }
        existing = await self._store.query(EXECUTION_PLANS).by_index(
            "by_session_plan", session_id=session_id, plan_id=plan_id
        ).first()

        if existing is not None:
            doc_id: str = existing["_id"]
            await self._store.patch(doc_id, fields)
            return doc_id

        return await self._store.insert(
            EXECUTION_PLANS,
            {"session_id": session_id, "plan_id": plan_id, "created_at": now, **fields},
        )

    async def get_execution_plan(
        self, session_id: str, plan_id: str | None = None
    ) -> ExecutionPlan | None:
        """Return a plan by id, or the most recently created plan of the session."""
        query = self._store.query(EXECUTION_PLANS)
        if plan_id is not None:
            query = query.by_index("by_session_plan", session_id=session_id, plan_id=plan_id)
        else:
            query = query.by_index("by_session", session_id=session_id).order("desc")
        record = await query.first()
        return ExecutionPlan.from_record(record) if record is not None else None

    # ------------------------------------------------------------------
    # Tool executions
    # ------------------------------------------------------------------

    async def record_tool_execution(
        self,
        session_id: str,
        execution_id: str,
        status: ExecutionStatus | str,
        *,
        tool_id: str = "",
        tool_name: str = "",
        input: Any = None,
        output: Any = None,
        error: str | None = None,
        agent_id: str | None = None,
    ) -> str:
        """Upsert a tool execution keyed by ``(session_id, execution_id)``.

        The first call inserts the record and stamps ``start_time``.  A later
        call with a terminal status stamps ``end_time`` and computes
        ``duration = end_time - start_time``.  A terminal status with no
        prior ``running`` record is inserted already finished, with
        ``end_time = start_time`` and ``duration = 0``.
        """
        status = ExecutionStatus(status)
        now = clock.now_ms()
        existing = await self._store.query(TOOL_EXECUTIONS).by_index(
            "by_session_execution", session_id=session_id, execution_id=execution_id
        ).first()

        if existing is not None:
            doc_id: str = existing["_id"]
            end_time = now if status is not ExecutionStatus.RUNNING else None
            duration = end_time - existing["start_time"] if end_time is not None else None
            await self._store.patch(
                doc_id,
                {
                    "status": status.value,
                    "output": output,
                    "error": error,
                    "end_time": end_time,
                    "duration": duration,
                },
            )
            return doc_id

        terminal = status is not ExecutionStatus.RUNNING
        return await self._store.insert(
            TOOL_EXECUTIONS,
            {
                "session_id": session_id,
                "execution_id": execution_id,
                "tool_id": tool_id,
                "tool_name": tool_name or tool_id,
                "status": status.value,
                "input": input,
                "output": output,
                "error": error,
                "start_time": now,
                "end_time": now if terminal else None,
                "duration": 0 if terminal else None,
                "agent_id": agent_id,
            },
        )

    async def list_tool_executions(self, session_id: str) -> list[ToolExecution]:
        records = await self._store.query(TOOL_EXECUTIONS).by_index(
            "by_session", session_id=session_id
        ).collect()
        return [ToolExecution.from_record(r) for r in records]
