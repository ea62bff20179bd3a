"""Orchestrator: decomposes a user request and delegates to specialists.

The orchestrator sees every Tool Bus tool plus two of its own:

* ``delegate_task(agentId, task)`` runs a registered :class:`Specialist` and
  tracks the delegation as an :class:`~agentbox.core.tasks.models.AgentTask`;
* ``query_blackboard(query, namespace?)`` searches the session blackboard.

Delegation is sequential and blocking: the loop waits for the specialist to
finish before the model continues.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from agentbox.core.agents.models import DEFAULT_INSTRUCTIONS, DEFAULT_MAX_TOOL_ROUNDS
from agentbox.core.agents.tool_loop import run_tool_loop
from agentbox.core.interface.models import ChatMessage, ConversationHistory
from agentbox.core.tasks.models import TaskStatus
from agentbox.core.toolbus.tool import Tool
from agentbox.utils.telemetry import ATTR_AGENT_ID, ATTR_DELEGATE_TO, ATTR_SESSION_ID, get_tracer

if TYPE_CHECKING:
    from agentbox.core.agents.specialist import Specialist
    from agentbox.core.blackboard.blackboard import Blackboard
    from agentbox.core.interface.client import ModelClient
    from agentbox.core.tasks.store import TaskStore
    from agentbox.core.toolbus.bus import ToolBus

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DELEGATE_TASK = "delegate_task"
QUERY_BLACKBOARD = "query_blackboard"

DELEGATE_TASK_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "agentId": {"type": "string", "description": "ID of the agent to delegate to"},
        "task": {"type": "string", "description": "Detailed task description"},
    },
    "required": ["agentId", "task"],
}

QUERY_BLACKBOARD_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Search pattern"},
        "namespace": {"type": "string", "description": "Restrict the search to one namespace"},
    },
    "required": ["query"],
}


class Orchestrator:
    """Top-level agent of a session; owns the specialist registry.

    Usage::

        orchestrator = Orchestrator(
            session_id, client, bus, blackboard, tasks,
            specialists={"researcher": researcher},
        )
        orchestrator.register_specialist(writer)
        answer = await orchestrator.run("Write a report on solid-state batteries")
    """

    def __init__(
        self,
        session_id: str,
        client: ModelClient,
        bus: ToolBus,
        blackboard: Blackboard,
        tasks: TaskStore,
        *,
        name: str = "orchestrator",
        instructions: str = DEFAULT_INSTRUCTIONS,
        specialists: dict[str, Specialist] | None = None,
        max_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        self.session_id = session_id
        self.client = client
        self.bus = bus
        self.blackboard = blackboard
        self.tasks = tasks
        self.name = name
        self.instructions = instructions
        self.specialists: dict[str, Specialist] = dict(specialists or {})
        self.max_rounds = max_rounds

    def register_specialist(self, specialist: Specialist) -> None:
        """Add (or replace) a specialist under its name."""
        self.specialists[specialist.name] = specialist

    def tools(self) -> list[Tool]:
        """Every tool the orchestrator's model may call."""
        return [
            *self.bus.registered_tools().values(),
            Tool(
                name=DELEGATE_TASK,
                description="Delegate a specific task to a specialized sub-agent",
                handler=self._delegate_handler,
                parameters=DELEGATE_TASK_PARAMETERS,
            ),
            Tool(
                name=QUERY_BLACKBOARD,
                description="Search the session blackboard for existing information",
                handler=self._query_handler,
                parameters=QUERY_BLACKBOARD_PARAMETERS,
            ),
        ]

    async def run(self, user_request: str) -> str:
        """Answer *user_request*, delegating as the model decides."""
        history = ConversationHistory(
            messages=[ChatMessage.system(self.instructions), ChatMessage.user(user_request)]
        )
        return await run_tool_loop(
            self.client,
            history,
            self.tools(),
            agent_name=self.name,
            max_rounds=self.max_rounds,
        )

    async def delegate_task(self, agent_id: str, task: str) -> str:
        """Run *task* on the specialist *agent_id*.

        An unknown agent yields an error string (no task is recorded) so the
        model can recover.  A specialist failure marks the task ``failed``
        and propagates.
        """
        specialist = self.specialists.get(agent_id)
        if specialist is None:
            logger.warning("Delegation to unknown agent %s", agent_id)
            return f'Error: Agent "{agent_id}" not found.'

        task_id = uuid4().hex
        with _tracer.start_as_current_span("agent.delegate") as span:
            span.set_attribute(ATTR_SESSION_ID, self.session_id)
            span.set_attribute(ATTR_AGENT_ID, self.name)
            span.set_attribute(ATTR_DELEGATE_TO, agent_id)

            await self.tasks.create_task(
                self.session_id, task_id, agent_id, task, delegated_from=self.name
            )
            logger.info("Delegated task %s to %s", task_id, agent_id)

            try:
                result = await specialist.run(task)
            except Exception as exc:
                await self.tasks.update_task_status(
                    self.session_id, task_id, TaskStatus.FAILED, error=str(exc)
                )
                raise

            await self.tasks.update_task_status(
                self.session_id, task_id, TaskStatus.COMPLETED, result=result
            )
            return result

    async def query_blackboard(self, query: str, namespace: str | None = None) -> list[dict[str, Any]]:
        entries = await self.blackboard.search(self.session_id, namespace=namespace, pattern=query)
        return [entry.model_dump(mode="json") for entry in entries]

    async def _delegate_handler(self, arguments: dict[str, Any], agent_id: str | None) -> str:
        return await self.delegate_task(str(arguments.get("agentId", "")), str(arguments.get("task", "")))

    async def _query_handler(self, arguments: dict[str, Any], agent_id: str | None) -> list[dict[str, Any]]:
        return await self.query_blackboard(str(arguments.get("query", "")), arguments.get("namespace"))
