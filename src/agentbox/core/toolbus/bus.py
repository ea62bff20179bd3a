"""ToolBus: turns tool manifests into validated, logged callables.

Usage::

    bus = ToolBus(session_id, TaskStore(store), blackboard=board)
    await bus.initialize(manifests)

    schemas = bus.tool_schemas()                       # for the model
    result = await bus.execute("search_web", {"query": "llm agents"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError

from agentbox.core.tasks.models import ExecutionStatus
from agentbox.core.toolbus.loaders import LoadedTool, LoaderContext, load_tool
from agentbox.core.toolbus.models import ToolManifest
from agentbox.core.toolbus.schema import CompiledSchema, compile_schema
from agentbox.core.toolbus.tool import Tool
from agentbox.errors import AgentBoxError, ToolExecutionError, ToolValidationError
from agentbox.utils.telemetry import (
    ATTR_AGENT_ID,
    ATTR_TOOL_NAME,
    ATTR_TOOL_STATUS,
    ATTR_TOOL_TYPE,
    get_tracer,
)

if TYPE_CHECKING:
    from agentbox.core.blackboard.blackboard import Blackboard
    from agentbox.core.tasks.store import TaskStore
    from agentbox.runtime.sandbox.executor import SandboxExecutor

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ToolBus:
    """Registry of the tools available to a session's agents.

    The registry maps manifest id to :class:`Tool`.  Every invocation of a
    registered tool:

    1. records a ``running`` execution to the execution log;
    2. validates arguments against the manifest's compiled schema;
    3. runs the tool;
    4. records exactly one terminal update (``success`` or ``error``).

    Logging failures are swallowed so they never replace the tool's own
    result or error.  Tool errors are re-raised after they are recorded.
    """

    def __init__(
        self,
        session_id: str,
        execution_log: TaskStore,
        *,
        blackboard: Blackboard | None = None,
        sandbox: SandboxExecutor | None = None,
    ) -> None:
        self.session_id = session_id
        self._execution_log = execution_log
        self._context = LoaderContext(session_id=session_id, blackboard=blackboard, sandbox=sandbox)
        self._tools: dict[str, Tool] = {}
        self._manifests: dict[str, ToolManifest] = {}
        self.total_cost = 0.0

    async def initialize(self, manifests: list[ToolManifest | dict[str, Any]]) -> None:
        """Load every manifest; a manifest that fails to load is logged and skipped."""
        for raw in manifests:
            manifest_id = raw.id if isinstance(raw, ToolManifest) else raw.get("id", "?")
            try:
                manifest = raw if isinstance(raw, ToolManifest) else ToolManifest.model_validate(raw)
                self._tools[manifest.id] = self._build_tool(manifest, load_tool(manifest, self._context))
                self._manifests[manifest.id] = manifest
            except Exception:
                logger.exception("Failed to load tool %s", manifest_id)

        logger.info("ToolBus loaded %d of %d tool(s)", len(self._tools), len(manifests))

    def registered_tools(self) -> dict[str, Tool]:
        """Return a copy of the registry keyed by manifest id."""
        return dict(self._tools)

    def tool_schemas(self) -> list[dict[str, Any]]:
        """Return all registered tools as OpenAI function schemas."""
        return [tool.to_openai() for tool in self._tools.values()]

    def manifest(self, tool_id: str) -> ToolManifest | None:
        return self._manifests.get(tool_id)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def execute(
        self, tool_id: str, arguments: dict[str, Any], *, agent_id: str | None = None
    ) -> Any:
        """Invoke a registered tool by id.

        Raises:
            KeyError: If no tool with *tool_id* is registered.
        """
        return await self._tools[tool_id](arguments, agent_id=agent_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_tool(self, manifest: ToolManifest, loaded: LoadedTool) -> Tool:
        compiled = compile_schema(loaded.parameters, name=manifest.id)

        async def handler(arguments: dict[str, Any], agent_id: str | None) -> Any:
            return await self._invoke(manifest, compiled, loaded, arguments, agent_id)

        tool = Tool(name=manifest.id, description=manifest.description, handler=handler)
        if loaded.parameters is not None:
            tool.parameters = loaded.parameters
        return tool

    async def _invoke(
        self,
        manifest: ToolManifest,
        compiled: CompiledSchema,
        loaded: LoadedTool,
        arguments: dict[str, Any],
        agent_id: str | None,
    ) -> Any:
        execution_id = uuid4().hex
        with _tracer.start_as_current_span("tool.execute") as span:
            span.set_attribute(ATTR_TOOL_NAME, manifest.id)
            span.set_attribute(ATTR_TOOL_TYPE, manifest.type.value)
            if agent_id:
                span.set_attribute(ATTR_AGENT_ID, agent_id)

            identity: dict[str, Any] = {
                "tool_id": manifest.id,
                "tool_name": manifest.name,
                "input": arguments,
                "agent_id": agent_id,
            }
            await self._record(execution_id, ExecutionStatus.RUNNING, **identity)

            try:
                try:
                    validated = compiled.validate(arguments)
                except ValidationError as exc:
                    raise ToolValidationError(manifest.id, str(exc)) from exc
                result = await loaded.run(validated, agent_id)
            except Exception as exc:
                span.set_attribute(ATTR_TOOL_STATUS, ExecutionStatus.ERROR.value)
                await self._record(
                    execution_id, ExecutionStatus.ERROR, error=str(exc), **identity
                )
                logger.warning("Tool %s failed: %s", manifest.id, exc)
                if isinstance(exc, AgentBoxError):
                    raise
                raise ToolExecutionError(manifest.id, str(exc)) from exc

            span.set_attribute(ATTR_TOOL_STATUS, ExecutionStatus.SUCCESS.value)
            await self._record(execution_id, ExecutionStatus.SUCCESS, output=result, **identity)

        cost = manifest.metadata.cost_estimate
        if cost is not None:
            self.total_cost += cost.per_request
        return result

    async def _record(self, execution_id: str, status: ExecutionStatus, **fields: Any) -> None:
        try:
            await self._execution_log.record_tool_execution(
                self.session_id, execution_id, status, **fields
            )
        except Exception as exc:
            logger.warning(
                "Failed to record %s for tool execution %s: %s", status.value, execution_id, exc
            )
