"""Manifest loaders: one per :class:`ToolType`.

Each loader turns a manifest into a :class:`LoadedTool`: the parameter
schema shown to the model plus the raw async implementation.  Validation and
telemetry are layered on by the :class:`~agentbox.core.toolbus.bus.ToolBus`.

Failure timing differs by type on purpose:

* ``builtin`` tools are a closed set, so an unknown id fails at load time.
* ``mcp`` tools load fine and fail only when called, so a model that never
  calls them is not blocked.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from agentbox.core.toolbus import builtins
from agentbox.core.toolbus.models import BuiltinTool, ToolManifest, ToolType
from agentbox.errors import ConfigurationError, ToolExecutionError, UnimplementedError

if TYPE_CHECKING:
    from agentbox.core.blackboard.blackboard import Blackboard
    from agentbox.runtime.sandbox.executor import SandboxExecutor

logger = logging.getLogger(__name__)

ToolRunner = Callable[[dict[str, Any], "str | None"], Awaitable[Any]]


@dataclass
class LoaderContext:
    """Collaborators a loader may bind into the tools it produces."""

    session_id: str
    blackboard: Blackboard | None = None
    sandbox: SandboxExecutor | None = None
    http_timeout: float = 60.0


@dataclass
class LoadedTool:
    parameters: dict[str, Any] | None
    run: ToolRunner


def load_tool(manifest: ToolManifest, context: LoaderContext) -> LoadedTool:
    """Dispatch *manifest* to the loader for its type."""
    logger.debug("Loading %s tool %s v%s", manifest.type.value, manifest.id, manifest.version)
    match manifest.type:
        case ToolType.API:
            return load_api_tool(manifest, context)
        case ToolType.BUILTIN:
            return load_builtin_tool(manifest, context)
        case ToolType.MCP:
            return load_mcp_tool(manifest, context)


def load_api_tool(manifest: ToolManifest, context: LoaderContext) -> LoadedTool:
    """POST the validated arguments as JSON to ``metadata.endpoint``."""
    endpoint = manifest.metadata.endpoint
    if not endpoint:
        raise ConfigurationError(f"API tool {manifest.id} has no endpoint")
    api_key_field = manifest.metadata.api_key_field

    async def run(arguments: dict[str, Any], agent_id: str | None) -> Any:
        headers = {"Content-Type": "application/json"}
        if api_key_field and os.environ.get(api_key_field):
            headers["Authorization"] = f"Bearer {os.environ[api_key_field]}"

        async with httpx.AsyncClient(timeout=context.http_timeout) as client:
            response = await client.post(endpoint, headers=headers, json=arguments)

        if not response.is_success:
            body = response.text
            raise ToolExecutionError(
                manifest.id,
                f"API request failed with status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )
        return response.json()

    return LoadedTool(parameters=manifest.schema_.parameters, run=run)


def load_builtin_tool(manifest: ToolManifest, context: LoaderContext) -> LoadedTool:
    """Bind one of the closed set of built-in tools.

    Raises:
        ConfigurationError: If ``manifest.id`` is not a known built-in.
    """
    try:
        builtin = BuiltinTool(manifest.id)
    except ValueError:
        raise ConfigurationError(f"Builtin tool {manifest.id} not recognized") from None

    match builtin:
        case BuiltinTool.EXECUTE_PYTHON:
            sandbox = context.sandbox
            if sandbox is None:
                from agentbox.runtime.sandbox.local_sandbox import LocalSandbox

                sandbox = LocalSandbox()
            bound_sandbox = sandbox

            async def run_python(arguments: dict[str, Any], agent_id: str | None) -> Any:
                return await builtins.execute_python(bound_sandbox, arguments)

            return LoadedTool(parameters=builtins.EXECUTE_PYTHON_PARAMETERS, run=run_python)

        case BuiltinTool.GENERATE_DOCUMENT:

            async def run_document(arguments: dict[str, Any], agent_id: str | None) -> Any:
                return await builtins.generate_document(
                    context.blackboard, context.session_id, arguments, agent_id
                )

            return LoadedTool(parameters=builtins.GENERATE_DOCUMENT_PARAMETERS, run=run_document)


def load_mcp_tool(manifest: ToolManifest, context: LoaderContext) -> LoadedTool:
    """Register an MCP tool whose invocation is not supported yet."""

    async def run(arguments: dict[str, Any], agent_id: str | None) -> Any:
        raise UnimplementedError(
            f"MCP tool {manifest.id} cannot run: MCP tools are not implemented in the session worker"
        )

    return LoadedTool(parameters=manifest.schema_.parameters, run=run)
