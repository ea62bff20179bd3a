"""Tool: a named, schema-described async callable exposed to a model."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

ToolHandler = Callable[[dict[str, Any], "str | None"], Awaitable[Any]]

_EMPTY_PARAMETERS: dict[str, Any] = {"type": "object", "properties": {}}


@dataclass
class Tool:
    """A callable the model can request by ``name``.

    ``handler`` receives the raw arguments the model produced and the id of
    the calling agent.
    """

    name: str
    description: str
    handler: ToolHandler
    parameters: dict[str, Any] = field(default_factory=lambda: dict(_EMPTY_PARAMETERS))

    async def __call__(self, arguments: dict[str, Any], *, agent_id: str | None = None) -> Any:
        return await self.handler(arguments, agent_id)

    def to_openai(self) -> dict[str, Any]:
        """Return this tool as an OpenAI-compatible function schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
