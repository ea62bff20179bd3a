"""Tool manifest models: the declarative description of a callable capability.

Manifests arrive as JSON from the tool registry (camelCase keys); they are
read-only inputs to the :class:`~agentbox.core.toolbus.bus.ToolBus`.

Example::

    {
      "id": "search_web",
      "name": "Web Search",
      "version": "1.0.0",
      "type": "api",
      "schema": {
        "description": "Search the web",
        "parameters": {
          "type": "object",
          "properties": {"query": {"type": "string"}},
          "required": ["query"]
        }
      },
      "metadata": {
        "endpoint": "https://tools.example.com/search",
        "apiKeyField": "SEARCH_API_KEY",
        "costEstimate": {"perRequest": 0.002, "currency": "USD"}
      }
    }
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ToolType(StrEnum):
    API = "api"
    MCP = "mcp"
    BUILTIN = "builtin"


class BuiltinTool(StrEnum):
    """The closed set of tools implemented inside the worker."""

    EXECUTE_PYTHON = "execute_python"
    GENERATE_DOCUMENT = "generate_document"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class RateLimit(_WireModel):
    requests_per_minute: int
    burst: int | None = None


class CostEstimate(_WireModel):
    per_request: float
    currency: str = "USD"


class ToolMetadata(_WireModel):
    description: str | None = None
    endpoint: str | None = None
    api_key_field: str | None = None
    rate_limit: RateLimit | None = None
    cost_estimate: CostEstimate | None = None


class ToolSchema(_WireModel):
    """Parameter schema plus documentation for a tool.

    A bare JSON-Schema object (``{"type": "object", "properties": ...}``) is
    accepted too and becomes ``parameters``.
    """

    description: str | None = None
    parameters: dict[str, Any] | None = None
    returns: dict[str, Any] | None = None
    examples: list[Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_bare_schema(cls, data: Any) -> Any:
        if isinstance(data, dict) and "parameters" not in data and (
            "type" in data or "properties" in data
        ):
            return {"parameters": data}
        return data


class ToolManifest(_WireModel):
    """Validated representation of a tool registry entry."""

    id: str
    name: str
    version: str = "1.0.0"
    type: ToolType
    schema_: ToolSchema = Field(default_factory=ToolSchema, alias="schema")
    metadata: ToolMetadata = Field(default_factory=ToolMetadata)
    is_enabled: bool = True
    is_public: bool = False

    @property
    def description(self) -> str:
        """Human/model-facing description, falling back to the display name."""
        return self.metadata.description or self.schema_.description or self.name
