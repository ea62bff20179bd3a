"""Tool Bus: manifest-driven tool loading, validation and execution telemetry."""

from agentbox.core.toolbus.bus import ToolBus
from agentbox.core.toolbus.models import (
    BuiltinTool,
    CostEstimate,
    RateLimit,
    ToolManifest,
    ToolMetadata,
    ToolSchema,
    ToolType,
)
from agentbox.core.toolbus.schema import CompiledSchema, compile_schema
from agentbox.core.toolbus.tool import Tool

__all__ = [
    "BuiltinTool",
    "CompiledSchema",
    "CostEstimate",
    "RateLimit",
    "Tool",
    "ToolBus",
    "ToolManifest",
    "ToolMetadata",
    "ToolSchema",
    "ToolType",
    "compile_schema",
]
