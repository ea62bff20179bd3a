"""Shared helpers for end-to-end tests."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock


def make_mock_litellm_response(
    content: str = "",
    tool_calls: list[Any] | None = None,
    finish_reason: str = "stop",
    model: str = "openai/gpt-4o",
    total_tokens: int = 30,
) -> MagicMock:
    """Create a ``MagicMock`` matching LiteLLM's response structure.

    The mock mirrors ``choices[0].message`` with content, tool_calls,
    plus top-level ``usage`` and ``model`` attributes.
    """
    message = MagicMock()
    message.content = content or None
    message.tool_calls = tool_calls

    choice = MagicMock()
    choice.message = message
    choice.finish_reason = finish_reason

    usage = MagicMock()
    usage.prompt_tokens = total_tokens // 3
    usage.completion_tokens = total_tokens - total_tokens // 3
    usage.total_tokens = total_tokens

    response = MagicMock()
    response.choices = [choice]
    response.usage = usage
    response.model = model

    return response


def make_tool_call(name: str, arguments: dict[str, Any], call_id: str = "call-1") -> MagicMock:
    """Create a LiteLLM-style tool call with JSON-encoded arguments."""
    tool_call = MagicMock()
    tool_call.id = call_id
    tool_call.function.name = name
    tool_call.function.arguments = json.dumps(arguments)
    return tool_call
