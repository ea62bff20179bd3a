"""ModelClient: unified async interface to LLMs via LiteLLM.

Wraps LiteLLM behind :class:`ChatMessage` / :class:`ConversationHistory` so
agents never touch provider payloads.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import litellm

from agentbox.core.interface.config import ModelConfig  # noqa: TC001
from agentbox.core.interface.models import (
    ChatMessage,
    ConversationHistory,
    ToolCall,
    UsageTracker,
)
from agentbox.errors import UnimplementedError
from agentbox.utils.telemetry import (
    ATTR_FINISH_REASON,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_TOKENS_COMPLETION,
    ATTR_TOKENS_PROMPT,
    ATTR_TOKENS_TOTAL,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ModelClient:
    """Async client for generating LLM responses via LiteLLM.

    Usage::

        client = ModelClient(ModelConfig(model="gpt-4o"))
        response = await client.generate(history, tools=schemas)
    """

    def __init__(self, config: ModelConfig, usage: UsageTracker | None = None) -> None:
        self.config = config
        self.usage = usage

    async def generate(
        self,
        messages: ConversationHistory,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> ChatMessage:
        """Generate one assistant message from the configured model.

        Args:
            messages: The conversation so far.
            tools: Optional tool definitions in OpenAI function schema format.
            **kwargs: Additional parameters passed to LiteLLM.
        """
        with _tracer.start_as_current_span("model.generate") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            span.set_attribute(ATTR_PROVIDER, self.config.provider)

            call_kwargs: dict[str, Any] = {
                "model": self.config.model,
                "messages": [m.to_openai() for m in messages],
                **self.config.extra,
            }
            if self.config.api_key:
                call_kwargs["api_key"] = self.config.api_key
            if self.config.api_base:
                call_kwargs["api_base"] = self.config.api_base
            if self.config.temperature is not None:
                call_kwargs["temperature"] = self.config.temperature
            if self.config.max_tokens is not None:
                call_kwargs["max_tokens"] = self.config.max_tokens
            if tools:
                call_kwargs["tools"] = tools
            call_kwargs.update(kwargs)

            logger.debug("Generating with %s (%d messages)", self.config.model, len(messages))
            response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
            result = self._parse_response(response)

            usage: dict[str, Any] | None = result.metadata.get("usage")
            if isinstance(usage, dict):
                span.set_attribute(ATTR_TOKENS_PROMPT, int(usage.get("prompt_tokens", 0)))
                span.set_attribute(ATTR_TOKENS_COMPLETION, int(usage.get("completion_tokens", 0)))
                span.set_attribute(ATTR_TOKENS_TOTAL, int(usage.get("total_tokens", 0)))
            finish_reason = result.metadata.get("finish_reason")
            if finish_reason is not None:
                span.set_attribute(ATTR_FINISH_REASON, str(finish_reason))

            if self.usage is not None:
                self.usage.add(usage)

            return result

    async def stream(
        self,
        messages: ConversationHistory,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Streaming generation is not supported by the session backend."""
        raise UnimplementedError(f"Streaming is not implemented for model {self.config.model}")
        yield ""  # pragma: no cover

    def _parse_response(self, response: Any) -> ChatMessage:
        """Convert a LiteLLM (OpenAI-compatible) response to a ChatMessage."""
        message = response.choices[0].message

        tool_calls: list[ToolCall] | None = None
        if message.tool_calls:
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=_parse_arguments(tc.function.arguments),
                )
                for tc in message.tool_calls
            ]

        metadata: dict[str, Any] = {}
        if getattr(response, "usage", None):
            metadata["usage"] = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        metadata["finish_reason"] = response.choices[0].finish_reason
        metadata["model"] = response.model

        return ChatMessage.assistant(message.content or "", tool_calls, **metadata)


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    """Parse JSON string arguments from a tool call."""
    try:
        result = json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    if not isinstance(result, dict):
        return {"raw": raw}
    return result
