"""Message types exchanged with language models.

Agents build a :class:`ConversationHistory` of :class:`ChatMessage` objects;
:class:`~agentbox.core.interface.client.ModelClient` converts it to the
OpenAI-style chat format LiteLLM accepts and parses responses back.
"""

from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """A tool invocation requested by an assistant message."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    name: str
    arguments: dict[str, Any] = {}


class ChatMessage(BaseModel):
    """A single conversation message.

    Roles:
    - system: agent instructions
    - user: the request or delegated task
    - assistant: model output (may include tool_calls)
    - tool: a tool result (must include tool_call_id)
    """

    role: Literal["system", "user", "assistant", "tool"]
    text: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    metadata: dict[str, Any] = {}

    @classmethod
    def system(cls, text: str) -> "ChatMessage":
        return cls(role="system", text=text)

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        return cls(role="user", text=text)

    @classmethod
    def assistant(
        cls,
        text: str = "",
        tool_calls: list[ToolCall] | None = None,
        **metadata: Any,
    ) -> "ChatMessage":
        return cls(role="assistant", text=text, tool_calls=tool_calls, metadata=metadata)

    @classmethod
    def tool(cls, tool_call_id: str, text: str) -> "ChatMessage":
        return cls(role="tool", text=text, tool_call_id=tool_call_id)

    def to_openai(self) -> dict[str, Any]:
        """Return the OpenAI chat-completion representation of this message."""
        result: dict[str, Any] = {"role": self.role}
        if self.role == "tool":
            result["tool_call_id"] = self.tool_call_id
            result["content"] = self.text
            return result

        result["content"] = self.text or None
        if self.tool_calls:
            import json

            result["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                }
                for tc in self.tool_calls
            ]
        return result


class ConversationHistory(BaseModel):
    """An ordered sequence of messages forming a conversation."""

    messages: list[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        self.messages.append(message)

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):  # type: ignore[override]
        return iter(self.messages)


class TokenUsage(BaseModel):
    """Token counts reported by the provider for one or more calls."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class UsageTracker:
    """Accumulates token usage across every model call of a session."""

    def __init__(self) -> None:
        self.usage = TokenUsage()
        self.calls = 0

    def add(self, usage: dict[str, Any] | None) -> None:
        self.calls += 1
        if not usage:
            return
        self.usage.prompt_tokens += int(usage.get("prompt_tokens") or 0)
        self.usage.completion_tokens += int(usage.get("completion_tokens") or 0)
        self.usage.total_tokens += int(usage.get("total_tokens") or 0)

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens
