"""Model interface: LiteLLM client and conversation message types."""

from agentbox.core.interface.client import ModelClient
from agentbox.core.interface.config import ModelConfig
from agentbox.core.interface.models import (
    ChatMessage,
    ConversationHistory,
    TokenUsage,
    ToolCall,
    UsageTracker,
)

__all__ = [
    "ChatMessage",
    "ConversationHistory",
    "ModelClient",
    "ModelConfig",
    "TokenUsage",
    "ToolCall",
    "UsageTracker",
]
