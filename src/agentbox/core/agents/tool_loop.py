"""Sequential tool-calling loop shared by every agent.

Each round sends the conversation plus tool schemas to the model.  Tool calls
in a response run one at a time, in the order the model issued them, and
their results are appended as ``tool`` messages before the next round.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from agentbox.core.agents.models import DEFAULT_MAX_TOOL_ROUNDS
from agentbox.core.interface.models import ChatMessage

if TYPE_CHECKING:
    from agentbox.core.interface.client import ModelClient
    from agentbox.core.interface.models import ConversationHistory
    from agentbox.core.toolbus.tool import Tool

logger = logging.getLogger(__name__)


def encode_result(result: Any) -> str:
    """Render a tool result as the text of a ``tool`` message."""
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)


async def run_tool_loop(
    client: ModelClient,
    history: ConversationHistory,
    tools: list[Tool],
    *,
    agent_name: str = "agent",
    max_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
) -> str:
    """Drive *client* until it answers without tool calls.

    Args:
        client: Model used for every round.
        history: Conversation to extend in place.
        tools: Tools the model may call, looked up by ``name``.
        agent_name: Passed to tools as the calling agent id.
        max_rounds: Upper bound on model calls.

    Returns:
        The text of the last assistant message.

    Exceptions raised by tools propagate to the caller.
    """
    by_name = {tool.name: tool for tool in tools}
    schemas = [tool.to_openai() for tool in tools] or None

    text = ""
    for round_number in range(1, max_rounds + 1):
        response = await client.generate(history, tools=schemas)
        history.append(response)
        text = response.text

        if not response.tool_calls:
            return text

        for call in response.tool_calls:
            tool = by_name.get(call.name)
            if tool is None:
                logger.warning("[%s] model requested unknown tool %s", agent_name, call.name)
                content = f'Error: Tool "{call.name}" not found.'
            else:
                logger.debug("[%s] round %d: calling %s", agent_name, round_number, call.name)
                content = encode_result(await tool(call.arguments, agent_id=agent_name))
            history.append(ChatMessage.tool(call.id, content))

    logger.warning("[%s] tool loop stopped after %d rounds", agent_name, max_rounds)
    return text
