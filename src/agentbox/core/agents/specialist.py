"""Specialist: a single-purpose agent invoked only through delegation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentbox.core.agents.models import DEFAULT_MAX_TOOL_ROUNDS
from agentbox.core.agents.tool_loop import run_tool_loop
from agentbox.core.interface.models import ChatMessage, ConversationHistory

if TYPE_CHECKING:
    from agentbox.core.agents.models import SpecialistConfig
    from agentbox.core.interface.client import ModelClient
    from agentbox.core.toolbus.tool import Tool


class Specialist:
    """An agent bound to one model and one instruction set.

    Usage::

        writer = Specialist(SpecialistConfig(name="writer", ...), client)
        text = await writer.run("Summarise the findings")
    """

    def __init__(
        self,
        config: SpecialistConfig,
        client: ModelClient,
        tools: list[Tool] | None = None,
        *,
        max_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        self.config = config
        self.client = client
        self.tools = list(tools or [])
        self.max_rounds = max_rounds

    @property
    def name(self) -> str:
        return self.config.name

    async def run(self, task: str) -> str:
        history = ConversationHistory(
            messages=[ChatMessage.system(self.config.instructions), ChatMessage.user(task)]
        )
        return await run_tool_loop(
            self.client,
            history,
            self.tools,
            agent_name=self.name,
            max_rounds=self.max_rounds,
        )
