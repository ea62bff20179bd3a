"""Agent delegation: orchestrator, specialists and the tool-calling loop."""

from agentbox.core.agents.models import AgentConfig, SpecialistConfig
from agentbox.core.agents.orchestrator import Orchestrator
from agentbox.core.agents.specialist import Specialist
from agentbox.core.agents.tool_loop import run_tool_loop

__all__ = [
    "AgentConfig",
    "Orchestrator",
    "Specialist",
    "SpecialistConfig",
    "run_tool_loop",
]
