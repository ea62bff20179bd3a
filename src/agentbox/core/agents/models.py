"""Agent configuration models."""

from pydantic import BaseModel, Field

DEFAULT_INSTRUCTIONS = "You are a helpful AI assistant."
DEFAULT_MAX_TOOL_ROUNDS = 10


class SpecialistConfig(BaseModel):
    """One specialist: a name the orchestrator delegates to, a model and its instructions."""

    name: str
    model: str
    instructions: str
    tools: list[str] = Field(default_factory=list)


class AgentConfig(BaseModel):
    """Orchestrator configuration for a session.

    ``tools`` lists the manifest ids the session enabled; ``sub_agents`` are
    the specialists registered with the orchestrator.
    """

    model: str = "gpt-4o"
    temperature: float | None = None
    max_tokens: int | None = None
    instructions: str = DEFAULT_INSTRUCTIONS
    tools: list[str] = Field(default_factory=list)
    sub_agents: list[SpecialistConfig] = Field(default_factory=list)


DEFAULT_SUB_AGENTS: list[SpecialistConfig] = [
    SpecialistConfig(
        name="researcher",
        model="gpt-4o",
        instructions="You are a research specialist. Find facts and verify information.",
    ),
    SpecialistConfig(
        name="writer",
        model="gpt-4o",
        instructions="You are a content creation specialist. Write clear and engaging reports.",
    ),
]
