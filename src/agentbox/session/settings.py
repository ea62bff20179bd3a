"""Worker settings read from the process environment."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError

from agentbox.core.agents.models import DEFAULT_INSTRUCTIONS, DEFAULT_SUB_AGENTS, AgentConfig, SpecialistConfig
from agentbox.errors import ConfigurationError
from agentbox.session.manager import SessionManagerConfig

REQUIRED_VARIABLES: tuple[str, ...] = (
    "SESSION_ID",
    "WORKSPACE_ID",
    "CONVEX_URL",
    "USER_REQUEST",
    "AUTH_TOKEN",
)


class MissingVariablesError(ConfigurationError):
    """Raised when required environment variables are absent."""

    def __init__(self, missing: list[str], has_auth_token: bool) -> None:
        self.missing = missing
        self.has_auth_token = has_auth_token
        super().__init__(f"Missing required environment variables: {', '.join(missing)}")


class WorkerSettings(BaseModel):
    """Everything a session worker needs to boot.

    ``auth_token`` is excluded from ``repr`` so it never reaches a log line.
    """

    session_id: str
    workspace_id: str
    user_id: str = "anonymous"
    convex_url: str
    local_convex_url: str = "http://localhost:3210"
    user_request: str
    backend_url: str = "http://localhost:3010"
    auth_token: str = Field(repr=False)
    agent_model: str = "gpt-4o"
    agent_instructions: str = DEFAULT_INSTRUCTIONS
    sub_agents: list[SpecialistConfig] = Field(default_factory=lambda: list(DEFAULT_SUB_AGENTS))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> WorkerSettings:
        """Build settings from *environ* (defaults to ``os.environ``).

        Raises:
            MissingVariablesError: If any required variable is unset or empty.
            ConfigurationError: If ``SUB_AGENTS`` is not a JSON array of
                ``{name, model, instructions}`` objects.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
        if missing:
            raise MissingVariablesError(missing, has_auth_token=bool(env.get("AUTH_TOKEN")))

        values: dict[str, object] = {
            "session_id": env["SESSION_ID"],
            "workspace_id": env["WORKSPACE_ID"],
            "convex_url": env["CONVEX_URL"],
            "user_request": env["USER_REQUEST"],
            "auth_token": env["AUTH_TOKEN"],
        }
        optional = {
            "USER_ID": "user_id",
            "LOCAL_CONVEX_URL": "local_convex_url",
            "BACKEND_URL": "backend_url",
            "AGENT_MODEL": "agent_model",
            "AGENT_INSTRUCTIONS": "agent_instructions",
        }
        for variable, field_name in optional.items():
            if env.get(variable):
                values[field_name] = env[variable]

        raw_sub_agents = env.get("SUB_AGENTS")
        if raw_sub_agents:
            values["sub_agents"] = parse_sub_agents(raw_sub_agents)

        return cls.model_validate(values)

    def diagnostics(self) -> dict[str, object]:
        """Loggable summary; the auth token appears only as a boolean."""
        return {
            "session_id": self.session_id,
            "workspace_id": self.workspace_id,
            "convex_url": self.convex_url,
            "user_request": self.user_request,
            "has_auth_token": bool(self.auth_token),
        }

    def manager_config(self) -> SessionManagerConfig:
        return SessionManagerConfig(
            session_id=self.session_id,
            workspace_id=self.workspace_id,
            user_id=self.user_id,
            backend_url=self.backend_url,
            auth_token=self.auth_token,
            agent=AgentConfig(
                model=self.agent_model,
                instructions=self.agent_instructions,
                sub_agents=self.sub_agents,
            ),
        )


def parse_sub_agents(raw: str) -> list[SpecialistConfig]:
    """Parse the ``SUB_AGENTS`` JSON array."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"SUB_AGENTS is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ConfigurationError("SUB_AGENTS must be a JSON array")
    try:
        return [SpecialistConfig.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid SUB_AGENTS entry: {exc}") from exc
