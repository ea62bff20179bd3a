"""Tests for WorkerSettings."""

from __future__ import annotations

import json

import pytest

from agentbox.errors import ConfigurationError
from agentbox.session.settings import MissingVariablesError, WorkerSettings, parse_sub_agents

BASE_ENV = {
    "SESSION_ID": "sessions:abc",
    "WORKSPACE_ID": "w1",
    "CONVEX_URL": "https://cloud.example.com",
    "USER_REQUEST": "Summarize the tides",
    "AUTH_TOKEN": "secret-token",
}


class TestFromEnv:
    def test_defaults(self) -> None:
        settings = WorkerSettings.from_env(BASE_ENV)

        assert settings.user_id == "anonymous"
        assert settings.local_convex_url == "http://localhost:3210"
        assert settings.backend_url == "http://localhost:3010"
        assert settings.agent_model == "gpt-4o"
        assert [s.name for s in settings.sub_agents] == ["researcher", "writer"]

    def test_optional_overrides(self) -> None:
        settings = WorkerSettings.from_env(
            {
                **BASE_ENV,
                "USER_ID": "u9",
                "BACKEND_URL": "https://llm.example.com",
                "AGENT_MODEL": "claude-3",
                "SUB_AGENTS": json.dumps(
                    [{"name": "analyst", "model": "gpt-4o-mini", "instructions": "Crunch numbers."}]
                ),
            }
        )

        assert settings.user_id == "u9"
        assert settings.backend_url == "https://llm.example.com"
        assert settings.agent_model == "claude-3"
        assert [s.name for s in settings.sub_agents] == ["analyst"]

    def test_missing_variables(self) -> None:
        env = {k: v for k, v in BASE_ENV.items() if k not in ("AUTH_TOKEN", "USER_REQUEST")}
        with pytest.raises(MissingVariablesError) as excinfo:
            WorkerSettings.from_env(env)

        assert excinfo.value.missing == ["USER_REQUEST", "AUTH_TOKEN"]
        assert excinfo.value.has_auth_token is False
        assert isinstance(excinfo.value, ConfigurationError)

    def test_empty_value_counts_as_missing(self) -> None:
        with pytest.raises(MissingVariablesError) as excinfo:
            WorkerSettings.from_env({**BASE_ENV, "WORKSPACE_ID": ""})
        assert excinfo.value.missing == ["WORKSPACE_ID"]
        assert excinfo.value.has_auth_token is True


class TestSecrets:
    def test_token_hidden_from_repr_and_diagnostics(self) -> None:
        settings = WorkerSettings.from_env(BASE_ENV)

        assert "secret-token" not in repr(settings)
        diagnostics = settings.diagnostics()
        assert diagnostics["has_auth_token"] is True
        assert "secret-token" not in str(diagnostics)

    def test_manager_config(self) -> None:
        config = WorkerSettings.from_env({**BASE_ENV, "AGENT_INSTRUCTIONS": "Be brief."}).manager_config()

        assert config.session_id == "sessions:abc"
        assert config.auth_token == "secret-token"
        assert config.agent.instructions == "Be brief."
        assert "secret-token" not in repr(config)


class TestParseSubAgents:
    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"name": "solo"}',
            '[{"name": "missing-model"}]',
        ],
    )
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_sub_agents(raw)

    def test_with_tools(self) -> None:
        [agent] = parse_sub_agents(
            '[{"name": "coder", "model": "gpt-4o", "instructions": "Code.", "tools": ["execute_python"]}]'
        )
        assert agent.tools == ["execute_python"]
