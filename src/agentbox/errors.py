"""Shared error taxonomy for agentbox.

Errors that a tool call raises are recorded to the execution log and then
re-raised unchanged when they derive from :class:`AgentBoxError`; anything
else is wrapped in :class:`ToolExecutionError`.
"""

from __future__ import annotations


class AgentBoxError(Exception):
    """Base error for all agentbox failures."""


class ConfigurationError(AgentBoxError):
    """Missing or invalid configuration (manifest, session, environment).

    Raised at startup or load time; never retried.
    """


class NotFoundError(AgentBoxError):
    """A record addressed by key does not exist in the store."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key} not found")


class ToolExecutionError(AgentBoxError):
    """A tool invocation failed (non-2xx HTTP or a runtime error)."""

    def __init__(
        self,
        name: str,
        detail: str = "",
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.name = name
        self.detail = detail
        self.status_code = status_code
        self.body = body
        super().__init__(f"Tool execution failed: {name}" + (f": {detail}" if detail else ""))


class ToolValidationError(ToolExecutionError):
    """Tool arguments did not match the compiled parameter schema."""


class UnimplementedError(AgentBoxError):
    """The requested capability exists but is not implemented (surfaced at call time)."""


class SessionStateError(AgentBoxError):
    """An illegal session status transition or a write to a finished session."""


class StoreError(AgentBoxError):
    """The durable store rejected a request."""


class PlanValidationError(AgentBoxError):
    """An execution plan is not a well-formed dependency DAG."""
