"""Data models for the sandbox subsystem."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SandboxConfig(BaseModel):
    """Configuration for a sandbox executor."""

    timeout: float = Field(default=30.0, description="Max execution time in seconds.")
    max_output_chars: int = Field(default=20_000, description="Truncate stdout/stderr beyond this.")
    env: dict[str, str] = Field(default_factory=dict, description="Environment variables to inject.")


class ExecutionRequest(BaseModel):
    """A request to execute a command inside a sandbox."""

    command: list[str] = Field(..., description="Command and arguments to execute.")
    stdin: str | None = Field(default=None, description="Optional stdin input.")
    timeout: float | None = Field(default=None, description="Per-request timeout override.")
    env: dict[str, str] = Field(default_factory=dict, description="Extra env vars for this request.")


class SandboxResult(BaseModel):
    """Result of a sandboxed execution."""

    exit_code: int = Field(..., description="Process exit code.")
    stdout: str = Field(default="", description="Captured stdout.")
    stderr: str = Field(default="", description="Captured stderr.")
    timed_out: bool = Field(default=False, description="Whether the execution timed out.")
