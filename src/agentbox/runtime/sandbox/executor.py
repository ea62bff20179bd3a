"""SandboxExecutor protocol: the interface the code-runner tool depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agentbox.runtime.sandbox.models import ExecutionRequest, SandboxResult


@runtime_checkable
class SandboxExecutor(Protocol):
    """Executes commands in an isolated environment."""

    async def execute(self, request: ExecutionRequest) -> SandboxResult:
        """Run a command in the sandbox and return the result."""
        ...

    async def cleanup(self) -> None:
        """Release any resources held by this executor."""
        ...
