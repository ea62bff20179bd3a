"""Sandbox error types."""

from agentbox.errors import AgentBoxError


class SandboxError(AgentBoxError):
    """A sandbox operation failed (creation, execution, or cleanup)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Sandbox error" + (f": {detail}" if detail else ""))


class SandboxTimeoutError(SandboxError):
    """Sandbox execution exceeded the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Execution timed out after {timeout}s")
