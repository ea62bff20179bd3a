"""Runtime: isolated execution of model-generated code."""

from agentbox.runtime.errors import SandboxError, SandboxTimeoutError

__all__ = ["SandboxError", "SandboxTimeoutError"]
