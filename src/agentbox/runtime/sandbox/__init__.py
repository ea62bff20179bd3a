"""Sandbox: command execution backends for the code-runner tool."""

from agentbox.runtime.sandbox.executor import SandboxExecutor
from agentbox.runtime.sandbox.local_sandbox import LocalSandbox
from agentbox.runtime.sandbox.models import ExecutionRequest, SandboxConfig, SandboxResult

__all__ = [
    "ExecutionRequest",
    "LocalSandbox",
    "SandboxConfig",
    "SandboxExecutor",
    "SandboxResult",
]
