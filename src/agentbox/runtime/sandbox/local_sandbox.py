"""LocalSandbox: runs commands as host subprocesses.

The session worker itself already runs inside a disposable execution
environment, so code executed here is contained by that environment rather
than by this class.
"""

from __future__ import annotations

import asyncio
import logging

from agentbox.runtime.errors import SandboxError, SandboxTimeoutError
from agentbox.runtime.sandbox.models import ExecutionRequest, SandboxConfig, SandboxResult

logger = logging.getLogger(__name__)


class LocalSandbox:
    """Host-local command executor.

    Satisfies the :class:`~agentbox.runtime.sandbox.executor.SandboxExecutor`
    protocol.  The process environment is replaced by ``config.env`` merged
    with the request's env, so worker secrets are not inherited.
    """

    def __init__(self, config: SandboxConfig | None = None) -> None:
        self._config = config or SandboxConfig()

    async def execute(self, request: ExecutionRequest) -> SandboxResult:
        """Run a command and capture its output."""
        logger.info("LocalSandbox: executing %s", request.command[0])

        timeout = request.timeout or self._config.timeout
        env = {**self._config.env, **request.env}

        try:
            proc = await asyncio.create_subprocess_exec(
                *request.command,
                stdin=asyncio.subprocess.PIPE if request.stdin else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as exc:
            raise SandboxError(str(exc)) from exc

        stdin_bytes = request.stdin.encode() if request.stdin else None
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(input=stdin_bytes),
                timeout=timeout,
            )
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise SandboxTimeoutError(timeout) from None

        return SandboxResult(
            exit_code=proc.returncode or 0,
            stdout=self._truncate(stdout.decode(errors="replace") if stdout else ""),
            stderr=self._truncate(stderr.decode(errors="replace") if stderr else ""),
        )

    async def cleanup(self) -> None:
        """No-op: nothing to clean up for host execution."""

    def _truncate(self, text: str) -> str:
        limit = self._config.max_output_chars
        if len(text) <= limit:
            return text
        return text[:limit] + f"\n... [truncated {len(text) - limit} chars]"
