"""agentbox: sandboxed multi-agent sessions over a shared blackboard and tool bus."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from agentbox.session.manager import SessionManager as SessionManager
    from agentbox.session.settings import WorkerSettings as WorkerSettings

_SESSION_EXPORTS = {
    "SessionManager": "agentbox.session.manager",
    "WorkerSettings": "agentbox.session.settings",
}


def __getattr__(name: str) -> object:
    module_path = _SESSION_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'agentbox' has no attribute {name!r}")
