"""Blackboard: namespaced key-value memory shared by the agents of a session."""

from agentbox.core.blackboard.blackboard import Blackboard
from agentbox.core.blackboard.models import ARTIFACTS_NAMESPACE, BlackboardEntry

__all__ = [
    "ARTIFACTS_NAMESPACE",
    "Blackboard",
    "BlackboardEntry",
]
