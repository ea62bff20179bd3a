"""Tables and indexes known to the durable store.

Index fields are matched by equality, left to right; a query may supply a
prefix of an index's fields.
"""

from __future__ import annotations

BLACKBOARD_ENTRIES = "blackboardEntries"
AGENT_TASKS = "agentTasks"
EXECUTION_PLANS = "executionPlans"
TOOL_EXECUTIONS = "toolExecutions"
SESSIONS = "sessions"
ARTIFACTS = "artifacts"

TABLE_INDEXES: dict[str, dict[str, tuple[str, ...]]] = {
    BLACKBOARD_ENTRIES: {
        "by_session": ("session_id",),
        "by_session_namespace": ("session_id", "namespace"),
        "by_session_key": ("session_id", "key"),
    },
    AGENT_TASKS: {
        "by_session": ("session_id",),
        "by_session_task": ("session_id", "task_id"),
        "by_delegated_to": ("delegated_to",),
    },
    EXECUTION_PLANS: {
        "by_session": ("session_id",),
        "by_session_plan": ("session_id", "plan_id"),
    },
    TOOL_EXECUTIONS: {
        "by_session": ("session_id",),
        "by_session_execution": ("session_id", "execution_id"),
    },
    SESSIONS: {
        "by_workspace": ("workspace_id",),
    },
    ARTIFACTS: {
        "by_session": ("session_id",),
    },
}
