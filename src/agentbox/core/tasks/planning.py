"""Execution plan validation.

The task store persists plans as given; whoever produces a plan must check
that every dependency names another step of the same plan and that the
dependency relation is acyclic before saving it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentbox.core.tasks.models import TaskStatus
from agentbox.errors import PlanValidationError

if TYPE_CHECKING:
    from agentbox.core.tasks.models import ExecutionPlan, PlanStep


def validate_plan(steps: list[PlanStep]) -> None:
    """Raise :class:`PlanValidationError` unless *steps* form a DAG.

    Checks, in order: duplicate step ids, self-dependencies, dependencies on
    unknown steps, cycles.
    """
    ids: set[str] = set()
    for step in steps:
        if step.id in ids:
            raise PlanValidationError(f"Duplicate step id: {step.id!r}")
        ids.add(step.id)

    for step in steps:
        for dep in step.dependencies:
            if dep == step.id:
                raise PlanValidationError(f"Step {step.id!r} depends on itself")
            if dep not in ids:
                raise PlanValidationError(f"Step {step.id!r} depends on unknown step {dep!r}")

    topological_order(steps)


def topological_order(steps: list[PlanStep]) -> list[PlanStep]:
    """Return *steps* ordered so every step follows its dependencies.

    Ties keep the plan's original order (Kahn's algorithm over a stable queue).
    """
    by_id = {s.id: s for s in steps}
    remaining = {s.id: {d for d in s.dependencies if d in by_id} for s in steps}
    ordered: list[PlanStep] = []

    while remaining:
        ready = [sid for sid in by_id if sid in remaining and not remaining[sid]]
        if not ready:
            cycle = ", ".join(sorted(remaining))
            raise PlanValidationError(f"Dependency cycle among steps: {cycle}")
        for sid in ready:
            ordered.append(by_id[sid])
            del remaining[sid]
        for deps in remaining.values():
            deps.difference_update(ready)

    return ordered


def ready_steps(plan: ExecutionPlan) -> list[PlanStep]:
    """Return pending steps whose dependencies have all completed."""
    done = {s.id for s in plan.steps if s.status == TaskStatus.COMPLETED}
    return [
        s
        for s in plan.steps
        if s.status == TaskStatus.PENDING and all(d in done for d in s.dependencies)
    ]
