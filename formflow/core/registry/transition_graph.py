"""Step graph derived from registered transition rules.

Responsibilities:
  - List possible successors of a step, including the next task's entry
    step when a rule ends the task.
  - Compute reachable and unreachable steps for an intent (audit only).

Invariants:
  - Derived purely from the registry; never consulted during resolution.
"""

from __future__ import annotations

from ..domain.enums import TerminalOutcome
from ..rules.types import StepId, Target
from .registry import StepRegistry


def next_task_entry(registry: StepRegistry, intent_id: str, task_id: str) -> StepId | None:
    tasks = registry.intent(intent_id).tasks
    if task_id not in tasks:
        return None
    index = tasks.index(task_id)
    if index + 1 >= len(tasks):
        return None
    return registry.task(tasks[index + 1]).entry_step


def successors(registry: StepRegistry, step_id: StepId) -> tuple[Target, ...]:
    seen: list[Target] = []
    for candidate in registry.rules_for(step_id):
        if candidate.target not in seen:
            seen.append(candidate.target)
    return tuple(seen)


def reachable_steps(registry: StepRegistry, intent_id: str) -> frozenset[StepId]:
    tasks = registry.tasks_for_intent(intent_id)
    start = tasks[0].entry_step
    reached: set[StepId] = set()
    pending = [start]
    while pending:
        step_id = pending.pop()
        if step_id in reached:
            continue
        reached.add(step_id)
        for target in successors(registry, step_id):
            if target is TerminalOutcome.END_OF_TASK:
                entry = next_task_entry(registry, intent_id, registry.task_of(step_id).id)
                if entry is not None:
                    pending.append(entry)
            elif not isinstance(target, TerminalOutcome):
                pending.append(target)
    return frozenset(reached)


def unreachable_steps(registry: StepRegistry, intent_id: str) -> tuple[StepId, ...]:
    reached = reachable_steps(registry, intent_id)
    in_intent = [
        step_id for task in registry.tasks_for_intent(intent_id) for step_id in task.steps
    ]
    return tuple(step_id for step_id in in_intent if step_id not in reached)
