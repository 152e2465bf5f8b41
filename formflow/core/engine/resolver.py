"""Step-transition resolution for a single completed step.

Responsibilities:
  - Check that the completed step is known and its required answers exist.
  - Apply the step's rules in registration order; first match wins.
  - Map end-of-task onto the next task of an intent (advance) and replay a
    whole journey from stored answers (replay).

Inputs/Outputs:
  - Inputs: completed StepId, AnswerState snapshot, registry snapshot.
  - Outputs: StepId or TerminalOutcome (resolve_next), Resolution metadata
    (resolve/advance) or JourneyReplay (replay).

Invariants:
  - Pure: never mutates answers, performs no I/O, reads no clock.
  - Never falls back to list order when no rule matches.
  - One registry snapshot is used for the whole call.
"""

from __future__ import annotations

from typing import Callable, Collection, Union

from ..answers.models import AnswerState
from ..domain.enums import TerminalOutcome
from ..domain.errors import FlowCycleError, NoMatchingTransition, UnknownStep
from ..domain.models import JourneyReplay, Resolution, Task
from ..registry.holder import RegistryHolder
from ..registry.registry import StepRegistry
from ..registry.transition_graph import next_task_entry
from ..rules.rules_common import first_match
from ..rules.types import StepId, Target

_DEBUG_FN: Callable[[str], None] | None = None


def set_resolver_debug(fn: Callable[[str], None] | None) -> None:
    global _DEBUG_FN
    _DEBUG_FN = fn


def _resolve_with(registry: StepRegistry, completed_step: StepId, answers: AnswerState) -> Resolution:
    step = registry.step(completed_step)
    for key in step.required_keys:
        answers.require(key, completed_step)

    matched = first_match(step.rules, answers, completed_step)
    if matched is None:
        raise NoMatchingTransition(completed_step, len(step.rules))

    from_task = registry.task_of(completed_step).id
    to_task = None
    if not isinstance(matched.target, TerminalOutcome):
        to_task = registry.task_of(matched.target).id

    if _DEBUG_FN is not None:
        _DEBUG_FN(
            f"RESOLVE step={completed_step} rule={matched.label()} "
            f"target={_target_label(matched.target)} task={from_task}->{to_task}"
        )

    return Resolution(
        completed_step=completed_step,
        target=matched.target,
        rule_name=matched.label(),
        from_task=from_task,
        to_task=to_task,
    )


def _target_label(target: Target) -> str:
    return target.value if isinstance(target, TerminalOutcome) else target


class FlowResolver:
    def __init__(self, registry: Union[StepRegistry, RegistryHolder]) -> None:
        if isinstance(registry, RegistryHolder):
            self._holder = registry
        else:
            self._holder = RegistryHolder(registry)

    @property
    def registry(self) -> StepRegistry:
        return self._holder.current()

    def snapshot(self) -> FlowResolver:
        """Resolver pinned to the current registry; later swaps do not reach it."""
        return FlowResolver(self._holder.current())

    def resolve_next(self, completed_step: StepId, answers: AnswerState) -> Target:
        return _resolve_with(self._holder.current(), completed_step, answers).target

    def resolve(self, completed_step: StepId, answers: AnswerState) -> Resolution:
        return _resolve_with(self._holder.current(), completed_step, answers)

    def advance(self, intent_id: str, completed_step: StepId, answers: AnswerState) -> Resolution:
        return self._advance_with(self._holder.current(), intent_id, completed_step, answers)

    def _advance_with(
        self, registry: StepRegistry, intent_id: str, completed_step: StepId, answers: AnswerState
    ) -> Resolution:
        intent = registry.intent(intent_id)
        from_task = registry.task_of(completed_step).id
        if from_task not in intent.tasks:
            raise UnknownStep(completed_step, scope=f"intent {intent_id}")

        resolution = _resolve_with(registry, completed_step, answers)
        if resolution.target is not TerminalOutcome.END_OF_TASK:
            return resolution

        entry = next_task_entry(registry, intent_id, from_task)
        if entry is None:
            return resolution
        next_task = registry.task_of(entry).id
        return Resolution(
            completed_step=completed_step,
            target=entry,
            rule_name=resolution.rule_name,
            from_task=from_task,
            to_task=next_task,
            next_task=next_task,
        )

    def steps_for_task(self, task_id: str) -> tuple[StepId, ...]:
        return self._holder.current().steps_for_task(task_id)

    def tasks_for_intent(self, intent_id: str) -> tuple[Task, ...]:
        return self._holder.current().tasks_for_intent(intent_id)

    def replay(
        self, intent_id: str, answers: AnswerState, completed_steps: Collection[StepId] = ()
    ) -> JourneyReplay:
        """Walk the intent from its first step to where the user should resume.

        A step is passed when its required answers are present and it either
        asks nothing, has at least one answer, or is listed in completed_steps
        (steps submitted with every optional question left blank).
        """
        registry = self._holder.current()
        current: StepId = registry.tasks_for_intent(intent_id)[0].entry_step
        path: list[StepId] = []
        while True:
            if current in path:
                raise FlowCycleError(path + [current])
            path.append(current)
            step = registry.step(current)
            missing = any(not answers.has(key) for key in step.required_keys)
            untouched = (
                bool(step.questions)
                and current not in completed_steps
                and not any(answers.has(q.key) for q in step.questions)
            )
            if missing or untouched:
                return JourneyReplay(
                    intent_id=intent_id, path=tuple(path), current_step=current, outcome=None
                )
            resolution = self._advance_with(registry, intent_id, current, answers)
            if resolution.outcome is not None:
                return JourneyReplay(
                    intent_id=intent_id,
                    path=tuple(path),
                    current_step=None,
                    outcome=resolution.outcome,
                )
            current = resolution.target  # type: ignore[assignment]
