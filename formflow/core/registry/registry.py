"""Immutable registry of steps, tasks, intents and their transition rules.

Responsibilities:
  - Validate flow configuration once, at construction.
  - Answer lookups for the resolver and for navigation/progress display.

Invariants:
  - A registry is never mutated after construction; reloads build a new one.
  - Step ids are unique across the registry and each step belongs to one task.
  - With require_default_rule, every step ends with a catch-all rule.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from ..answers.models import Answer, Question
from ..domain.enums import AnswerKind, TerminalOutcome
from ..domain.errors import FlowConfigError, UnknownIntent, UnknownStep, UnknownTask
from ..domain.models import Intent, Step, Task
from ..rules.types import StepId, TransitionRule


class StepRegistry:
    def __init__(
        self,
        steps: Iterable[Step],
        tasks: Iterable[Task],
        intents: Iterable[Intent],
        require_default_rule: bool = True,
    ) -> None:
        self._steps: dict[StepId, Step] = {}
        for step in steps:
            if step.id in self._steps:
                raise FlowConfigError(f"Duplicate step id: {step.id}")
            self._steps[step.id] = step

        self._tasks: dict[str, Task] = {}
        self._task_of: dict[StepId, str] = {}
        for task in tasks:
            if task.id in self._tasks:
                raise FlowConfigError(f"Duplicate task id: {task.id}")
            if not task.steps:
                raise FlowConfigError(f"Task {task.id} has no steps")
            for step_id in task.steps:
                if step_id not in self._steps:
                    raise FlowConfigError(f"Task {task.id} references unknown step {step_id}")
                if step_id in self._task_of:
                    raise FlowConfigError(
                        f"Step {step_id} belongs to both {self._task_of[step_id]} and {task.id}"
                    )
                self._task_of[step_id] = task.id
            self._tasks[task.id] = task

        orphans = sorted(set(self._steps) - set(self._task_of))
        if orphans:
            raise FlowConfigError(f"Steps not assigned to any task: {orphans}")

        self._intents: dict[str, Intent] = {}
        for intent in intents:
            if intent.id in self._intents:
                raise FlowConfigError(f"Duplicate intent id: {intent.id}")
            if not intent.tasks:
                raise FlowConfigError(f"Intent {intent.id} has no tasks")
            if len(set(intent.tasks)) != len(intent.tasks):
                raise FlowConfigError(f"Intent {intent.id} lists a task twice")
            for task_id in intent.tasks:
                if task_id not in self._tasks:
                    raise FlowConfigError(f"Intent {intent.id} references unknown task {task_id}")
            self._intents[intent.id] = intent

        self._questions: dict[str, Question] = {}
        for step in self._steps.values():
            for question in step.questions:
                known = self._questions.get(question.key)
                if known is not None and known != question:
                    raise FlowConfigError(
                        f"Question '{question.key}' is defined twice with different definitions"
                    )
                self._questions[question.key] = question

        self.require_default_rule = require_default_rule
        for step in self._steps.values():
            self._check_rules(step)

    def _check_rules(self, step: Step) -> None:
        if self.require_default_rule:
            if not step.rules:
                raise FlowConfigError(f"Step {step.id} has no transition rules")
            if not step.rules[-1].is_catch_all:
                raise FlowConfigError(f"Step {step.id} must end with a catch-all rule")
        for index, candidate in enumerate(step.rules):
            if candidate.is_catch_all and index != len(step.rules) - 1:
                raise FlowConfigError(
                    f"Step {step.id}: rule {candidate.label()} shadows the rules after it"
                )
            target = candidate.target
            if not isinstance(target, TerminalOutcome) and target not in self._steps:
                raise FlowConfigError(f"Step {step.id}: rule targets unknown step {target}")
            for key in candidate.condition.keys():
                if key not in self._questions:
                    raise FlowConfigError(f"Step {step.id}: rule reads unknown answer '{key}'")
            for key, values in candidate.condition.literals().items():
                question = self._questions[key]
                for value in values:
                    self._check_literal(step.id, question, value)

    def _check_literal(self, step_id: StepId, question: Question, value: object) -> None:
        try:
            literal = Answer(kind=question.kind, value=value)  # type: ignore[arg-type]
        except ValueError as exc:
            raise FlowConfigError(f"Step {step_id}: {exc}") from exc
        if question.kind is AnswerKind.CHOICE and literal.value not in question.options:
            raise FlowConfigError(
                f"Step {step_id}: '{literal.value}' is not an option of '{question.key}'"
            )

    def current(self) -> "StepRegistry":
        return self

    def has_step(self, step_id: StepId) -> bool:
        return step_id in self._steps

    def step(self, step_id: StepId) -> Step:
        try:
            return self._steps[step_id]
        except KeyError:
            raise UnknownStep(step_id) from None

    def step_ids(self) -> tuple[StepId, ...]:
        return tuple(self._steps)

    def rules_for(self, step_id: StepId) -> tuple[TransitionRule, ...]:
        return self.step(step_id).rules

    def task(self, task_id: str) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise UnknownTask(task_id) from None

    def task_of(self, step_id: StepId) -> Task:
        try:
            return self._tasks[self._task_of[step_id]]
        except KeyError:
            raise UnknownStep(step_id) from None

    def steps_for_task(self, task_id: str) -> tuple[StepId, ...]:
        return self.task(task_id).steps

    def intent(self, intent_id: str) -> Intent:
        try:
            return self._intents[intent_id]
        except KeyError:
            raise UnknownIntent(intent_id) from None

    def intent_ids(self) -> tuple[str, ...]:
        return tuple(self._intents)

    def tasks_for_intent(self, intent_id: str) -> tuple[Task, ...]:
        return tuple(self._tasks[task_id] for task_id in self.intent(intent_id).tasks)

    def question(self, key: str) -> Question:
        return self._questions[key]

    @property
    def questions(self) -> Mapping[str, Question]:
        return MappingProxyType(self._questions)
