"""Domain models for steps, tasks, intents and resolutions.

Responsibilities:
  - Define immutable data carriers for flow configuration and resolution output.

Inputs/Outputs:
  - Step/Task/Intent are static configuration held by the StepRegistry.
  - Resolution and JourneyReplay are produced by the resolver and may be
    persisted/audited by infra layers.

Invariants:
  - Models must be deterministic containers with no behavior beyond lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..answers.models import Question
from ..rules.types import StepId, Target, TransitionRule
from .enums import TerminalOutcome


@dataclass(frozen=True)
class Step:
    id: StepId
    questions: tuple[Question, ...] = ()
    rules: tuple[TransitionRule, ...] = ()

    @property
    def required_keys(self) -> tuple[str, ...]:
        return tuple(q.key for q in self.questions if q.required)


@dataclass(frozen=True)
class Task:
    id: str
    steps: tuple[StepId, ...]

    @property
    def entry_step(self) -> StepId:
        return self.steps[0]


@dataclass(frozen=True)
class Intent:
    id: str
    tasks: tuple[str, ...]


@dataclass(frozen=True)
class Resolution:
    completed_step: StepId
    target: Target
    rule_name: str
    from_task: str
    to_task: Optional[str]
    next_task: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return isinstance(self.target, TerminalOutcome)

    @property
    def outcome(self) -> Optional[TerminalOutcome]:
        return self.target if isinstance(self.target, TerminalOutcome) else None

    @property
    def next_step(self) -> Optional[StepId]:
        return None if isinstance(self.target, TerminalOutcome) else self.target

    @property
    def cross_task(self) -> bool:
        return self.to_task is not None and self.to_task != self.from_task


@dataclass(frozen=True)
class JourneyReplay:
    intent_id: str
    path: tuple[StepId, ...]
    current_step: Optional[StepId]
    outcome: Optional[TerminalOutcome]

    @property
    def finished(self) -> bool:
        return self.current_step is None
