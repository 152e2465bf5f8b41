"""Shared type definitions for transition rules.

Responsibilities:
  - Define TransitionRule, a condition paired with a step or terminal target.
Must not:
  - Implement resolution logic; data-only types for rule evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..domain.enums import TerminalOutcome
from .conditions import Always, Condition

StepId = str
Target = Union[StepId, TerminalOutcome]


@dataclass(frozen=True)
class TransitionRule:
    condition: Condition
    target: Target
    name: Optional[str] = None

    @property
    def is_catch_all(self) -> bool:
        return self.condition.is_catch_all

    @property
    def is_terminal(self) -> bool:
        return isinstance(self.target, TerminalOutcome)

    def label(self) -> str:
        if self.name:
            return self.name
        target = self.target.value if isinstance(self.target, TerminalOutcome) else self.target
        return f"-> {target}"


def rule(condition: Condition, target: Target, name: Optional[str] = None) -> TransitionRule:
    return TransitionRule(condition=condition, target=target, name=name)


def default(target: Target, name: Optional[str] = "default") -> TransitionRule:
    return TransitionRule(condition=Always(), target=target, name=name)
