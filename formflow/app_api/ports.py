"""Port definitions for app-level dependencies.

Responsibilities:
  - Define interface contracts for answer storage and transition auditing.
Must not:
  - Implement logic; interfaces only.
"""

from __future__ import annotations

from typing import Protocol

from formflow.core.answers.models import Answer, AnswerState
from formflow.core.domain.models import Resolution


class AnswerStore(Protocol):
    def get_answers(self, session_id: str) -> AnswerState:
        ...

    def save_answer(self, session_id: str, key: str, answer: Answer) -> None:
        ...


class TransitionLog(Protocol):
    def insert_transition(self, session_id: str, intent_id: str, resolution: Resolution) -> None:
        ...

    def completed_steps(self, session_id: str) -> frozenset[str]:
        ...
