"""Answer values, question definitions and the answer snapshot.

Responsibilities:
  - Define the immutable tagged Answer value and its kind checks.
  - Define Question, which fixes the kind (and options) of a key.
  - Provide AnswerState, the read-only snapshot the resolver consumes.

Invariants:
  - Answer and AnswerState are compared structurally and never mutated.
  - A key's answer kind is fixed by its Question.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Union

from ..domain.enums import AnswerKind
from ..domain.errors import MissingRequiredAnswer

AnswerScalar = Union[str, int, float, bool, dt.date]


def _kind_matches(kind: AnswerKind, value: object) -> bool:
    if kind in (AnswerKind.CHOICE, AnswerKind.TEXT):
        return isinstance(value, str)
    if kind is AnswerKind.BOOLEAN:
        return isinstance(value, bool)
    if kind is AnswerKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is AnswerKind.DATE:
        return isinstance(value, dt.date) and not isinstance(value, dt.datetime)
    return False


@dataclass(frozen=True)
class Answer:
    kind: AnswerKind
    value: AnswerScalar

    def __post_init__(self) -> None:
        if not _kind_matches(self.kind, self.value):
            raise ValueError(
                f"Answer value {self.value!r} does not match kind '{self.kind.value}'"
            )


@dataclass(frozen=True)
class Question:
    key: str
    kind: AnswerKind
    options: tuple[str, ...] = ()
    required: bool = True
    min_value: Optional[AnswerScalar] = None
    max_value: Optional[AnswerScalar] = None

    def __post_init__(self) -> None:
        if not self.key or not self.key.strip():
            raise ValueError("Question key must be non-empty")
        if self.kind is AnswerKind.CHOICE:
            if not self.options:
                raise ValueError(f"Choice question '{self.key}' must define options")
            if len(set(self.options)) != len(self.options):
                raise ValueError(f"Choice question '{self.key}' has duplicate options")
        elif self.options:
            raise ValueError(f"Only choice questions may define options ('{self.key}')")
        if self.min_value is not None or self.max_value is not None:
            if self.kind not in (AnswerKind.NUMBER, AnswerKind.DATE):
                raise ValueError(f"Bounds are only valid for number/date questions ('{self.key}')")
            for bound in (self.min_value, self.max_value):
                if bound is not None and not _kind_matches(self.kind, bound):
                    raise ValueError(f"Bound {bound!r} does not match kind of '{self.key}'")
            if (
                self.min_value is not None
                and self.max_value is not None
                and self.min_value > self.max_value  # type: ignore[operator]
            ):
                raise ValueError(f"min_value > max_value for '{self.key}'")

    def coerce(self, raw: Any) -> Answer:
        """Build a validated Answer from a plain (JSON-friendly) value."""
        value = raw
        if self.kind is AnswerKind.DATE and isinstance(raw, str):
            try:
                value = dt.date.fromisoformat(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid date for '{self.key}': {raw!r}") from exc
        answer = Answer(kind=self.kind, value=value)
        self.check(answer)
        return answer

    def check(self, answer: Answer) -> None:
        if answer.kind is not self.kind:
            raise ValueError(
                f"Answer for '{self.key}' must be '{self.kind.value}', got '{answer.kind.value}'"
            )
        if self.kind is AnswerKind.CHOICE and answer.value not in self.options:
            raise ValueError(f"'{answer.value}' is not an option of '{self.key}'")
        if self.min_value is not None and answer.value < self.min_value:  # type: ignore[operator]
            raise ValueError(f"Answer for '{self.key}' is below {self.min_value!r}")
        if self.max_value is not None and answer.value > self.max_value:  # type: ignore[operator]
            raise ValueError(f"Answer for '{self.key}' is above {self.max_value!r}")


@dataclass(frozen=True)
class AnswerState:
    """Immutable snapshot of the answers given so far in one session."""
    answers: Mapping[str, Answer] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "answers", MappingProxyType(dict(self.answers)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnswerState):
            return NotImplemented
        return dict(self.answers) == dict(other.answers)

    def __hash__(self) -> int:
        return hash(frozenset(self.answers.items()))

    def __len__(self) -> int:
        return len(self.answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self.answers)

    def keys(self) -> tuple[str, ...]:
        return tuple(self.answers.keys())

    def has(self, key: str) -> bool:
        return key in self.answers

    def get(self, key: str) -> Optional[Answer]:
        return self.answers.get(key)

    def require(self, key: str, step_id: Optional[str] = None) -> Answer:
        answer = self.answers.get(key)
        if answer is None:
            raise MissingRequiredAnswer(key, step_id)
        return answer

    def value(self, key: str) -> AnswerScalar:
        return self.require(key).value

    def with_answer(self, key: str, answer: Answer) -> "AnswerState":
        merged = dict(self.answers)
        merged[key] = answer
        return AnswerState(merged)

    @classmethod
    def from_raw(cls, questions: Mapping[str, Question], raw: Mapping[str, Any]) -> "AnswerState":
        answers: dict[str, Answer] = {}
        for key, value in raw.items():
            question = questions.get(key)
            if question is None:
                raise ValueError(f"Unknown question key: {key}")
            answers[key] = question.coerce(value)
        return cls(answers)
