"""Declarative predicates over an AnswerState.

Responsibilities:
  - Evaluate a rule condition against answers (and the completed step).
  - Expose the answer keys and literals a condition reads, for registry
    validation and for the totality sampler.

Invariants:
  - Reading an absent key raises MissingRequiredAnswer; it is never treated
    as false. Only Answered/NotAnswered inspect presence.
  - Conditions are immutable and hold no state between evaluations.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ..answers.models import AnswerScalar, AnswerState

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
}


class Condition(Protocol):
    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        ...

    def keys(self) -> frozenset[str]:
        ...

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        ...

    @property
    def is_catch_all(self) -> bool:
        ...


def _merge_literals(conditions: tuple[Condition, ...]) -> dict[str, tuple[AnswerScalar, ...]]:
    merged: dict[str, tuple[AnswerScalar, ...]] = {}
    for condition in conditions:
        for key, values in condition.literals().items():
            merged[key] = merged.get(key, ()) + values
    return merged


@dataclass(frozen=True)
class Always:
    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return True

    def keys(self) -> frozenset[str]:
        return frozenset()

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return {}

    @property
    def is_catch_all(self) -> bool:
        return True


@dataclass(frozen=True)
class Compare:
    op: str
    key: str
    value: AnswerScalar

    def __post_init__(self) -> None:
        if self.op not in _COMPARATORS:
            raise ValueError(f"Unsupported comparison operator: {self.op}")

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        answer = answers.require(self.key, step_id)
        return bool(_COMPARATORS[self.op](answer.value, self.value))

    def keys(self) -> frozenset[str]:
        return frozenset({self.key})

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return {self.key: (self.value,)}

    @property
    def is_catch_all(self) -> bool:
        return False


@dataclass(frozen=True)
class OneOf:
    key: str
    values: tuple[AnswerScalar, ...]

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return answers.require(self.key, step_id).value in self.values

    def keys(self) -> frozenset[str]:
        return frozenset({self.key})

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return {self.key: self.values}

    @property
    def is_catch_all(self) -> bool:
        return False


@dataclass(frozen=True)
class Answered:
    key: str
    present: bool = True

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return answers.has(self.key) is self.present

    def keys(self) -> frozenset[str]:
        return frozenset({self.key})

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return {}

    @property
    def is_catch_all(self) -> bool:
        return False


@dataclass(frozen=True)
class FromStep:
    step_ids: tuple[str, ...]

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return step_id in self.step_ids

    def keys(self) -> frozenset[str]:
        return frozenset()

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return {}

    @property
    def is_catch_all(self) -> bool:
        return False


@dataclass(frozen=True)
class AllOf:
    conditions: tuple[Condition, ...]

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return all(c.evaluate(answers, step_id) for c in self.conditions)

    def keys(self) -> frozenset[str]:
        return frozenset().union(*(c.keys() for c in self.conditions))

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return _merge_literals(self.conditions)

    @property
    def is_catch_all(self) -> bool:
        return all(c.is_catch_all for c in self.conditions)


@dataclass(frozen=True)
class AnyOf:
    conditions: tuple[Condition, ...]

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return any(c.evaluate(answers, step_id) for c in self.conditions)

    def keys(self) -> frozenset[str]:
        return frozenset().union(*(c.keys() for c in self.conditions))

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return _merge_literals(self.conditions)

    @property
    def is_catch_all(self) -> bool:
        # children run left to right; a keyed child ahead of Always can still raise
        return bool(self.conditions) and self.conditions[0].is_catch_all


@dataclass(frozen=True)
class Not:
    condition: Condition

    def evaluate(self, answers: AnswerState, step_id: Optional[str] = None) -> bool:
        return not self.condition.evaluate(answers, step_id)

    def keys(self) -> frozenset[str]:
        return self.condition.keys()

    def literals(self) -> dict[str, tuple[AnswerScalar, ...]]:
        return self.condition.literals()

    @property
    def is_catch_all(self) -> bool:
        return False


def always() -> Always:
    return Always()


def eq(key: str, value: AnswerScalar) -> Compare:
    return Compare("eq", key, value)


def ne(key: str, value: AnswerScalar) -> Compare:
    return Compare("ne", key, value)


def lt(key: str, value: AnswerScalar) -> Compare:
    return Compare("lt", key, value)


def le(key: str, value: AnswerScalar) -> Compare:
    return Compare("le", key, value)


def gt(key: str, value: AnswerScalar) -> Compare:
    return Compare("gt", key, value)


def ge(key: str, value: AnswerScalar) -> Compare:
    return Compare("ge", key, value)


def one_of(key: str, *values: AnswerScalar) -> OneOf:
    if not values:
        raise ValueError("one_of needs at least one value")
    return OneOf(key, tuple(values))


def answered(key: str) -> Answered:
    return Answered(key, present=True)


def not_answered(key: str) -> Answered:
    return Answered(key, present=False)


def from_step(*step_ids: str) -> FromStep:
    return FromStep(tuple(step_ids))


def all_of(*conditions: Condition) -> AllOf:
    return AllOf(tuple(conditions))


def any_of(*conditions: Condition) -> AnyOf:
    return AnyOf(tuple(conditions))


def negate(condition: Condition) -> Not:
    return Not(condition)
