"""Random valid answer states for totality checks.

Responsibilities:
  - Draw an Answer of the right kind for every question in a registry.
  - Mix uniform draws with probe values around the literals that rule
    conditions compare against, so boundary rules are exercised.

Invariants:
  - Deterministic for a given registry and seed.
  - Every drawn answer passes its Question's checks.
"""

from __future__ import annotations

import datetime as dt
import string
from typing import Any, Optional

import numpy as np

from formflow.core.answers.models import Answer, AnswerScalar, AnswerState, Question
from formflow.core.domain.enums import AnswerKind
from formflow.core.registry.registry import StepRegistry

DEFAULT_NUMBER_RANGE = (0, 1000)
DEFAULT_DATE_RANGE = (dt.date(1970, 1, 1), dt.date(2050, 12, 31))
TEXT_ALPHABET = np.array(list(string.ascii_lowercase + " "))


def _collect_probes(registry: StepRegistry) -> dict[str, list[AnswerScalar]]:
    probes: dict[str, list[AnswerScalar]] = {}
    for step_id in registry.step_ids():
        for candidate in registry.rules_for(step_id):
            for key, values in candidate.condition.literals().items():
                question = registry.question(key)
                bucket = probes.setdefault(key, [])
                for value in values:
                    for probe in _around(question, value):
                        if probe not in bucket and _in_bounds(question, probe):
                            bucket.append(probe)
    return probes


def _around(question: Question, value: AnswerScalar) -> list[AnswerScalar]:
    if question.kind is AnswerKind.NUMBER:
        return [value - 1, value, value + 1]  # type: ignore[operator]
    if question.kind is AnswerKind.DATE:
        one_day = dt.timedelta(days=1)
        return [value - one_day, value, value + one_day]  # type: ignore[operator]
    return [value]


def _in_bounds(question: Question, value: AnswerScalar) -> bool:
    if question.min_value is not None and value < question.min_value:  # type: ignore[operator]
        return False
    if question.max_value is not None and value > question.max_value:  # type: ignore[operator]
        return False
    return True


def _bounds(question: Question, default_range: tuple, width: Any) -> tuple:
    """Draw range for a number or date question.

    With a single bound the open side extends by the default width.
    """
    low, high = question.min_value, question.max_value
    if low is None and high is None:
        return default_range
    if low is None:
        return high - width, high
    if high is None:
        return low, low + width
    return low, high


class AnswerSampler:
    def __init__(self, registry: StepRegistry, seed: int = 1, probe_rate: float = 0.5) -> None:
        if not 0.0 <= probe_rate <= 1.0:
            raise ValueError("probe_rate must be within [0, 1]")
        self._registry = registry
        self._rng = np.random.default_rng(seed)
        self._probe_rate = probe_rate
        self._probes = _collect_probes(registry)

    def sample(self, skip_optional: bool = False) -> AnswerState:
        answers: dict[str, Answer] = {}
        for key, question in sorted(self._registry.questions.items()):
            if skip_optional and not question.required and self._rng.random() < 0.5:
                continue
            answer = Answer(kind=question.kind, value=self._draw(question))
            question.check(answer)
            answers[key] = answer
        return AnswerState(answers)

    def samples(self, count: int, skip_optional: bool = False) -> list[AnswerState]:
        return [self.sample(skip_optional=skip_optional) for _ in range(count)]

    def _draw(self, question: Question) -> AnswerScalar:
        probe = self._maybe_probe(question.key)
        if probe is not None:
            return probe
        if question.kind is AnswerKind.CHOICE:
            return question.options[int(self._rng.integers(len(question.options)))]
        if question.kind is AnswerKind.BOOLEAN:
            return bool(self._rng.integers(2))
        if question.kind is AnswerKind.NUMBER:
            return self._draw_number(question)
        if question.kind is AnswerKind.DATE:
            return self._draw_date(question)
        length = int(self._rng.integers(1, 24))
        return "".join(self._rng.choice(TEXT_ALPHABET, size=length).tolist()).strip() or "x"

    def _maybe_probe(self, key: str) -> Optional[AnswerScalar]:
        probes = self._probes.get(key)
        if not probes or self._rng.random() >= self._probe_rate:
            return None
        return probes[int(self._rng.integers(len(probes)))]

    def _draw_number(self, question: Question) -> AnswerScalar:
        low, high = _bounds(question, DEFAULT_NUMBER_RANGE, DEFAULT_NUMBER_RANGE[1] - DEFAULT_NUMBER_RANGE[0])
        if isinstance(low, int) and isinstance(high, int):
            return int(self._rng.integers(low, high, endpoint=True))
        return float(self._rng.uniform(float(low), float(high)))  # type: ignore[arg-type]

    def _draw_date(self, question: Question) -> dt.date:
        low, high = _bounds(question, DEFAULT_DATE_RANGE, DEFAULT_DATE_RANGE[1] - DEFAULT_DATE_RANGE[0])
        span = (high - low).days  # type: ignore[operator]
        return low + dt.timedelta(days=int(self._rng.integers(0, span, endpoint=True)))  # type: ignore[operator]
