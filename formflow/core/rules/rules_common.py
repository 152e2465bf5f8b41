from __future__ import annotations

from typing import Iterable, Optional

from ..answers.models import AnswerState
from .types import TransitionRule


def first_match(
    rules: Iterable[TransitionRule], answers: AnswerState, step_id: Optional[str] = None
) -> Optional[TransitionRule]:
    # Registration order is priority order; a condition that needs an absent
    # answer raises instead of being skipped.
    for candidate in rules:
        if candidate.condition.evaluate(answers, step_id):
            return candidate
    return None
