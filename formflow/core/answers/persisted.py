"""Plain serialize/deserialize for stored answers.

Answers are stored as compact JSON objects: {"kind": "...", "value": ...},
with dates written as ISO strings.
"""

from __future__ import annotations

import datetime as dt
import json

from ..domain.enums import AnswerKind
from .models import Answer


def answer_to_persisted(answer: Answer) -> str:
    value = answer.value
    if answer.kind is AnswerKind.DATE:
        value = answer.value.isoformat()  # type: ignore[union-attr]
    return json.dumps(
        {"kind": answer.kind.value, "value": value},
        separators=(",", ":"),
        ensure_ascii=False,
    )


def answer_from_persisted(text: str) -> Answer:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Stored answer is not valid JSON: {text!r}") from exc
    if not isinstance(payload, dict) or "kind" not in payload or "value" not in payload:
        raise ValueError(f"Stored answer must have 'kind' and 'value': {text!r}")
    try:
        kind = AnswerKind(payload["kind"])
    except ValueError:
        raise ValueError(f"Unknown stored answer kind: {payload['kind']!r}") from None
    value = payload["value"]
    if kind is AnswerKind.DATE:
        if not isinstance(value, str):
            raise ValueError(f"Stored date must be an ISO string: {value!r}")
        value = dt.date.fromisoformat(value)
    return Answer(kind=kind, value=value)
