"""JSON flow definitions -> StepRegistry.

Responsibilities:
  - Load packaged or external flow definition files.
  - Check every field strictly and coerce condition literals through the
    kind of the question they compare against.
Must not:
  - Resolve steps; the registry and resolver own runtime behavior.
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Optional

from formflow.core.answers.models import Question
from formflow.core.domain.enums import AnswerKind, TerminalOutcome
from formflow.core.domain.errors import FlowConfigError
from formflow.core.domain.models import Intent, Step, Task
from formflow.core.registry.registry import StepRegistry
from formflow.core.rules import conditions as c
from formflow.core.rules.types import Target, TransitionRule

_COMPARE_OPS = {"eq", "ne", "lt", "le", "gt", "ge"}


def _definitions_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "flows" / "definitions"


def _require(payload: dict[str, Any], key: str, expected_type: type, where: str) -> Any:
    if key not in payload:
        raise FlowConfigError(f"Missing required field '{key}' in {where}")
    value = payload[key]
    if expected_type is list:
        if not isinstance(value, list):
            raise FlowConfigError(f"Field '{key}' in {where} must be a list")
        return value
    if expected_type is dict:
        if not isinstance(value, dict):
            raise FlowConfigError(f"Field '{key}' in {where} must be an object")
        return value
    if expected_type is bool:
        if not isinstance(value, bool):
            raise FlowConfigError(f"Field '{key}' in {where} must be bool")
        return value
    if not isinstance(value, expected_type):
        raise FlowConfigError(f"Field '{key}' in {where} must be {expected_type.__name__}")
    return value


def _require_str_list(payload: dict[str, Any], key: str, where: str) -> tuple[str, ...]:
    values = _require(payload, key, list, where)
    if any(not isinstance(v, str) for v in values):
        raise FlowConfigError(f"Field '{key}' in {where} must list strings")
    return tuple(values)


def _coerce_literal(kind: AnswerKind, value: Any, where: str) -> Any:
    if kind is AnswerKind.DATE and isinstance(value, str):
        try:
            return dt.date.fromisoformat(value)
        except ValueError as exc:
            raise FlowConfigError(f"Invalid date literal {value!r} in {where}") from exc
    return value


def _parse_question(payload: Any) -> Question:
    if not isinstance(payload, dict):
        raise FlowConfigError("Question definition must be a JSON object")
    key = _require(payload, "key", str, "question")
    where = f"question '{key}'"
    raw_kind = _require(payload, "kind", str, where)
    try:
        kind = AnswerKind(raw_kind)
    except ValueError:
        raise FlowConfigError(f"Unknown answer kind '{raw_kind}' in {where}") from None
    options = tuple(payload.get("options", ()))
    if any(not isinstance(o, str) for o in options):
        raise FlowConfigError(f"Options of {where} must be strings")
    required = payload.get("required", True)
    if not isinstance(required, bool):
        raise FlowConfigError(f"Field 'required' in {where} must be bool")
    min_value = payload.get("min")
    max_value = payload.get("max")
    if min_value is not None:
        min_value = _coerce_literal(kind, min_value, where)
    if max_value is not None:
        max_value = _coerce_literal(kind, max_value, where)
    try:
        return Question(
            key=key,
            kind=kind,
            options=options,
            required=required,
            min_value=min_value,
            max_value=max_value,
        )
    except ValueError as exc:
        raise FlowConfigError(str(exc)) from exc


def _parse_condition(payload: Any, questions: dict[str, Question], where: str) -> c.Condition:
    if not isinstance(payload, dict):
        raise FlowConfigError(f"Condition in {where} must be a JSON object")
    op = _require(payload, "op", str, where)
    if op == "always":
        return c.always()
    if op in _COMPARE_OPS or op in {"in", "answered", "not_answered"}:
        key = _require(payload, "key", str, where)
        question = questions.get(key)
        if question is None:
            raise FlowConfigError(f"Condition in {where} reads unknown answer '{key}'")
        if op == "answered":
            return c.answered(key)
        if op == "not_answered":
            return c.not_answered(key)
        if op == "in":
            values = _require(payload, "values", list, where)
            if not values:
                raise FlowConfigError(f"Condition 'in' in {where} needs values")
            return c.one_of(key, *(_coerce_literal(question.kind, v, where) for v in values))
        if "value" not in payload:
            raise FlowConfigError(f"Missing required field 'value' in {where}")
        return c.Compare(op, key, _coerce_literal(question.kind, payload["value"], where))
    if op == "from_step":
        return c.from_step(*_require_str_list(payload, "steps", where))
    if op in {"all", "any"}:
        parts = _require(payload, "conditions", list, where)
        parsed = [_parse_condition(part, questions, where) for part in parts]
        return c.all_of(*parsed) if op == "all" else c.any_of(*parsed)
    if op == "not":
        inner = _require(payload, "condition", dict, where)
        return c.negate(_parse_condition(inner, questions, where))
    raise FlowConfigError(f"Unknown condition op '{op}' in {where}")


def _parse_target(payload: dict[str, Any], where: str) -> Target:
    has_goto = "goto" in payload
    has_outcome = "outcome" in payload
    if has_goto == has_outcome:
        raise FlowConfigError(f"Rule in {where} needs exactly one of 'goto' or 'outcome'")
    if has_goto:
        return _require(payload, "goto", str, where)
    raw = _require(payload, "outcome", str, where)
    try:
        return TerminalOutcome(raw)
    except ValueError:
        raise FlowConfigError(f"Unknown outcome '{raw}' in {where}") from None


def _parse_step(payload: Any, questions: dict[str, Question]) -> Step:
    if not isinstance(payload, dict):
        raise FlowConfigError("Step definition must be a JSON object")
    step_id = _require(payload, "id", str, "step")
    where = f"step '{step_id}'"
    step_questions = []
    for key in payload.get("questions", []):
        if key not in questions:
            raise FlowConfigError(f"{where} asks unknown question '{key}'")
        step_questions.append(questions[key])
    rules = []
    for index, raw_rule in enumerate(_require(payload, "rules", list, where)):
        rule_where = f"{where} rule {index}"
        if not isinstance(raw_rule, dict):
            raise FlowConfigError(f"Rule in {rule_where} must be a JSON object")
        when = raw_rule.get("when")
        condition = c.always() if when is None else _parse_condition(when, questions, rule_where)
        name = raw_rule.get("name")
        if name is not None and not isinstance(name, str):
            raise FlowConfigError(f"Field 'name' in {rule_where} must be str")
        rules.append(
            TransitionRule(condition=condition, target=_parse_target(raw_rule, rule_where), name=name)
        )
    return Step(id=step_id, questions=tuple(step_questions), rules=tuple(rules))


def parse_flow_payload(
    payload: Any, expected_flow_id: Optional[str] = None, require_default_rule: bool = True
) -> StepRegistry:
    if not isinstance(payload, dict):
        raise FlowConfigError("Flow definition must be a JSON object")

    flow_id = _require(payload, "flow_id", str, "flow definition")
    if expected_flow_id is not None and flow_id != expected_flow_id:
        raise FlowConfigError(
            f"flow_id mismatch: requested '{expected_flow_id}', definition has '{flow_id}'"
        )

    questions: dict[str, Question] = {}
    for raw in _require(payload, "questions", list, "flow definition"):
        question = _parse_question(raw)
        if question.key in questions:
            raise FlowConfigError(f"Duplicate question key: {question.key}")
        questions[question.key] = question

    steps = [_parse_step(raw, questions) for raw in _require(payload, "steps", list, "flow definition")]

    tasks = []
    for raw in _require(payload, "tasks", list, "flow definition"):
        if not isinstance(raw, dict):
            raise FlowConfigError("Task definition must be a JSON object")
        task_id = _require(raw, "id", str, "task")
        tasks.append(Task(id=task_id, steps=_require_str_list(raw, "steps", f"task '{task_id}'")))

    intents = []
    for raw in _require(payload, "intents", list, "flow definition"):
        if not isinstance(raw, dict):
            raise FlowConfigError("Intent definition must be a JSON object")
        intent_id = _require(raw, "id", str, "intent")
        intents.append(
            Intent(id=intent_id, tasks=_require_str_list(raw, "tasks", f"intent '{intent_id}'"))
        )

    return StepRegistry(
        steps=steps, tasks=tasks, intents=intents, require_default_rule=require_default_rule
    )


def _read_payload(flow_path: Path) -> Any:
    try:
        return json.loads(flow_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FlowConfigError(f"Invalid JSON in {flow_path}: {exc}") from exc


def load_flow_file(path: str | Path, require_default_rule: bool = True) -> StepRegistry:
    flow_path = Path(path)
    if not flow_path.exists():
        raise FlowConfigError(f"Flow definition not found: {flow_path}")
    payload = _read_payload(flow_path)
    return parse_flow_payload(payload, require_default_rule=require_default_rule)


def load_flow_config(flow_id: str) -> StepRegistry:
    flow_path = _definitions_dir() / f"{flow_id}.json"
    if not flow_path.exists():
        raise FlowConfigError(f"Unknown flow_id: {flow_id}")
    payload = _read_payload(flow_path)
    return parse_flow_payload(payload, expected_flow_id=flow_id)
