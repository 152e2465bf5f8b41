"""Tests for replaying a journey from stored answers."""

from __future__ import annotations

import datetime as dt

import pytest

from formflow.core.answers.models import Answer, AnswerState, Question
from formflow.core.domain.enums import AnswerKind, TerminalOutcome
from formflow.core.domain.errors import FlowCycleError
from formflow.core.domain.models import Intent, Step, Task
from formflow.core.engine.resolver import FlowResolver
from formflow.core.registry.registry import StepRegistry
from formflow.core.rules.types import default
from formflow.flows.tax_return import build_tax_return_registry


def mk_answers(registry: StepRegistry, **raw) -> AnswerState:
    return AnswerState.from_raw(registry.questions, raw)


def test_empty_answers_stop_at_first_step():
    resolver = FlowResolver(build_tax_return_registry())
    replay = resolver.replay("file-return", AnswerState())
    assert replay.path == ("your-name",)
    assert replay.current_step == "your-name"
    assert not replay.finished


def test_replay_crosses_tasks_and_stops_at_unanswered_step():
    registry = build_tax_return_registry()
    answers = mk_answers(
        registry,
        fullName="Ada Lovelace",
        dateOfBirth=dt.date(1980, 5, 17).isoformat(),
        taxType="income",
        annualIncome=50_000,
    )
    replay = FlowResolver(registry).replay("file-return", answers)
    assert replay.path == ("your-name", "date-of-birth", "tax-type", "income-details", "declaration")
    assert replay.current_step == "declaration"
    assert replay.outcome is None


def test_replay_ends_with_submission():
    registry = build_tax_return_registry()
    answers = mk_answers(
        registry,
        fullName="Ada Lovelace",
        dateOfBirth="1980-05-17",
        taxType="vat",
        vatRegistered=True,
        declarationConfirmed=True,
    )
    replay = FlowResolver(registry).replay("file-return", answers)
    assert replay.finished
    assert replay.outcome is TerminalOutcome.SUBMITTED
    assert replay.path[-1] == "declaration"


def test_replay_short_circuits_on_rejection():
    registry = build_tax_return_registry()
    answers = mk_answers(
        registry, fullName="Ada", dateOfBirth="1980-05-17", taxType="other", declarationConfirmed=True
    )
    replay = FlowResolver(registry).replay("file-return", answers)
    assert replay.path == ("your-name", "date-of-birth", "tax-type", "unsupported-tax")
    assert replay.outcome is TerminalOutcome.INELIGIBLE


def test_replay_detects_cycles():
    steps = [Step("a", (), (default("b"),)), Step("b", (), (default("a"),))]
    registry = StepRegistry(steps=steps, tasks=[Task("t", ("a", "b"))], intents=[Intent("i", ("t",))])
    with pytest.raises(FlowCycleError) as excinfo:
        FlowResolver(registry).replay("i", AnswerState())
    assert excinfo.value.path == ["a", "b", "a"]


def make_optional_first_registry() -> StepRegistry:
    notes = Question("notes", AnswerKind.TEXT, required=False)
    name = Question("fullName", AnswerKind.TEXT)
    steps = [
        Step("extra-notes", (notes,), (default("name"),)),
        Step("name", (name,), (default(TerminalOutcome.SUBMITTED),)),
    ]
    return StepRegistry(
        steps=steps, tasks=[Task("t", ("extra-notes", "name"))], intents=[Intent("i", ("t",))]
    )


def test_optional_only_step_is_current_until_answered_or_submitted():
    resolver = FlowResolver(make_optional_first_registry())
    assert resolver.replay("i", AnswerState()).current_step == "extra-notes"

    noted = AnswerState({"notes": Answer(AnswerKind.TEXT, "call after 5")})
    assert resolver.replay("i", noted).current_step == "name"

    skipped = resolver.replay("i", AnswerState(), completed_steps={"extra-notes"})
    assert skipped.current_step == "name"
    assert skipped.path == ("extra-notes", "name")
