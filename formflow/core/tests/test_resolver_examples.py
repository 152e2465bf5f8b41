"""Tests for step resolution: branching, terminals, missing answers, cross-task."""

from __future__ import annotations

import pytest

from formflow.core.answers.models import Answer, AnswerState, Question
from formflow.core.domain.enums import AnswerKind, TerminalOutcome
from formflow.core.domain.errors import (
    MissingRequiredAnswer,
    NoMatchingTransition,
    UnknownIntent,
    UnknownStep,
)
from formflow.core.domain.models import Intent, Step, Task
from formflow.core.engine.resolver import FlowResolver, set_resolver_debug
from formflow.core.registry.registry import StepRegistry
from formflow.core.rules.conditions import answered, eq, gt, lt
from formflow.core.rules.types import default, rule

TAX_TYPE = Question("taxType", AnswerKind.CHOICE, options=("income", "vat", "other"))
AGE = Question("age", AnswerKind.NUMBER)
HOUSEHOLD = Question("householdSize", AnswerKind.NUMBER)
NOTES = Question("notes", AnswerKind.TEXT, required=False)


def make_answers(**values) -> AnswerState:
    kinds = {"taxType": AnswerKind.CHOICE, "age": AnswerKind.NUMBER, "householdSize": AnswerKind.NUMBER}
    return AnswerState({key: Answer(kinds[key], value) for key, value in values.items()})


def make_tax_registry() -> StepRegistry:
    steps = [
        Step(
            "tax-type",
            (TAX_TYPE,),
            (
                rule(eq("taxType", "income"), "income-details"),
                rule(eq("taxType", "vat"), "vat-details"),
                default("unsupported-tax"),
            ),
        ),
        Step("income-details", (), (default(TerminalOutcome.END_OF_TASK),)),
        Step("vat-details", (), (default(TerminalOutcome.END_OF_TASK),)),
        Step("unsupported-tax", (), (default(TerminalOutcome.INELIGIBLE),)),
    ]
    tasks = [Task("tax", ("tax-type", "income-details", "vat-details", "unsupported-tax"))]
    return StepRegistry(steps=steps, tasks=tasks, intents=[Intent("file", ("tax",))])


def make_two_task_registry() -> StepRegistry:
    steps = [
        Step(
            "eligibility-check",
            (AGE,),
            (
                rule(lt("age", 16), TerminalOutcome.INELIGIBLE, "under-16"),
                default("last-a"),
            ),
        ),
        Step("last-a", (), (default("first-b"),)),
        Step(
            "first-b",
            (HOUSEHOLD, NOTES),
            (
                rule(answered("notes"), "notes-review"),
                default(TerminalOutcome.END_OF_TASK),
            ),
        ),
        Step("notes-review", (), (default(TerminalOutcome.END_OF_TASK),)),
        Step("declare", (), (default(TerminalOutcome.SUBMITTED),)),
    ]
    tasks = [
        Task("A", ("eligibility-check", "last-a")),
        Task("B", ("first-b", "notes-review")),
        Task("C", ("declare",)),
    ]
    intents = [Intent("apply", ("A", "B", "C")), Intent("short", ("A",))]
    return StepRegistry(steps=steps, tasks=tasks, intents=intents)


def test_tax_type_income_branch():
    resolver = FlowResolver(make_tax_registry())
    assert resolver.resolve_next("tax-type", make_answers(taxType="income")) == "income-details"


def test_tax_type_vat_and_default_branches():
    resolver = FlowResolver(make_tax_registry())
    assert resolver.resolve_next("tax-type", make_answers(taxType="vat")) == "vat-details"
    assert resolver.resolve_next("tax-type", make_answers(taxType="other")) == "unsupported-tax"


def test_under_16_resolves_to_rejection_outcome():
    resolver = FlowResolver(make_two_task_registry())
    target = resolver.resolve_next("eligibility-check", make_answers(age=15))
    assert target is TerminalOutcome.INELIGIBLE
    assert target.ends_service
    assert not target.is_success


def test_age_16_is_not_rejected():
    resolver = FlowResolver(make_two_task_registry())
    assert resolver.resolve_next("eligibility-check", make_answers(age=16)) == "last-a"


def test_missing_answer_fails_instead_of_default():
    resolver = FlowResolver(make_tax_registry())
    with pytest.raises(MissingRequiredAnswer) as excinfo:
        resolver.resolve_next("tax-type", AnswerState())
    assert excinfo.value.key == "taxType"
    assert excinfo.value.step_id == "tax-type"


def test_rule_reading_earlier_answer_raises_when_absent():
    ask = Question("ask", AnswerKind.BOOLEAN)
    steps = [
        Step("first", (HOUSEHOLD,), (default("second"),)),
        Step(
            "second",
            (ask,),
            (rule(gt("householdSize", 4), "large"), default(TerminalOutcome.END_OF_TASK)),
        ),
        Step("large", (), (default(TerminalOutcome.END_OF_TASK),)),
    ]
    registry = StepRegistry(
        steps=steps,
        tasks=[Task("t", ("first", "second", "large"))],
        intents=[Intent("i", ("t",))],
    )
    answers = AnswerState({"ask": Answer(AnswerKind.BOOLEAN, True)})
    with pytest.raises(MissingRequiredAnswer) as excinfo:
        FlowResolver(registry).resolve_next("second", answers)
    assert excinfo.value.key == "householdSize"


def test_cross_task_target_is_returned_as_is():
    resolver = FlowResolver(make_two_task_registry())
    assert resolver.resolve_next("last-a", AnswerState()) == "first-b"
    resolution = resolver.resolve("last-a", AnswerState())
    assert resolution.from_task == "A"
    assert resolution.to_task == "B"
    assert resolution.cross_task


def test_first_registered_rule_wins():
    def build(order):
        rules = tuple(rule(gt("age", limit), target) for limit, target in order)
        steps = [
            Step("s", (AGE,), rules + (default("z"),)),
            Step("x", (), (default(TerminalOutcome.END_OF_TASK),)),
            Step("y", (), (default(TerminalOutcome.END_OF_TASK),)),
            Step("z", (), (default(TerminalOutcome.END_OF_TASK),)),
        ]
        return StepRegistry(
            steps=steps, tasks=[Task("t", ("s", "x", "y", "z"))], intents=[Intent("i", ("t",))]
        )

    answers = make_answers(age=20)
    assert FlowResolver(build([(10, "x"), (5, "y")])).resolve_next("s", answers) == "x"
    assert FlowResolver(build([(5, "y"), (10, "x")])).resolve_next("s", answers) == "y"


def test_no_matching_transition_is_raised_not_defaulted():
    steps = [
        Step("tax-type", (TAX_TYPE,), (rule(eq("taxType", "income"), "income-details"),)),
        Step("income-details", (), ()),
    ]
    registry = StepRegistry(
        steps=steps,
        tasks=[Task("tax", ("tax-type", "income-details"))],
        intents=[Intent("file", ("tax",))],
        require_default_rule=False,
    )
    resolver = FlowResolver(registry)
    with pytest.raises(NoMatchingTransition) as excinfo:
        resolver.resolve_next("tax-type", make_answers(taxType="vat"))
    assert excinfo.value.step_id == "tax-type"
    assert excinfo.value.rules_checked == 1
    with pytest.raises(NoMatchingTransition):
        resolver.resolve_next("income-details", AnswerState())


def test_unknown_step():
    resolver = FlowResolver(make_tax_registry())
    with pytest.raises(UnknownStep):
        resolver.resolve_next("nope", make_answers(taxType="income"))


def test_resolution_is_deterministic_and_does_not_mutate_answers():
    resolver = FlowResolver(make_tax_registry())
    answers = make_answers(taxType="vat")
    before = AnswerState(dict(answers.answers))
    results = {resolver.resolve_next("tax-type", answers) for _ in range(50)}
    assert results == {"vat-details"}
    assert answers == before


def test_optional_question_may_be_absent():
    resolver = FlowResolver(make_two_task_registry())
    answers = make_answers(householdSize=3)
    assert resolver.resolve_next("first-b", answers) is TerminalOutcome.END_OF_TASK
    with_notes = answers.with_answer("notes", Answer(AnswerKind.TEXT, "see attachment"))
    assert resolver.resolve_next("first-b", with_notes) == "notes-review"


def test_advance_maps_end_of_task_to_next_task_entry():
    resolver = FlowResolver(make_two_task_registry())
    resolution = resolver.advance("apply", "first-b", make_answers(householdSize=2))
    assert resolution.target == "declare"
    assert resolution.next_task == "C"
    assert resolution.from_task == "B"


def test_advance_keeps_end_of_task_after_last_task():
    resolver = FlowResolver(make_two_task_registry())
    resolution = resolver.advance("apply", "notes-review", AnswerState())
    assert resolution.target == "declare"
    resolution = resolver.advance("short", "eligibility-check", make_answers(age=30))
    assert resolution.target == "last-a"
    registry = make_tax_registry()
    resolution = FlowResolver(registry).advance("file", "income-details", AnswerState())
    assert resolution.outcome is TerminalOutcome.END_OF_TASK
    assert resolution.next_task is None


def test_advance_rejects_unknown_intent_and_foreign_step():
    resolver = FlowResolver(make_two_task_registry())
    with pytest.raises(UnknownIntent):
        resolver.advance("missing", "last-a", AnswerState())
    with pytest.raises(UnknownStep):
        resolver.advance("short", "first-b", make_answers(householdSize=2))


def test_navigation_queries():
    resolver = FlowResolver(make_two_task_registry())
    assert resolver.steps_for_task("B") == ("first-b", "notes-review")
    assert [t.id for t in resolver.tasks_for_intent("apply")] == ["A", "B", "C"]


def test_debug_hook_receives_resolution_line():
    lines: list[str] = []
    set_resolver_debug(lines.append)
    try:
        FlowResolver(make_tax_registry()).resolve_next("tax-type", make_answers(taxType="income"))
    finally:
        set_resolver_debug(None)
    assert len(lines) == 1
    assert lines[0].startswith("RESOLVE step=tax-type")
    assert "target=income-details" in lines[0]
