"""Tests for SQLite answer store, journey repo and migrations."""

from __future__ import annotations

import datetime as dt

from formflow.core.answers.models import Answer, AnswerState
from formflow.core.domain.enums import AnswerKind, TerminalOutcome
from formflow.core.domain.models import Resolution
from formflow.infra.sqlite.db import get_connection
from formflow.infra.sqlite.migrator import applied_migrations, apply_migrations
from formflow.infra.sqlite.repos.answer_repo import SQLiteAnswerStore
from formflow.infra.sqlite.repos.journey_repo import JourneyRepo


def make_conn():
    conn = get_connection(":memory:")
    apply_migrations(conn)
    return conn


def test_migrations_apply_once():
    conn = get_connection(":memory:")
    first = apply_migrations(conn)
    assert first == ["001_formflow_answer.sql", "002_formflow_transition.sql"]
    assert apply_migrations(conn) == []
    assert applied_migrations(conn) == first


def test_answers_are_stored_per_session_and_overwritten():
    store = SQLiteAnswerStore(make_conn())
    store.save_answer("s1", "taxType", Answer(AnswerKind.CHOICE, "vat"))
    store.save_answer("s1", "dob", Answer(AnswerKind.DATE, dt.date(1990, 1, 2)))
    store.save_answer("s2", "taxType", Answer(AnswerKind.CHOICE, "income"))
    store.save_answer("s1", "taxType", Answer(AnswerKind.CHOICE, "income"))

    answers = store.get_answers("s1")
    assert answers == AnswerState(
        {
            "taxType": Answer(AnswerKind.CHOICE, "income"),
            "dob": Answer(AnswerKind.DATE, dt.date(1990, 1, 2)),
        }
    )
    assert store.get_answers("unknown") == AnswerState()
    assert store.clear("s1") == 2
    assert store.get_answers("s1") == AnswerState()
    assert store.get_answers("s2").value("taxType") == "income"


def test_save_answers_writes_whole_snapshot():
    store = SQLiteAnswerStore(make_conn())
    snapshot = AnswerState(
        {"agree": Answer(AnswerKind.BOOLEAN, True), "income": Answer(AnswerKind.NUMBER, 12.5)}
    )
    store.save_answers("s1", snapshot)
    assert store.get_answers("s1") == snapshot


def test_journey_repo_records_steps_and_outcomes_in_order():
    repo = JourneyRepo(make_conn())
    repo.insert_transition(
        "s1",
        "apply",
        Resolution("a", "b", "default", from_task="t1", to_task="t2"),
    )
    repo.insert_transition(
        "s1",
        "apply",
        Resolution("b", TerminalOutcome.INELIGIBLE, "under-16", from_task="t2", to_task=None),
    )
    rows = repo.list_transitions("s1")
    assert [(r.from_step, r.target, r.target_kind) for r in rows] == [
        ("a", "b", "step"),
        ("b", "ineligible", "outcome"),
    ]
    assert rows[1].rule_name == "under-16"
    assert repo.list_transitions("s2") == []
    assert repo.completed_steps("s1") == frozenset({"a", "b"})
    assert repo.completed_steps("s2") == frozenset()
