from __future__ import annotations

import sqlite3
from typing import Any, Mapping, Optional

from formflow.core.domain.models import JourneyReplay, Resolution
from formflow.core.engine.resolver import FlowResolver
from formflow.infra.sqlite.repos.answer_repo import SQLiteAnswerStore
from formflow.infra.sqlite.repos.journey_repo import JourneyRepo
from .ports import AnswerStore, TransitionLog


class FormFlowApplication:
    def __init__(
        self,
        conn: sqlite3.Connection,
        resolver: FlowResolver,
        intent_id: str,
        answer_store: Optional[AnswerStore] = None,
        transition_log: Optional[TransitionLog] = None,
    ) -> None:
        self._conn = conn
        self._resolver = resolver
        self._intent_id = intent_id
        self._answer_store = answer_store or SQLiteAnswerStore(conn)
        self._transition_log = transition_log or JourneyRepo(conn)

    def submit_step(
        self,
        session_id: str,
        completed_step: str,
        raw_answers: Optional[Mapping[str, Any]] = None,
    ) -> Resolution:
        resolver = self._resolver.snapshot()
        step = resolver.registry.step(completed_step)
        asked = {q.key: q for q in step.questions}

        self._conn.execute("BEGIN")
        try:
            for key, raw in (raw_answers or {}).items():
                question = asked.get(key)
                if question is None:
                    raise ValueError(f"Step {completed_step} does not ask '{key}'")
                self._answer_store.save_answer(session_id, key, question.coerce(raw))

            answers = self._answer_store.get_answers(session_id)
            resolution = resolver.advance(self._intent_id, completed_step, answers)
            self._transition_log.insert_transition(session_id, self._intent_id, resolution)

            self._conn.commit()
            return resolution
        except Exception:
            self._conn.rollback()
            raise

    def current_step(self, session_id: str) -> JourneyReplay:
        return self._resolver.replay(
            self._intent_id,
            self._answer_store.get_answers(session_id),
            completed_steps=self._transition_log.completed_steps(session_id),
        )
