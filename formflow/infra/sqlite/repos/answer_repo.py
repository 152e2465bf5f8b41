"""SQLite answer store for per-session answers.

Responsibilities:
  - Serialize answers into formflow_answer and read them back as AnswerState.
Must not:
  - Decide transitions; persistence only.
"""

from __future__ import annotations

import datetime
import sqlite3

from formflow.core.answers.models import Answer, AnswerState
from formflow.core.answers.persisted import answer_from_persisted, answer_to_persisted


class SQLiteAnswerStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def save_answer(self, session_id: str, key: str, answer: Answer) -> None:
        self._conn.execute(
            """
            INSERT INTO formflow_answer (session_id, question_key, answer_json, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (session_id, question_key)
            DO UPDATE SET answer_json = excluded.answer_json, updated_at = excluded.updated_at
            """,
            (
                session_id,
                key,
                answer_to_persisted(answer),
                datetime.datetime.now(datetime.timezone.utc).isoformat(),
            ),
        )

    def save_answers(self, session_id: str, answers: AnswerState) -> None:
        for key in answers.keys():
            self.save_answer(session_id, key, answers.require(key))

    def get_answers(self, session_id: str) -> AnswerState:
        rows = self._conn.execute(
            "SELECT question_key, answer_json FROM formflow_answer WHERE session_id = ? ORDER BY question_key",
            (session_id,),
        ).fetchall()
        return AnswerState({row[0]: answer_from_persisted(row[1]) for row in rows})

    def clear(self, session_id: str) -> int:
        cur = self._conn.execute("DELETE FROM formflow_answer WHERE session_id = ?", (session_id,))
        return cur.rowcount
