"""SQLite repository for the per-session transition audit trail.

Responsibilities:
  - Append one formflow_transition row per resolved step.
  - Read a session's trail back in insertion order.
  - Report which steps a session has already submitted.
Must not:
  - Modify resolution logic; persistence only.
"""

from __future__ import annotations

import datetime
import sqlite3
from dataclasses import dataclass

from formflow.core.domain.enums import TerminalOutcome
from formflow.core.domain.models import Resolution


@dataclass(frozen=True)
class TransitionRow:
    session_id: str
    intent_id: str
    from_step: str
    from_task: str
    target: str
    target_kind: str
    rule_name: str


class JourneyRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert_transition(self, session_id: str, intent_id: str, resolution: Resolution) -> None:
        target = resolution.target
        if isinstance(target, TerminalOutcome):
            target_value, target_kind = target.value, "outcome"
        else:
            target_value, target_kind = target, "step"
        self._conn.execute(
            """
            INSERT INTO formflow_transition (
                session_id,
                intent_id,
                from_step,
                from_task,
                target,
                target_kind,
                rule_name,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                intent_id,
                resolution.completed_step,
                resolution.from_task,
                target_value,
                target_kind,
                resolution.rule_name,
                datetime.datetime.now(datetime.timezone.utc).isoformat(),
            ),
        )

    def list_transitions(self, session_id: str) -> list[TransitionRow]:
        rows = self._conn.execute(
            """
            SELECT session_id, intent_id, from_step, from_task, target, target_kind, rule_name
            FROM formflow_transition
            WHERE session_id = ?
            ORDER BY id
            """,
            (session_id,),
        ).fetchall()
        return [TransitionRow(*tuple(row)) for row in rows]

    def completed_steps(self, session_id: str) -> frozenset[str]:
        rows = self._conn.execute(
            "SELECT DISTINCT from_step FROM formflow_transition WHERE session_id = ?",
            (session_id,),
        ).fetchall()
        return frozenset(row[0] for row in rows)
