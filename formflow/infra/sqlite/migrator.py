"""SQLite schema migration helpers for answer and transition tables.

Responsibilities:
  - Apply packaged *.sql migrations in file-name order, each at most once.
  - Record applied migration names in formflow_schema_migration.
Must not:
  - Embed business logic; migrations only.
"""

from __future__ import annotations

import datetime
import sqlite3
from pathlib import Path


def _migrations_dir() -> Path:
    return Path(__file__).resolve().parent / "migrations"


def applied_migrations(conn: sqlite3.Connection) -> list[str]:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS formflow_schema_migration (name TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
    )
    rows = conn.execute("SELECT name FROM formflow_schema_migration ORDER BY name").fetchall()
    return [row[0] for row in rows]


def apply_migrations(conn: sqlite3.Connection) -> list[str]:
    done = set(applied_migrations(conn))
    newly_applied: list[str] = []
    for migration in sorted(_migrations_dir().glob("*.sql")):
        if migration.name in done:
            continue
        conn.executescript(migration.read_text(encoding="utf-8"))
        conn.execute(
            "INSERT INTO formflow_schema_migration (name, applied_at) VALUES (?, ?)",
            (migration.name, datetime.datetime.now(datetime.timezone.utc).isoformat()),
        )
        newly_applied.append(migration.name)
    conn.commit()
    return newly_applied
