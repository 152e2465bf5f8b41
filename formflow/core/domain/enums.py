"""Domain enums for step resolution.

Responsibilities:
  - Define TerminalOutcome and AnswerKind identifiers used in config and storage.
  - Provide stable outcome metadata for callers deciding what to render.

Invariants:
  - Enum values must remain stable for persistence and flow definitions.
  - Outcome metadata must be complete and deterministic.
"""

from __future__ import annotations

from enum import Enum


class TerminalOutcome(Enum):
    END_OF_TASK = "end_of_task"
    SUBMITTED = "submitted"
    INELIGIBLE = "ineligible"

    @property
    def ends_service(self) -> bool:
        return bool(OUTCOME_METADATA[self]["ends_service"])

    @property
    def is_success(self) -> bool:
        return bool(OUTCOME_METADATA[self]["success"])


class AnswerKind(Enum):
    CHOICE = "choice"
    TEXT = "text"
    DATE = "date"
    NUMBER = "number"
    BOOLEAN = "boolean"


# Render/audit metadata keyed by outcome.
OUTCOME_METADATA: dict[TerminalOutcome, dict[str, object]] = {
    TerminalOutcome.END_OF_TASK: {
        "ends_service": False,
        "success": True,
        "message": "Task finished; continue with the next task in the journey.",
    },
    TerminalOutcome.SUBMITTED: {
        "ends_service": True,
        "success": True,
        "message": "Application submitted.",
    },
    TerminalOutcome.INELIGIBLE: {
        "ends_service": True,
        "success": False,
        "message": "Applicant is not eligible for this service.",
    },
}


def outcome_from_persisted(label: str) -> TerminalOutcome | None:
    if not label:
        return None
    try:
        return TerminalOutcome(label)
    except ValueError:
        return None


_missing = [o for o in TerminalOutcome if o not in OUTCOME_METADATA]
if _missing:
    raise RuntimeError(f"Missing OUTCOME_METADATA for: {[m.value for m in _missing]}")
