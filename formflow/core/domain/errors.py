"""Error kinds raised by the resolver and the registry.

Resolution errors signal configuration or programming defects. They are
surfaced to the caller unchanged and never defaulted to another step.
"""

from __future__ import annotations

from typing import Optional


class FlowResolutionError(RuntimeError):
    pass


class UnknownStep(FlowResolutionError):
    def __init__(self, step_id: str, scope: Optional[str] = None) -> None:
        self.step_id = step_id
        self.scope = scope
        where = f" in {scope}" if scope else ""
        super().__init__(f"Unknown step{where}: {step_id}")


class UnknownTask(FlowResolutionError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Unknown task: {task_id}")


class UnknownIntent(FlowResolutionError):
    def __init__(self, intent_id: str) -> None:
        self.intent_id = intent_id
        super().__init__(f"Unknown intent: {intent_id}")


class MissingRequiredAnswer(FlowResolutionError):
    def __init__(self, key: str, step_id: Optional[str] = None) -> None:
        self.key = key
        self.step_id = step_id
        where = f" at step {step_id}" if step_id else ""
        super().__init__(f"Missing required answer '{key}'{where}")


class NoMatchingTransition(FlowResolutionError):
    def __init__(self, step_id: str, rules_checked: int) -> None:
        self.step_id = step_id
        self.rules_checked = rules_checked
        super().__init__(
            f"No transition rule matched for step {step_id} ({rules_checked} rule(s) checked)"
        )


class FlowCycleError(FlowResolutionError):
    def __init__(self, path: list[str]) -> None:
        self.path = list(path)
        super().__init__(f"Journey revisits a step: {' -> '.join(self.path)}")


class FlowConfigError(ValueError):
    pass
