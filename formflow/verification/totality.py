"""Totality audit: every step resolves for every valid answer state.

Responsibilities:
  - Resolve each registered step against sampled answer states and collect
    NoMatchingTransition / MissingRequiredAnswer failures per step.
  - Half of the samples drop some optional answers, so rules reading an
    optional answer without an Answered guard are reported.
  - Report steps that no intent can reach.
Must not:
  - Change the registry or hide failures; the report lists all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from formflow.core.domain.errors import MissingRequiredAnswer, NoMatchingTransition
from formflow.core.engine.resolver import FlowResolver
from formflow.core.registry.registry import StepRegistry
from formflow.core.registry.transition_graph import unreachable_steps
from .sampler import AnswerSampler


@dataclass
class StepFailure:
    step_id: str
    error: str
    message: str
    count: int = 1


@dataclass
class TotalityReport:
    steps_checked: int
    samples_per_step: int
    seed: int
    failures: list[StepFailure] = field(default_factory=list)
    unreachable: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "steps_checked": self.steps_checked,
            "samples_per_step": self.samples_per_step,
            "seed": self.seed,
            "ok": self.ok,
            "failures": [f.__dict__ for f in self.failures],
            "unreachable": {k: list(v) for k, v in self.unreachable.items()},
        }


def check_totality(
    registry: StepRegistry,
    samples_per_step: int = 200,
    seed: int = 1,
    fail_fast: bool = False,
) -> TotalityReport:
    if samples_per_step < 1:
        raise ValueError("samples_per_step must be >= 1")

    resolver = FlowResolver(registry)
    sampler = AnswerSampler(registry, seed=seed)
    report = TotalityReport(
        steps_checked=0, samples_per_step=samples_per_step, seed=seed
    )

    for step_id in registry.step_ids():
        report.steps_checked += 1
        by_error: dict[str, StepFailure] = {}
        for index in range(samples_per_step):
            answers = sampler.sample(skip_optional=index % 2 == 1)
            try:
                resolver.resolve_next(step_id, answers)
            except (NoMatchingTransition, MissingRequiredAnswer) as exc:
                name = type(exc).__name__
                if name in by_error:
                    by_error[name].count += 1
                else:
                    by_error[name] = StepFailure(step_id=step_id, error=name, message=str(exc))
        report.failures.extend(by_error.values())
        if fail_fast and report.failures:
            break

    for intent_id in registry.intent_ids():
        missing = unreachable_steps(registry, intent_id)
        if missing:
            report.unreachable[intent_id] = missing

    return report
