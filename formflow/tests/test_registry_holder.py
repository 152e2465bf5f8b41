"""Tests for registry snapshot swapping under concurrent resolution."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from formflow.core.answers.models import AnswerState
from formflow.core.domain.enums import TerminalOutcome
from formflow.core.domain.models import Intent, Step, Task
from formflow.core.engine.resolver import FlowResolver
from formflow.core.registry.holder import RegistryHolder
from formflow.core.registry.registry import StepRegistry
from formflow.core.rules.types import default

END = TerminalOutcome.END_OF_TASK


def make_registry(target: str) -> StepRegistry:
    steps = [
        Step("start", (), (default(target),)),
        Step("a", (), (default(END),)),
        Step("b", (), (default(END),)),
    ]
    return StepRegistry(
        steps=steps, tasks=[Task("t", ("start", "a", "b"))], intents=[Intent("i", ("t",))]
    )


def test_swap_returns_previous_and_resolver_sees_new_snapshot():
    first = make_registry("a")
    holder = RegistryHolder(first)
    resolver = FlowResolver(holder)
    assert resolver.resolve_next("start", AnswerState()) == "a"

    previous = holder.swap(make_registry("b"))
    assert previous is first
    assert resolver.resolve_next("start", AnswerState()) == "b"


def test_swap_rejects_non_registry():
    holder = RegistryHolder(make_registry("a"))
    with pytest.raises(TypeError):
        holder.swap({"start": "a"})  # type: ignore[arg-type]


def test_plain_registry_is_wrapped():
    registry = make_registry("a")
    resolver = FlowResolver(registry)
    assert resolver.registry is registry


def test_concurrent_resolution_during_swaps_sees_whole_snapshots():
    registries = [make_registry("a"), make_registry("b")]
    holder = RegistryHolder(registries[0])
    resolver = FlowResolver(holder)
    answers = AnswerState()

    def resolve_many(_: int) -> set:
        return {resolver.resolve_next("start", answers) for _ in range(200)}

    def swap_many(_: int) -> None:
        for i in range(200):
            holder.swap(registries[i % 2])

    with ThreadPoolExecutor(max_workers=6) as pool:
        swaps = [pool.submit(swap_many, n) for n in range(2)]
        results = list(pool.map(resolve_many, range(8)))
        for future in swaps:
            future.result()

    seen = set().union(*results)
    assert seen <= {"a", "b"}
