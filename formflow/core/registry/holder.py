"""Atomic snapshot holder for runtime registry reloads.

Readers call current() once per resolution and keep that snapshot for the
whole call; writers replace the whole registry with swap().
"""

from __future__ import annotations

import threading

from .registry import StepRegistry


class RegistryHolder:
    def __init__(self, registry: StepRegistry) -> None:
        self._registry = registry
        self._swap_lock = threading.Lock()

    def current(self) -> StepRegistry:
        return self._registry

    def swap(self, registry: StepRegistry) -> StepRegistry:
        if not isinstance(registry, StepRegistry):
            raise TypeError("swap() expects a fully built StepRegistry")
        with self._swap_lock:
            previous = self._registry
            self._registry = registry
        return previous
