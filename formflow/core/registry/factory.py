from __future__ import annotations

from typing import Callable, Dict, Tuple

from .registry import StepRegistry


class RegistryFactory:
    def __init__(self) -> None:
        self._registry: Dict[Tuple[str, str], Callable[[], StepRegistry]] = {}

    def register(self, flow_id: str, version: str, builder: Callable[[], StepRegistry]) -> None:
        self._registry[(flow_id, version)] = builder

    def create(self, flow_id: str, version: str) -> StepRegistry:
        key = (flow_id, version)
        if key not in self._registry:
            raise ValueError(f"Unknown flow_id/version: {flow_id}:{version}")
        return self._registry[key]()

    def available(self) -> list[Tuple[str, str]]:
        return sorted(self._registry)


def _build_default_factory() -> RegistryFactory:
    from formflow.config.flow_config import load_flow_config
    from formflow.flows.tax_return import build_tax_return_registry

    factory = RegistryFactory()
    factory.register("tax_return", "v1", build_tax_return_registry)
    factory.register("benefit_application", "v1", lambda: load_flow_config("benefit_application"))
    return factory


default_registry_factory = _build_default_factory()

__all__ = ["RegistryFactory", "default_registry_factory"]
