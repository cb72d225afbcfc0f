"""Name-to-factory registries used to build loss metrics from configuration."""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, MutableMapping

Factory = Callable[..., Any]
Registry = MutableMapping[str, Factory]


class ModuleRegistry:
    """Map string keys (as written in YAML) to constructors."""

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace
        self._factories: Dict[str, Factory] = {}

    def register(self, name: str) -> Callable[[Factory], Factory]:
        key = name.lower()
        if key in self._factories:
            raise KeyError(f"Registry '{self.namespace}' already contains a component named '{key}'")

        def decorator(factory: Factory) -> Factory:
            self._factories[key] = factory
            return factory

        return decorator

    def get(self, key: str) -> Factory:
        try:
            return self._factories[key.lower()]
        except KeyError as exc:
            raise KeyError(
                f"Unknown {self.namespace or 'component'} '{key}'. Available: {self.names()}"
            ) from exc

    def create(self, key: str, /, *args: Any, **kwargs: Any) -> Any:
        # ``key`` is positional-only so factories may take a ``name`` keyword.
        return self.get(key)(*args, **kwargs)

    def names(self) -> List[str]:
        return sorted(self._factories)

    def available(self) -> Registry:
        return dict(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories


class _NamespacedRegistries(defaultdict):
    def __missing__(self, namespace: str) -> ModuleRegistry:
        registry = self[namespace] = ModuleRegistry(namespace)
        return registry


registries: Dict[str, ModuleRegistry] = _NamespacedRegistries()


def get_registry(namespace: str) -> ModuleRegistry:
    return registries[namespace]


__all__ = ["ModuleRegistry", "get_registry"]
