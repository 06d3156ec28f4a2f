"""
Explicit service registries.

A :class:`ServiceRegistry` collects factories under service names and is
passed to :class:`~depinject.core.Injector` like any other mapping.
"""

from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

from collections.abc import Mapping as MappingABC

from .annotations import Factory, annotate, eager as mark_eager


class ServiceRegistry(MappingABC):
    """
    Mapping of service name to factory, with registration helpers.

    Example:
        services = ServiceRegistry()

        @services.service("clock", eager=True)
        def make_clock():
            return SystemClock()

        services.service("scheduler", Scheduler, inject=["clock"])
        injector = services.create_injector()
    """

    def __init__(self, factories: Optional[Mapping[str, Factory]] = None):
        self._factories: Dict[str, Factory] = {}
        if factories:
            self.merge(factories)

    def service(
        self,
        name: str,
        fn: Optional[Factory] = None,
        *,
        inject: Optional[Sequence[str]] = None,
        eager: bool = False,
    ) -> Any:
        """
        Register a factory under ``name``.

        Args:
            name: Service name
            fn: Factory; when omitted, returns a decorator
            inject: Explicit dependency names (skips parameter inference)
            eager: Build the service as soon as an injector is created

        Raises:
            ValueError: If a different factory is already registered
        """
        def register(factory: Factory) -> Factory:
            if inject is not None:
                annotate(list(inject), factory)
            if eager:
                mark_eager(factory)
            self._add(name, factory)
            return factory

        if fn is None:
            return register
        return register(fn)

    def value(self, name: str, value: Any) -> None:
        """Register a constant as a service."""
        self._add(name, annotate([], lambda: value))

    def merge(self, other: Mapping[str, Factory]) -> "ServiceRegistry":
        """Copy another registry's entries into this one."""
        for name, factory in other.items():
            self._add(name, factory)
        return self

    def create_injector(self, **kwargs: Any):
        from .core import Injector
        return Injector(self, **kwargs)

    def _add(self, name: str, factory: Factory) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Service names must be non-empty strings, got {name!r}")

        existing = self._factories.get(name)
        if existing is not None:
            # Same factory registered twice is a no-op
            if existing is factory:
                return
            raise ValueError(f"Service '{name}' already registered: {existing!r}")

        self._factories[name] = factory

    def __getitem__(self, name: str) -> Factory:
        return self._factories[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __len__(self) -> int:
        return len(self._factories)

    def __repr__(self) -> str:
        return f"ServiceRegistry({list(self._factories)!r})"
