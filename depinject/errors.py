"""
DI-specific error types with rich diagnostics.
"""

from typing import Any, List, Sequence, Tuple


def render_path(path: Sequence[str]) -> str:
    """Render a resolution path as a human readable chain."""
    return " <- ".join(repr(name) for name in path)


class DIError(Exception):
    """Base exception for DI errors."""
    pass


class UnknownServiceError(DIError):
    """No factory registered for the requested service name."""

    def __init__(self, path: Sequence[str]):
        self.path: List[str] = list(path)
        self.name = self.path[-1]

        msg = f"Unknown service {self.name!r}: {render_path(self.path)}"
        if len(self.path) > 1:
            msg += f"\nRequested by: {self.path[-2]!r}"

        msg += "\n\nSuggested fixes:"
        msg += f"\n  - Register a factory for {self.name!r}"
        msg += "\n  - Check for typos in the parameter or annotation name"

        super().__init__(msg)


class CircularDependencyError(DIError):
    """A service was requested while it was still being resolved."""

    def __init__(self, path: Sequence[str]):
        self.path: List[str] = list(path)
        self.name = self.path[-1]

        msg = f"Circular dependency detected: {render_path(self.path)}"

        msg += "\n\nSuggested fixes:"
        msg += "\n  - Restructure dependencies to remove the cycle"
        msg += "\n  - Extract shared state into a separate service"

        super().__init__(msg)


class InvalidFactoryError(DIError):
    """Factory is not invocable or its dependencies cannot be determined."""

    def __init__(self, context: str, factory: Any, reason: str = "not a callable"):
        self.context = context
        self.factory = factory
        self.reason = reason

        msg = f"Invalid factory for {context!r}: {factory!r} is {reason}"
        msg += "\n\nExpected a callable or a list of names ending in a callable"

        super().__init__(msg)


class RegistryValidationError(DIError):
    """Static validation of a factory registry found problems."""

    def __init__(
        self,
        missing: Sequence[Tuple[str, str]] = (),
        cycles: Sequence[Sequence[str]] = (),
    ):
        self.missing = list(missing)
        self.cycles = [list(cycle) for cycle in cycles]

        msg = "Service registry validation failed:"
        for service, dependency in self.missing:
            msg += f"\n  - {service!r} requires unknown service {dependency!r}"
        for cycle in self.cycles:
            # Close the loop so the chain reads end to end
            msg += f"\n  - cycle: {render_path(cycle + cycle[:1])}"

        super().__init__(msg)
