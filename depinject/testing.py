"""
Testing utilities for injectors.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .annotations import Factory, INJECT_ATTR
from .core import Injector


class MockFactory:
    """
    Factory stand-in for tests.

    Returns ``value`` (or the result of ``builder(*deps)``) and records
    every call for assertions.
    """

    def __init__(
        self,
        value: Any = None,
        *,
        inject: Sequence[str] = (),
        builder: Optional[Callable[..., Any]] = None,
    ):
        self.value = value
        self.builder = builder
        self.calls: List[tuple] = []
        setattr(self, INJECT_ATTR, list(inject))

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        if self.builder is not None:
            return self.builder(*args)
        return self.value

    def reset(self) -> None:
        """Reset tracking."""
        self.calls.clear()


def override_factories(
    factories: Mapping[str, Factory],
    **values: Any,
) -> Dict[str, Factory]:
    """
    Copy of ``factories`` with the named services replaced by constants.

    Example:
        test_factories = override_factories(APP_SERVICES, clock=FrozenClock())
    """
    overridden: Dict[str, Factory] = dict(factories)
    for name, value in values.items():
        overridden[name] = MockFactory(value)
    return overridden


def build_test_injector(
    factories: Mapping[str, Factory],
    overrides: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> Injector:
    """Build an injector over ``factories`` with constant overrides applied."""
    return Injector(override_factories(factories, **dict(overrides or {})), **kwargs)
