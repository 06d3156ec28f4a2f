"""
Dependency descriptors for factories.

A factory's dependencies are the ordered service names it needs. They come
from one of three places:

- an explicit annotation attached with :func:`annotate` (authoritative),
- a list-form factory ``["a", "b", fn]`` (sugar for annotating ``fn``),
- structural inference from the callable's parameter names.

Inferred lists are memoized on the callable, so inference runs at most once
per factory.
"""

from typing import Any, Callable, List, Sequence, Tuple, Union
import inspect
import logging

from .errors import InvalidFactoryError

logger = logging.getLogger("depinject.annotations")

INJECT_ATTR = "__inject__"
EAGER_ATTR = "__eager__"

# Parameter kinds that receive injected values positionally
_INJECTABLE_KINDS = frozenset((
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
))

Factory = Union[Callable[..., Any], Sequence[Any]]


def _own_attr(fn: Any, name: str) -> Any:
    """Read a marker set on ``fn`` itself, ignoring inherited class attributes."""
    try:
        return vars(fn).get(name)
    except TypeError:
        # No __dict__ (bound methods forward to __func__, builtins have none)
        return getattr(fn, name, None)


def _check_names(names: Sequence[Any]) -> List[str]:
    for name in names:
        if not isinstance(name, str) or not name:
            raise TypeError(f"Service names must be non-empty strings, got {name!r}")
    return list(names)


def annotate(*args: Any) -> Any:
    """
    Attach an explicit dependency list to a callable.

    Equivalent forms:

        annotate(["db", "cache"], handler)
        annotate("db", "cache", handler)

    Called with names only, returns a decorator:

        @annotate("db", "cache")
        def handler(database, cache_backend):
            ...

    The annotation is authoritative: parameter names are never inspected
    for an annotated callable.
    """
    if args and callable(args[-1]):
        *names, fn = args
    else:
        names, fn = list(args), None

    if len(names) == 1 and isinstance(names[0], (list, tuple)):
        names = list(names[0])
    names = _check_names(names)

    def decorator(target: Callable[..., Any]) -> Callable[..., Any]:
        setattr(target, INJECT_ATTR, list(names))
        return target

    if fn is None:
        return decorator
    return decorator(fn)


def eager(factory: Factory) -> Factory:
    """
    Mark a factory as eager: it is built when the injector is created.

    For list-form factories the marker goes on the trailing callable.
    """
    fn = factory[-1] if isinstance(factory, (list, tuple)) and factory else factory
    setattr(fn, EAGER_ATTR, True)
    return factory


def is_eager(factory: Factory) -> bool:
    if isinstance(factory, (list, tuple)):
        if not factory:
            return False
        factory = factory[-1]
    return bool(_own_attr(factory, EAGER_ATTR))


def infer_dependencies(fn: Callable[..., Any]) -> List[str]:
    """
    Derive dependency names from the callable's declared parameters.

    Positional parameters without defaults are injected, left to right.
    Defaults, ``*args``, ``**kwargs`` and keyword-only parameters are left
    for the caller.

    Raises:
        ValueError/TypeError: If the signature cannot be introspected
    """
    sig = inspect.signature(fn)
    return [
        param.name
        for param in sig.parameters.values()
        if param.kind in _INJECTABLE_KINDS and param.default is inspect.Parameter.empty
    ]


def get_dependencies(fn: Callable[..., Any], context: str = "<anonymous>") -> List[str]:
    """
    Return the dependency names of ``fn``, inferring and memoizing if needed.

    Raises:
        InvalidFactoryError: If ``fn`` is not callable or cannot be inspected
    """
    if not callable(fn):
        raise InvalidFactoryError(context, fn)

    explicit = _own_attr(fn, INJECT_ATTR)
    if explicit is not None:
        return explicit

    try:
        names = infer_dependencies(fn)
    except (ValueError, TypeError) as exc:
        raise InvalidFactoryError(
            context, fn, "not introspectable; annotate it explicitly"
        ) from exc

    try:
        setattr(fn, INJECT_ATTR, names)
    except (AttributeError, TypeError):
        logger.debug("Cannot memoize dependencies on %r; inferring on each use", fn)

    return names


def unwrap_factory(factory: Factory, context: str = "<anonymous>") -> Tuple[List[str], Callable[..., Any]]:
    """
    Normalize a factory into ``(dependency_names, callable)``.

    Raises:
        InvalidFactoryError: If the factory is neither a callable nor a
            list of names ending in a callable
    """
    if isinstance(factory, (list, tuple)):
        if not factory or not callable(factory[-1]):
            raise InvalidFactoryError(context, factory, "a list that does not end in a callable")
        *names, fn = factory
        try:
            names = _check_names(names)
        except TypeError as exc:
            raise InvalidFactoryError(context, factory, "a list with an invalid service name") from exc
        return names, fn

    return get_dependencies(factory, context), factory
