"""
Core DI types: the resolution context and the Injector.

The Injector owns a read-only registry of named factories and an
append-only cache of built services. Every service is a singleton for the
injector's lifetime.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence
import inspect
import logging
import threading
import types

from .annotations import Factory, get_dependencies, is_eager, unwrap_factory
from .config import InjectorConfig
from .diagnostics import ConsoleDiagnosticListener, DIDiagnostics, DIEventType
from .errors import CircularDependencyError, DIError, UnknownServiceError

logger = logging.getLogger("depinject.core")

# Reserved name under which every injector exposes itself
INJECTOR_NAME = "injector"


class ResolveCtx:
    """
    Context for resolution operations.

    Tracks the chain of services currently being built, for cycle detection
    and diagnostics. Empty whenever no resolution is in flight.
    """
    __slots__ = ("stack",)

    def __init__(self):
        self.stack: List[str] = []

    def push(self, name: str) -> None:
        """Push name onto resolution stack."""
        self.stack.append(name)

    def pop(self) -> None:
        """Pop name from resolution stack."""
        self.stack.pop()

    def in_cycle(self, name: str) -> bool:
        """Check if name is currently being resolved (cycle)."""
        return name in self.stack

    def get_trace(self) -> List[str]:
        """Get current resolution trace for error messages."""
        return self.stack.copy()


class _NullLock:
    __slots__ = ()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class Injector:
    """
    Resolves named services from a registry of factories.

    Example:
        injector = Injector({
            "config": lambda: {"dsn": "sqlite://"},
            "db": lambda config: Database(config["dsn"]),
        })
        injector.get("db")  # builds config, then db; both cached
    """

    __slots__ = (
        "_factories",
        "_cache",
        "_config",
        "_diagnostics",
        "_lock",
        "_local",
    )

    def __init__(
        self,
        factories: Mapping[str, Factory],
        *,
        config: Optional[InjectorConfig] = None,
        diagnostics: Optional[DIDiagnostics] = None,
    ):
        if factories is None:
            raise TypeError("Injector requires an explicit factory registry")

        self._factories = factories
        self._config = config or InjectorConfig()
        self._diagnostics = diagnostics or DIDiagnostics()
        self._cache: Dict[str, Any] = {INJECTOR_NAME: self}
        self._lock = threading.RLock() if self._config.thread_safe else _NullLock()
        self._local = threading.local()

        if self._config.diagnostics:
            self._diagnostics.add_listener(
                ConsoleDiagnosticListener(self._config.log_level_value)
            )

        self._check_registry()

        if self._config.validate_on_start:
            self.graph().validate()

        self._bootstrap()

    @property
    def config(self) -> InjectorConfig:
        return self._config

    @property
    def diagnostics(self) -> DIDiagnostics:
        return self._diagnostics

    def get(self, name: str) -> Any:
        """
        Return the singleton for ``name``, building it on first request.

        Raises:
            UnknownServiceError: If ``name`` (or anything it needs) has no factory
            CircularDependencyError: If ``name`` is already being resolved
            InvalidFactoryError: If a factory on the way is not usable
        """
        if not isinstance(name, str):
            raise TypeError(f"Service name must be a string, got {type(name).__name__}")

        # Fast path: cached entries are never replaced
        if name in self._cache:
            return self._cache[name]

        with self._lock:
            return self._resolve(name, self._current_ctx())

    def invoke(
        self,
        self_obj: Any,
        fn: Factory,
        extra_args: Iterable[Any] = (),
    ) -> Any:
        """
        Call ``fn`` with its dependencies injected, followed by ``extra_args``.

        When ``self_obj`` is given, plain functions are bound to it as
        methods. Nothing is cached; every call re-resolves and re-invokes.
        Errors raised by ``fn`` propagate unchanged.
        """
        if isinstance(fn, (list, tuple)):
            names, target = unwrap_factory(fn, "invoke")
            target = self._bind(target, self_obj)
        else:
            target = self._bind(fn, self_obj)
            names = get_dependencies(target, "invoke")

        self._diagnostics.emit(
            DIEventType.INVOCATION,
            name=getattr(target, "__qualname__", repr(target)),
            metadata={"dependencies": list(names)},
        )

        args = [self.get(dep) for dep in names]
        args.extend(extra_args)
        return target(*args)

    def has(self, name: str) -> bool:
        """Check if ``name`` is built or has a registered factory."""
        return name in self._cache or name in self._factories

    __contains__ = has

    def is_resolved(self, name: str) -> bool:
        return name in self._cache

    def names(self) -> List[str]:
        """All resolvable service names, the reserved self reference first."""
        return [INJECTOR_NAME, *self._factories]

    def graph(self):
        """Static dependency graph of this injector's registry."""
        from .graph import DependencyGraph
        return DependencyGraph.from_factories(self._factories)

    def _resolve(self, name: str, ctx: ResolveCtx) -> Any:
        if name in self._cache:
            return self._cache[name]

        if name not in self._factories:
            raise UnknownServiceError(ctx.get_trace() + [name])

        # Checked before pushing so the error path stays bounded
        if ctx.in_cycle(name):
            raise CircularDependencyError(ctx.get_trace() + [name])

        ctx.push(name)
        try:
            with self._diagnostics.measure(name=name, path=ctx.get_trace()):
                names, fn = unwrap_factory(self._factories[name], name)
                args = [self._resolve(dep, ctx) for dep in names]
                instance = fn(*args)
            self._cache[name] = instance
        finally:
            ctx.pop()

        logger.debug("Built service '%s'", name)
        return instance

    def _current_ctx(self) -> ResolveCtx:
        # One path per thread; nested get() calls from inside factories
        # continue the chain that is already in flight
        ctx = getattr(self._local, "ctx", None)
        if ctx is None:
            ctx = self._local.ctx = ResolveCtx()
        return ctx

    def _check_registry(self) -> None:
        for name in self._factories:
            if not isinstance(name, str) or not name:
                raise DIError(f"Service names must be non-empty strings, got {name!r}")
            if name == INJECTOR_NAME:
                raise DIError(
                    f"'{INJECTOR_NAME}' is reserved for the injector itself "
                    f"and cannot be registered"
                )
            self._diagnostics.emit(DIEventType.REGISTRATION, name=name)

    def _bootstrap(self) -> None:
        """Build every eager service, in registry order."""
        eager: Sequence[str] = [
            name for name, factory in self._factories.items() if is_eager(factory)
        ]
        self._diagnostics.emit(DIEventType.EAGER_BOOTSTRAP, metadata={"services": eager})

        for name in eager:
            self.get(name)

        if eager:
            logger.info("Eagerly initialized %d service(s): %s", len(eager), ", ".join(eager))

    @staticmethod
    def _bind(fn: Callable[..., Any], self_obj: Any) -> Callable[..., Any]:
        if self_obj is not None and inspect.isfunction(fn):
            return types.MethodType(fn, self_obj)
        return fn

    def __repr__(self) -> str:
        return (
            f"<Injector services={len(self._factories)} "
            f"resolved={len(self._cache) - 1}>"
        )
