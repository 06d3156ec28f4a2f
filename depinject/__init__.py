"""
depinject - Dependency Injection Container

Resolves named services from a registry of factory functions.

Key Features:
- Singleton services, built lazily on first request
- Dependencies from explicit annotations or parameter names
- Eager services built at injector creation
- Cycle detection with the full resolution path in the error
- Static registry validation, tree and Graphviz export
"""

__version__ = "1.0.0"

from .core import (
    Injector,
    ResolveCtx,
    INJECTOR_NAME,
)

from .annotations import (
    annotate,
    eager,
    is_eager,
    infer_dependencies,
    get_dependencies,
    unwrap_factory,
)

from .registry import (
    ServiceRegistry,
)

from .graph import (
    DependencyGraph,
)

from .config import (
    InjectorConfig,
    ConfigLoader,
    ConfigError,
    load_config,
)

from .errors import (
    DIError,
    UnknownServiceError,
    CircularDependencyError,
    InvalidFactoryError,
    RegistryValidationError,
)

__all__ = [
    # Core types
    "Injector",
    "ResolveCtx",
    "INJECTOR_NAME",

    # Annotations
    "annotate",
    "eager",
    "is_eager",
    "infer_dependencies",
    "get_dependencies",
    "unwrap_factory",

    # Registry
    "ServiceRegistry",

    # Graph
    "DependencyGraph",

    # Config
    "InjectorConfig",
    "ConfigLoader",
    "ConfigError",
    "load_config",

    # Errors
    "DIError",
    "UnknownServiceError",
    "CircularDependencyError",
    "InvalidFactoryError",
    "RegistryValidationError",
]
