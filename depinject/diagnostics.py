"""
DI Diagnostics - Observability and event tracking for injectors.
"""

import time
from typing import Any, Dict, List, Optional, Protocol
from enum import Enum
import dataclasses
import logging

logger = logging.getLogger("depinject.diagnostics")


class DIEventType(Enum):
    """Types of DI events."""
    REGISTRATION = "registration"
    RESOLUTION_START = "resolution_start"
    RESOLUTION_SUCCESS = "resolution_success"
    RESOLUTION_FAILURE = "resolution_failure"
    EAGER_BOOTSTRAP = "eager_bootstrap"
    INVOCATION = "invocation"


@dataclasses.dataclass
class DIEvent:
    """A diagnostic event in the DI system."""
    type: DIEventType
    timestamp: float = dataclasses.field(default_factory=time.time)
    name: Optional[str] = None
    path: List[str] = dataclasses.field(default_factory=list)
    duration: Optional[float] = None
    error: Optional[BaseException] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)


class DiagnosticListener(Protocol):
    """Interface for DI diagnostic listeners."""
    def on_event(self, event: DIEvent) -> None:
        """Called when a DI event occurs."""
        ...


class ConsoleDiagnosticListener:
    """Diagnostic listener that writes events to the ``depinject.diagnostics`` logger."""

    def __init__(self, log_level: int = logging.DEBUG):
        self.log_level = log_level

    def on_event(self, event: DIEvent) -> None:
        if event.type == DIEventType.REGISTRATION:
            logger.log(self.log_level, "Registered factory for '%s'", event.name)
        elif event.type == DIEventType.RESOLUTION_START:
            logger.log(self.log_level, "Resolving '%s' (path=%s)...", event.name, event.path)
        elif event.type == DIEventType.RESOLUTION_SUCCESS:
            logger.log(self.log_level, "Resolved '%s' in %.4fs", event.name, event.duration or 0.0)
        elif event.type == DIEventType.RESOLUTION_FAILURE:
            logger.log(logging.ERROR, "Failed to resolve '%s': %s", event.name, event.error)
        elif event.type == DIEventType.EAGER_BOOTSTRAP:
            logger.log(logging.INFO, "Eager bootstrap: %s", ", ".join(event.metadata.get("services", [])) or "none")
        elif event.type == DIEventType.INVOCATION:
            logger.log(self.log_level, "Invoking %s", event.name)


class DIDiagnostics:
    """Coordinator for DI diagnostic listeners."""

    def __init__(self):
        self._listeners: List[DiagnosticListener] = []

    @property
    def listeners(self) -> List[DiagnosticListener]:
        return list(self._listeners)

    def add_listener(self, listener: DiagnosticListener) -> None:
        """Add a diagnostic listener."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DiagnosticListener) -> None:
        self._listeners.remove(listener)

    def emit(self, event_type: DIEventType, **kwargs) -> None:
        """Emit a diagnostic event to all listeners."""
        if not self._listeners:
            return
        event = DIEvent(type=event_type, **kwargs)
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception:
                # Diagnostics never break resolution
                logger.exception("Diagnostic listener error")

    def measure(self, **kwargs):
        """Context manager that times a resolution and emits success or failure."""
        return _DiagnosticMeasure(self, **kwargs)


class _DiagnosticMeasure:
    def __init__(self, diagnostics: DIDiagnostics, **kwargs):
        self.diagnostics = diagnostics
        self.kwargs = kwargs
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.diagnostics.emit(DIEventType.RESOLUTION_START, **self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        if exc_type:
            self.diagnostics.emit(
                DIEventType.RESOLUTION_FAILURE,
                duration=duration,
                error=exc_val,
                **self.kwargs
            )
        else:
            self.diagnostics.emit(
                DIEventType.RESOLUTION_SUCCESS,
                duration=duration,
                **self.kwargs
            )
        return False
