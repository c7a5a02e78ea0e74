"""
Container diagnostics - observability and event tracking.
"""

import time
from typing import Any, Dict, List, Optional, Protocol
from enum import Enum
import dataclasses
import logging

logger = logging.getLogger("scopewire.diagnostics")


class DIEventType(Enum):
    """Types of container events."""
    REGISTRATION = "registration"
    BEAN_CREATED = "bean_created"
    SCOPE_MIXING = "scope_mixing"
    PROXY_CLASS_DEFINED = "proxy_class_defined"
    PROXY_CREATED = "proxy_created"


@dataclasses.dataclass
class DIEvent:
    """A diagnostic event in the container."""
    type: DIEventType
    timestamp: float = dataclasses.field(default_factory=time.time)
    name: Optional[str] = None
    target: Optional[str] = None
    scope: Optional[str] = None
    bean_type: Optional[Any] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)


class DiagnosticListener(Protocol):
    """Interface for diagnostic listeners."""
    def on_event(self, event: DIEvent) -> None:
        """Called when a container event occurs."""
        ...


class LoggingDiagnosticListener:
    """Diagnostic listener that writes every event to the diagnostics logger."""
    def __init__(self, log_level: int = logging.DEBUG):
        self.log_level = log_level

    def on_event(self, event: DIEvent) -> None:
        if not logger.isEnabledFor(self.log_level):
            return
        if event.type == DIEventType.REGISTRATION:
            logger.log(self.log_level, f"Registered bean '{event.name}' ({event.scope})")
        elif event.type == DIEventType.BEAN_CREATED:
            logger.log(self.log_level, f"Created bean '{event.name}' ({event.scope})")
        elif event.type == DIEventType.SCOPE_MIXING:
            logger.log(self.log_level, f"Scope mixing: {event.name} -> {event.target} [{event.metadata.get('outcome')}]")
        elif event.type == DIEventType.PROXY_CLASS_DEFINED:
            logger.log(self.log_level, f"Defined scoped proxy class for {event.bean_type!r}")
        elif event.type == DIEventType.PROXY_CREATED:
            logger.log(self.log_level, f"Created scoped proxy for '{event.name}'")


class DIDiagnostics:
    """Coordinator for diagnostic listeners."""
    def __init__(self):
        self._listeners: List[DiagnosticListener] = []

    def add_listener(self, listener: DiagnosticListener) -> None:
        """Add a diagnostic listener."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DiagnosticListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event_type: DIEventType, **kwargs) -> None:
        """Emit a diagnostic event to all listeners."""
        if not self._listeners:
            return
        event = DIEvent(type=event_type, **kwargs)
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception as e:
                # a failing listener must not break wiring
                logger.error(f"Diagnostic listener error: {e}")
