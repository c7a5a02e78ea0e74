"""
Scope definitions and acceptance rules.

A scope decides how long a bean instance lives and which other scopes
may be injected into beans it holds. Injecting a narrower scope into a
wider one ("mixing scopes") is handled by the scoped proxy manager.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Type
import logging

from .errors import ScopeNotActiveError, ConfigError

logger = logging.getLogger("scopewire.scopes")


class ScopeName(str, Enum):
    """Registered scope names."""

    SINGLETON = "singleton"  # One instance per container
    PROTOTYPE = "prototype"  # New instance every lookup
    REQUEST = "request"      # One instance per open request
    SESSION = "session"      # One instance per session id
    THREAD = "thread"        # One instance per thread


class Scope(ABC):
    """
    Bean scope: instance storage plus the injection acceptance rule.
    """

    @property
    def kind(self) -> str:
        """Short scope kind used in diagnostics, e.g. ``RequestScope``."""
        return type(self).__name__

    @abstractmethod
    def accept(self, reference_scope: Optional["Scope"]) -> bool:
        """
        Check if a bean of ``reference_scope`` may be injected as-is
        into a bean of this scope.
        """
        ...

    @abstractmethod
    def lookup(self, name: str) -> Any:
        """Return the stored instance for ``name`` or ``None``."""
        ...

    @abstractmethod
    def register(self, definition: Any, instance: Any) -> None:
        """Store a freshly created instance."""
        ...

    def remove(self, name: str) -> None:
        """Drop the stored instance for ``name``, if any."""
        pass

    def shutdown(self) -> None:
        """Release all stored instances."""
        pass

    def __repr__(self) -> str:
        return f"{self.kind}()"


def _accepts(reference_scope: Optional[Scope], *allowed: Type[Scope]) -> bool:
    # unscoped references behave like prototypes
    if reference_scope is None:
        return True
    return type(reference_scope) in allowed


class SingletonScope(Scope):
    """One instance per container."""

    def __init__(self):
        self._instances: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def accept(self, reference_scope: Optional[Scope]) -> bool:
        """Allows only singleton scoped beans to be injected into a singleton."""
        return _accepts(reference_scope, SingletonScope)

    def lookup(self, name: str) -> Any:
        return self._instances.get(name)

    def register(self, definition: Any, instance: Any) -> None:
        with self._lock:
            self._instances[definition.name] = instance

    def remove(self, name: str) -> None:
        with self._lock:
            self._instances.pop(name, None)

    def shutdown(self) -> None:
        with self._lock:
            self._instances.clear()


class ProtoScope(Scope):
    """New instance on every lookup. Nothing is stored."""

    def accept(self, reference_scope: Optional[Scope]) -> bool:
        # a prototype is created per injection, so it never outlives a reference
        return True

    def lookup(self, name: str) -> Any:
        return None

    def register(self, definition: Any, instance: Any) -> None:
        pass


class RequestScope(Scope):
    """
    One instance per open request context.

    Request boundaries follow :mod:`contextvars`, so each thread and each
    asyncio task sees its own request::

        with container.scope(RequestScope).open():
            container.get_bean("cart")
    """

    def __init__(self):
        self._beans: ContextVar[Optional[Dict[str, Any]]] = ContextVar(
            f"scopewire_request_{id(self)}", default=None
        )

    def accept(self, reference_scope: Optional[Scope]) -> bool:
        return _accepts(reference_scope, ProtoScope, SingletonScope, SessionScope, RequestScope)

    @property
    def active(self) -> bool:
        return self._beans.get() is not None

    @contextmanager
    def open(self) -> Iterator[Dict[str, Any]]:
        """Open a request context for the current execution context."""
        beans: Dict[str, Any] = {}
        token = self._beans.set(beans)
        try:
            yield beans
        finally:
            self._beans.reset(token)
            beans.clear()

    def _current(self, name: Optional[str] = None) -> Dict[str, Any]:
        beans = self._beans.get()
        if beans is None:
            raise ScopeNotActiveError(self.kind, name)
        return beans

    def lookup(self, name: str) -> Any:
        return self._current(name).get(name)

    def register(self, definition: Any, instance: Any) -> None:
        self._current(definition.name)[definition.name] = instance

    def remove(self, name: str) -> None:
        beans = self._beans.get()
        if beans is not None:
            beans.pop(name, None)


class SessionScope(Scope):
    """One instance per session id; the current session follows contextvars."""

    def __init__(self):
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._current_id: ContextVar[Optional[str]] = ContextVar(
            f"scopewire_session_{id(self)}", default=None
        )
        self._lock = threading.Lock()

    def accept(self, reference_scope: Optional[Scope]) -> bool:
        return _accepts(reference_scope, ProtoScope, SingletonScope, SessionScope)

    @contextmanager
    def open(self, session_id: str) -> Iterator[Dict[str, Any]]:
        """Bind ``session_id`` as the current session. Beans survive until :meth:`close`."""
        with self._lock:
            beans = self._sessions.setdefault(session_id, {})
        token = self._current_id.set(session_id)
        try:
            yield beans
        finally:
            self._current_id.reset(token)

    def close(self, session_id: str) -> None:
        """Destroy all beans of a session."""
        with self._lock:
            beans = self._sessions.pop(session_id, None)
        if beans is not None:
            logger.debug(f"Closed session '{session_id}' ({len(beans)} beans)")

    def _current(self, name: Optional[str] = None) -> Dict[str, Any]:
        session_id = self._current_id.get()
        if session_id is None:
            raise ScopeNotActiveError(self.kind, name)
        with self._lock:
            return self._sessions.setdefault(session_id, {})

    def lookup(self, name: str) -> Any:
        return self._current(name).get(name)

    def register(self, definition: Any, instance: Any) -> None:
        self._current(definition.name)[definition.name] = instance

    def remove(self, name: str) -> None:
        if self._current_id.get() is not None:
            self._current(name).pop(name, None)

    def shutdown(self) -> None:
        with self._lock:
            self._sessions.clear()


class ThreadLocalScope(Scope):
    """One instance per thread."""

    def __init__(self):
        self._local = threading.local()

    def accept(self, reference_scope: Optional[Scope]) -> bool:
        return _accepts(reference_scope, ProtoScope, SingletonScope, ThreadLocalScope)

    def _beans(self) -> Dict[str, Any]:
        beans = getattr(self._local, "beans", None)
        if beans is None:
            beans = self._local.beans = {}
        return beans

    def lookup(self, name: str) -> Any:
        return self._beans().get(name)

    def register(self, definition: Any, instance: Any) -> None:
        self._beans()[definition.name] = instance

    def remove(self, name: str) -> None:
        self._beans().pop(name, None)

    def shutdown(self) -> None:
        # only the calling thread's beans are reachable
        self._beans().clear()


SCOPES: Dict[str, Type[Scope]] = {
    ScopeName.SINGLETON.value: SingletonScope,
    ScopeName.PROTOTYPE.value: ProtoScope,
    ScopeName.REQUEST.value: RequestScope,
    ScopeName.SESSION.value: SessionScope,
    ScopeName.THREAD.value: ThreadLocalScope,
}


def resolve_scope_type(scope: "str | ScopeName | Type[Scope]") -> Type[Scope]:
    """
    Map a scope name (or scope class) to its scope class.

    Raises:
        ConfigError: If the name is not a registered scope
    """
    if isinstance(scope, type) and issubclass(scope, Scope):
        return scope

    key = scope.value if isinstance(scope, ScopeName) else str(scope).lower()
    scope_type = SCOPES.get(key)
    if scope_type is None:
        raise ConfigError(
            f"Unknown scope '{scope}'. Expected one of: {', '.join(sorted(SCOPES))}"
        )
    return scope_type
