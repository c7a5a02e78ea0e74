"""
Shared test fixtures and helpers for the scopewire test suite.
"""

import itertools
import pytest
from typing import Any, List

from scopewire.config import ContainerConfig
from scopewire.core import Container
from scopewire.diagnostics import DIEvent, DIEventType
from scopewire.proxy import Invocation, ProxyAdvice


# ============================================================================
# Sample beans
# ============================================================================


class Cart:
    """Request-sized bean with visible identity."""

    _ids = itertools.count(1)

    def __init__(self):
        self.id = next(Cart._ids)
        self.items: List[str] = []

    def add(self, item: str) -> int:
        self.items.append(item)
        return len(self.items)

    def ident(self) -> int:
        return self.id


class Checkout:
    """Long-lived consumer of a cart."""

    cart = None

    def total_items(self) -> int:
        return len(self.cart.items)


class RecordingAdvice(ProxyAdvice):
    """Appends '<label>:<method>' to a shared log, then proceeds."""

    def __init__(self, label: str, log: List[str]):
        self.label = label
        self.log = log

    def invoke(self, invocation: Invocation) -> Any:
        self.log.append(f"{self.label}:{invocation.method_name}")
        return invocation.proceed()


class EventRecorder:
    """Diagnostic listener collecting events."""

    def __init__(self):
        self.events: List[DIEvent] = []

    def on_event(self, event: DIEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: DIEventType) -> List[DIEvent]:
        return [e for e in self.events if e.type == event_type]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def make_container():
    """Build a container with the given mixing flags."""
    def _make(detect: bool = False, proxy: bool = False) -> Container:
        return Container(ContainerConfig(detect_mixed_scopes=detect, wire_scoped_proxy=proxy))
    return _make


@pytest.fixture
def events():
    return EventRecorder()


@pytest.fixture
def proxy_container(make_container, events) -> Container:
    """Container that detects mixing and wires scoped proxies."""
    container = make_container(detect=True, proxy=True)
    container.diagnostics.add_listener(events)
    return container
