"""
Pytest Configuration and Fixtures for bootline Tests
====================================================

Purpose
-------
Centralized fixtures for the bootline test suite.

Responsibilities
----------------
- Reset process-wide state (event bus, registry, resolver, log context)
  around every test
- Provide fresh buses, broadcasters and recording listeners
- Provide ready-to-run sample applications rooted in a temporary directory

Architecture Notes
------------------
- Unit tests use in-memory settings and explicit buses
- Integration tests write real files under ``tmp_path``
"""

from __future__ import annotations

import sys
from typing import Any, Callable, Dict, Generator, List

import pytest

from bootline.config import MemorySource
from bootline.event import EventBus, GenericBroadcaster, default_resolver, event_bus
from bootline.logging import clear_log_context
from bootline.registry import registry
from tests.fixtures.apps import SampleApplication, SampleCommandLine
from tests.fixtures.listeners import CountingListener


# ============================================================================
# PROCESS-WIDE STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch) -> Generator[None, None, None]:
    """
    Give every test a clean bus, registry, resolver and log context.

    Scope: function (autouse)
    """
    monkeypatch.delenv("GATEWAY_INTERFACE", raising=False)
    monkeypatch.delenv("SERVER_SOFTWARE", raising=False)
    monkeypatch.delenv("SYSTEM_BASE_PATH", raising=False)

    event_bus.reset()
    registry.reset()
    default_resolver.reset()
    clear_log_context()
    CountingListener.reset()

    yield

    event_bus.reset()
    registry.reset()
    default_resolver.reset()
    clear_log_context()
    CountingListener.reset()


# ============================================================================
# EVENT FIXTURES
# ============================================================================


class RecordingListener:
    """Listener that appends ``(tag, event)`` to a shared journal."""

    def __init__(self, journal: List[Any], tag: str) -> None:
        self.journal = journal
        self.tag = tag

    def handle(self, event: Any) -> None:
        self.journal.append((self.tag, event))


@pytest.fixture
def journal() -> List[Any]:
    """Shared, ordered record of listener invocations."""
    return []


@pytest.fixture
def make_listener(journal) -> Callable[[str], RecordingListener]:
    """Factory for recording listeners writing to ``journal``."""

    def _make(tag: str) -> RecordingListener:
        return RecordingListener(journal, tag)

    return _make


@pytest.fixture
def bus() -> EventBus:
    """Fresh bus with one GenericBroadcaster."""
    fresh = EventBus()
    fresh.register_broadcaster(GenericBroadcaster())
    return fresh


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================


@pytest.fixture
def settings_data(tmp_path) -> Dict[str, Dict[str, Any]]:
    """Minimal settings rooting the application in ``tmp_path``."""
    return {"system": {"base_path": str(tmp_path)}}


@pytest.fixture
def app(settings_data) -> Generator[SampleApplication, None, None]:
    """
    SampleApplication using the process-wide bus.

    Any process hooks installed during the test are removed afterwards.
    """
    application = SampleApplication("1.0.0", MemorySource(settings_data))
    yield application
    if application.process_error_handler is not None:
        application.process_error_handler.uninstall()


@pytest.fixture
def cli_app(settings_data, monkeypatch) -> SampleCommandLine:
    """SampleCommandLine with a predictable program name."""
    monkeypatch.setattr(sys, "argv", ["sample-tool"])
    return SampleCommandLine("2.3.4", MemorySource(settings_data))
