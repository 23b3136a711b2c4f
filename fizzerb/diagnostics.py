# fizzerb/diagnostics.py
"""Optional diagnostics sinks for the tracing and accumulation hot paths.

Components take ``diagnostics=None`` and only build event payloads when a
sink was injected, so a disabled sink costs one ``is None`` test.
"""
from __future__ import annotations
from typing import Any, Dict, List, Protocol, Tuple
import logging
import threading


class DiagnosticsSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None:
        """Record one named event with its fields."""


class CollectingSink:
    """Keeps every event in memory. Safe to share between worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        with self._lock:
            self._events.append((event, fields))

    @property
    def events(self) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            return list(self._events)

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [f for e, f in self.events if e == event]


class LoggingSink:
    """Forwards events to a logger at DEBUG level."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("fizzerb.diagnostics")

    def emit(self, event: str, **fields: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("%s %s", event, fields)
