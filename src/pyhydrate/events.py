"""Listener registration for fetch lifecycle events."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

_logger = logging.getLogger(__name__)

Listener = Callable[..., None]


class FetchEvent(StrEnum):
    START = "fetch:start"
    END = "fetch:end"


class EventEmitter:
    """Synchronous observer list keyed by event name.

    Listeners run in registration order.  A failing listener is logged and
    does not stop the others or the fetch that emitted the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(str(event), []).append(listener)

    def off(self, event: str, listener: Listener | None = None) -> None:
        """Remove *listener*, or every listener of *event* when omitted."""
        key = str(event)
        if listener is None:
            self._listeners.pop(key, None)
            return
        listeners = self._listeners.get(key, [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(str(event), []))

    def emit(self, event: str, *args: Any) -> None:
        for listener in self.listeners(event):
            try:
                listener(*args)
            except Exception:
                _logger.debug("%s listener failed", event, exc_info=True)
