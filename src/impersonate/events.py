"""Impersonation lifecycle events.

Listeners run synchronously, in registration order, after the state change
they describe has been committed. Delivery is best-effort: a failing listener
is logged and skipped, and never undoes the transition.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeginImpersonation:
    """Emitted after a successful take()."""

    impersonator: Any
    impersonated: Any


@dataclass(frozen=True)
class LeaveImpersonation:
    """Emitted after a leave() that actually ended an impersonation."""

    impersonator: Any
    impersonated: Any


Listener = Callable[[Any], None]


class EventDispatcher:
    """Explicit listener registry.

    Example:
        events = EventDispatcher()

        @events.listen(BeginImpersonation)
        def notify(event):
            print(f"{event.impersonator} is now acting as {event.impersonated}")
    """

    def __init__(self, raise_errors: bool = False) -> None:
        self.raise_errors = raise_errors
        self._listeners: dict[type, list[Listener]] = defaultdict(list)

    def listen(self, event_type: type, fn: Listener | None = None):
        """Register a listener; usable directly or as a decorator."""

        def register(listener: Listener) -> Listener:
            self._listeners[event_type].append(listener)
            return listener

        if fn is not None:
            return register(fn)
        return register

    def listeners(self, event_type: type) -> list[Listener]:
        return list(self._listeners.get(event_type, ()))

    def dispatch(self, event: Any) -> None:
        for listener in self.listeners(type(event)):
            try:
                listener(event)
            except Exception:
                if self.raise_errors:
                    raise
                log.exception(
                    "Listener %r failed for %s", listener, type(event).__name__
                )
