"""
Typed publish/subscribe registry for measurement and lifecycle events.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .errors import InvalidParameter
from .messages import Mode

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    DATA_AVAILABLE = "dataavailable"
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"


@dataclass(frozen=True)
class MeasurementEvent:
    """An event republished from a backend. mode and value are set only for DATA_AVAILABLE."""

    kind: EventKind
    mode: Mode | None = None
    value: float | None = None

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "MeasurementEvent":
        """
        Builds an event from the dict a backend posted.

        :raises InvalidParameter: If the event type or mode is unknown.
        """
        try:
            kind = EventKind(data.get("type"))
            if kind is not EventKind.DATA_AVAILABLE:
                return cls(kind=kind)
            return cls(kind=kind, mode=Mode(data.get("mode")), value=float(data["value"]))
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidParameter(f"Malformed backend event {data!r}: {e}") from e


Listener = Callable[[MeasurementEvent], None]


def _as_kind(kind: EventKind | str) -> EventKind:
    try:
        return EventKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in EventKind)
        raise InvalidParameter(f"Unknown event kind {kind!r}. Expected one of: {valid}.") from None


class EventBus:
    """
    Maps each event kind to an ordered list of listeners.

    Subscribing and unsubscribing are safe from any thread, including from inside
    a listener: every dispatch iterates a snapshot taken when the dispatch began.
    """

    def __init__(self):
        self._listeners: dict[EventKind, list[Listener]] = {kind: [] for kind in EventKind}
        self._lock = threading.Lock()

    def subscribe(self, kind: EventKind | str, listener: Listener) -> None:
        if not callable(listener):
            raise InvalidParameter(f"Listener must be callable, got {listener!r}.")
        event_kind = _as_kind(kind)
        with self._lock:
            self._listeners[event_kind] = self._listeners[event_kind] + [listener]

    def unsubscribe(self, kind: EventKind | str | None = None, listener: Listener | None = None) -> None:
        """
        Removes listeners.

        Without a kind every listener of every kind is removed; with a kind but no
        listener, all listeners of that kind are removed.
        """
        with self._lock:
            if kind is None:
                self._listeners = {event_kind: [] for event_kind in EventKind}
                return

            event_kind = _as_kind(kind)
            if listener is None:
                self._listeners[event_kind] = []
            else:
                self._listeners[event_kind] = [
                    registered for registered in self._listeners[event_kind] if registered != listener
                ]

    def listener_count(self, kind: EventKind | str) -> int:
        with self._lock:
            return len(self._listeners[_as_kind(kind)])

    def trigger(self, event: MeasurementEvent) -> None:
        """Delivers the event to every listener subscribed when the dispatch started."""
        with self._lock:
            snapshot = tuple(self._listeners[event.kind])

        for listener in snapshot:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Error executing listener for '{event.kind.value}': {e}", exc_info=True)
