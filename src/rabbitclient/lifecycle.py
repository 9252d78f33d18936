"""
Lifecycle notifications for broker connection state.

Listeners register per event kind and are called in registration order from
whichever thread observed the transition (the caller's thread for
``connect()``/``close()``, the watcher or retry thread otherwise).
"""

import logging
import threading
from enum import Enum
from typing import Callable, Union

from rabbitclient.exceptions import ValidationError

logger = logging.getLogger(__name__)


class LifecycleEvent(Enum):
    CONNECTED = "connected"
    # listeners receive the exception that triggered the reconnect
    RECONNECTING = "reconnecting"
    # listeners receive the exception
    ERROR = "error"
    CLOSE = "close"


Listener = Callable[..., None]


def _coerce_event(event: Union[LifecycleEvent, str]) -> LifecycleEvent:
    if isinstance(event, LifecycleEvent):
        return event
    try:
        return LifecycleEvent(event)
    except ValueError:
        valid = ", ".join(e.value for e in LifecycleEvent)
        raise ValidationError(
            f"Unknown lifecycle event: {event!r}. Valid options are: {valid}"
        ) from None


class LifecycleNotifier:
    """Observer registry for connection lifecycle events."""

    def __init__(self) -> None:
        self._listeners: dict[LifecycleEvent, list[Listener]] = {
            event: [] for event in LifecycleEvent
        }
        self._lock = threading.RLock()

    def on(self, event: Union[LifecycleEvent, str], listener: Listener) -> None:
        """
        Register a listener for an event kind.

        The same listener may be registered more than once and is then called
        once per registration.

        :param event: A LifecycleEvent or its string value, e.g. ``"connected"``.
        :param listener: Callable invoked with the event arguments.
        """
        event = _coerce_event(event)
        with self._lock:
            self._listeners[event].append(listener)

    def off(self, event: Union[LifecycleEvent, str], listener: Listener) -> None:
        """Remove the first registration of ``listener`` for an event kind."""
        event = _coerce_event(event)
        with self._lock:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

    def emit(self, event: Union[LifecycleEvent, str], *args) -> None:
        event = _coerce_event(event)
        with self._lock:
            listeners = self._listeners[event].copy()

        for listener in listeners:
            try:
                listener(*args)
            except Exception as e:
                logger.exception("Error in %s listener: %s", event.value, e)

    def listener_count(self, event: Union[LifecycleEvent, str]) -> int:
        event = _coerce_event(event)
        with self._lock:
            return len(self._listeners[event])
