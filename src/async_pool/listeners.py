"""Synchronous multi-handler event dispatch."""

from collections.abc import Callable
from typing import Generic, Literal, TypeVar


T = TypeVar("T")

Event = Literal["acquire", "release"]
Handler = Callable[[T], object]

EVENTS: tuple[Event, ...] = ("acquire", "release")


class ListenerRegistry(Generic[T]):
    """Observer list keyed by event name.

    Handlers run synchronously, in registration order, inside ``emit``.
    Registering the same handler twice for one event keeps a single entry.
    Handler exceptions propagate to the caller of ``emit``.

    Example:
        listeners = ListenerRegistry()
        listeners.on("release", lambda item: print("released", item))
        listeners.emit("release", connection)
    """

    def __init__(self) -> None:
        # dict keys keep insertion order and give O(1) removal
        self._handlers: dict[Event, dict[Handler[T], None]] = {
            event: {} for event in EVENTS
        }

    def on(self, event: Event, handler: Handler[T]) -> None:
        """Register ``handler`` for ``event``."""
        if not callable(handler):
            raise TypeError(f"Expected callable, got {type(handler).__name__}")
        self._bucket(event)[handler] = None

    def off(self, event: Event, handler: Handler[T] | None = None) -> None:
        """Unregister ``handler``, or every handler of ``event`` if omitted."""
        bucket = self._bucket(event)
        if handler is None:
            bucket.clear()
        else:
            bucket.pop(handler, None)

    def clear(self, event: Event | None = None) -> None:
        """Drop the handlers of ``event``, or of all events."""
        if event is not None:
            self._bucket(event).clear()
            return
        for bucket in self._handlers.values():
            bucket.clear()

    def emit(self, event: Event, item: T) -> None:
        """Call every handler registered for ``event`` with ``item``."""
        # Snapshot so a handler may unregister itself while dispatching
        for handler in list(self._bucket(event)):
            handler(item)

    def count(self, event: Event) -> int:
        """Number of handlers registered for ``event``."""
        return len(self._bucket(event))

    def _bucket(self, event: Event) -> dict[Handler[T], None]:
        try:
            return self._handlers[event]
        except KeyError:
            raise ValueError(
                f"event must be one of {', '.join(EVENTS)}, got {event!r}"
            ) from None
