"""Tests for the listener registry."""

import pytest

from async_pool.listeners import ListenerRegistry


@pytest.mark.unit
class TestListenerRegistry:
    """Test synchronous event dispatch."""

    def test_emit_calls_handlers_in_order(self):
        """Test handlers run in registration order with the item."""
        registry = ListenerRegistry[str]()
        calls = []

        registry.on("acquire", lambda item: calls.append(("first", item)))
        registry.on("acquire", lambda item: calls.append(("second", item)))
        registry.emit("acquire", "a")

        assert calls == [("first", "a"), ("second", "a")]

    def test_events_are_independent(self):
        """Test emitting one event does not call the other's handlers."""
        registry = ListenerRegistry[str]()
        calls = []

        registry.on("release", calls.append)
        registry.emit("acquire", "a")

        assert calls == []

    def test_duplicate_registration_runs_once(self):
        """Test the same handler registered twice is called once."""
        registry = ListenerRegistry[str]()
        calls = []

        registry.on("release", calls.append)
        registry.on("release", calls.append)
        registry.emit("release", "x")

        assert calls == ["x"]
        assert registry.count("release") == 1

    def test_off_removes_single_handler(self):
        """Test off with a handler removes only that handler."""
        registry = ListenerRegistry[str]()
        kept = []
        removed = []

        registry.on("acquire", kept.append)
        registry.on("acquire", removed.append)
        registry.off("acquire", removed.append)
        registry.emit("acquire", "a")

        assert kept == ["a"]
        assert removed == []

    def test_off_without_handler_clears_event(self):
        """Test off without a handler drops every handler of the event."""
        registry = ListenerRegistry[str]()
        registry.on("acquire", lambda item: None)
        registry.on("acquire", lambda item: None)
        registry.on("release", lambda item: None)

        registry.off("acquire")

        assert registry.count("acquire") == 0
        assert registry.count("release") == 1

    def test_off_unknown_handler_is_noop(self):
        """Test removing a handler that was never registered."""
        registry = ListenerRegistry[str]()
        registry.off("release", print)
        assert registry.count("release") == 0

    def test_clear_all(self):
        """Test clear without an event empties every bucket."""
        registry = ListenerRegistry[str]()
        registry.on("acquire", print)
        registry.on("release", print)

        registry.clear()

        assert registry.count("acquire") == 0
        assert registry.count("release") == 0

    def test_handler_may_unregister_itself(self):
        """Test a handler removing itself during dispatch."""
        registry = ListenerRegistry[str]()
        calls = []

        def once(item):
            calls.append(item)
            registry.off("release", once)

        registry.on("release", once)
        registry.emit("release", "a")
        registry.emit("release", "b")

        assert calls == ["a"]

    def test_handler_exception_propagates(self):
        """Test handler errors reach the emitter."""
        registry = ListenerRegistry[str]()

        def failing(item):
            raise RuntimeError("handler failed")

        registry.on("acquire", failing)

        with pytest.raises(RuntimeError, match="handler failed"):
            registry.emit("acquire", "a")

    def test_unknown_event(self):
        """Test unknown event names raise ValueError."""
        registry = ListenerRegistry[str]()

        with pytest.raises(ValueError, match="event must be one of"):
            registry.on("drain", print)  # type: ignore[arg-type]

    def test_non_callable_handler(self):
        """Test registering a non-callable raises TypeError."""
        registry = ListenerRegistry[str]()

        with pytest.raises(TypeError, match="Expected callable"):
            registry.on("acquire", "not callable")  # type: ignore[arg-type]
