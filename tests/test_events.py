"""
Unit Tests for SignalBridge

Run with: pytest tests/test_events.py -v
"""

import pytest

from animpath.events import NodeEventArgs, SignalBridge


class TestSignalBridge:
    """Synchronous observer list."""

    @pytest.fixture
    def bridge(self):
        return SignalBridge()

    def test_handlers_run_in_registration_order(self, bridge):
        calls = []
        bridge.connect("tick", lambda: calls.append("a"))
        bridge.connect("tick", lambda: calls.append("b"))
        bridge.connect("tick", lambda: calls.append("c"))
        bridge.emit("tick")
        assert calls == ["a", "b", "c"]

    def test_payload_forwarded(self, bridge):
        received = []
        bridge.connect("node_added", received.append)
        bridge.emit("node_added", NodeEventArgs(2, 0.5))
        assert received == [NodeEventArgs(2, 0.5)]

    def test_disconnect(self, bridge):
        """A disconnected handler is no longer called."""
        calls = []
        connection = bridge.connect("tick", lambda: calls.append(1))
        assert connection.connected
        connection.disconnect()
        assert not connection.connected
        bridge.emit("tick")
        assert calls == []
        assert bridge.handler_count("tick") == 0

    def test_disconnect_during_emit(self, bridge):
        """Handlers removed mid-emit are skipped for the rest of that emit."""
        calls = []
        second = None

        def first():
            calls.append("first")
            second.disconnect()

        bridge.connect("tick", first)
        second = bridge.connect("tick", lambda: calls.append("second"))
        bridge.emit("tick")
        assert calls == ["first"]
        assert bridge.handler_count("tick") == 1

    def test_handler_errors_propagate(self, bridge):
        def broken():
            raise RuntimeError("boom")

        bridge.connect("tick", broken)
        with pytest.raises(RuntimeError):
            bridge.emit("tick")

    def test_block_and_unblock(self, bridge):
        calls = []
        bridge.connect("tick", lambda: calls.append(1))
        bridge.block("tick")
        bridge.emit("tick")
        bridge.unblock("tick")
        bridge.emit("tick")
        assert calls == [1]

    def test_disconnect_all(self, bridge):
        bridge.connect("a", lambda: None)
        bridge.connect("b", lambda: None)
        bridge.disconnect_all("a")
        assert not bridge.is_connected("a")
        assert bridge.is_connected("b")
        bridge.disconnect_all()
        assert not bridge.is_connected("b")

    def test_emit_without_handlers(self, bridge):
        bridge.emit("nothing", 1, 2, 3)
