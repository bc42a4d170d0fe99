"""
SignalBridge - synchronous observer list for document and playback events.

Handlers run in registration order, in the same call stack as the edit or
tick that fired them. Nothing is queued or batched.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass

from .core.logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# Signal Types
# =============================================================================

# Document signals
SIGNAL_NODE_ADDED = 'node_added'                    # (NodeEventArgs)
SIGNAL_NODE_REMOVED = 'node_removed'                # (NodeEventArgs)
SIGNAL_NODE_MOVED = 'node_moved'                    # (NodeEventArgs)
SIGNAL_NODE_TIME_CHANGED = 'node_time_changed'      # (timestamps,)
SIGNAL_NODE_TANGENTS_CHANGED = 'node_tangents_changed'  # (NodeEventArgs | None for all nodes)
SIGNAL_EASE_CURVE_UPDATED = 'ease_curve_updated'    # ()
SIGNAL_TILT_CURVE_UPDATED = 'tilt_curve_updated'    # ()
SIGNAL_PATH_RESET = 'path_reset'                    # ()
SIGNAL_ROTATION_PATH_RESET = 'rotation_path_reset'  # ()
SIGNAL_ROTATION_POINT_MOVED = 'rotation_point_moved'  # (NodeEventArgs)
SIGNAL_TARGET_MOVED = 'target_moved'                # (position,)

# Playback signals
SIGNAL_ANIMATION_STARTED = 'animation_started'      # ()
SIGNAL_ANIMATION_ENDED = 'animation_ended'          # ()
SIGNAL_ANIMATION_PAUSED = 'animation_paused'        # ()
SIGNAL_ANIMATION_RESUMED = 'animation_resumed'      # ()
SIGNAL_NODE_REACHED = 'node_reached'                # (NodeEventArgs)
SIGNAL_JUMPED_TO_NODE = 'jumped_to_node'            # (NodeEventArgs)


# =============================================================================
# Event Payloads
# =============================================================================

@dataclass(frozen=True)
class NodeEventArgs:
    """Node index plus the time it was added/removed/reached at.

    ``index`` is None for a jump that landed between nodes.
    """
    index: Optional[int]
    timestamp: float


# =============================================================================
# Connection Handle
# =============================================================================

@dataclass
class Connection:
    """Handle to a signal connection."""
    signal: str
    callback_id: int
    bridge: SignalBridge = None

    @property
    def connected(self) -> bool:
        return self.bridge is not None

    def disconnect(self):
        if self.bridge:
            self.bridge._remove_connection(self.signal, self.callback_id)
            self.bridge = None


# =============================================================================
# Signal Bridge
# =============================================================================

class SignalBridge:
    """Per-owner hub for signal routing."""

    def __init__(self):
        self._connections: Dict[str, Dict[int, Callable]] = {}
        self._next_id: int = 0
        self._blocked: set = set()
        self._emit_depth: int = 0
        self._pending_removes: List[Tuple[str, int]] = []

    def connect(self, signal: str, handler: Callable) -> Connection:
        if signal not in self._connections:
            self._connections[signal] = {}

        callback_id = self._next_id
        self._next_id += 1

        self._connections[signal][callback_id] = handler

        return Connection(signal=signal, callback_id=callback_id, bridge=self)

    def disconnect_all(self, signal: str = None):
        if signal:
            self._connections.pop(signal, None)
        else:
            self._connections.clear()

    def emit(self, signal: str, *args, **kwargs):
        """Call every handler of ``signal``; handler errors propagate."""
        if signal in self._blocked:
            return

        handlers = self._connections.get(signal, {})
        if not handlers:
            return

        logger.debug(f"emit {signal} to {len(handlers)} handler(s)")
        self._emit_depth += 1

        try:
            for callback_id, handler in list(handlers.items()):
                # Skip handlers disconnected earlier in this emit
                if (signal, callback_id) in self._pending_removes:
                    continue
                handler(*args, **kwargs)
        finally:
            self._emit_depth -= 1

            if self._emit_depth == 0 and self._pending_removes:
                for sig, cid in self._pending_removes:
                    self._do_remove(sig, cid)
                self._pending_removes.clear()

    def block(self, signal: str):
        self._blocked.add(signal)

    def unblock(self, signal: str):
        self._blocked.discard(signal)

    def is_connected(self, signal: str) -> bool:
        return bool(self._connections.get(signal))

    def handler_count(self, signal: str) -> int:
        return len(self._connections.get(signal, {}))

    def _remove_connection(self, signal: str, callback_id: int):
        if self._emit_depth > 0:
            self._pending_removes.append((signal, callback_id))
        else:
            self._do_remove(signal, callback_id)

    def _do_remove(self, signal: str, callback_id: int):
        if signal in self._connections:
            self._connections[signal].pop(callback_id, None)


__all__ = [
    "SIGNAL_NODE_ADDED",
    "SIGNAL_NODE_REMOVED",
    "SIGNAL_NODE_MOVED",
    "SIGNAL_NODE_TIME_CHANGED",
    "SIGNAL_NODE_TANGENTS_CHANGED",
    "SIGNAL_EASE_CURVE_UPDATED",
    "SIGNAL_TILT_CURVE_UPDATED",
    "SIGNAL_PATH_RESET",
    "SIGNAL_ROTATION_PATH_RESET",
    "SIGNAL_ROTATION_POINT_MOVED",
    "SIGNAL_TARGET_MOVED",
    "SIGNAL_ANIMATION_STARTED",
    "SIGNAL_ANIMATION_ENDED",
    "SIGNAL_ANIMATION_PAUSED",
    "SIGNAL_ANIMATION_RESUMED",
    "SIGNAL_NODE_REACHED",
    "SIGNAL_JUMPED_TO_NODE",
    "NodeEventArgs",
    "Connection",
    "SignalBridge",
]
