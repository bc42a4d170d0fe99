"""
PlaybackClock - advances normalized animation time over a PathDocument.

The host pushes ``delta_time`` once per frame through :meth:`PlaybackClock.tick`.
The ease curve acts as a speed multiplier, so time advances by
``ease(time) * delta_time`` per tick.
"""

import math
from enum import Enum
from typing import List, Optional

from .core import ValidationError, get_logger
from .document import PathDocument, PathSample
from .events import (
    SIGNAL_ANIMATION_ENDED,
    SIGNAL_ANIMATION_PAUSED,
    SIGNAL_ANIMATION_RESUMED,
    SIGNAL_ANIMATION_STARTED,
    SIGNAL_JUMPED_TO_NODE,
    SIGNAL_NODE_REACHED,
    NodeEventArgs,
    SignalBridge,
)

logger = get_logger(__name__)


class PlaybackState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class WrapMode(Enum):
    """What happens when time reaches either end."""
    CLAMP = "clamp"           # stop at the end
    LOOP = "loop"             # jump back to the start
    PING_PONG = "ping_pong"   # reverse direction


class PlaybackClock:
    """
    Animation clock for one document.

    Signals go through the document's SignalBridge unless another bridge
    is given.

    Usage:
        clock = PlaybackClock(doc, wrap_mode=WrapMode.LOOP)
        clock.play()
        while clock.is_playing:
            clock.tick(frame_delta)
            sample = clock.current_sample()
    """

    def __init__(
        self,
        document: PathDocument,
        wrap_mode: WrapMode = WrapMode.CLAMP,
        signals: Optional[SignalBridge] = None,
    ):
        self.document = document
        self.wrap_mode = WrapMode(wrap_mode)
        self.signals = signals or document.signals
        self.state = PlaybackState.STOPPED
        self.reverse = False
        self._time = 0.0

    def __repr__(self) -> str:
        return (
            f"PlaybackClock(time={self._time:.4f}, state={self.state.value}, "
            f"wrap_mode={self.wrap_mode.value}, reverse={self.reverse})"
        )

    @property
    def time(self) -> float:
        return self._time

    @time.setter
    def time(self, value: float):
        self._time = min(max(float(value), 0.0), 1.0)

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == PlaybackState.PAUSED

    @property
    def is_stopped(self) -> bool:
        return self.state == PlaybackState.STOPPED

    # =========================================================================
    # Transport
    # =========================================================================

    def play(self) -> None:
        """
        Start playing from STOPPED or PAUSED.

        A clock resting at the end it is heading to rewinds first. Starting
        exactly at time 0 fires ``animation_started`` and reports the first node.
        """
        if self.state == PlaybackState.PLAYING:
            return

        if not self.reverse and self._time >= 1.0:
            self._time = 0.0
        elif self.reverse and self._time <= 0.0:
            self._time = 1.0

        self.state = PlaybackState.PLAYING
        logger.debug(f"play from t={self._time:.4f}")

        if self._time == 0.0:
            self.signals.emit(SIGNAL_ANIMATION_STARTED)
            self._emit_node_at(0.0)

    def pause(self) -> None:
        if self.state != PlaybackState.PLAYING:
            return
        self.state = PlaybackState.PAUSED
        self.signals.emit(SIGNAL_ANIMATION_PAUSED)

    def unpause(self) -> None:
        """Resume from PAUSED, only while time is strictly inside (0, 1)."""
        if self.state != PlaybackState.PAUSED or not 0.0 < self._time < 1.0:
            return
        self.state = PlaybackState.PLAYING
        self.signals.emit(SIGNAL_ANIMATION_RESUMED)

    def stop(self) -> None:
        """Stop from any state, rewind to 0 and play forward next time."""
        self.state = PlaybackState.STOPPED
        self._time = 0.0
        self.reverse = False

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self, delta_time: float, backward: Optional[bool] = None) -> float:
        """
        Advance time by one host frame.

        Args:
            delta_time: Frame duration, non-negative
            backward: Set playback direction before stepping; None keeps it

        Returns:
            Clock time after the tick
        """
        if not math.isfinite(delta_time) or delta_time < 0.0:
            raise ValidationError(
                "delta_time must be finite and non-negative",
                {"delta_time": delta_time},
            )
        if backward is not None:
            self.reverse = bool(backward)
        if self.state != PlaybackState.PLAYING:
            return self._time

        previous = self._time
        speed = self.document.evaluate_ease(previous)
        direction = -1.0 if self.reverse else 1.0
        self.time = previous + direction * speed * delta_time

        self._emit_crossings(previous, self._time)
        self._apply_wrap()
        return self._time

    def _emit_crossings(self, previous: float, current: float) -> None:
        """Report every node passed during the step, in travel order."""
        for index in self._crossed_nodes(previous, current):
            timestamp = self.document.node_timestamp(index)
            self.signals.emit(SIGNAL_NODE_REACHED, NodeEventArgs(index, timestamp))

    def _crossed_nodes(self, previous: float, current: float) -> List[int]:
        timestamps = self.document.path_timestamps()
        if current > previous:
            return [i for i, t in enumerate(timestamps) if previous < t <= current]
        if current < previous:
            return [
                i for i in reversed(range(len(timestamps)))
                if current <= timestamps[i] < previous
            ]
        return []

    def _apply_wrap(self) -> None:
        at_end = not self.reverse and self._time >= 1.0
        at_start = self.reverse and self._time <= 0.0
        if not (at_end or at_start):
            return

        if self.wrap_mode == WrapMode.CLAMP:
            self.state = PlaybackState.STOPPED
            logger.debug(f"animation ended at t={self._time:.4f}")
            self.signals.emit(SIGNAL_ANIMATION_ENDED)
        elif self.wrap_mode == WrapMode.LOOP:
            self._time = 1.0 if self.reverse else 0.0
            self._emit_node_at(self._time)
        else:
            self.reverse = at_end

    def _emit_node_at(self, time: float) -> None:
        index = self.document.node_index_at_time(time)
        if index is not None:
            self.signals.emit(SIGNAL_NODE_REACHED, NodeEventArgs(index, time))

    # =========================================================================
    # Jumps
    # =========================================================================

    def jump_to_node(self, index: int) -> None:
        """Move the clock onto node ``index`` without changing state."""
        timestamp = self.document.node_timestamp(index)
        self._time = timestamp
        self.signals.emit(SIGNAL_JUMPED_TO_NODE, NodeEventArgs(index, timestamp))

    def jump_to_next_node(self) -> Optional[int]:
        """Jump to the first node after the current time. Returns its index."""
        tolerance = self.document.settings.key_time_tolerance
        for index, timestamp in enumerate(self.document.path_timestamps()):
            if timestamp > self._time + tolerance:
                self.jump_to_node(index)
                return index
        return None

    def jump_to_previous_node(self) -> Optional[int]:
        """Jump to the last node before the current time. Returns its index."""
        tolerance = self.document.settings.key_time_tolerance
        timestamps = self.document.path_timestamps()
        for index in reversed(range(len(timestamps))):
            if timestamps[index] < self._time - tolerance:
                self.jump_to_node(index)
                return index
        return None

    def jump_to_start(self) -> None:
        self.jump_to_node(0)

    def jump_to_end(self) -> None:
        self.jump_to_node(self.document.nodes_count - 1)

    def current_sample(self) -> PathSample:
        return self.document.sample(self._time)


__all__ = [
    "PlaybackState",
    "WrapMode",
    "PlaybackClock",
]
