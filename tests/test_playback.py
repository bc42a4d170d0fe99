"""
Unit Tests for PlaybackClock

Run with: pytest tests/test_playback.py -v
"""

import numpy as np
import pytest

from animpath import (
    SIGNAL_ANIMATION_ENDED,
    SIGNAL_ANIMATION_PAUSED,
    SIGNAL_ANIMATION_RESUMED,
    SIGNAL_ANIMATION_STARTED,
    SIGNAL_JUMPED_TO_NODE,
    SIGNAL_NODE_REACHED,
    PathDocument,
    PlaybackClock,
    PlaybackState,
    ValidationError,
    WrapMode,
)


@pytest.fixture
def doc():
    """Default document with constant ease 0.05."""
    return PathDocument()


@pytest.fixture
def recorder(doc):
    """Record every playback signal as (name, payload) tuples."""
    events = []
    for signal in (
        SIGNAL_ANIMATION_STARTED,
        SIGNAL_ANIMATION_ENDED,
        SIGNAL_ANIMATION_PAUSED,
        SIGNAL_ANIMATION_RESUMED,
        SIGNAL_NODE_REACHED,
        SIGNAL_JUMPED_TO_NODE,
    ):
        doc.signals.connect(
            signal, lambda *args, _name=signal: events.append((_name,) + args)
        )
    return events


def reached(events):
    return [e[1].index for e in events if e[0] == SIGNAL_NODE_REACHED]


class TestTransport:
    """play / pause / unpause / stop."""

    def test_initial_state(self, doc):
        clock = PlaybackClock(doc)
        assert clock.state == PlaybackState.STOPPED
        assert clock.time == 0.0
        assert not clock.reverse

    def test_play_from_zero_fires_started(self, doc, recorder):
        """Starting at 0 announces the start and the first node."""
        clock = PlaybackClock(doc)
        clock.play()
        assert clock.is_playing
        assert recorder[0] == (SIGNAL_ANIMATION_STARTED,)
        assert reached(recorder) == [0]

    def test_play_mid_path_no_started(self, doc, recorder):
        clock = PlaybackClock(doc)
        clock.time = 0.4
        clock.play()
        assert clock.is_playing
        assert recorder == []

    def test_play_at_end_rewinds(self, doc, recorder):
        clock = PlaybackClock(doc)
        clock.time = 1.0
        clock.play()
        assert clock.time == 0.0
        assert recorder[0] == (SIGNAL_ANIMATION_STARTED,)

    def test_pause_and_unpause(self, doc, recorder):
        clock = PlaybackClock(doc)
        clock.play()
        clock.tick(1.0)
        clock.pause()
        assert clock.is_paused
        time = clock.time
        clock.tick(1.0)
        assert clock.time == time

        clock.unpause()
        assert clock.is_playing
        names = [e[0] for e in recorder]
        assert SIGNAL_ANIMATION_PAUSED in names
        assert SIGNAL_ANIMATION_RESUMED in names

    def test_unpause_needs_interior_time(self, doc):
        """Unpause at time 0 leaves the clock paused."""
        clock = PlaybackClock(doc)
        clock.play()
        clock.pause()
        clock.unpause()
        assert clock.is_paused

    def test_pause_when_stopped_is_noop(self, doc, recorder):
        clock = PlaybackClock(doc)
        clock.pause()
        assert clock.is_stopped
        assert recorder == []

    def test_stop_resets(self, doc):
        clock = PlaybackClock(doc, wrap_mode=WrapMode.PING_PONG)
        clock.play()
        clock.tick(2.0, backward=False)
        clock.reverse = True
        clock.stop()
        assert clock.is_stopped
        assert clock.time == 0.0
        assert not clock.reverse

    def test_time_setter_clamps(self, doc):
        clock = PlaybackClock(doc)
        clock.time = 3.0
        assert clock.time == 1.0
        clock.time = -1.0
        assert clock.time == 0.0


class TestTick:
    """Time advancement and wrap modes."""

    def test_tick_uses_ease(self, doc):
        """Step is ease(time) * delta_time."""
        clock = PlaybackClock(doc)
        clock.play()
        assert clock.tick(1.0) == pytest.approx(0.05)
        doc.multiply_ease_values(2.0)
        assert clock.tick(1.0) == pytest.approx(0.15)

    def test_tick_when_stopped(self, doc):
        clock = PlaybackClock(doc)
        assert clock.tick(1.0) == 0.0

    def test_negative_delta_rejected(self, doc):
        clock = PlaybackClock(doc)
        clock.play()
        with pytest.raises(ValidationError):
            clock.tick(-0.1)

    def test_backward_argument(self, doc):
        clock = PlaybackClock(doc)
        clock.time = 0.5
        clock.play()
        clock.tick(1.0, backward=True)
        assert clock.reverse
        assert clock.time == pytest.approx(0.45)

    def test_clamp_stops_at_end(self, doc, recorder):
        clock = PlaybackClock(doc, wrap_mode=WrapMode.CLAMP)
        clock.time = 0.99
        clock.play()
        clock.tick(1.0)
        assert clock.time == 1.0
        assert clock.is_stopped
        assert recorder[-1] == (SIGNAL_ANIMATION_ENDED,)

    def test_clamp_reverse_stops_at_start(self, doc, recorder):
        clock = PlaybackClock(doc, wrap_mode=WrapMode.CLAMP)
        clock.time = 0.02
        clock.play()
        clock.tick(1.0, backward=True)
        assert clock.time == 0.0
        assert clock.is_stopped
        assert recorder[-1] == (SIGNAL_ANIMATION_ENDED,)

    def test_loop_wraps_to_start(self, doc, recorder):
        clock = PlaybackClock(doc, wrap_mode=WrapMode.LOOP)
        clock.time = 0.99
        clock.play()
        clock.tick(1.0)
        assert clock.time == 0.0
        assert clock.is_playing
        assert reached(recorder) == [1, 0]

    def test_loop_reverse_wraps_to_end(self, doc):
        clock = PlaybackClock(doc, wrap_mode=WrapMode.LOOP)
        clock.time = 0.01
        clock.play()
        clock.tick(1.0, backward=True)
        assert clock.time == 1.0
        assert clock.is_playing

    def test_ping_pong_reverses(self, doc):
        """Passing 1 turns the clock around; the next tick goes back."""
        clock = PlaybackClock(doc, wrap_mode=WrapMode.PING_PONG)
        clock.time = 0.99
        clock.play()
        clock.tick(1.0)
        assert clock.reverse is True
        first = clock.time
        clock.tick(1.0)
        assert clock.time < first

    def test_ping_pong_turns_forward_at_start(self, doc):
        clock = PlaybackClock(doc, wrap_mode=WrapMode.PING_PONG)
        clock.time = 0.01
        clock.reverse = True
        clock.play()
        clock.tick(1.0)
        assert clock.time == 0.0
        assert clock.reverse is False
        clock.tick(1.0)
        assert clock.time == pytest.approx(0.05)


class TestNodeCrossing:
    """node_reached events."""

    @pytest.fixture
    def fast_doc(self, doc):
        """Nodes at 0, 0.2, 0.4, 0.6, 1 with ease 1.0."""
        for t in (0.2, 0.4, 0.6):
            doc.insert_node(t)
        doc.multiply_ease_values(20.0)
        return doc

    def test_forward_crossings_in_order(self, fast_doc, recorder):
        """A single large step reports every node it passes."""
        clock = PlaybackClock(fast_doc)
        clock.time = 0.1
        clock.play()
        clock.tick(0.55)
        assert reached(recorder) == [1, 2, 3]

    def test_reverse_crossings_in_order(self, fast_doc, recorder):
        clock = PlaybackClock(fast_doc)
        clock.time = 0.9
        clock.play()
        clock.tick(0.55, backward=True)
        assert reached(recorder) == [3, 2]

    def test_payload_carries_timestamp(self, fast_doc, recorder):
        clock = PlaybackClock(fast_doc)
        clock.time = 0.3
        clock.play()
        clock.tick(0.15)
        events = [e[1] for e in recorder if e[0] == SIGNAL_NODE_REACHED]
        assert events[0].index == 2
        assert events[0].timestamp == pytest.approx(0.4)

    def test_overshoot_reports_all_then_ends(self, doc, recorder):
        """Huge steps never drop nodes."""
        doc.insert_node(0.5)
        clock = PlaybackClock(doc)
        clock.play()
        clock.tick(100.0)
        assert reached(recorder) == [0, 1, 2]
        assert recorder[-1] == (SIGNAL_ANIMATION_ENDED,)

    def test_no_crossing_without_progress(self, fast_doc, recorder):
        clock = PlaybackClock(fast_doc)
        clock.time = 0.1
        clock.play()
        clock.tick(0.0)
        assert reached(recorder) == []


class TestJumps:
    """Jump helpers."""

    @pytest.fixture
    def clock(self, doc):
        doc.insert_node(0.5)
        return PlaybackClock(doc)

    def test_jump_to_node(self, clock, recorder):
        clock.jump_to_node(1)
        assert clock.time == pytest.approx(0.5)
        assert recorder[-1][0] == SIGNAL_JUMPED_TO_NODE
        assert recorder[-1][1].index == 1

    def test_jump_next_and_previous(self, clock):
        assert clock.jump_to_next_node() == 1
        assert clock.jump_to_next_node() == 2
        assert clock.jump_to_next_node() is None
        assert clock.jump_to_previous_node() == 1
        assert clock.jump_to_previous_node() == 0
        assert clock.jump_to_previous_node() is None

    def test_jump_to_ends(self, clock):
        clock.jump_to_end()
        assert clock.time == 1.0
        clock.jump_to_start()
        assert clock.time == 0.0

    def test_current_sample(self, clock):
        clock.jump_to_node(1)
        sample = clock.current_sample()
        assert sample.time == pytest.approx(0.5)
        np.testing.assert_allclose(sample.position, [0.5, 0.0, 0.5])
