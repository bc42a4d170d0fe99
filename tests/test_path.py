"""
Unit Tests for Path

Run with: pytest tests/test_path.py -v
"""

import numpy as np
import pytest

from animpath.core import (
    ConsistencyError,
    DuplicateTimeError,
    InvalidSamplingError,
    NodeIndexError,
    TangentMode,
    ValidationError,
)
from animpath.path import Path, as_vec3


@pytest.fixture
def curved_path():
    """Four-node smooth path through space."""
    points = [(0.0, 0.0, 0.0), (1.0, 2.0, 0.0), (2.0, 0.0, 1.0), (3.0, 1.0, 1.0)]
    return Path.from_points(points, timestamps=[0.0, 0.3, 0.6, 1.0])


@pytest.fixture
def line_path():
    """Straight path along x with length 2."""
    return Path.from_points(
        [(0.0, 0.0, 0.0), (2.0, 0.0, 0.0)], tangent_mode=TangentMode.LINEAR
    )


class TestVec3:
    """Tests for vector coercion."""

    def test_accepts_sequences(self):
        np.testing.assert_array_equal(as_vec3([1, 2, 3]), [1.0, 2.0, 3.0])

    def test_rejects_bad_shape(self):
        """Positions must have exactly three components."""
        with pytest.raises(ValidationError):
            as_vec3([1.0, 2.0])

    def test_rejects_nan(self):
        with pytest.raises(ValidationError):
            as_vec3([0.0, float("nan"), 0.0])


class TestPathEvaluation:
    """Tests for position evaluation."""

    def test_passes_through_nodes(self, curved_path):
        """Evaluating at a node timestamp returns the node position."""
        for i, t in enumerate(curved_path.timestamps):
            np.testing.assert_allclose(
                curved_path.evaluate_position(t), curved_path.node_position(i), atol=1e-12
            )

    def test_evaluate_positions_shape(self, curved_path):
        """Batch evaluation returns (n, 3)."""
        result = curved_path.evaluate_positions(np.linspace(0.0, 1.0, 7))
        assert result.shape == (7, 3)

    def test_batch_matches_scalar(self, curved_path):
        times = [0.1, 0.45, 0.9]
        batch = curved_path.evaluate_positions(times)
        for row, t in zip(batch, times):
            np.testing.assert_allclose(row, curved_path.evaluate_position(t))

    def test_node_index_at_time(self, curved_path):
        """Exact node times match; other times give None, not an error."""
        assert curved_path.node_index_at_time(0.3) == 1
        assert curved_path.node_index_at_time(0.3 + 1e-6) == 1
        assert curved_path.node_index_at_time(0.31) is None
        assert not curved_path.node_exists_at_time(0.5)


class TestPathEditing:
    """Tests for node creation, movement and removal."""

    def test_create_node_all_channels(self):
        """create_node adds one key per axis at the same index."""
        path = Path()
        path.create_node(0.0, (0, 0, 0))
        path.create_node(1.0, (1, 1, 1))
        index = path.create_node(0.5, (5, 6, 7))
        assert index == 1
        assert path.node_count == 3
        for axis in range(3):
            assert len(path[axis]) == 3
        path.check_synchronized()

    def test_create_duplicate_rejected(self, line_path):
        """Duplicate time raises and leaves every channel unchanged."""
        with pytest.raises(DuplicateTimeError):
            line_path.create_node(1.0, (9, 9, 9))
        assert line_path.node_count == 2
        line_path.check_synchronized()

    def test_insert_node_at_time_uses_current_position(self, line_path):
        """Inserted node sits where the path already was."""
        expected = line_path.evaluate_position(0.25)
        index = line_path.insert_node_at_time(0.25)
        np.testing.assert_allclose(line_path.node_position(index), expected)
        assert line_path.node_count == 3

    def test_move_node_values_only(self, curved_path):
        """move_node changes positions but leaves tangents to the caller."""
        before = curved_path.node_tangents(1)
        curved_path.move_node(1, (1.0, 5.0, 0.0))
        np.testing.assert_allclose(curved_path.node_position(1), [1.0, 5.0, 0.0])
        after = curved_path.node_tangents(1)
        np.testing.assert_allclose(after[0], before[0])

        curved_path.apply_tangent_mode()
        assert not np.allclose(curved_path.node_tangents(0)[1], before[1])

    def test_remove_node(self, curved_path):
        curved_path.remove_node(1)
        assert curved_path.node_count == 3
        assert curved_path.timestamps == pytest.approx([0.0, 0.6, 1.0])

    def test_remove_bad_index_is_atomic(self, curved_path):
        """A bad index fails before any channel is touched."""
        with pytest.raises(NodeIndexError):
            curved_path.remove_node(10)
        assert curved_path.node_count == 4
        curved_path.check_synchronized()

    def test_set_node_tangents_scalar(self, curved_path):
        """Scalar tangents apply to all three axes."""
        curved_path.set_node_tangents(2, 1.5, -0.5)
        in_t, out_t = curved_path.node_tangents(2)
        np.testing.assert_allclose(in_t, [1.5, 1.5, 1.5])
        np.testing.assert_allclose(out_t, [-0.5, -0.5, -0.5])

    def test_offset_node_tangents(self, curved_path):
        in_before, out_before = curved_path.node_tangents(1)
        curved_path.offset_node_tangents(1, (1.0, 0.0, -1.0))
        in_after, out_after = curved_path.node_tangents(1)
        np.testing.assert_allclose(in_after - in_before, [1.0, 0.0, -1.0])
        np.testing.assert_allclose(out_after - out_before, [1.0, 0.0, -1.0])

    def test_replace_timestamps(self, curved_path):
        """New times keep positions."""
        positions = curved_path.node_positions()
        curved_path.replace_timestamps([0.0, 0.5, 0.7, 1.0])
        assert curved_path.timestamps == pytest.approx([0.0, 0.5, 0.7, 1.0])
        np.testing.assert_allclose(curved_path.node_positions(), positions)

    def test_replace_timestamps_count_mismatch(self, curved_path):
        with pytest.raises(ValidationError):
            curved_path.replace_timestamps([0.0, 1.0])
        assert curved_path.timestamps == pytest.approx([0.0, 0.3, 0.6, 1.0])

    def test_linear_tangent_mode_makes_straight_segments(self, curved_path):
        """LINEAR mode turns every section into a straight line."""
        curved_path.apply_tangent_mode(TangentMode.LINEAR)
        midpoint = curved_path.evaluate_position(0.15)
        expected = (curved_path.node_position(0) + curved_path.node_position(1)) / 2
        np.testing.assert_allclose(midpoint, expected, atol=1e-12)


class TestPathLength:
    """Tests for length and sampling."""

    def test_linear_length_of_line(self, line_path):
        assert line_path.linear_length(10) == pytest.approx(2.0)

    def test_density_must_be_at_least_two(self, line_path):
        with pytest.raises(InvalidSamplingError):
            line_path.linear_length(1)
        with pytest.raises(InvalidSamplingError):
            line_path.sample_for_points(0)

    def test_chord_length(self):
        """Straight node-to-node distance."""
        path = Path.from_points([(0, 0, 0), (3, 4, 0)])
        assert path.chord_length() == pytest.approx(5.0)

    def test_sections_sum_to_curved_length(self, curved_path):
        """Section lengths add up to roughly the whole path length."""
        sections = sum(curved_path.section_length(i, i + 1, 200) for i in range(3))
        assert sections == pytest.approx(curved_path.linear_length(600), rel=1e-3)

    def test_curved_length_at_least_chord(self, curved_path):
        assert curved_path.linear_length(100) >= curved_path.chord_length() - 1e-9

    def test_sample_for_points(self, curved_path):
        """Samples start and end on the end nodes."""
        points = curved_path.sample_for_points(25)
        assert points.shape == (25, 3)
        np.testing.assert_allclose(points[0], curved_path.node_position(0))
        np.testing.assert_allclose(points[-1], curved_path.node_position(3))

    def test_sample_is_pure(self, curved_path):
        """Sampling does not change the path."""
        before = curved_path.to_dict()
        curved_path.sample_for_points(50)
        assert curved_path.to_dict() == before

    def test_time_at_distance(self, line_path):
        """On a uniform straight line distance maps linearly to time."""
        assert line_path.time_at_distance(1.0, 41) == pytest.approx(0.5)
        assert line_path.time_at_distance(-1.0, 41) == pytest.approx(0.0)
        assert line_path.time_at_distance(5.0, 41) == pytest.approx(1.0)

    def test_sample_evenly_spaced(self):
        """Points are spread evenly by distance, not by time."""
        path = Path.from_points(
            [(0, 0, 0), (3, 0, 0), (4, 0, 0)],
            timestamps=[0.0, 0.2, 1.0],
            tangent_mode=TangentMode.LINEAR,
        )
        points = path.sample_evenly_spaced(5, 101)
        np.testing.assert_allclose(points[:, 0], [0.0, 1.0, 2.0, 3.0, 4.0], atol=1e-6)


class TestPathConstruction:
    """Tests for from_points, copy and serialization."""

    def test_from_points_default_timestamps(self):
        path = Path.from_points([(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        assert path.timestamps == pytest.approx([0.0, 0.5, 1.0])

    def test_from_points_rejects_bad_input(self):
        with pytest.raises(ValidationError):
            Path.from_points([(0, 0, 0)])
        with pytest.raises(ValidationError):
            Path.from_points([(0, 0), (1, 1)])
        with pytest.raises(ValidationError):
            Path.from_points([(0, 0, 0), (1, 1, 1)], timestamps=[0.0])

    def test_sample_round_trip(self, curved_path):
        """Rebuilding a path from its samples reproduces the samples."""
        points = curved_path.sample_for_points(50)
        rebuilt = Path.from_points(points)
        np.testing.assert_allclose(rebuilt.sample_for_points(50), points, atol=1e-9)

    def test_copy_is_independent(self, curved_path):
        clone = curved_path.copy()
        clone.move_node(0, (9, 9, 9))
        np.testing.assert_allclose(curved_path.node_position(0), [0, 0, 0])

    def test_dict_round_trip(self, curved_path):
        loaded = Path.from_dict(curved_path.to_dict())
        assert loaded.tangent_mode == curved_path.tangent_mode
        np.testing.assert_allclose(loaded.node_positions(), curved_path.node_positions())
        np.testing.assert_allclose(
            loaded.evaluate_positions([0.1, 0.5, 0.8]),
            curved_path.evaluate_positions([0.1, 0.5, 0.8]),
        )

    def test_check_synchronized_detects_drift(self, curved_path):
        """A stray key on one axis is reported."""
        curved_path[2].add_key(0.45, 0.0)
        with pytest.raises(ConsistencyError):
            curved_path.check_synchronized()
