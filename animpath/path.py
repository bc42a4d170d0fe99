"""
3D path built from three synchronized scalar curves.

All three curves always hold the same number of keys at the same times;
the keys sharing an index form a node. Positions are numpy arrays of
shape (3,), polylines are arrays of shape (n, 3).
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.interpolate import interp1d

from .core import (
    KEY_TIME_TOLERANCE,
    ConsistencyError,
    Curve,
    DuplicateTimeError,
    InvalidSamplingError,
    NodeIndexError,
    TangentMode,
    ValidationError,
)

Vec3Like = Union[Sequence[float], np.ndarray]

AXES = ("x", "y", "z")


def as_vec3(value: Vec3Like, name: str = "position") -> np.ndarray:
    """Coerce to a finite float vector of shape (3,)."""
    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (3,):
        raise ValidationError(f"{name} must have 3 components", {name: value})
    if not np.all(np.isfinite(vec)):
        raise ValidationError(f"{name} must be finite", {name: value})
    return vec


class Path:
    """
    Animation path - three curves (x, y, z) keyed at shared timestamps.

    Usage:
        path = Path()
        path.create_node(0.0, (0, 0, 0))
        path.create_node(1.0, (1, 0, 1))
        path.insert_node_at_time(0.5)
        path.evaluate_position(0.25)
    """

    def __init__(
        self,
        tolerance: float = KEY_TIME_TOLERANCE,
        tangent_mode: TangentMode = TangentMode.SMOOTH,
    ):
        self.tolerance = tolerance
        self.tangent_mode = tangent_mode
        self._curves: List[Curve] = [Curve(tolerance=tolerance) for _ in AXES]

    def __repr__(self) -> str:
        return f"Path(nodes={self.node_count}, tangent_mode={self.tangent_mode.value})"

    def __getitem__(self, axis: int) -> Curve:
        """Read access to one component curve (0=x, 1=y, 2=z)."""
        return self._curves[axis]

    # ------------------------------------------------------------------
    # Node queries
    # ------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self._curves[0])

    @property
    def timestamps(self) -> List[float]:
        return self._curves[0].times

    def node_timestamp(self, index: int) -> float:
        index = self._check_node_index(index)
        return self._curves[0][index].time

    def node_position(self, index: int) -> np.ndarray:
        index = self._check_node_index(index)
        return np.array([curve[index].value for curve in self._curves])

    def node_positions(self) -> np.ndarray:
        if self.node_count == 0:
            return np.zeros((0, 3))
        return np.column_stack([curve.values for curve in self._curves])

    def node_tangents(self, index: int) -> Tuple[np.ndarray, np.ndarray]:
        """(in_tangents, out_tangents) of a node, one component per axis."""
        index = self._check_node_index(index)
        keys = [curve[index] for curve in self._curves]
        return (
            np.array([key.in_tangent for key in keys]),
            np.array([key.out_tangent for key in keys]),
        )

    def node_index_at_time(self, time: float) -> Optional[int]:
        """
        Index of the node at ``time`` within tolerance.

        Returns None when no node sits at that time; this is a normal
        outcome, not an error.
        """
        return self._curves[0].index_at_time(time)

    def node_exists_at_time(self, time: float) -> bool:
        return self.node_index_at_time(time) is not None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate_position(self, time: float) -> np.ndarray:
        """Position at ``time``; passes exactly through every node."""
        return np.array([curve.evaluate(time) for curve in self._curves])

    def evaluate_positions(self, times: Sequence[float]) -> np.ndarray:
        """Positions for many times, shape (n, 3)."""
        return np.column_stack([curve.evaluate_array(times) for curve in self._curves])

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def create_node(self, time: float, position: Vec3Like) -> int:
        """
        Add a node with an explicit position.

        Raises:
            DuplicateTimeError: If a node already exists at ``time``
        """
        position = as_vec3(position)
        self._check_free_time(time)
        index = 0
        for curve, value in zip(self._curves, position):
            index = curve.add_key(time, value)
        return index

    def insert_node_at_time(self, time: float) -> int:
        """
        Add a node whose position is read from the current path at ``time``.

        The path's tangent mode is applied afterwards.
        """
        self._check_free_time(time)
        position = self.evaluate_position(time) if self.node_count else np.zeros(3)
        index = 0
        for curve, value in zip(self._curves, position):
            index = curve.add_key(time, value)
        self.apply_tangent_mode(self.tangent_mode)
        return index

    def move_node(self, index: int, position: Vec3Like) -> None:
        """
        Update node values. Tangents are not touched; call
        :meth:`apply_tangent_mode` afterwards to reshape.
        """
        index = self._check_node_index(index)
        position = as_vec3(position)
        for curve, value in zip(self._curves, position):
            curve.set_key_value(index, value)

    def remove_node(self, index: int) -> None:
        """Remove node keys from all three curves."""
        index = self._check_node_index(index)
        for curve in self._curves:
            curve.remove_key(index)

    def set_node_tangents(
        self,
        index: int,
        in_tangent: Union[float, Vec3Like],
        out_tangent: Union[float, Vec3Like],
    ) -> None:
        """Set node tangents; scalars apply to every axis."""
        index = self._check_node_index(index)
        in_vec = np.broadcast_to(np.asarray(in_tangent, dtype=np.float64), (3,))
        out_vec = np.broadcast_to(np.asarray(out_tangent, dtype=np.float64), (3,))
        if not (np.all(np.isfinite(in_vec)) and np.all(np.isfinite(out_vec))):
            raise ValidationError("Tangents must be finite", {"index": index})
        for curve, in_t, out_t in zip(self._curves, in_vec, out_vec):
            curve.set_key_tangents(index, in_t, out_t)

    def offset_node_tangents(self, index: int, delta: Vec3Like) -> None:
        """Add ``delta`` to both in and out tangents of a node."""
        delta = as_vec3(delta, "delta")
        in_tangents, out_tangents = self.node_tangents(index)
        self.set_node_tangents(index, in_tangents + delta, out_tangents + delta)

    def replace_timestamps(self, timestamps: Sequence[float]) -> None:
        """Assign new times to all nodes at once (same count, increasing)."""
        timestamps = [float(t) for t in timestamps]
        if len(timestamps) != self.node_count:
            raise ValidationError(
                "Number of timestamps must match number of nodes",
                {"timestamps": len(timestamps), "nodes": self.node_count},
            )
        # Validated on the first curve; the other two share the same times.
        for curve in self._curves:
            curve.replace_times(timestamps)

    def apply_tangent_mode(self, mode: Optional[TangentMode] = None) -> None:
        """Recompute tangents on all curves (defaults to ``self.tangent_mode``)."""
        mode = self.tangent_mode if mode is None else mode
        for curve in self._curves:
            curve.apply_tangent_mode(mode)

    # ------------------------------------------------------------------
    # Length and sampling
    # ------------------------------------------------------------------

    def sample_for_timestamps(self, sampling_density: int) -> np.ndarray:
        """``sampling_density`` evenly spaced times over the keyed range."""
        self._check_density(sampling_density)
        if self.node_count == 0:
            return np.zeros(0)
        times = self.timestamps
        return np.linspace(times[0], times[-1], int(sampling_density))

    def sample_for_points(self, sampling_density: int) -> np.ndarray:
        """
        Polyline through the path at ``sampling_density`` evenly spaced times.

        Pure query; shape (sampling_density, 3).
        """
        times = self.sample_for_timestamps(sampling_density)
        if len(times) == 0:
            return np.zeros((0, 3))
        return self.evaluate_positions(times)

    def linear_length(self, sampling_density: int) -> float:
        """Approximate arc length from the sampled polyline."""
        points = self.sample_for_points(sampling_density)
        return _polyline_length(points)

    def section_length(
        self,
        first_index: int,
        second_index: int,
        sampling_density: int,
    ) -> float:
        """Approximate arc length between two nodes."""
        self._check_density(sampling_density)
        t0 = self.node_timestamp(first_index)
        t1 = self.node_timestamp(second_index)
        times = np.linspace(t0, t1, int(sampling_density))
        return _polyline_length(self.evaluate_positions(times))

    def chord_length(self) -> float:
        """Sum of straight node-to-node distances."""
        return _polyline_length(self.node_positions())

    def arc_length_table(self, sampling_density: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Cumulative distance along the path at sampled times.

        Returns:
            (times, distances), both of length ``sampling_density``
        """
        times = self.sample_for_timestamps(sampling_density)
        points = self.evaluate_positions(times)
        segments = np.linalg.norm(np.diff(points, axis=0), axis=1)
        distances = np.concatenate([[0.0], np.cumsum(segments)])
        return times, distances

    def time_at_distance(
        self,
        distance: Union[float, Sequence[float]],
        sampling_density: int,
    ) -> Union[float, np.ndarray]:
        """Time at which the path has covered ``distance`` (clamped)."""
        times, distances = self.arc_length_table(sampling_density)
        query = np.asarray(distance, dtype=np.float64)

        # Zero-length stretches would give interp1d duplicate x values
        keep = np.concatenate([[True], np.diff(distances) > 0.0])
        if np.count_nonzero(keep) < 2:
            result = np.full(query.shape, times[0])
        else:
            lookup = interp1d(
                distances[keep],
                times[keep],
                kind="linear",
                bounds_error=False,
                fill_value=(times[0], times[-1]),
            )
            result = lookup(query)

        if result.ndim == 0:
            return float(result)
        return result

    def sample_evenly_spaced(self, count: int, sampling_density: int) -> np.ndarray:
        """``count`` points spaced evenly by distance along the path."""
        if count < 2:
            raise InvalidSamplingError("count must be at least 2", {"count": count})
        _, distances = self.arc_length_table(sampling_density)
        targets = np.linspace(0.0, distances[-1], int(count))
        times = np.atleast_1d(self.time_at_distance(targets, sampling_density))
        return self.evaluate_positions(times)

    # ------------------------------------------------------------------
    # Construction / integrity
    # ------------------------------------------------------------------

    @classmethod
    def from_points(
        cls,
        points: Union[Sequence[Vec3Like], np.ndarray],
        timestamps: Optional[Sequence[float]] = None,
        tangent_mode: TangentMode = TangentMode.SMOOTH,
        tolerance: float = KEY_TIME_TOLERANCE,
    ) -> 'Path':
        """
        Build a path through ``points``.

        Args:
            points: Node positions, at least two
            timestamps: Node times; evenly spaced over [0, 1] when omitted
            tangent_mode: Tangent mode applied after building
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3 or len(points) < 2:
            raise ValidationError(
                "points must be an (n, 3) array with n >= 2",
                {"shape": points.shape},
            )
        if timestamps is None:
            timestamps = np.linspace(0.0, 1.0, len(points))
        if len(timestamps) != len(points):
            raise ValidationError(
                "timestamps and points must have the same length",
                {"timestamps": len(timestamps), "points": len(points)},
            )

        path = cls(tolerance=tolerance, tangent_mode=tangent_mode)
        for time, point in zip(timestamps, points):
            path.create_node(float(time), point)
        path.apply_tangent_mode(tangent_mode)
        return path

    def check_synchronized(self) -> None:
        """Raise ConsistencyError if the three curves disagree on nodes."""
        reference = self._curves[0].times
        for axis, curve in zip(AXES[1:], self._curves[1:]):
            times = curve.times
            if len(times) != len(reference) or any(
                abs(a - b) > self.tolerance for a, b in zip(times, reference)
            ):
                raise ConsistencyError(
                    "Path curves are out of sync",
                    {"axis": axis, "x_keys": len(reference), f"{axis}_keys": len(times)},
                )

    def copy(self) -> 'Path':
        clone = Path(tolerance=self.tolerance, tangent_mode=self.tangent_mode)
        clone._curves = [curve.copy() for curve in self._curves]
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "tangent_mode": self.tangent_mode.value,
            "curves": {axis: curve.to_dict() for axis, curve in zip(AXES, self._curves)},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], tolerance: float = KEY_TIME_TOLERANCE) -> 'Path':
        """Create from dict. Curves are loaded as-is; see check_synchronized."""
        path = cls(
            tolerance=tolerance,
            tangent_mode=TangentMode(data.get("tangent_mode", TangentMode.SMOOTH.value)),
        )
        curves = data.get("curves", {})
        path._curves = [
            Curve.from_dict(curves.get(axis, {}), tolerance=tolerance) for axis in AXES
        ]
        return path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_node_index(self, index: int) -> int:
        if not 0 <= index < self.node_count:
            raise NodeIndexError(
                "Node index out of range",
                {"index": index, "nodes": self.node_count},
            )
        return index

    def _check_free_time(self, time: float) -> None:
        existing = self.node_index_at_time(time)
        if existing is not None:
            raise DuplicateTimeError(
                "Node already exists at this time",
                time=time,
                existing_index=existing,
            )

    @staticmethod
    def _check_density(sampling_density: int) -> None:
        if sampling_density < 2:
            raise InvalidSamplingError(
                "Sampling density must be at least 2",
                {"sampling_density": sampling_density},
            )


def _polyline_length(points: np.ndarray) -> float:
    if len(points) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))


__all__ = [
    "Vec3Like",
    "as_vec3",
    "Path",
]
