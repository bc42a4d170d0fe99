"""
PathDocument - object path, rotation path, ease and tilt curves kept in sync.

The document is the only writer of its four channels. Every edit runs as a
transaction: on a validation error all channels are restored and nothing is
emitted; on success the channel invariants are checked and the matching
signal fires. A failed invariant check halts the document until a reset
repairs it.
"""

import bisect
import json
import pathlib
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from .config import DEFAULT_SETTINGS, PathSettings
from .core import (
    AnimPathException,
    ConsistencyError,
    Curve,
    DocumentHaltedError,
    EndpointNodeError,
    NodeIndexError,
    NodeSeparationError,
    RotationPathDesyncError,
    TangentMode,
    TimestampOverflowError,
    ValidationError,
    get_logger,
    log_performance,
)
from .events import (
    SIGNAL_EASE_CURVE_UPDATED,
    SIGNAL_NODE_ADDED,
    SIGNAL_NODE_MOVED,
    SIGNAL_NODE_REMOVED,
    SIGNAL_NODE_TANGENTS_CHANGED,
    SIGNAL_NODE_TIME_CHANGED,
    SIGNAL_PATH_RESET,
    SIGNAL_ROTATION_PATH_RESET,
    SIGNAL_ROTATION_POINT_MOVED,
    SIGNAL_TARGET_MOVED,
    SIGNAL_TILT_CURVE_UPDATED,
    NodeEventArgs,
    SignalBridge,
)
from .path import Path, Vec3Like, as_vec3

logger = get_logger(__name__)

FORMAT_VERSION = 1


def _separation_error(message: str, **details) -> NodeSeparationError:
    return NodeSeparationError(message, details)


class RotationMode(Enum):
    """Where the animated object looks."""
    FORWARD = "forward"     # along the object path
    CUSTOM = "custom"       # at the rotation path
    TARGET = "target"       # at a fixed target position


@dataclass(frozen=True)
class PathSample:
    """Everything the host needs to place the object at one time."""
    time: float
    position: np.ndarray
    rotation_target: np.ndarray
    ease: float
    tilt: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "position": self.position.tolist(),
            "rotation_target": self.rotation_target.tolist(),
            "ease": self.ease,
            "tilt": self.tilt,
        }


class PathDocument:
    """
    Multi-channel animation path.

    Channels:
        object path    - nodes the object travels through
        rotation path  - look-at targets, one per node (read in CUSTOM rotation mode)
        ease curve     - speed multiplier, keyed on ease-enabled nodes
        tilt curve     - roll angle, keyed on tilt-enabled nodes

    Usage:
        doc = PathDocument()
        doc.signals.connect(SIGNAL_NODE_ADDED, on_added)
        index = doc.add_node_between(0)
        doc.move_node(index, (0.5, 1.0, 0.5), redistribute=True)
        doc.set_ease_tool(index, True)
        doc.sample(0.25)
    """

    def __init__(
        self,
        settings: Optional[PathSettings] = None,
        tangent_mode: Union[TangentMode, str] = TangentMode.SMOOTH,
        rotation_mode: Union[RotationMode, str] = RotationMode.FORWARD,
        signals: Optional[SignalBridge] = None,
        target_position: Optional[Vec3Like] = None,
    ):
        self.settings = settings or DEFAULT_SETTINGS
        self.signals = signals or SignalBridge()

        self._tangent_mode = TangentMode(tangent_mode)
        self._rotation_mode = RotationMode(rotation_mode)
        self._halted = False
        self._halt_reason: Optional[str] = None
        self._target_position = (
            None if target_position is None else as_vec3(target_position, "target_position")
        )
        self._check_target(self._rotation_mode)

        self._object_path = self._default_path()
        self._rotation_path = self._default_path()
        self._ease_curve = self._default_aux_curve(self.settings.default_ease_value)
        self._tilt_curve = self._default_aux_curve(self.settings.default_tilt_value)
        self._ease_tool_state: List[bool] = [True] * self._object_path.node_count
        self._tilt_tool_state: List[bool] = [True] * self._object_path.node_count

    def __repr__(self) -> str:
        return (
            f"PathDocument(nodes={self.nodes_count}, "
            f"tangent_mode={self._tangent_mode.value}, "
            f"rotation_mode={self._rotation_mode.value}, halted={self._halted})"
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def tangent_mode(self) -> TangentMode:
        return self._tangent_mode

    @property
    def rotation_mode(self) -> RotationMode:
        return self._rotation_mode

    @property
    def rotation_path_in_sync(self) -> bool:
        """Rotation node timestamps match object node timestamps."""
        return self._rotation_matches_object()

    @property
    def target_position(self) -> Optional[np.ndarray]:
        """Fixed look-at point for TARGET rotation mode."""
        if self._target_position is None:
            return None
        return self._target_position.copy()

    @property
    def is_halted(self) -> bool:
        return self._halted

    @property
    def halt_reason(self) -> Optional[str]:
        return self._halt_reason

    @property
    def nodes_count(self) -> int:
        return self._object_path.node_count

    @property
    def rotation_path_nodes_count(self) -> int:
        return self._rotation_path.node_count

    @property
    def ease_curve_keys_count(self) -> int:
        return len(self._ease_curve)

    @property
    def tilt_curve_keys_count(self) -> int:
        return len(self._tilt_curve)

    @property
    def ease_tool_state(self) -> Tuple[bool, ...]:
        return tuple(self._ease_tool_state)

    @property
    def tilt_tool_state(self) -> Tuple[bool, ...]:
        return tuple(self._tilt_tool_state)

    # Read-only views; edits must go through the document.

    @property
    def object_path(self) -> Path:
        """Copy of the object path."""
        return self._object_path.copy()

    @property
    def rotation_path(self) -> Path:
        """Copy of the rotation path."""
        return self._rotation_path.copy()

    @property
    def ease_curve(self) -> Curve:
        """Copy of the ease curve."""
        return self._ease_curve.copy()

    @property
    def tilt_curve(self) -> Curve:
        """Copy of the tilt curve."""
        return self._tilt_curve.copy()

    # =========================================================================
    # Queries
    # =========================================================================

    def evaluate_position(self, time: float) -> np.ndarray:
        return self._object_path.evaluate_position(time)

    def evaluate_rotation_target(self, time: float) -> np.ndarray:
        """
        Point the object looks at.

        FORWARD mode looks slightly ahead on the object path, CUSTOM mode
        reads the rotation path and TARGET mode returns the target position.
        """
        if self._rotation_mode == RotationMode.CUSTOM:
            return self._rotation_path.evaluate_position(time)
        if self._rotation_mode == RotationMode.TARGET:
            return self._target_position.copy()
        ahead = min(time + self.settings.forward_point_offset, 1.0)
        return self._object_path.evaluate_position(ahead)

    def evaluate_ease(self, time: float) -> float:
        return self._ease_curve.evaluate(time)

    def evaluate_tilt(self, time: float) -> float:
        return self._tilt_curve.evaluate(time)

    def sample(self, time: float) -> PathSample:
        return PathSample(
            time=float(time),
            position=self.evaluate_position(time),
            rotation_target=self.evaluate_rotation_target(time),
            ease=self.evaluate_ease(time),
            tilt=self.evaluate_tilt(time),
        )

    def node_index_at_time(self, time: float) -> Optional[int]:
        """Node at ``time`` within tolerance; None is a valid "no node" answer."""
        return self._object_path.node_index_at_time(time)

    def path_timestamps(self) -> List[float]:
        return self._object_path.timestamps

    def rotation_path_timestamps(self) -> List[float]:
        return self._rotation_path.timestamps

    def linear_length(self, sampling_density: Optional[int] = None) -> float:
        """Approximate object path length (``path_length_sampling`` by default)."""
        density = sampling_density or self.settings.path_length_sampling
        return self._object_path.linear_length(density)

    @log_performance
    def sample_for_points(self, sampling_density: Optional[int] = None) -> np.ndarray:
        """Object path polyline for export (``export_sampling`` by default)."""
        density = sampling_density or self.settings.export_sampling
        return self._object_path.sample_for_points(density)

    def sample_rotation_path_for_points(
        self,
        sampling_density: Optional[int] = None,
    ) -> np.ndarray:
        density = sampling_density or self.settings.export_sampling
        return self._rotation_path.sample_for_points(density)

    def node_position(self, index: int) -> np.ndarray:
        return self._object_path.node_position(index)

    def node_positions(self) -> np.ndarray:
        return self._object_path.node_positions()

    def node_timestamp(self, index: int) -> float:
        return self._object_path.node_timestamp(index)

    def rotation_point_position(self, index: int) -> np.ndarray:
        return self._rotation_path.node_position(index)

    def rotation_point_positions(self) -> np.ndarray:
        return self._rotation_path.node_positions()

    def ease_values(self) -> List[float]:
        return self._ease_curve.values

    def tilt_values(self) -> List[float]:
        return self._tilt_curve.values

    def eased_node_timestamps(self) -> List[float]:
        """Timestamps of nodes with the ease tool enabled."""
        return self._enabled_timestamps(self._ease_tool_state)

    def tilted_node_timestamps(self) -> List[float]:
        """Timestamps of nodes with the tilt tool enabled."""
        return self._enabled_timestamps(self._tilt_tool_state)

    def node_ease_value(self, index: int) -> float:
        return self._ease_curve.evaluate(self.node_timestamp(index))

    def node_tilt_value(self, index: int) -> float:
        return self._tilt_curve.evaluate(self.node_timestamp(index))

    # =========================================================================
    # Node editing
    # =========================================================================

    def insert_node(self, time: float) -> int:
        """
        Insert a node at ``time`` with the position the path has there.

        Args:
            time: Normalized time strictly inside (0, 1)

        Returns:
            Index of the new node

        Raises:
            ValidationError: If ``time`` is not inside (0, 1)
            NodeSeparationError: If a node is closer than ``min_node_time_separation``
            RotationPathDesyncError: If the rotation path cannot take the node
        """
        return self._insert(time, position=None)

    def create_node(self, time: float, position: Vec3Like) -> int:
        """Insert a node at ``time`` with an explicit position."""
        return self._insert(time, position=as_vec3(position))

    def add_node_between(self, index: int) -> int:
        """Split the section after node ``index`` at its midpoint time."""
        self._check_node_index(index, self.nodes_count - 1)
        t0 = self.node_timestamp(index)
        t1 = self.node_timestamp(index + 1)
        return self.insert_node((t0 + t1) / 2.0)

    def remove_node(self, index: int) -> None:
        """
        Remove an interior node from every channel.

        Raises:
            EndpointNodeError: For the first or last node
        """
        with self._transaction("remove_node"):
            self._check_node_index(index)
            if index in (0, self.nodes_count - 1):
                raise EndpointNodeError("Endpoint nodes cannot be removed", {"index": index})

            timestamp = self.node_timestamp(index)
            for curve, state in self._aux_channels():
                if state[index]:
                    curve.remove_key_at_time(timestamp)
                    curve.apply_tangent_mode(self.settings.aux_tangent_mode)
                del state[index]

            self._object_path.remove_node(index)
            self._object_path.apply_tangent_mode(self._tangent_mode)
            self._rotation_path.remove_node(index)
            self._rotation_path.apply_tangent_mode(self._tangent_mode)

        logger.debug(f"Removed node {index} at t={timestamp:.5f}")
        self.signals.emit(SIGNAL_NODE_REMOVED, NodeEventArgs(index, timestamp))

    def move_node(self, index: int, position: Vec3Like, redistribute: bool = False) -> None:
        """
        Move a node and keep perceived speed constant.

        Tangents are re-derived for the current tangent mode, then the ease
        curve is scaled by ``old_length / new_length``.

        Args:
            index: Node index
            position: New position
            redistribute: Also recompute node timestamps from section lengths

        Raises:
            TimestampOverflowError: If ``redistribute`` cannot produce valid times
        """
        position = as_vec3(position)
        with self._transaction("move_node"):
            self._check_node_index(index)
            old_length = self.linear_length()

            self._object_path.move_node(index, position)
            self._object_path.apply_tangent_mode(self._tangent_mode)
            if redistribute:
                self._redistribute()

            new_length = self.linear_length()
            if old_length > 0.0 and new_length > 0.0:
                self._ease_curve.multiply_values(old_length / new_length)

        timestamp = self.node_timestamp(index)
        self.signals.emit(SIGNAL_NODE_MOVED, NodeEventArgs(index, timestamp))
        if redistribute:
            self.signals.emit(SIGNAL_NODE_TIME_CHANGED, self.path_timestamps())
        self.signals.emit(SIGNAL_EASE_CURVE_UPDATED)

    def offset_node_positions(self, delta: Vec3Like) -> None:
        """Translate every object path node by ``delta``."""
        delta = as_vec3(delta, "delta")
        with self._transaction("offset_node_positions"):
            for i in range(self.nodes_count):
                self._object_path.move_node(i, self._object_path.node_position(i) + delta)

        for i, timestamp in enumerate(self.path_timestamps()):
            self.signals.emit(SIGNAL_NODE_MOVED, NodeEventArgs(i, timestamp))

    def offset_rotation_path_position(self, delta: Vec3Like) -> None:
        """Translate every rotation path node by ``delta``."""
        delta = as_vec3(delta, "delta")
        with self._transaction("offset_rotation_path_position"):
            for i in range(self.rotation_path_nodes_count):
                self._rotation_path.move_node(i, self._rotation_path.node_position(i) + delta)

        for i, timestamp in enumerate(self._rotation_path.timestamps):
            self.signals.emit(SIGNAL_ROTATION_POINT_MOVED, NodeEventArgs(i, timestamp))

    def move_rotation_point(self, index: int, position: Vec3Like) -> None:
        """Move one rotation path node (CUSTOM rotation mode only)."""
        position = as_vec3(position)
        with self._transaction("move_rotation_point"):
            if self._rotation_mode != RotationMode.CUSTOM:
                raise ValidationError(
                    "Rotation points can only be moved in custom rotation mode",
                    {"rotation_mode": self._rotation_mode.value},
                )
            self._rotation_path.move_node(index, position)
            self._rotation_path.apply_tangent_mode(self._tangent_mode)

        timestamp = self._rotation_path.node_timestamp(index)
        self.signals.emit(SIGNAL_ROTATION_POINT_MOVED, NodeEventArgs(index, timestamp))

    @log_performance
    def redistribute_timestamps(self) -> List[float]:
        """
        Recompute interior node times from section arc lengths.

        Each interior node gets ``previous time + section length / total
        length``; endpoints stay at 0 and 1. Positions are untouched.

        Returns:
            New node timestamps

        Raises:
            TimestampOverflowError: If sections collapse or times leave [0, 1]
        """
        with self._transaction("redistribute_timestamps"):
            timestamps = self._redistribute()

        self.signals.emit(SIGNAL_NODE_TIME_CHANGED, list(timestamps))
        return timestamps

    # =========================================================================
    # Tangents
    # =========================================================================

    def set_tangent_mode(self, mode: Union[TangentMode, str]) -> None:
        """Switch tangent mode and reshape both paths."""
        mode = TangentMode(mode)
        with self._transaction("set_tangent_mode"):
            self._tangent_mode = mode
            self._apply_path_tangents()

        self.signals.emit(SIGNAL_NODE_TANGENTS_CHANGED, None)

    def set_node_tangents(
        self,
        index: int,
        in_tangent: Union[float, Vec3Like],
        out_tangent: Union[float, Vec3Like],
    ) -> None:
        """
        Set a node's tangents directly.

        Switches the document to CUSTOM tangent mode so later edits do not
        overwrite the hand-set tangents.
        """
        with self._transaction("set_node_tangents"):
            self._object_path.set_node_tangents(index, in_tangent, out_tangent)
            self._use_custom_tangents()

        self.signals.emit(
            SIGNAL_NODE_TANGENTS_CHANGED, NodeEventArgs(index, self.node_timestamp(index))
        )

    def offset_node_tangents(self, index: int, delta: Vec3Like) -> None:
        """Add ``delta`` to a node's tangents (switches to CUSTOM mode)."""
        with self._transaction("offset_node_tangents"):
            self._object_path.offset_node_tangents(index, delta)
            self._use_custom_tangents()

        self.signals.emit(
            SIGNAL_NODE_TANGENTS_CHANGED, NodeEventArgs(index, self.node_timestamp(index))
        )

    # =========================================================================
    # Ease / tilt tools
    # =========================================================================

    def set_ease_tool(self, index: int, enabled: bool) -> None:
        """Enable or disable the ease key on an interior node."""
        self._set_tool("ease", index, enabled)

    def toggle_ease_tool(self, index: int) -> bool:
        """Flip the ease tool on a node. Returns the new state."""
        enabled = not self._ease_tool_state[self._check_node_index(index)]
        self._set_tool("ease", index, enabled)
        return enabled

    def set_tilt_tool(self, index: int, enabled: bool) -> None:
        """Enable or disable the tilt key on an interior node."""
        self._set_tool("tilt", index, enabled)

    def toggle_tilt_tool(self, index: int) -> bool:
        """Flip the tilt tool on a node. Returns the new state."""
        enabled = not self._tilt_tool_state[self._check_node_index(index)]
        self._set_tool("tilt", index, enabled)
        return enabled

    def update_ease_value(self, node_index: int, value: float) -> None:
        self._update_aux_value("ease", node_index, value)

    def update_tilt_value(self, node_index: int, value: float) -> None:
        self._update_aux_value("tilt", node_index, value)

    def multiply_ease_values(self, factor: float) -> None:
        self._edit_aux_curve("ease", lambda curve: curve.multiply_values(factor))

    def multiply_tilt_values(self, factor: float) -> None:
        self._edit_aux_curve("tilt", lambda curve: curve.multiply_values(factor))

    def offset_ease_values(self, delta: float) -> None:
        self._edit_aux_curve("ease", lambda curve: curve.offset_values(delta))

    def offset_tilt_values(self, delta: float) -> None:
        self._edit_aux_curve("tilt", lambda curve: curve.offset_values(delta))

    # =========================================================================
    # Rotation mode
    # =========================================================================

    def set_rotation_mode(self, mode: Union[RotationMode, str]) -> None:
        """
        Switch rotation mode.

        The rotation path follows node edits in every mode, so switching
        never rebuilds it.

        Raises:
            ValidationError: For TARGET mode without a target position
        """
        mode = RotationMode(mode)
        with self._transaction("set_rotation_mode"):
            self._check_target(mode)
            self._rotation_mode = mode

        logger.debug(f"Rotation mode set to {mode.value}")

    def set_target_position(self, position: Optional[Vec3Like]) -> None:
        """
        Set the look-at point for TARGET rotation mode.

        Raises:
            ValidationError: When clearing the target while in TARGET mode
        """
        target = None if position is None else as_vec3(position, "target_position")
        with self._transaction("set_target_position"):
            self._target_position = target
            self._check_target(self._rotation_mode)

        self.signals.emit(SIGNAL_TARGET_MOVED, self.target_position)

    # =========================================================================
    # Resets
    # =========================================================================

    def reset_path(self) -> None:
        """Restore the default two-node document. Clears a halt."""
        with self._transaction("reset_path", allow_halted=True):
            self._object_path = self._default_path()
            self._rotation_path = self._default_path()
            self._ease_curve = self._default_aux_curve(self.settings.default_ease_value)
            self._tilt_curve = self._default_aux_curve(self.settings.default_tilt_value)
            self._ease_tool_state = [True] * self.nodes_count
            self._tilt_tool_state = [True] * self.nodes_count

        self.signals.emit(SIGNAL_PATH_RESET)

    def reset_rotation_path(self) -> None:
        """
        Rebuild the rotation path as a copy of the object path.

        Recovery action offered by ``RotationPathDesyncError``.
        """
        with self._transaction("reset_rotation_path", allow_halted=True):
            self._rotation_path = self._object_path.copy()

        self.signals.emit(SIGNAL_ROTATION_PATH_RESET)

    def reset_ease_curve(self) -> None:
        """Key every node with the default ease value and enable all ease tools."""
        with self._transaction("reset_ease_curve", allow_halted=True):
            self._ease_curve = self._keyed_aux_curve(self.settings.default_ease_value)
            self._ease_tool_state = [True] * self.nodes_count

        self.signals.emit(SIGNAL_EASE_CURVE_UPDATED)

    def reset_tilt_curve(self) -> None:
        """Key every node with the default tilt value and enable all tilt tools."""
        with self._transaction("reset_tilt_curve", allow_halted=True):
            self._tilt_curve = self._keyed_aux_curve(self.settings.default_tilt_value)
            self._tilt_tool_state = [True] * self.nodes_count

        self.signals.emit(SIGNAL_TILT_CURVE_UPDATED)

    # =========================================================================
    # Consistency
    # =========================================================================

    def consistency_problems(self) -> List[str]:
        """Describe every broken channel invariant (empty when consistent)."""
        problems = []
        try:
            self._object_path.check_synchronized()
        except ConsistencyError as e:
            problems.append(f"object path: {e}")

        node_times = self._object_path.timestamps
        n = len(node_times)
        tol = self.settings.key_time_tolerance

        for name, curve, state in (
            ("ease", self._ease_curve, self._ease_tool_state),
            ("tilt", self._tilt_curve, self._tilt_tool_state),
        ):
            if len(state) != n:
                problems.append(f"{name} tool state has {len(state)} flags for {n} nodes")
                continue
            enabled = sum(state)
            if enabled != len(curve):
                problems.append(
                    f"{name} curve has {len(curve)} keys for {enabled} enabled nodes"
                )
                continue
            expected = [t for t, flag in zip(node_times, state) if flag]
            if any(abs(a - b) > tol for a, b in zip(curve.times, expected)):
                problems.append(f"{name} curve key times differ from enabled node times")

        try:
            self._rotation_path.check_synchronized()
        except ConsistencyError as e:
            problems.append(f"rotation path: {e}")
        if self.rotation_path_nodes_count != n:
            problems.append(
                f"rotation path has {self.rotation_path_nodes_count} nodes for {n} object nodes"
            )

        return problems

    def verify(self) -> None:
        """
        Check channel invariants.

        A failure logs at ERROR and halts the document; a pass clears any
        earlier halt.

        Raises:
            ConsistencyError: If any invariant is broken
        """
        problems = self.consistency_problems()
        if problems:
            self._halt(problems)
            raise ConsistencyError("Path document is inconsistent", {"problems": problems})
        if self._halted:
            logger.info("Path document consistent again, resuming edits")
        self._halted = False
        self._halt_reason = None

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "version": FORMAT_VERSION,
            "settings": self.settings.to_dict(),
            "tangent_mode": self._tangent_mode.value,
            "rotation_mode": self._rotation_mode.value,
            "target_position": (
                None if self._target_position is None else self._target_position.tolist()
            ),
            "object_path": self._object_path.to_dict(),
            "rotation_path": self._rotation_path.to_dict(),
            "ease_curve": self._ease_curve.to_dict(),
            "tilt_curve": self._tilt_curve.to_dict(),
            "ease_tool_state": list(self._ease_tool_state),
            "tilt_tool_state": list(self._tilt_tool_state),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        signals: Optional[SignalBridge] = None,
    ) -> 'PathDocument':
        """
        Create from dict.

        Inconsistent channel data does not raise: the document loads halted
        and the host can repair it with one of the reset methods. A rotation
        path whose timestamps drifted from the object path loads as is; the
        next insert that collides with it raises ``RotationPathDesyncError``.

        Raises:
            ValidationError: For TARGET rotation mode without a target position
        """
        settings = PathSettings.from_dict(data.get("settings", {}))
        doc = cls(
            settings=settings,
            tangent_mode=data.get("tangent_mode", TangentMode.SMOOTH.value),
            rotation_mode=data.get("rotation_mode", RotationMode.FORWARD.value),
            signals=signals,
            target_position=data.get("target_position"),
        )
        tol = settings.key_time_tolerance
        doc._object_path = Path.from_dict(data["object_path"], tolerance=tol)
        doc._rotation_path = Path.from_dict(
            data.get("rotation_path", data["object_path"]), tolerance=tol
        )
        doc._ease_curve = Curve.from_dict(data.get("ease_curve", {}), tolerance=tol)
        doc._tilt_curve = Curve.from_dict(data.get("tilt_curve", {}), tolerance=tol)
        doc._ease_tool_state = [bool(v) for v in data.get("ease_tool_state", [])]
        doc._tilt_tool_state = [bool(v) for v in data.get("tilt_tool_state", [])]

        problems = doc.consistency_problems()
        if problems:
            doc._halt(problems)
        elif not doc.rotation_path_in_sync:
            logger.warning("Loaded rotation path timestamps differ from object path")
        return doc

    def save(self, path: Union[str, pathlib.Path]) -> None:
        """Save document to JSON file."""
        path = pathlib.Path(path)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, pathlib.Path]) -> 'PathDocument':
        """Load document from JSON file."""
        path = pathlib.Path(path)
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    # =========================================================================
    # Internals
    # =========================================================================

    @contextmanager
    def _transaction(self, action: str, allow_halted: bool = False) -> Iterator[None]:
        """
        Run an edit all-or-nothing.

        Any error inside the block restores every channel. After a clean
        block the invariants are verified.
        """
        if not allow_halted:
            self._ensure_mutable(action)
        snapshot = self._snapshot()
        try:
            yield
        except AnimPathException as e:
            self._restore(snapshot)
            logger.warning(f"{action} rejected: {e}")
            raise
        except Exception:
            self._restore(snapshot)
            raise
        self.verify()

    def _ensure_mutable(self, action: str) -> None:
        if self._halted:
            raise DocumentHaltedError(
                f"Cannot {action}: document halted after a consistency failure",
                {"reason": self._halt_reason},
            )

    def _halt(self, problems: List[str]) -> None:
        self._halted = True
        self._halt_reason = "; ".join(problems)
        logger.error(f"Path document halted: {self._halt_reason}")

    def _snapshot(self) -> Tuple[Any, ...]:
        return (
            self._object_path.copy(),
            self._rotation_path.copy(),
            self._ease_curve.copy(),
            self._tilt_curve.copy(),
            list(self._ease_tool_state),
            list(self._tilt_tool_state),
            self._tangent_mode,
            self._rotation_mode,
            self._target_position,
        )

    def _restore(self, snapshot: Tuple[Any, ...]) -> None:
        (
            self._object_path,
            self._rotation_path,
            self._ease_curve,
            self._tilt_curve,
            self._ease_tool_state,
            self._tilt_tool_state,
            self._tangent_mode,
            self._rotation_mode,
            self._target_position,
        ) = snapshot

    def _default_path(self) -> Path:
        path = Path(tolerance=self.settings.key_time_tolerance, tangent_mode=self._tangent_mode)
        path.create_node(0.0, self.settings.first_node_position)
        path.create_node(1.0, self.settings.last_node_position)
        path.apply_tangent_mode()
        return path

    def _default_aux_curve(self, value: float) -> Curve:
        curve = Curve(tolerance=self.settings.key_time_tolerance)
        curve.add_key(0.0, value, 0.0, 0.0)
        curve.add_key(1.0, value, 0.0, 0.0)
        return curve

    def _keyed_aux_curve(self, value: float) -> Curve:
        curve = Curve(tolerance=self.settings.key_time_tolerance)
        for t in self._object_path.timestamps:
            curve.add_key(t, value, 0.0, 0.0)
        return curve

    def _aux_channels(self) -> Tuple[Tuple[Curve, List[bool]], ...]:
        return (
            (self._ease_curve, self._ease_tool_state),
            (self._tilt_curve, self._tilt_tool_state),
        )

    def _aux_channel(self, name: str) -> Tuple[Curve, List[bool], str]:
        if name == "ease":
            return self._ease_curve, self._ease_tool_state, SIGNAL_EASE_CURVE_UPDATED
        return self._tilt_curve, self._tilt_tool_state, SIGNAL_TILT_CURVE_UPDATED

    def _enabled_timestamps(self, state: List[bool]) -> List[float]:
        return [t for t, flag in zip(self._object_path.timestamps, state) if flag]

    def _check_node_index(self, index: int, count: Optional[int] = None) -> int:
        count = self.nodes_count if count is None else count
        if not 0 <= index < count:
            raise NodeIndexError("Node index out of range", {"index": index, "nodes": count})
        return index

    def _check_separation(self, path: Path, time: float, error_cls=_separation_error) -> None:
        times = np.asarray(path.timestamps)
        if len(times) == 0:
            return
        nearest = int(np.argmin(np.abs(times - time)))
        gap = abs(times[nearest] - time)
        if gap < self.settings.min_node_time_separation:
            raise error_cls(
                "Node would be too close to an existing node",
                time=time,
                neighbour_index=nearest,
                gap=float(gap),
            )

    def _rotation_matches_object(self) -> bool:
        object_times = self._object_path.timestamps
        rotation_times = self._rotation_path.timestamps
        if len(object_times) != len(rotation_times):
            return False
        tol = self.settings.key_time_tolerance
        return all(abs(a - b) <= tol for a, b in zip(object_times, rotation_times))

    def _check_target(self, mode: RotationMode) -> None:
        if mode == RotationMode.TARGET and self._target_position is None:
            raise ValidationError(
                "Target rotation mode needs a target position",
                {"rotation_mode": mode.value},
            )

    def _check_rotation_insert(self, time: float) -> None:
        """Rotation node for ``time`` must land at the object node's index."""
        object_index = bisect.bisect(self._object_path.timestamps, time)
        rotation_index = bisect.bisect(self._rotation_path.timestamps, time)
        if rotation_index != object_index:
            raise RotationPathDesyncError(
                "Rotation path node order does not match object path",
                time=time,
                object_index=object_index,
                rotation_index=rotation_index,
            )
        self._check_separation(self._rotation_path, time, RotationPathDesyncError)

    def _insert(self, time: float, position: Optional[np.ndarray]) -> int:
        time = float(time)
        with self._transaction("insert_node"):
            if not 0.0 < time < 1.0:
                raise ValidationError("Node time must be inside (0, 1)", {"time": time})
            self._check_separation(self._object_path, time, _separation_error)
            self._check_rotation_insert(time)

            if position is None:
                index = self._object_path.insert_node_at_time(time)
            else:
                index = self._object_path.create_node(time, position)
                self._object_path.apply_tangent_mode(self._tangent_mode)

            # Rotation node comes from the rotation path's own shape
            self._rotation_path.insert_node_at_time(time)

            self._ease_tool_state.insert(index, False)
            self._tilt_tool_state.insert(index, False)

        logger.debug(f"Inserted node {index} at t={time:.5f}")
        self.signals.emit(SIGNAL_NODE_ADDED, NodeEventArgs(index, time))
        return index

    def _redistribute(self) -> List[float]:
        path = self._object_path
        old_times = path.timestamps
        n = len(old_times)
        if n < 3:
            return old_times

        density = self.settings.path_length_sampling
        sections = [path.section_length(i, i + 1, density) for i in range(n - 1)]
        total = sum(sections)
        if total <= 0.0:
            raise TimestampOverflowError("Path has zero length", {"sections": sections})

        new_times = [0.0]
        for section in sections[:-1]:
            new_times.append(new_times[-1] + section / total)
        new_times.append(1.0)

        tol = self.settings.key_time_tolerance
        for i, (prev, current) in enumerate(zip(new_times, new_times[1:])):
            if current - prev <= tol:
                raise TimestampOverflowError(
                    "Redistributed timestamps collapse or exceed 1",
                    {"index": i + 1, "previous": prev, "current": current},
                )

        path.replace_timestamps(new_times)
        path.apply_tangent_mode(self._tangent_mode)

        self._rotation_path.replace_timestamps(new_times)
        self._rotation_path.apply_tangent_mode(self._tangent_mode)

        for curve, state in self._aux_channels():
            curve.replace_times([t for t, flag in zip(new_times, state) if flag])

        logger.debug(f"Redistributed timestamps: {new_times}")
        return new_times

    def _apply_path_tangents(self) -> None:
        self._object_path.tangent_mode = self._tangent_mode
        self._rotation_path.tangent_mode = self._tangent_mode
        self._object_path.apply_tangent_mode()
        self._rotation_path.apply_tangent_mode()

    def _use_custom_tangents(self) -> None:
        if self._tangent_mode != TangentMode.CUSTOM:
            logger.debug("Hand-set tangents, switching to custom tangent mode")
            self._tangent_mode = TangentMode.CUSTOM
            self._object_path.tangent_mode = TangentMode.CUSTOM
            self._rotation_path.tangent_mode = TangentMode.CUSTOM

    def _set_tool(self, name: str, index: int, enabled: bool) -> None:
        changed = False
        with self._transaction(f"set_{name}_tool"):
            curve, state, _ = self._aux_channel(name)
            self._check_node_index(index)
            if index in (0, self.nodes_count - 1):
                raise EndpointNodeError(
                    f"{name.capitalize()} tool cannot be toggled on endpoint nodes",
                    {"index": index},
                )
            if state[index] != enabled:
                timestamp = self.node_timestamp(index)
                if enabled:
                    # Key the current value so the curve does not jump
                    curve.add_key(timestamp, curve.evaluate(timestamp))
                else:
                    curve.remove_key_at_time(timestamp)
                    curve.apply_tangent_mode(self.settings.aux_tangent_mode)
                state[index] = enabled
                changed = True

        if changed:
            _, _, signal = self._aux_channel(name)
            self.signals.emit(signal)

    def _update_aux_value(self, name: str, node_index: int, value: float) -> None:
        with self._transaction(f"update_{name}_value"):
            curve, state, _ = self._aux_channel(name)
            self._check_node_index(node_index)
            if not state[node_index]:
                raise ValidationError(
                    f"{name.capitalize()} tool is disabled on this node",
                    {"index": node_index},
                )
            key_index = curve.index_at_time(self.node_timestamp(node_index))
            if key_index is None:
                raise ConsistencyError(
                    f"{name.capitalize()} curve has no key for enabled node",
                    {"index": node_index},
                )
            curve.set_key_value(key_index, value)
            curve.apply_tangent_mode(self.settings.aux_tangent_mode)

        _, _, signal = self._aux_channel(name)
        self.signals.emit(signal)

    def _edit_aux_curve(self, name: str, edit: Callable[[Curve], None]) -> None:
        with self._transaction(f"edit_{name}_curve"):
            curve, _, _ = self._aux_channel(name)
            edit(curve)

        _, _, signal = self._aux_channel(name)
        self.signals.emit(signal)


__all__ = [
    "FORMAT_VERSION",
    "RotationMode",
    "PathSample",
    "PathDocument",
]
