"""
Scalar animation curve.

Ordered keyframes evaluated with cubic Hermite interpolation. Time outside
the keyed range clamps to the nearest end value (no extrapolation).
"""

import bisect
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import (
    DuplicateTimeError,
    EmptyCurveError,
    KeyNotFoundError,
    ValidationError,
)
from .interpolation import hermite, hermite_derivative, linear_tangents, smooth_tangents
from .keyframe import Keyframe, TangentMode

# Two key times closer than this are the same time.
KEY_TIME_TOLERANCE = 1e-5


class Curve:
    """
    Single scalar keyframe curve.

    Usage:
        curve = Curve()
        curve.add_key(0.0, 1.0)
        curve.add_key(1.0, 3.0)
        curve.apply_tangent_mode(TangentMode.LINEAR)
        curve.evaluate(0.5)  # 2.0
    """

    def __init__(
        self,
        keys: Optional[Iterable[Keyframe]] = None,
        tolerance: float = KEY_TIME_TOLERANCE,
    ):
        self.tolerance = tolerance
        self._keys: List[Keyframe] = []
        for key in keys or []:
            self.add_keyframe(key)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Keyframe]:
        return iter(tuple(self._keys))

    def __getitem__(self, index: int) -> Keyframe:
        return self._keys[self._check_index(index)]

    def __repr__(self) -> str:
        return f"Curve(keys={len(self._keys)})"

    @property
    def keys(self) -> Tuple[Keyframe, ...]:
        """Snapshot of all keys in time order."""
        return tuple(self._keys)

    @property
    def times(self) -> List[float]:
        return [key.time for key in self._keys]

    @property
    def values(self) -> List[float]:
        return [key.value for key in self._keys]

    def index_at_time(self, time: float) -> Optional[int]:
        """Index of the key nearest to ``time`` within tolerance, else None."""
        times = self.times
        i = bisect.bisect_left(times, time - self.tolerance)
        best = None
        for candidate in (i, i + 1):
            if candidate < len(times) and abs(times[candidate] - time) <= self.tolerance:
                if best is None or abs(times[candidate] - time) < abs(times[best] - time):
                    best = candidate
        return best

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, time: float) -> float:
        """Value at ``time``; clamps outside the keyed range."""
        keys = self._require_keys()
        if time <= keys[0].time:
            return keys[0].value
        if time >= keys[-1].time:
            return keys[-1].value

        i = bisect.bisect_right(self.times, time) - 1
        k0, k1 = keys[i], keys[i + 1]
        dt = k1.time - k0.time
        s = (time - k0.time) / dt
        return float(hermite(k0.value, k0.out_tangent, k1.value, k1.in_tangent, s, dt))

    def evaluate_array(self, times: Sequence[float]) -> np.ndarray:
        """Vectorised :meth:`evaluate`."""
        keys = self._require_keys()
        query = np.asarray(times, dtype=np.float64)
        if len(keys) == 1:
            return np.full(query.shape, keys[0].value)

        key_times = np.array(self.times)
        key_values = np.array(self.values)
        out_tangents = np.array([key.out_tangent for key in keys])
        in_tangents = np.array([key.in_tangent for key in keys])

        clamped = np.clip(query, key_times[0], key_times[-1])
        idx = np.searchsorted(key_times, clamped, side="right") - 1
        idx = np.clip(idx, 0, len(keys) - 2)

        dt = key_times[idx + 1] - key_times[idx]
        s = (clamped - key_times[idx]) / dt
        return hermite(
            key_values[idx],
            out_tangents[idx],
            key_values[idx + 1],
            in_tangents[idx + 1],
            s,
            dt,
        )

    def slope(self, time: float) -> float:
        """Derivative dv/dt at ``time`` (0 outside the keyed range)."""
        keys = self._require_keys()
        if len(keys) < 2 or time < keys[0].time or time > keys[-1].time:
            return 0.0

        i = bisect.bisect_right(self.times, time) - 1
        i = min(i, len(keys) - 2)
        k0, k1 = keys[i], keys[i + 1]
        dt = k1.time - k0.time
        s = (time - k0.time) / dt
        return float(
            hermite_derivative(k0.value, k0.out_tangent, k1.value, k1.in_tangent, s, dt)
        )

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_key(
        self,
        time: float,
        value: float,
        in_tangent: Optional[float] = None,
        out_tangent: Optional[float] = None,
    ) -> int:
        """
        Insert a key keeping time order.

        Omitted tangents take the curve's current slope at ``time`` so adding
        a key on an existing curve does not bend it.

        Returns:
            Index of the new key

        Raises:
            DuplicateTimeError: If a key already exists within tolerance
        """
        time = float(time)
        if in_tangent is None or out_tangent is None:
            slope = self.slope(time) if len(self._keys) >= 2 else 0.0
            in_tangent = slope if in_tangent is None else in_tangent
            out_tangent = slope if out_tangent is None else out_tangent
        return self.add_keyframe(
            Keyframe(time, float(value), float(in_tangent), float(out_tangent))
        )

    def add_keyframe(self, keyframe: Keyframe) -> int:
        """Insert an existing Keyframe. Returns its index."""
        existing = self.index_at_time(keyframe.time)
        if existing is not None:
            raise DuplicateTimeError(
                "Key already exists at this time",
                time=keyframe.time,
                existing_index=existing,
            )
        index = bisect.bisect_left(self.times, keyframe.time)
        self._keys.insert(index, keyframe)
        return index

    def remove_key(self, index: int) -> Keyframe:
        """Remove key at index. Returns the removed key."""
        return self._keys.pop(self._check_index(index))

    def remove_key_at_time(self, time: float) -> Keyframe:
        """Remove the key at ``time``."""
        index = self.index_at_time(time)
        if index is None:
            raise KeyNotFoundError("No key at this time", {"time": time})
        return self._keys.pop(index)

    def move_key(self, index: int, new_time: float) -> int:
        """
        Change a key's time and re-sort.

        Returns:
            New index of the moved key
        """
        index = self._check_index(index)
        new_time = float(new_time)
        collision = self.index_at_time(new_time)
        if collision is not None and collision != index:
            raise DuplicateTimeError(
                "Cannot move key onto another key",
                time=new_time,
                existing_index=collision,
            )
        key = self._keys.pop(index)
        moved = key.with_time(new_time)
        new_index = bisect.bisect_left(self.times, new_time)
        self._keys.insert(new_index, moved)
        return new_index

    def replace_times(self, times: Sequence[float]) -> None:
        """Assign new times to all keys, in order."""
        if len(times) != len(self._keys):
            raise ValidationError(
                "Number of times must match number of keys",
                {"times": len(times), "keys": len(self._keys)},
            )
        for prev, current in zip(times, times[1:]):
            if current - prev <= self.tolerance:
                raise ValidationError(
                    "Key times must be strictly increasing",
                    {"previous": prev, "current": current},
                )
        self._keys = [key.with_time(float(t)) for key, t in zip(self._keys, times)]

    def set_key_value(self, index: int, value: float) -> None:
        index = self._check_index(index)
        self._keys[index] = self._keys[index].with_value(float(value))

    def set_key_tangents(self, index: int, in_tangent: float, out_tangent: float) -> None:
        index = self._check_index(index)
        self._keys[index] = self._keys[index].with_tangents(
            float(in_tangent), float(out_tangent)
        )

    def apply_tangent_mode(self, mode: TangentMode) -> None:
        """Recompute all tangents for ``mode`` (CUSTOM leaves them alone)."""
        if isinstance(mode, str):
            mode = TangentMode(mode)
        if mode == TangentMode.CUSTOM or len(self._keys) < 2:
            return

        if mode == TangentMode.LINEAR:
            in_tangents, out_tangents = linear_tangents(self.times, self.values)
        else:
            in_tangents, out_tangents = smooth_tangents(self.times, self.values)

        self._keys = [
            key.with_tangents(in_t, out_t)
            for key, in_t, out_t in zip(self._keys, in_tangents, out_tangents)
        ]

    def multiply_values(self, factor: float) -> None:
        """Scale every key value (and its tangents) in place."""
        self._keys = [
            Keyframe(
                key.time,
                key.value * factor,
                key.in_tangent * factor,
                key.out_tangent * factor,
            )
            for key in self._keys
        ]

    def offset_values(self, delta: float) -> None:
        """Add ``delta`` to every key value."""
        self._keys = [key.with_value(key.value + delta) for key in self._keys]

    def copy(self) -> 'Curve':
        clone = Curve(tolerance=self.tolerance)
        clone._keys = list(self._keys)
        return clone

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {"keys": [key.to_dict() for key in self._keys]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], tolerance: float = KEY_TIME_TOLERANCE) -> 'Curve':
        """Create from dict."""
        return cls(
            keys=[Keyframe.from_dict(k) for k in data.get("keys", [])],
            tolerance=tolerance,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> int:
        if not -len(self._keys) <= index < len(self._keys):
            raise KeyNotFoundError(
                "Key index out of range",
                {"index": index, "keys": len(self._keys)},
            )
        return index % len(self._keys)

    def _require_keys(self) -> List[Keyframe]:
        if not self._keys:
            raise EmptyCurveError("Cannot evaluate a curve without keys")
        return self._keys


__all__ = [
    "KEY_TIME_TOLERANCE",
    "Curve",
]
