"""
Keyframe data structure and tangent modes.

A keyframe stores a value at a normalized time together with the in/out
slopes (dv/dt) used by Hermite interpolation.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict
from enum import Enum
import math

from .exceptions import ValidationError


class TangentMode(Enum):
    """How a curve's in/out tangents are derived."""
    LINEAR = "linear"       # Straight-line slope to neighbouring keys
    SMOOTH = "smooth"       # Catmull-Rom style averaged slope
    CUSTOM = "custom"       # Left under direct user control


@dataclass(frozen=True)
class Keyframe:
    """
    Single curve key.

    Attributes:
        time: Normalized time in [0, 1]
        value: Value at that time
        in_tangent: Slope arriving at the key
        out_tangent: Slope leaving the key
    """
    time: float
    value: float
    in_tangent: float = 0.0
    out_tangent: float = 0.0

    def __post_init__(self):
        for name in ("time", "value", "in_tangent", "out_tangent"):
            if not math.isfinite(getattr(self, name)):
                raise ValidationError(
                    f"Keyframe {name} must be finite",
                    {name: getattr(self, name)},
                )

    def with_time(self, time: float) -> 'Keyframe':
        """Copy with a different time."""
        return replace(self, time=time)

    def with_value(self, value: float) -> 'Keyframe':
        """Copy with a different value."""
        return replace(self, value=value)

    def with_tangents(self, in_tangent: float, out_tangent: float) -> 'Keyframe':
        """Copy with different tangents."""
        return replace(self, in_tangent=in_tangent, out_tangent=out_tangent)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "time": self.time,
            "value": self.value,
            "in_tangent": self.in_tangent,
            "out_tangent": self.out_tangent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Keyframe':
        """Create from dict."""
        return cls(
            time=float(data["time"]),
            value=float(data["value"]),
            in_tangent=float(data.get("in_tangent", 0.0)),
            out_tangent=float(data.get("out_tangent", 0.0)),
        )


__all__ = [
    "TangentMode",
    "Keyframe",
]
