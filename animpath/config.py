"""Path engine configuration - tunable defaults.

Values mirror the animator's advanced settings: a node split is refused
when it lands closer than ``min_node_time_separation`` to a neighbour, and
all length-dependent edits sample the path at ``path_length_sampling``
points so results stay stable across edits.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Tuple

from .core.exceptions import ValidationError
from .core.keyframe import TangentMode


@dataclass(frozen=True)
class PathSettings:
    """Configuration for a PathDocument.

    This is a frozen dataclass so a document's settings cannot change
    underneath it; build a new one with ``dataclasses.replace``.
    """

    # Node editing
    min_node_time_separation: float = 0.001
    key_time_tolerance: float = 1e-5

    # Length sampling (points per path / section)
    path_length_sampling: int = 40
    export_sampling: int = 100

    # Channel defaults
    default_ease_value: float = 0.05
    default_tilt_value: float = 0.0
    aux_tangent_mode: TangentMode = TangentMode.SMOOTH

    # Rotation
    forward_point_offset: float = 0.001

    # Default nodes of a fresh document
    first_node_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    last_node_position: Tuple[float, float, float] = (1.0, 0.0, 1.0)

    def __post_init__(self):
        if isinstance(self.aux_tangent_mode, str):
            object.__setattr__(self, "aux_tangent_mode", TangentMode(self.aux_tangent_mode))
        if not 0.0 < self.min_node_time_separation < 0.5:
            raise ValidationError(
                "min_node_time_separation must be in (0, 0.5)",
                {"min_node_time_separation": self.min_node_time_separation},
            )
        if not 0.0 < self.key_time_tolerance < self.min_node_time_separation:
            raise ValidationError(
                "key_time_tolerance must be positive and below min_node_time_separation",
                {"key_time_tolerance": self.key_time_tolerance},
            )
        if self.path_length_sampling < 2 or self.export_sampling < 2:
            raise ValidationError(
                "Sampling densities must be at least 2",
                {
                    "path_length_sampling": self.path_length_sampling,
                    "export_sampling": self.export_sampling,
                },
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "min_node_time_separation": self.min_node_time_separation,
            "key_time_tolerance": self.key_time_tolerance,
            "path_length_sampling": self.path_length_sampling,
            "export_sampling": self.export_sampling,
            "default_ease_value": self.default_ease_value,
            "default_tilt_value": self.default_tilt_value,
            "aux_tangent_mode": self.aux_tangent_mode.value,
            "forward_point_offset": self.forward_point_offset,
            "first_node_position": list(self.first_node_position),
            "last_node_position": list(self.last_node_position),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PathSettings':
        """Create from dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for name in ("first_node_position", "last_node_position"):
            if name in kwargs:
                kwargs[name] = tuple(float(c) for c in kwargs[name])
        return cls(**kwargs)


DEFAULT_SETTINGS = PathSettings()


__all__ = [
    "PathSettings",
    "DEFAULT_SETTINGS",
]
