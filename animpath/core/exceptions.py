"""
Exception hierarchy for the path animation engine.

Validation errors reject an edit before anything is mutated. Consistency
errors mean the document's channels have drifted apart and further edits
are refused until the document is reset.
"""

from typing import Any, Dict, Optional


class AnimPathException(Exception):
    """Base exception carrying a message and a dict of structured details."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({detail_str})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AnimPathException):
    """Requested edit is invalid; no state was changed."""


class EmptyCurveError(ValidationError):
    """Curve has no keys to evaluate."""


class DuplicateTimeError(ValidationError):
    """A key already exists at (or within tolerance of) the given time."""

    def __init__(self, message: str, time: Optional[float] = None, **kwargs):
        details = kwargs.copy()
        if time is not None:
            details["time"] = time
        super().__init__(message, details)


class KeyNotFoundError(ValidationError):
    """No key matches the given index or time."""


class NodeIndexError(ValidationError):
    """Node index out of range."""


class NodeSeparationError(ValidationError):
    """New node would sit too close to an existing one."""


class EndpointNodeError(ValidationError):
    """Operation is not allowed on the first or last node."""


class TimestampOverflowError(ValidationError):
    """Recomputed node timestamps fall outside [0, 1] or collapse together."""


class InvalidSamplingError(ValidationError):
    """Sampling density too small to build a polyline."""


class RotationPathDesyncError(AnimPathException):
    """
    Edit would desynchronize the rotation path from the object path.

    Recoverable: the host should offer ``recovery`` (the name of the
    document method that resynchronizes the rotation path).
    """

    def __init__(self, message: str, recovery: str = "reset_rotation_path", **kwargs):
        details = kwargs.copy()
        details["recovery"] = recovery
        super().__init__(message, details)
        self.recovery = recovery


class ConsistencyError(AnimPathException):
    """Internal invariant between channels is broken."""


class DocumentHaltedError(ConsistencyError):
    """Document is halted after a consistency failure and refuses edits."""


__all__ = [
    "AnimPathException",
    "ValidationError",
    "EmptyCurveError",
    "DuplicateTimeError",
    "KeyNotFoundError",
    "NodeIndexError",
    "NodeSeparationError",
    "EndpointNodeError",
    "TimestampOverflowError",
    "InvalidSamplingError",
    "RotationPathDesyncError",
    "ConsistencyError",
    "DocumentHaltedError",
]
