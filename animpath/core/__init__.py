"""
Core curve components - keyframes, Hermite interpolation, errors and logging.
"""

from .exceptions import (
    AnimPathException,
    ValidationError,
    EmptyCurveError,
    DuplicateTimeError,
    KeyNotFoundError,
    NodeIndexError,
    NodeSeparationError,
    EndpointNodeError,
    TimestampOverflowError,
    InvalidSamplingError,
    RotationPathDesyncError,
    ConsistencyError,
    DocumentHaltedError,
)

from .logging_config import (
    get_logger,
    setup_logging,
    configure_logging,
    log_performance,
    LogContext,
)

from .keyframe import (
    TangentMode,
    Keyframe,
)

from .interpolation import (
    hermite,
    hermite_derivative,
    secant_slope,
    linear_tangents,
    smooth_tangents,
)

from .curve import (
    KEY_TIME_TOLERANCE,
    Curve,
)

__all__ = [
    # Exceptions
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
    # Logging
    "get_logger",
    "setup_logging",
    "configure_logging",
    "log_performance",
    "LogContext",
    # Keyframe
    "TangentMode",
    "Keyframe",
    # Interpolation
    "hermite",
    "hermite_derivative",
    "secant_slope",
    "linear_tangents",
    "smooth_tangents",
    # Curve
    "KEY_TIME_TOLERANCE",
    "Curve",
]
