"""
Multi-channel keyframe path engine.

An object path plus rotation, ease and tilt channels keyed to shared
normalized timestamps in [0, 1], kept synchronized through node edits,
with arc-length timestamp redistribution and an ease-driven playback clock.

Usage:
    from animpath import PathDocument, PlaybackClock, WrapMode

    # Build a path
    doc = PathDocument()
    index = doc.add_node_between(0)
    doc.move_node(index, (0.5, 1.0, 0.5), redistribute=True)
    doc.set_ease_tool(index, True)
    doc.update_ease_value(index, 0.2)

    # Play it back
    clock = PlaybackClock(doc, wrap_mode=WrapMode.PING_PONG)
    clock.play()
    clock.tick(1 / 60)
    sample = clock.current_sample()
"""

from .core import (
    # Exceptions
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
    # Logging
    get_logger,
    setup_logging,
    configure_logging,
    LogContext,
    # Curves
    TangentMode,
    Keyframe,
    KEY_TIME_TOLERANCE,
    Curve,
)

from .config import (
    PathSettings,
    DEFAULT_SETTINGS,
)

from .events import (
    SIGNAL_NODE_ADDED,
    SIGNAL_NODE_REMOVED,
    SIGNAL_NODE_MOVED,
    SIGNAL_NODE_TIME_CHANGED,
    SIGNAL_NODE_TANGENTS_CHANGED,
    SIGNAL_EASE_CURVE_UPDATED,
    SIGNAL_TILT_CURVE_UPDATED,
    SIGNAL_PATH_RESET,
    SIGNAL_ROTATION_PATH_RESET,
    SIGNAL_ROTATION_POINT_MOVED,
    SIGNAL_TARGET_MOVED,
    SIGNAL_ANIMATION_STARTED,
    SIGNAL_ANIMATION_ENDED,
    SIGNAL_ANIMATION_PAUSED,
    SIGNAL_ANIMATION_RESUMED,
    SIGNAL_NODE_REACHED,
    SIGNAL_JUMPED_TO_NODE,
    NodeEventArgs,
    Connection,
    SignalBridge,
)

from .path import Path

from .document import (
    RotationMode,
    PathSample,
    PathDocument,
)

from .playback import (
    PlaybackState,
    WrapMode,
    PlaybackClock,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
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
    "LogContext",
    # Curves
    "TangentMode",
    "Keyframe",
    "KEY_TIME_TOLERANCE",
    "Curve",
    # Config
    "PathSettings",
    "DEFAULT_SETTINGS",
    # Events
    "SIGNAL_NODE_ADDED",
    "SIGNAL_NODE_REMOVED",
    "SIGNAL_NODE_MOVED",
    "SIGNAL_NODE_TIME_CHANGED",
    "SIGNAL_NODE_TANGENTS_CHANGED",
    "SIGNAL_EASE_CURVE_UPDATED",
    "SIGNAL_TILT_CURVE_UPDATED",
    "SIGNAL_PATH_RESET",
    "SIGNAL_ROTATION_PATH_RESET",
    "SIGNAL_ROTATION_POINT_MOVED",
    "SIGNAL_TARGET_MOVED",
    "SIGNAL_ANIMATION_STARTED",
    "SIGNAL_ANIMATION_ENDED",
    "SIGNAL_ANIMATION_PAUSED",
    "SIGNAL_ANIMATION_RESUMED",
    "SIGNAL_NODE_REACHED",
    "SIGNAL_JUMPED_TO_NODE",
    "NodeEventArgs",
    "Connection",
    "SignalBridge",
    # Path
    "Path",
    # Document
    "RotationMode",
    "PathSample",
    "PathDocument",
    # Playback
    "PlaybackState",
    "WrapMode",
    "PlaybackClock",
]
