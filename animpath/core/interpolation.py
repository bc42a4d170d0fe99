"""
Interpolation functions for keyframe curves.

Cubic Hermite evaluation plus the tangent rules used by the tangent modes.
Functions accept scalars or numpy arrays for the interpolation parameter.
"""

import numpy as np
from typing import List, Sequence, Tuple, Union

ArrayLike = Union[float, np.ndarray]

# Below this, two key times are treated as coincident when computing slopes.
SLOPE_EPSILON = 1e-12


def hermite(
    v0: ArrayLike,
    m0: ArrayLike,
    v1: ArrayLike,
    m1: ArrayLike,
    s: ArrayLike,
    dt: ArrayLike,
) -> ArrayLike:
    """
    Cubic Hermite interpolation on one segment.

    Args:
        v0, v1: Values at the segment start and end
        m0: Out-slope of the start key (dv/dt)
        m1: In-slope of the end key (dv/dt)
        s: Segment-local parameter in [0, 1]
        dt: Segment duration, scales slopes to the unit interval

    Returns:
        Interpolated value
    """
    s2 = s * s
    s3 = s2 * s
    h00 = 2.0 * s3 - 3.0 * s2 + 1.0
    h10 = s3 - 2.0 * s2 + s
    h01 = -2.0 * s3 + 3.0 * s2
    h11 = s3 - s2
    return h00 * v0 + h10 * dt * m0 + h01 * v1 + h11 * dt * m1


def hermite_derivative(
    v0: ArrayLike,
    m0: ArrayLike,
    v1: ArrayLike,
    m1: ArrayLike,
    s: ArrayLike,
    dt: ArrayLike,
) -> ArrayLike:
    """Derivative dv/dt of :func:`hermite` with respect to curve time."""
    s2 = s * s
    d00 = 6.0 * s2 - 6.0 * s
    d10 = 3.0 * s2 - 4.0 * s + 1.0
    d01 = -6.0 * s2 + 6.0 * s
    d11 = 3.0 * s2 - 2.0 * s
    return (d00 * v0 + d01 * v1) / dt + d10 * m0 + d11 * m1


def secant_slope(t0: float, v0: float, t1: float, v1: float) -> float:
    """Slope of the straight line through two keys (0 for coincident times)."""
    dt = t1 - t0
    if abs(dt) < SLOPE_EPSILON:
        return 0.0
    return (v1 - v0) / dt


def linear_tangents(
    times: Sequence[float],
    values: Sequence[float],
) -> Tuple[List[float], List[float]]:
    """
    Tangents that make every segment a straight line.

    The first key's in-tangent and last key's out-tangent are never used by
    a clamped curve and are set to 0.

    Returns:
        (in_tangents, out_tangents)
    """
    n = len(times)
    in_tangents = [0.0] * n
    out_tangents = [0.0] * n
    for i in range(n - 1):
        slope = secant_slope(times[i], values[i], times[i + 1], values[i + 1])
        out_tangents[i] = slope
        in_tangents[i + 1] = slope
    return in_tangents, out_tangents


def smooth_tangents(
    times: Sequence[float],
    values: Sequence[float],
) -> Tuple[List[float], List[float]]:
    """
    Catmull-Rom style tangents.

    Interior keys take the slope between their two neighbours on both sides.
    End keys take the one-sided secant to their only neighbour, which keeps
    the curve from overshooting past the ends.

    Returns:
        (in_tangents, out_tangents)
    """
    n = len(times)
    tangents = [0.0] * n
    if n < 2:
        return list(tangents), list(tangents)

    tangents[0] = secant_slope(times[0], values[0], times[1], values[1])
    tangents[-1] = secant_slope(times[-2], values[-2], times[-1], values[-1])
    for i in range(1, n - 1):
        tangents[i] = secant_slope(
            times[i - 1], values[i - 1], times[i + 1], values[i + 1]
        )
    return list(tangents), list(tangents)


__all__ = [
    "SLOPE_EPSILON",
    "hermite",
    "hermite_derivative",
    "secant_slope",
    "linear_tangents",
    "smooth_tangents",
]
