"""
Angle Utilities

Stateless helpers for unit conversion and angle wrapping. Orientation error
has to be computed on the circle: a raw difference between yaw = 179 deg and
yaw = -179 deg is -358 deg, while the true error is 2 deg.

Wrapping Convention:
    Wrapped angles lie in the half-open interval (-period/2, period/2]:
    - degrees: (-180, 180]
    - radians: (-pi, pi]

    wrap(180) == 180, wrap(-180) == 180, wrap(190) == -170.

All functions accept Python floats or numpy arrays. Arrays are processed
element-wise and returned as float arrays; scalars are returned as floats.
"""

import math

import numpy as np

# ==============================================================================
# Periods
# ==============================================================================

DEGREES_PERIOD = 360.0
RADIANS_PERIOD = 2.0 * math.pi


# ==============================================================================
# Unit Conversion
# ==============================================================================


def degrees_to_radians(d):
    """Convert degrees to radians."""
    if np.isscalar(d):
        return float(d) * math.pi / 180.0
    return np.asarray(d, dtype=float) * math.pi / 180.0


def radians_to_degrees(r):
    """Convert radians to degrees."""
    if np.isscalar(r):
        return float(r) * 180.0 / math.pi
    return np.asarray(r, dtype=float) * 180.0 / math.pi


# ==============================================================================
# Wrapping
# ==============================================================================


def wrap_angle(value, period: float):
    """
    Wrap an angle into (-period/2, period/2].

    Uses a truncated (C-style) modulo, which leaves negative remainders for
    negative inputs, followed by a correction into the target interval.

    Args:
        value: Angle or array of angles.
        period: Full-turn period in the same unit (360.0 or 2*pi).

    Returns:
        Wrapped angle(s), same container kind as the input.

    Raises:
        ValueError: If period is not strictly positive.
    """
    if period <= 0.0:
        raise ValueError(f"period must be positive, got {period}")

    half = 0.5 * period

    if np.isscalar(value):
        wrapped = math.fmod(float(value) + half, period) - half
        if wrapped <= -half:
            wrapped += period
        return wrapped

    wrapped = np.fmod(np.asarray(value, dtype=float) + half, period) - half
    return np.where(wrapped <= -half, wrapped + period, wrapped)


def wrap_angle_degrees(d):
    """Wrap an angle in degrees into (-180, 180]."""
    return wrap_angle(d, DEGREES_PERIOD)


def wrap_angle_radians(r):
    """Wrap an angle in radians into (-pi, pi]."""
    return wrap_angle(r, RADIANS_PERIOD)
