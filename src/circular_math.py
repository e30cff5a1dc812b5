"""
SONAR - Sensor-Oriented Navigation And Radar
Circular Math Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Integer degree arithmetic on the circle used by the orientation filter,
the angle easer and the point trackers, plus the few geometry helpers the
dial renderer needs.

Angles handled by this module live in the half-open range (-180, 180],
i.e. -179..180 for integer degrees, with 0 = north and positive values
clockwise.  The sweep uses 0..359 instead; :func:`offset_angle` converts
between the two.
"""

import math
from typing import Tuple

import numpy as np

# Half-open range bounds for normalised angles
MIN_ANGLE = -179
MAX_ANGLE = 180


def normalize(angle: int) -> int:
    """Return *angle* mapped into -179..180.

    Defined for every integer; ``normalize(normalize(x)) == normalize(x)``.
    """
    return (int(angle) - MIN_ANGLE) % 360 + MIN_ANGLE


def offset_angle(positive_angle: int) -> int:
    """Map a 0..359 angle onto -179..180 (``181`` -> ``-179``, ``359`` -> ``-1``)."""
    if positive_angle > 180:
        return positive_angle - 360
    return positive_angle


def signed_diff(from_degrees: int, to_degrees: int) -> int:
    """Shortest signed angular distance from *from_degrees* to *to_degrees*.

    Positive results mean *to_degrees* lies clockwise of *from_degrees*.
    Both inputs are normalised first.  The raw difference is only wrapped
    when its magnitude exceeds 180, so exactly opposite angles produce
    ``+180`` or ``-180`` depending on the operand order::

        signed_diff(0, 180)  == 180
        signed_diff(180, 0)  == -180
        signed_diff(90, -90) == -180

    The detection logic relies on this tie-break; do not fold ``-180``
    into ``180``.
    """
    diff = normalize(to_degrees) - normalize(from_degrees)
    if diff > 180:
        diff -= 360
    elif diff < -180:
        diff += 360
    return diff


def is_clockwise_closer(from_degrees: int, to_degrees: int) -> bool:
    """``True`` when the shortest way from *from_degrees* to *to_degrees* is clockwise."""
    return signed_diff(from_degrees, to_degrees) > 0


def radians_to_degrees(azimuth_rad: float) -> int:
    """Convert a sensor azimuth in radians to whole degrees.

    The platform reports azimuth counter-clockwise, hence the sign flip.
    Halves are rounded up, matching the sensor-fusion reference output.
    """
    return normalize(math.floor(-float(np.degrees(azimuth_rad)) + 0.5))


def clamp(value, low, high):
    """Return *value* limited to ``[low, high]``."""
    return min(max(low, value), high)


def point_on_circle(center: Tuple[float, float], radius: float,
                    angle_deg: float) -> Tuple[float, float]:
    """Return the (x, y) point at *angle_deg* on a circle in screen coordinates.

    Angles are measured clockwise from the top of the circle, so 0° is
    straight up and 90° is to the right.

    Args:
        center: ``(x, y)`` of the circle centre.
        radius: Circle radius in pixels.
        angle_deg: Angle in degrees, any value.

    Returns:
        Tuple ``(x, y)`` as plain floats.
    """
    angle_rad = np.radians(angle_deg - 90.0)
    cx, cy = center
    return (
        float(cx + radius * np.cos(angle_rad)),
        float(cy + radius * np.sin(angle_rad)),
    )


def distance_on_arc(center: float, radius: float, angle_deg: float) -> float:
    """Chord length between the top of the circle and the point at *angle_deg*.

    Used by the renderer to thin out the scale on small dials.
    """
    top = point_on_circle((center, center), radius, 0)
    other = point_on_circle((center, center), radius, angle_deg)
    return float(np.hypot(top[0] - other[0], top[1] - other[1]))
