"""
SONAR - Sensor-Oriented Navigation And Radar
Scan Point Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Points of interest shown on the dial and the per-point detection state.

A :class:`ScanPoint` is an immutable description of *where* something is.
A :class:`PointTracker` wraps one point and decides, on every sweep tick,
whether the sweep has just passed over it and how visible it still is.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from circular_math import offset_angle, signed_diff

logger = logging.getLogger(__name__)

DEFAULT_VISIBILITY_MS = 1250
# Sentinel for points that stay visible forever once shown
INFINITE_VISIBILITY = -1


@dataclass(frozen=True)
class ScanPoint:
    """A point of interest.

    Attributes:
        angle: Direction in degrees when facing north (0..359, 0 = top,
            90 = right).  Other values are wrapped.
        distance: Distance from the dial centre, 0.0 (centre) to 1.0 (rim).
            Points further out than 1.0 are tracked but never shown.
        color: Optional ``#RRGGBB`` colour overriding the dial colour.
        visibility_ms: How long the point stays visible after a detection,
            or :data:`INFINITE_VISIBILITY`.
    """

    angle: int
    distance: float
    color: Optional[str] = None
    visibility_ms: int = DEFAULT_VISIBILITY_MS

    def __post_init__(self):
        object.__setattr__(self, "angle", int(self.angle) % 360)
        object.__setattr__(self, "distance", float(self.distance))
        visibility_ms = int(self.visibility_ms)
        if visibility_ms <= 0 and visibility_ms != INFINITE_VISIBILITY:
            logger.warning(
                "Invalid visibility of %d ms for point at %d°, using 1 ms",
                visibility_ms, self.angle,
            )
            visibility_ms = 1
        object.__setattr__(self, "visibility_ms", visibility_ms)

    @property
    def infinite(self) -> bool:
        return self.visibility_ms == INFINITE_VISIBILITY


class PointTracker:
    """Detection state machine for a single :class:`ScanPoint`."""

    def __init__(self, point: ScanPoint):
        self.point = point
        self.last_signed_diff: int = 0
        self.detection_ms: Optional[float] = None
        self.detection_angle: int = 0
        self.detection_distance: float = 0.0
        self._visibility: float = 0.0

    def __repr__(self) -> str:
        return (
            f"PointTracker(point={self.point!r}, "
            f"visibility={self._visibility:.2f})"
        )

    @property
    def visibility(self) -> float:
        """Fade value between 0.0 (gone) and 1.0 (just detected)."""
        return self._visibility

    @property
    def is_visible(self) -> bool:
        return (
            (self._visibility > 0 and self.detection_distance <= 1.0)
            or self.point.infinite
        )

    def rearm(self) -> None:
        """Forget the last sweep position; the next call cannot fire.

        Detection time and visibility are kept.
        """
        self.last_signed_diff = 0

    def detect(self, now_ms: float, reference_angle: int, sweep_angle: int) -> bool:
        """Update the tracker for one sweep position.

        Args:
            now_ms: Current time in milliseconds.
            reference_angle: Heading the point angle is relative to (the
                dial's current heading, or 0 for a north-up dial).
            sweep_angle: Current sweep angle, 0..359.

        Returns:
            ``True`` when the sweep has just crossed the point clockwise.
        """
        point_angle = reference_angle + self.point.angle
        diff = signed_diff(offset_angle(sweep_angle), offset_angle(point_angle))

        detected = self.last_signed_diff > 0 and diff <= 0
        if detected:
            self.detection_ms = now_ms
            self.detection_angle = point_angle
            self.detection_distance = self.point.distance

        self._visibility = self._compute_visibility(now_ms)
        self.last_signed_diff = diff
        return detected

    def _compute_visibility(self, now_ms: float) -> float:
        if self.point.infinite:
            return 1.0
        if self.detection_ms is None:
            return 0.0
        faded = (now_ms - self.detection_ms) / self.point.visibility_ms
        return 1.0 - min(1.0, max(0.0, faded))
