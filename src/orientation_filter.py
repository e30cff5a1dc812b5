"""
SONAR - Sensor-Oriented Navigation And Radar
Orientation Filter Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Turns the raw azimuth stream from the accelerometer/magnetometer fusion
into a denoised target heading.  Readings that barely differ from the
displayed heading are ignored, the well-known "spurious zero" sensor
artifact is dropped, and the remaining readings are averaged in small
batches.
"""

import logging
from typing import List, Optional

from circular_math import normalize, radians_to_degrees, signed_diff

logger = logging.getLogger(__name__)

# Readings closer than this to the current heading are treated as noise
MINIMAL_DIFF = 1
# A reading of exactly 0 further away than this is a sensor glitch
SENSOR_DIFF_TOLERANCE = 15
# Accepted readings averaged into one new target
MEASUREMENTS_COUNT = 3


class OrientationFilter:
    """Noise-rejecting, batch-averaging azimuth filter.

    The filter owns its smoothing buffer and nothing else; the current
    heading it compares against is passed in on every call.
    """

    def __init__(self):
        self._measurements: List[int] = []

    @property
    def pending(self) -> int:
        """Number of accepted readings waiting for the next average."""
        return len(self._measurements)

    def reset(self) -> None:
        """Drop any buffered readings."""
        self._measurements.clear()

    def accept(self, azimuth_degrees: int, current_angle: int) -> Optional[int]:
        """Feed one reading and return a new target when a batch completes.

        Args:
            azimuth_degrees: Reading in whole degrees (any range).
            current_angle: Heading currently shown by the dial.

        Returns:
            The new normalised target angle once ``MEASUREMENTS_COUNT``
            readings have been accepted, otherwise ``None``.
        """
        reading = normalize(azimuth_degrees)
        diff = abs(signed_diff(current_angle, reading))

        if diff < MINIMAL_DIFF:
            return None
        if diff > SENSOR_DIFF_TOLERANCE and reading == 0:
            logger.debug(
                "Spurious zero reading rejected (current=%d°, diff=%d°)",
                current_angle, diff,
            )
            return None

        self._measurements.append(reading)
        if len(self._measurements) < MEASUREMENTS_COUNT:
            return None

        target = self._average_angle(current_angle)
        self._measurements.clear()
        logger.debug("New target heading %d° (current=%d°)", target, current_angle)
        return target

    def accept_radians(self, azimuth_rad: float, current_angle: int) -> Optional[int]:
        """Same as :meth:`accept` for a raw sensor azimuth in radians."""
        return self.accept(radians_to_degrees(azimuth_rad), current_angle)

    def _average_angle(self, current_angle: int) -> int:
        # Average the offsets from the current heading rather than the raw
        # angles so that readings straddling +-180 do not cancel out.
        total = sum(signed_diff(current_angle, angle) for angle in self._measurements)
        mean = int(total / len(self._measurements))
        return normalize(current_angle + mean)
