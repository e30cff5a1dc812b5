"""
SONAR - Sensor-Oriented Navigation And Radar
Simulation Sensor Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Provides a simulated orientation sensor for running the dial without
real accelerometer/magnetometer hardware.  The simulated heading turns at
a configurable slew rate, readings carry Gaussian noise, and the sensor
occasionally reports the spurious zero azimuth real devices produce.
"""

from typing import Optional

import numpy as np


class SimulationSensor:
    """Simulated compass heading driven by a configurable slew rate."""

    def __init__(self, noise_deg: float = 0.0,
                 zero_glitch_probability: float = 0.0,
                 seed: Optional[int] = None):
        self._heading = 0.0
        self.slew_rate = 0.0  # degrees per second
        self.noise_deg = noise_deg
        self.zero_glitch_probability = zero_glitch_probability
        self._rng = np.random.default_rng(seed)

    def update(self, dt: float) -> None:
        """Advance the simulated heading by *slew_rate * dt*.

        Args:
            dt: Elapsed time in seconds since the last update.
        """
        self._heading = (self._heading + self.slew_rate * dt) % 360.0

    def get_heading(self) -> float:
        """Return the true simulated heading in degrees [0, 360)."""
        return self._heading

    def set_heading(self, heading: float) -> None:
        self._heading = heading % 360.0

    def read(self) -> float:
        """Return one noisy azimuth reading in radians.

        Uses the platform convention (counter-clockwise positive), so a
        heading of 90° east is reported as ``-pi/2``.
        """
        if (self.zero_glitch_probability > 0
                and self._rng.random() < self.zero_glitch_probability):
            return 0.0
        heading = self._heading
        if self.noise_deg > 0:
            heading += self._rng.normal(0.0, self.noise_deg)
        # Wrap into (-180, 180] before converting, as sensor fusion does
        wrapped = (heading + 180.0) % 360.0 - 180.0
        if wrapped == -180.0:
            wrapped = 180.0
        return float(-np.radians(wrapped))
