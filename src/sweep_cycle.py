"""
SONAR - Sensor-Oriented Navigation And Radar
Sweep Cycle Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

The radar sweep: an angle that runs linearly from 0 to 360 over a
configurable period, wraps to 0 and repeats for as long as it is running.
"""

import logging
from dataclasses import dataclass, replace

from circular_math import clamp

logger = logging.getLogger(__name__)

MIN_PERIOD_MS = 250
DEFAULT_PERIOD_MS = 1250
MAX_PERIOD_MS = 2 ** 31 - 1


def clamp_period(period_ms: int) -> int:
    """Limit a sweep period to ``[MIN_PERIOD_MS, MAX_PERIOD_MS]``."""
    return int(clamp(int(period_ms), MIN_PERIOD_MS, MAX_PERIOD_MS))


@dataclass(frozen=True)
class SweepState:
    """Snapshot of the sweep.

    ``phase_ms`` is the time already spent in the current revolution; the
    angle is derived from it so that uneven tick intervals do not drift.
    """

    angle: int = 0
    period_ms: int = DEFAULT_PERIOD_MS
    running: bool = False
    phase_ms: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "period_ms", clamp_period(self.period_ms))


def advance_sweep(state: SweepState, elapsed_ms: float) -> SweepState:
    """Return *state* advanced by *elapsed_ms* (no-op while stopped)."""
    if not state.running or elapsed_ms <= 0:
        return state
    phase = (state.phase_ms + elapsed_ms) % state.period_ms
    angle = int(phase * 360 // state.period_ms) % 360
    return replace(state, angle=angle, phase_ms=phase)


class SweepCycle:
    """Tick-driven owner of a :class:`SweepState`."""

    def __init__(self, period_ms: int = DEFAULT_PERIOD_MS):
        self.state = SweepState()
        self.set_period(period_ms)

    @property
    def angle(self) -> int:
        return self.state.angle

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def period_ms(self) -> int:
        return self.state.period_ms

    @property
    def degrees_per_ms(self) -> float:
        return 360.0 / self.state.period_ms

    def set_period(self, period_ms: int) -> None:
        """Change the revolution period, clamping out-of-range values."""
        clamped = clamp_period(period_ms)
        if clamped != period_ms:
            logger.warning(
                "Sweep period %s ms out of range, clamped to %d ms",
                period_ms, clamped,
            )
        self.state = replace(self.state, period_ms=clamped)

    def start(self) -> None:
        """Start a new revolution at 0°; does nothing when already running."""
        if self.state.running:
            return
        self.state = replace(self.state, angle=0, phase_ms=0.0, running=True)
        logger.info("Sweep started (period=%d ms)", self.state.period_ms)

    def stop(self) -> None:
        """Halt the sweep, leaving the angle where it is."""
        if not self.state.running:
            return
        self.state = replace(self.state, running=False)
        logger.info("Sweep stopped at %d°", self.state.angle)

    def tick(self, elapsed_ms: float) -> int:
        """Advance by *elapsed_ms* since the previous tick and return the angle."""
        self.state = advance_sweep(self.state, elapsed_ms)
        return self.state.angle
