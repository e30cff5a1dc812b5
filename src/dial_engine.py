"""
SONAR - Sensor-Oriented Navigation And Radar
Dial Engine Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Composition root of the orientation-tracking and sweep-detection core.

The engine owns one :class:`AngleState`, one :class:`SweepCycle`, the
orientation filter and the set of point trackers, and advances all of
them from a single update thread via :meth:`DialEngine.tick`.
Orientation samples may be produced on any thread; they are queued by
:meth:`DialEngine.submit_orientation` and only applied when the update
thread drains the queue.
"""

import enum
import logging
import math
import queue
import time
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Tuple

from angle_easer import AngleEaser, AngleState, with_current, with_target
from orientation_filter import OrientationFilter
from scan_point import PointTracker, ScanPoint
from sweep_cycle import DEFAULT_PERIOD_MS, SweepCycle

logger = logging.getLogger(__name__)

# Largest sweep advance evaluated at once; crossings are detected from a
# sign flip, which is only reliable for steps well below 180 degrees.
MAX_SWEEP_STEP = 45.0


class DialVariant(enum.Enum):
    """Dial flavours sharing the same engine.

    * ``SONAR``   – points are relative to the device heading.
    * ``PLAIN``   – like ``SONAR`` with a minimal dial face.
    * ``COMPASS`` – points are fixed to north; the dial face rotates and
      returns to north when the sweep is stopped.
    """

    SONAR = "sonar"
    PLAIN = "plain"
    COMPASS = "compass"

    @property
    def north_up(self) -> bool:
        return self is DialVariant.COMPASS

    @property
    def resets_on_stop(self) -> bool:
        return self is DialVariant.COMPASS

    @classmethod
    def from_name(cls, name: Optional[str]) -> "DialVariant":
        """Look up a variant by config name, falling back to ``SONAR``."""
        try:
            return cls((name or "sonar").lower().strip())
        except ValueError:
            logger.warning("Unknown dial variant %r, using 'sonar'", name)
            return cls.SONAR


class OrientationSample(NamedTuple):
    """One fused orientation estimate, all angles in radians."""

    azimuth: float
    pitch: float = 0.0
    roll: float = 0.0


@dataclass(frozen=True)
class PointView:
    """Render data for one visible point."""

    angle: int
    distance: float
    visibility: float
    color: Optional[str] = None


@dataclass(frozen=True)
class DialFrame:
    """Everything the renderer needs for one frame."""

    current_angle: int
    sweep_angle: int
    running: bool
    has_sensors: bool
    variant: DialVariant
    points: Tuple[PointView, ...] = ()


class DialEngine:
    """Single-owner engine driving heading, sweep and detections.

    Args:
        variant: Dial flavour, see :class:`DialVariant`.
        period_ms: Sweep revolution period (clamped to >= 250 ms).
        has_sensors: ``False`` when the platform has no orientation
            sensors; the sweep still runs but nothing is detected.
    """

    def __init__(self, variant: DialVariant = DialVariant.SONAR,
                 period_ms: int = DEFAULT_PERIOD_MS, has_sensors: bool = True):
        self.variant = variant
        self.has_sensors = has_sensors
        self.angle_state = AngleState()
        self.sweep = SweepCycle(period_ms)
        self._filter = OrientationFilter()
        self._samples: "queue.Queue[OrientationSample]" = queue.Queue()
        self._trackers: List[PointTracker] = []

        logger.info(
            "DialEngine initialized: variant=%s, period=%d ms, sensors=%s",
            variant.value, self.sweep.period_ms, has_sensors,
        )

    # ---- Read-only views --------------------------------------------------
    @property
    def current_angle(self) -> int:
        return self.angle_state.current

    @property
    def target_angle(self) -> int:
        return self.angle_state.target

    @property
    def sweep_angle(self) -> int:
        return self.sweep.angle

    @property
    def running(self) -> bool:
        return self.sweep.running

    @property
    def trackers(self) -> Tuple[PointTracker, ...]:
        return tuple(self._trackers)

    @property
    def reference_angle(self) -> int:
        """Angle the point angles are measured from."""
        if self.variant.north_up:
            return 0
        return self.angle_state.current

    # ---- Points -------------------------------------------------------------
    def set_points(self, points: Iterable[ScanPoint]) -> None:
        """Replace the whole point set."""
        self._trackers = [PointTracker(point) for point in points]
        logger.info("Point set replaced (%d points)", len(self._trackers))

    def add_points(self, *points: ScanPoint) -> None:
        """Append points to the current set."""
        self._trackers.extend(PointTracker(point) for point in points)
        logger.debug("Added %d points (%d total)", len(points), len(self._trackers))

    # ---- Orientation input --------------------------------------------------
    def submit_orientation(self, azimuth: float, pitch: float = 0.0,
                           roll: float = 0.0) -> None:
        """Queue a fused orientation estimate.  Safe to call from any thread."""
        self._samples.put(OrientationSample(azimuth, pitch, roll))

    def drain_samples(self) -> int:
        """Apply all queued samples to the target heading.

        Must run on the update thread.  Returns the number of samples
        consumed.
        """
        count = 0
        while True:
            try:
                sample = self._samples.get_nowait()
            except queue.Empty:
                break
            count += 1
            target = self._filter.accept_radians(
                sample.azimuth, self.angle_state.current
            )
            if target is not None:
                self.angle_state = with_target(self.angle_state, target)
        return count

    # ---- Sweep control ------------------------------------------------------
    def set_period(self, period_ms: int) -> None:
        self.sweep.set_period(period_ms)

    def set_variant(self, variant: DialVariant) -> None:
        """Switch the dial flavour; trackers restart in the new reference frame."""
        if variant is self.variant:
            return
        self.variant = variant
        self._rearm_trackers()

    def start(self) -> None:
        """Start a new revolution at 0°; no-op while already running."""
        if self.sweep.running:
            return
        self.sweep.start()
        self._rearm_trackers()

    def _rearm_trackers(self) -> None:
        for tracker in self._trackers:
            tracker.rearm()

    def stop(self) -> None:
        """Stop the sweep; compass dials also turn back to north."""
        self.sweep.stop()
        if self.variant.resets_on_stop:
            self.angle_state = with_current(self.angle_state, 0)

    # ---- Update -------------------------------------------------------------
    def tick(self, elapsed_ms: float, now_ms: Optional[float] = None) -> DialFrame:
        """Run one update cycle and return the resulting frame.

        Args:
            elapsed_ms: Time since the previous tick.
            now_ms: Wall-clock time in milliseconds; defaults to now.
        """
        if now_ms is None:
            now_ms = time.time() * 1000.0

        self.drain_samples()
        if not self.sweep.running:
            return self.frame()

        self.angle_state = AngleEaser.tick(self.angle_state)
        reference = self.reference_angle

        # Long ticks (slow frames, a stalled loop) are split so that the
        # sweep never jumps across a point unnoticed.  Anything beyond one
        # revolution only keeps its remainder.
        elapsed_ms = max(elapsed_ms, 0.0)
        period = self.sweep.period_ms
        if elapsed_ms > period:
            logger.warning("Long tick of %.0f ms folded to under two revolutions",
                           elapsed_ms)
            elapsed_ms = period + elapsed_ms % period
        advance = elapsed_ms * self.sweep.degrees_per_ms
        steps = max(1, math.ceil(advance / MAX_SWEEP_STEP))
        step_ms = elapsed_ms / steps
        start_ms = now_ms - step_ms * steps

        for i in range(1, steps + 1):
            sweep_angle = self.sweep.tick(step_ms)
            if not self.has_sensors:
                continue
            step_now = start_ms + step_ms * i
            for tracker in self._trackers:
                if tracker.detect(step_now, reference, sweep_angle):
                    logger.debug(
                        "Detected point at %d° (sweep=%d°)",
                        tracker.detection_angle, sweep_angle,
                    )

        return self.frame()

    def frame(self) -> DialFrame:
        """Snapshot of the current state for the renderer."""
        points: Tuple[PointView, ...] = ()
        if self.has_sensors:
            points = tuple(
                PointView(
                    angle=tracker.detection_angle,
                    distance=tracker.detection_distance,
                    visibility=tracker.visibility,
                    color=tracker.point.color,
                )
                for tracker in self._trackers
                if tracker.is_visible
            )
        return DialFrame(
            current_angle=self.angle_state.current,
            sweep_angle=self.sweep.angle,
            running=self.sweep.running,
            has_sensors=self.has_sensors,
            variant=self.variant,
            points=points,
        )
