"""Tests for the DialEngine composition: sample queue, tick pipeline,
variants and the end-to-end sweep/detection scenario.

These tests do NOT require a display – the engine is pure logic.
"""

import math
import sys
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the src package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from angle_easer import AngleState
from dial_engine import DialEngine, DialFrame, DialVariant
from scan_point import INFINITE_VISIBILITY, ScanPoint


def _heading_rad(degrees: float) -> float:
    """Sensor azimuth (radians, counter-clockwise) for a heading in degrees."""
    return -math.radians(degrees)


# ---------------------------------------------------------------------------
# DialVariant
# ---------------------------------------------------------------------------
class TestDialVariant:
    def test_from_name(self):
        assert DialVariant.from_name("compass") is DialVariant.COMPASS
        assert DialVariant.from_name(" PLAIN ") is DialVariant.PLAIN

    def test_unknown_falls_back_to_sonar(self):
        assert DialVariant.from_name("bogus") is DialVariant.SONAR
        assert DialVariant.from_name(None) is DialVariant.SONAR

    def test_flags(self):
        assert DialVariant.COMPASS.north_up and DialVariant.COMPASS.resets_on_stop
        assert not DialVariant.SONAR.north_up and not DialVariant.SONAR.resets_on_stop
        assert not DialVariant.PLAIN.north_up


# ---------------------------------------------------------------------------
# Orientation queue
# ---------------------------------------------------------------------------
class TestOrientationQueue:
    def test_drain_updates_target_only(self):
        engine = DialEngine()
        for _ in range(3):
            engine.submit_orientation(_heading_rad(30))
        assert engine.drain_samples() == 3
        assert engine.target_angle == 30
        assert engine.current_angle == 0

    def test_drain_empty_queue(self):
        assert DialEngine().drain_samples() == 0

    def test_samples_from_other_thread(self):
        engine = DialEngine()

        def producer():
            for _ in range(3):
                engine.submit_orientation(_heading_rad(-45), 0.1, 0.2)

        thread = threading.Thread(target=producer)
        thread.start()
        thread.join()
        assert engine.drain_samples() == 3
        assert engine.target_angle == -45

    def test_spurious_zero_ignored(self):
        engine = DialEngine()
        engine.angle_state = AngleState(170, 170)
        for _ in range(3):
            engine.submit_orientation(0.0)
        engine.drain_samples()
        assert engine.target_angle == 170


# ---------------------------------------------------------------------------
# Tick pipeline
# ---------------------------------------------------------------------------
class TestTick:
    def test_tick_eases_toward_target(self):
        engine = DialEngine()
        engine.start()
        for _ in range(3):
            engine.submit_orientation(_heading_rad(30))
        frame = engine.tick(20, 20)
        assert isinstance(frame, DialFrame)
        assert engine.target_angle == 30
        assert frame.current_angle == 4

    def test_stopped_engine_does_not_move(self):
        engine = DialEngine(period_ms=1000)
        engine.angle_state = AngleState(0, 90)
        frame = engine.tick(250, 250)
        assert frame.running is False
        assert frame.sweep_angle == 0
        assert frame.current_angle == 0

    def test_stopped_engine_still_drains(self):
        engine = DialEngine()
        for _ in range(3):
            engine.submit_orientation(_heading_rad(60))
        engine.tick(20, 20)
        assert engine.target_angle == 60

    def test_sweep_advances(self):
        engine = DialEngine(period_ms=1000)
        engine.start()
        assert engine.tick(250, 250).sweep_angle == 90

    def test_long_tick_is_subdivided(self):
        """A 270° jump must not skip over a point at 90°."""
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(90, 0.5)])
        engine.start()
        engine.tick(10, 10)
        frame = engine.tick(750, 760)
        tracker = engine.trackers[0]
        assert tracker.detection_ms == pytest.approx(260)
        assert tracker.detection_angle == 90
        assert frame.sweep_angle == 273
        assert len(frame.points) == 1

    def test_now_defaults_to_wall_clock(self):
        engine = DialEngine()
        engine.start()
        assert engine.tick(20).running is True


# ---------------------------------------------------------------------------
# Points and reference frames
# ---------------------------------------------------------------------------
class TestPoints:
    def test_set_points_replaces(self):
        engine = DialEngine()
        engine.set_points([ScanPoint(0, 0.1), ScanPoint(10, 0.2)])
        engine.set_points([ScanPoint(20, 0.3)])
        assert [t.point.angle for t in engine.trackers] == [20]

    def test_add_points_appends(self):
        engine = DialEngine()
        engine.set_points([ScanPoint(0, 0.1)])
        engine.add_points(ScanPoint(10, 0.2), ScanPoint(20, 0.3))
        assert len(engine.trackers) == 3

    def test_sonar_reference_is_heading(self):
        engine = DialEngine(DialVariant.SONAR)
        engine.angle_state = AngleState(45, 45)
        assert engine.reference_angle == 45

    def test_compass_reference_is_north(self):
        engine = DialEngine(DialVariant.COMPASS)
        engine.angle_state = AngleState(45, 45)
        assert engine.reference_angle == 0

    def test_sonar_detection_includes_heading(self):
        engine = DialEngine(DialVariant.SONAR, period_ms=3600)
        engine.angle_state = AngleState(30, 30)
        engine.set_points([ScanPoint(60, 0.5)])
        engine.start()
        for i in range(1, 11):
            engine.tick(100, i * 100)
        assert engine.trackers[0].detection_angle == 90

    def test_infinite_point_visible_without_detection(self):
        engine = DialEngine()
        engine.set_points([ScanPoint(90, 0.5, visibility_ms=INFINITE_VISIBILITY)])
        engine.start()
        frame = engine.tick(20, 20)
        assert len(frame.points) == 1
        assert frame.points[0].visibility == 1.0


# ---------------------------------------------------------------------------
# Stop behaviour and degraded mode
# ---------------------------------------------------------------------------
class TestStopAndDegraded:
    def test_compass_resets_heading_on_stop(self):
        engine = DialEngine(DialVariant.COMPASS)
        engine.start()
        engine.angle_state = AngleState(50, 60)
        engine.stop()
        assert engine.current_angle == 0
        assert engine.target_angle == 60
        assert engine.running is False

    def test_sonar_keeps_heading_on_stop(self):
        engine = DialEngine(DialVariant.SONAR)
        engine.start()
        engine.angle_state = AngleState(50, 60)
        engine.stop()
        assert engine.current_angle == 50

    def test_stop_keeps_visibility_state(self):
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(45, 0.5)])
        engine.start()
        for i in range(1, 6):
            engine.tick(40, i * 40)
        before = engine.trackers[0].visibility
        engine.stop()
        assert engine.trackers[0].visibility == before

    def test_no_sensors_skips_detection(self):
        engine = DialEngine(period_ms=1000, has_sensors=False)
        engine.set_points([
            ScanPoint(45, 0.5),
            ScanPoint(90, 0.5, visibility_ms=INFINITE_VISIBILITY),
        ])
        engine.start()
        for i in range(1, 30):
            frame = engine.tick(40, i * 40)
        assert frame.points == ()
        assert frame.has_sensors is False
        assert frame.sweep_angle != 0
        assert engine.trackers[0].detection_ms is None


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------
class TestEndToEnd:
    def test_periodic_detection_and_decay(self):
        """1250 ms sweep ticked every 50 ms, point at 180° visible for 1250 ms."""
        engine = DialEngine(DialVariant.SONAR, period_ms=1250)
        engine.set_points([ScanPoint(180, 0.5, visibility_ms=1250)])
        engine.start()
        tracker = engine.trackers[0]

        detections = []
        visibility = {}
        for k in range(1, 101):
            now = k * 50
            frame = engine.tick(50, now)
            if tracker.detection_ms == now:
                detections.append(now)
            visibility[now] = tracker.visibility
            assert frame.current_angle == 0

        assert detections == [650, 1900, 3150, 4400]
        assert all(b - a == 1250 for a, b in zip(detections, detections[1:]))
        for detected_at in detections:
            assert visibility[detected_at] == 1.0
        assert visibility[1250] == pytest.approx(1 - 600 / 1250)
        assert visibility[1850] == pytest.approx(1 - 1200 / 1250)
        # Never detected yet before the first crossing
        assert visibility[600] == 0.0


# ---------------------------------------------------------------------------
# Restart, variant switch and stalled loops
# ---------------------------------------------------------------------------
class TestRearm:
    def test_restart_does_not_fire_on_skipped_point(self):
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(300, 0.5)])
        engine.start()
        for i in range(1, 8):
            engine.tick(100, i * 100)
        assert engine.sweep_angle == 252
        engine.stop()
        engine.start()
        frame = engine.tick(10, 710)
        assert frame.sweep_angle == 3
        assert engine.trackers[0].detection_ms is None

    def test_restart_keeps_detection_and_fires_next_revolution(self):
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(90, 0.5)])
        engine.start()
        for i in range(1, 6):
            engine.tick(100, i * 100)
        tracker = engine.trackers[0]
        assert tracker.detection_ms == 300
        engine.stop()
        engine.start()
        assert tracker.detection_ms == 300
        assert tracker.last_signed_diff == 0
        fired = []
        for i in range(1, 4):
            engine.tick(100, 1000 + i * 100)
            if tracker.detection_ms != 300:
                fired.append(tracker.detection_ms)
        assert fired == [1300]

    def test_start_while_running_keeps_tracker_state(self):
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(90, 0.5)])
        engine.start()
        engine.tick(100, 100)
        before = engine.trackers[0].last_signed_diff
        engine.start()
        assert engine.trackers[0].last_signed_diff == before != 0

    def test_variant_switch_does_not_fire(self):
        engine = DialEngine(DialVariant.SONAR, period_ms=3600)
        engine.angle_state = AngleState(90, 90)
        engine.set_points([ScanPoint(0, 0.5)])
        engine.start()
        engine.tick(600, 600)
        assert engine.sweep_angle == 60
        engine.set_variant(DialVariant.COMPASS)
        assert engine.variant is DialVariant.COMPASS
        engine.tick(40, 640)
        tracker = engine.trackers[0]
        assert tracker.detection_ms is None
        # The real crossing at north still fires in the new frame
        engine.tick(3000, 3640)
        assert tracker.detection_ms is not None
        assert tracker.detection_angle == 0

    def test_same_variant_is_noop(self):
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(90, 0.5)])
        engine.start()
        engine.tick(100, 100)
        before = engine.trackers[0].last_signed_diff
        engine.set_variant(DialVariant.SONAR)
        assert engine.trackers[0].last_signed_diff == before


class TestStalledLoop:
    def test_long_stall_is_folded(self):
        engine = DialEngine(period_ms=1000)
        engine.set_points([ScanPoint(90, 0.5)])
        engine.start()
        engine.tick(10, 10)
        engine.sweep.tick = MagicMock(wraps=engine.sweep.tick)
        frame = engine.tick(600_300, 600_310)
        # 1300 ms left after folding: 468 degrees in 11 steps
        assert engine.sweep.tick.call_count == 11
        assert frame.sweep_angle == 111
        assert engine.trackers[0].detection_ms == pytest.approx(600_310)

    def test_short_tick_not_folded(self):
        engine = DialEngine(period_ms=1000)
        engine.start()
        engine.sweep.tick = MagicMock(wraps=engine.sweep.tick)
        engine.tick(900, 900)
        assert engine.sweep.tick.call_count == 8
        assert engine.sweep_angle == 324
