"""Tests for the OrientationFilter noise rejection and batch averaging."""

import math
import sys
from pathlib import Path

# Ensure the src package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from orientation_filter import MEASUREMENTS_COUNT, OrientationFilter


class TestNoiseRejection:
    def test_identical_readings_produce_no_target(self):
        f = OrientationFilter()
        for _ in range(MEASUREMENTS_COUNT):
            assert f.accept(42, 42) is None
        assert f.pending == 0

    def test_spurious_zero_rejected(self):
        f = OrientationFilter()
        assert f.accept(0, 170) is None
        assert f.pending == 0

    def test_zero_close_to_current_is_accepted(self):
        f = OrientationFilter()
        assert f.accept(0, 10) is None
        assert f.pending == 1

    def test_large_nonzero_jump_is_accepted(self):
        f = OrientationFilter()
        f.accept(120, 0)
        assert f.pending == 1


class TestAveraging:
    def test_target_after_three_readings(self):
        f = OrientationFilter()
        assert f.accept(10, 0) is None
        assert f.accept(12, 0) is None
        assert f.accept(14, 0) == 12
        assert f.pending == 0

    def test_average_across_180_boundary(self):
        """Readings straddling +-180 average to a heading near 180, not 0."""
        f = OrientationFilter()
        f.accept(-170, 170)
        f.accept(-172, 170)
        # offsets 20, 18, 8 -> mean 15 -> 185 -> -175
        assert f.accept(178, 170) == -175

    def test_mean_truncates_toward_zero(self):
        f = OrientationFilter()
        f.accept(-1, 0)
        f.accept(-1, 0)
        assert f.accept(-2, 0) == -1

    def test_readings_are_normalised(self):
        f = OrientationFilter()
        f.accept(370, 0)
        f.accept(370, 0)
        assert f.accept(370, 0) == 10

    def test_buffer_restarts_after_average(self):
        f = OrientationFilter()
        for _ in range(MEASUREMENTS_COUNT):
            f.accept(30, 0)
        assert f.accept(60, 30) is None
        assert f.pending == 1

    def test_accept_radians(self):
        f = OrientationFilter()
        azimuth = -math.radians(30)
        f.accept_radians(azimuth, 0)
        f.accept_radians(azimuth, 0)
        assert f.accept_radians(azimuth, 0) == 30

    def test_reset(self):
        f = OrientationFilter()
        f.accept(30, 0)
        f.accept(30, 0)
        f.reset()
        assert f.pending == 0
        assert f.accept(30, 0) is None
