"""
Tests for the morph clock and easing.
"""

import numpy as np
import pytest

from tannen.morph import MorphClock, ease_in_out_cubic


class TestMorphClock:
    """Exponential smoothing toward the active configuration."""

    def test_starts_scattered(self):
        clock = MorphClock(rate=1.5)
        assert clock.progress == 0.0
        assert clock.target == 0.0

    def test_monotone_convergence_to_formed(self):
        clock = MorphClock(rate=1.5)
        previous = clock.progress
        for _ in range(600):
            p = clock.advance(1 / 60, formed=True)
            assert previous <= p <= 1.0
            previous = p
        assert clock.progress > 0.999

    def test_uneven_steps_stay_bounded(self):
        clock = MorphClock(rate=2.0)
        steps = [0.001, 0.05, 0.016, 0.1, 0.033, 0.2, 3.0, 0.0]
        previous = 0.0
        for dt in steps * 20:
            p = clock.advance(dt, formed=True)
            assert 0.0 <= p <= 1.0
            assert p >= previous
            previous = p

    def test_reverse_converges_to_zero(self):
        clock = MorphClock(rate=1.5, progress=1.0)
        previous = clock.progress
        for _ in range(600):
            p = clock.advance(1 / 60, formed=False)
            assert 0.0 <= p <= previous
            previous = p
        assert clock.progress < 0.001

    def test_long_frame_gap_is_clamped(self):
        clock = MorphClock(rate=1.5, max_delta=0.1)
        clock.advance(10.0, formed=True)
        assert clock.progress == pytest.approx(0.15)

    def test_negative_delta_is_noop(self):
        clock = MorphClock(rate=1.5, progress=0.4)
        clock.advance(-1.0, formed=True)
        assert clock.progress == pytest.approx(0.4)

    def test_mid_transition_switch_has_no_jump(self):
        clock = MorphClock(rate=1.5)
        for _ in range(30):
            clock.advance(1 / 60, formed=True)
        before = clock.progress
        after = clock.advance(1 / 60, formed=False)
        assert abs(after - before) <= before * 1.5 / 60 + 1e-12

    def test_rejects_bad_arguments(self):
        with pytest.raises(ValueError):
            MorphClock(rate=0.0)
        with pytest.raises(ValueError):
            MorphClock(progress=1.5)


class TestEasing:
    def test_endpoints_and_midpoint(self):
        assert ease_in_out_cubic(0.0) == 0.0
        assert ease_in_out_cubic(1.0) == 1.0
        assert ease_in_out_cubic(0.5) == pytest.approx(0.5)

    def test_matches_piecewise_formula(self):
        assert ease_in_out_cubic(0.25) == pytest.approx(4 * 0.25 ** 3)
        assert ease_in_out_cubic(0.75) == pytest.approx(1 - (-2 * 0.75 + 2) ** 3 / 2)

    def test_monotone_on_array(self):
        t = np.linspace(0.0, 1.0, 101)
        eased = ease_in_out_cubic(t)
        assert isinstance(eased, np.ndarray)
        assert np.all(np.diff(eased) >= 0)

    def test_clock_exposes_eased_progress(self):
        clock = MorphClock(rate=2.0, progress=0.25)
        assert clock.eased == pytest.approx(ease_in_out_cubic(0.25))
