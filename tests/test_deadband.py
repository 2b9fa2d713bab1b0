"""
Tests for the asymmetric and symmetric deadband filters.
"""

import numpy as np
import pytest

from utils.deadband import asymmetric_deadband, symmetric_deadband


class TestSymmetricDeadband:

    def test_run_spread_over_its_points(self):
        result = symmetric_deadband(np.array([0.0, 1.0, 1.0, 1.5]), 3.0)
        np.testing.assert_allclose(result, [0.0, 3.5 / 3, 3.5 / 3, 3.5 / 3])

    def test_oscillation_cancels_but_net_climb_survives(self):
        result = symmetric_deadband(np.array([0.0, 1.0, -1.0, 1.0, -1.0, 1.0, 1.0, 1.0]), 3.0)
        np.testing.assert_allclose(result, [0.0] + [3.0 / 7] * 7)

    def test_jittery_climb_keeps_net_height(self):
        """-0.5/+2 wiggles climb 15 m; the small dips must not erase it."""
        deltas = np.array([0.0] + [-0.5, 2.0] * 10)
        result = symmetric_deadband(deltas, 3.0)
        assert result.clip(min=0).sum() == pytest.approx(15.0)
        assert result.clip(max=0).sum() == 0.0

    def test_pure_jitter_suppressed(self):
        deltas = np.array([0.0] + [0.8, -0.8] * 50)
        result = symmetric_deadband(deltas, 1.5)
        np.testing.assert_allclose(result, 0.0, atol=1e-9)

    def test_output_sums_to_input(self):
        rng = np.random.default_rng(3)
        deltas = np.concatenate(([0.0], rng.normal(0.1, 1.0, 400)))
        assert symmetric_deadband(deltas, 2.0).sum() == pytest.approx(deltas.sum())

    def test_descents_filtered_too(self):
        result = symmetric_deadband(np.array([0.0, -2.0, -2.0]), 3.0)
        np.testing.assert_allclose(result, [0.0, -2.0, -2.0])

    def test_trailing_run_flushed(self):
        result = symmetric_deadband(np.array([0.0, 1.0, 1.0]), 5.0)
        np.testing.assert_allclose(result, [0.0, 1.0, 1.0])

    def test_zero_deltas_do_not_break_a_run(self):
        result = symmetric_deadband(np.array([0.0, 2.0, 0.0, 2.0]), 3.0)
        np.testing.assert_allclose(result, [0.0, 4 / 3, 4 / 3, 4 / 3])

    def test_monotone_climb_conserved(self):
        deltas = np.concatenate(([0.0], np.full(100, 0.37)))
        assert symmetric_deadband(deltas, 3.0).sum() == pytest.approx(deltas.sum())

    def test_empty(self):
        assert len(symmetric_deadband(np.array([]), 3.0)) == 0


class TestAsymmetricDeadband:

    def test_descents_pass_through(self):
        result = asymmetric_deadband(np.array([0.0, -0.5, 0.5, -0.5]), 3.0)
        np.testing.assert_allclose(result, [0.0, -0.5, 0.0, -0.5])

    def test_climbs_need_threshold(self):
        result = asymmetric_deadband(np.array([0.0, 1.0, 1.0, 1.5, 0.5]), 3.0)
        np.testing.assert_allclose(result[:4], [0.0, 3.5 / 3, 3.5 / 3, 3.5 / 3])
        assert result[4] == pytest.approx(0.5)

    def test_dip_ends_pending_climb(self):
        result = asymmetric_deadband(np.array([0.0, 2.0, -0.5, 2.0]), 3.0)
        np.testing.assert_allclose(result, [0.0, 0.0, -0.5, 2.0])

    def test_descent_not_overwritten_by_later_flush(self):
        result = asymmetric_deadband(np.array([0.0, 2.0, -1.0, 2.0, 2.0]), 3.0)
        assert result[2] == pytest.approx(-1.0)
        assert result.sum() == pytest.approx(3.0)

    def test_loss_exceeds_symmetric_on_noise(self):
        rng = np.random.default_rng(7)
        deltas = np.concatenate(([0.0], rng.normal(0.0, 0.5, 500)))
        asym_loss = -asymmetric_deadband(deltas, 3.0).clip(max=0).sum()
        sym_loss = -symmetric_deadband(deltas, 3.0).clip(max=0).sum()
        assert asym_loss > sym_loss
