"""
Tests for the elevation gain/loss engine.

Covers the three strategies end to end on synthetic traces, the short-trace
fallbacks, and the convenience wrappers.
"""

import numpy as np
import pytest

from models import ProcessingConfig, TerrainLabel, Variant
from utils.elevation import calculate_elevation_gain_loss, process_trace, segment_stats
from utils.terrain import raw_gain_loss


ALL_VARIANTS = [Variant.ASYMMETRIC, Variant.SYMMETRIC, Variant.ADAPTIVE]


# =============================================================================
# Realistic routes
# =============================================================================

class TestRoutes:

    def test_flat_route(self, flat_route):
        """A near-flat route stays near-flat: jitter must not become climbing."""
        result = process_trace(*flat_route)
        assert result.stats.terrain.label is TerrainLabel.FLAT
        assert result.total_ascent_m < 10.0
        assert result.stats.rolling_mean_applied

    def test_hilly_route(self, hilly_route):
        result = process_trace(*hilly_route)
        assert result.stats.terrain.label is TerrainLabel.HILLY
        assert 450.0 < result.total_ascent_m < 510.0
        assert 450.0 < result.total_descent_m < 510.0
        assert not result.stats.rolling_mean_applied

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_sparse_gentle_route_is_flat(self, variant):
        """Seven points one kilometer apart, 3 m up and back down."""
        distances = np.linspace(0.0, 6000.0, 7)
        elevations = np.array([100.0, 101.0, 102.0, 103.0, 102.0, 101.0, 100.0])
        result = process_trace(distances, elevations, ProcessingConfig.for_variant(variant))
        assert result.stats.terrain.label is TerrainLabel.FLAT
        assert result.total_ascent_m < 10.0

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_sustained_climb_kept(self, variant):
        """100 m -> 400 m over 6 km must not be smoothed away."""
        distances = np.linspace(0.0, 6000.0, 7)
        elevations = np.linspace(100.0, 400.0, 7)
        result = process_trace(distances, elevations, ProcessingConfig.for_variant(variant))
        assert result.total_ascent_m > 250.0

    @pytest.mark.parametrize("variant", [Variant.SYMMETRIC, Variant.ADAPTIVE])
    def test_noisy_climb_kept(self, noisy_climb, variant):
        """GPS jitter on a sustained climb must not cancel the climb itself."""
        result = process_trace(*noisy_climb, ProcessingConfig.for_variant(variant))
        assert 250.0 < result.total_ascent_m < 330.0
        assert result.total_descent_m < 30.0

    def test_noisy_climb_legacy_descents_pass_through(self, noisy_climb):
        """The legacy strategy counts every dip as descent; the symmetric one nets them out."""
        legacy = process_trace(*noisy_climb, ProcessingConfig.for_variant(Variant.ASYMMETRIC))
        symmetric = process_trace(*noisy_climb, ProcessingConfig.for_variant(Variant.SYMMETRIC))
        assert legacy.total_descent_m > symmetric.total_descent_m
        assert legacy.accumulation.gain_loss_ratio < symmetric.accumulation.gain_loss_ratio

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_never_inflates_raw_totals(self, noisy_loop, variant):
        raw_gain, raw_loss = raw_gain_loss(noisy_loop[1])
        result = process_trace(*noisy_loop, ProcessingConfig.for_variant(variant))
        assert 0.0 <= result.total_ascent_m <= raw_gain * 1.1
        assert 0.0 <= result.total_descent_m <= raw_loss * 1.1

    def test_symmetric_balances_loop(self, noisy_loop):
        """Same grid: the symmetric deadband treats climbs and descents alike."""
        symmetric = process_trace(*noisy_loop, ProcessingConfig(variant=Variant.SYMMETRIC, interval_m=1.9))
        asymmetric = process_trace(*noisy_loop, ProcessingConfig(variant=Variant.ASYMMETRIC, interval_m=1.9))
        sym_error = abs(symmetric.accumulation.gain_loss_ratio - 1.0)
        asym_error = abs(asymmetric.accumulation.gain_loss_ratio - 1.0)
        assert sym_error < asym_error

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_deterministic(self, noisy_loop, variant):
        cfg = ProcessingConfig.for_variant(variant)
        first = process_trace(*noisy_loop, cfg)
        second = process_trace(*noisy_loop, cfg)
        assert first.total_ascent_m == second.total_ascent_m
        assert first.total_descent_m == second.total_descent_m
        np.testing.assert_array_equal(first.cleaned_elevations, second.cleaned_elevations)

    def test_input_not_modified(self, noisy_loop):
        distances, elevations = noisy_loop
        original = elevations.copy()
        process_trace(distances, elevations)
        np.testing.assert_array_equal(elevations, original)


# =============================================================================
# Strategies
# =============================================================================

class TestStrategies:

    def test_asymmetric_uses_legacy_grid(self, hilly_route):
        result = process_trace(*hilly_route, ProcessingConfig.for_variant(Variant.ASYMMETRIC))
        assert result.stats.interval_m == 10.0
        assert result.stats.resampled_points == 1001

    def test_legacy_deadband_is_spike_threshold(self, hilly_route):
        result = process_trace(*hilly_route, ProcessingConfig.for_variant(Variant.ASYMMETRIC))
        assert result.stats.deadband_threshold_m == 6.0
        assert result.stats.gaussian_window == 2

    @pytest.mark.parametrize("variant", [Variant.SYMMETRIC, Variant.ADAPTIVE])
    def test_fine_grid_parameters(self, hilly_route, variant):
        result = process_trace(*hilly_route, ProcessingConfig.for_variant(variant))
        assert result.stats.deadband_threshold_m == 2.0
        assert result.stats.gaussian_window == 20
        assert result.stats.spike_threshold_m == 6.0

    def test_totals_match_filtered_deltas(self, noisy_loop):
        result = process_trace(*noisy_loop)
        assert result.total_ascent_m == pytest.approx(result.filtered_delta.clip(min=0).sum())
        assert result.total_descent_m == pytest.approx(-result.filtered_delta.clip(max=0).sum())
        assert len(result.cleaned_elevations) == len(result.trace.distances)

    def test_explicit_deadband_threshold(self, noisy_loop):
        loose = process_trace(*noisy_loop, ProcessingConfig(deadband_threshold_m=1.0))
        strict = process_trace(*noisy_loop, ProcessingConfig(deadband_threshold_m=10.0))
        assert strict.stats.deadband_threshold_m == 10.0
        assert strict.total_ascent_m < loose.total_ascent_m

    def test_separate_loss_interval(self, hilly_route):
        fine = process_trace(*hilly_route, ProcessingConfig())
        coarse = process_trace(*hilly_route, ProcessingConfig(interval_m=10.0))
        paired = process_trace(*hilly_route, ProcessingConfig(loss_interval_m=10.0))
        assert paired.total_ascent_m == pytest.approx(fine.total_ascent_m)
        assert paired.total_descent_m == pytest.approx(coarse.total_descent_m)


class TestAdaptive:

    def test_balanced_trace_single_pass(self, noisy_loop):
        result = process_trace(*noisy_loop, ProcessingConfig.for_variant(Variant.ADAPTIVE))
        assert result.stats.passes == 1
        assert result.stats.interval_m == 1.9

    def test_inflated_trace_uses_pass_budget(self, steady_climb):
        """A climb with no descent can never reach a 1.1 ratio, so every pass runs."""
        result = process_trace(*steady_climb, ProcessingConfig.for_variant(Variant.ADAPTIVE))
        assert result.stats.passes == 5
        assert result.total_ascent_m == pytest.approx(300.0, abs=5.0)
        assert result.total_descent_m == pytest.approx(0.0, abs=0.5)

    def test_pass_budget_configurable(self, steady_climb):
        cfg = ProcessingConfig.for_variant(Variant.ADAPTIVE, adaptive_max_passes=2)
        assert process_trace(*steady_climb, cfg).stats.passes == 2

    def test_steps_logged(self, steady_climb):
        steps = process_trace(*steady_climb, ProcessingConfig.for_variant(Variant.ADAPTIVE)).stats.processing_steps
        assert steps[0].startswith("Starting adaptive processing")
        assert any(step.startswith("Pass 5") for step in steps)


# =============================================================================
# Short and degenerate traces
# =============================================================================

class TestShortTraces:

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_two_points_summed_raw(self, variant):
        result = process_trace(np.array([0.0, 10.0]), np.array([100.0, 105.0]), ProcessingConfig.for_variant(variant))
        assert result.total_ascent_m == pytest.approx(5.0)
        assert result.total_descent_m == 0.0
        np.testing.assert_allclose(result.cleaned_elevations, [100.0, 105.0])

    def test_zero_length_route(self):
        """Three points at the same spot cannot be resampled and are summed raw."""
        result = process_trace(np.zeros(3), np.array([100.0, 101.0, 102.0]))
        assert result.total_ascent_m == pytest.approx(2.0)
        assert result.stats.terrain.gain_per_km == 0.0
        assert result.stats.passes == 0

    def test_empty_trace(self):
        result = process_trace(np.array([]), np.array([]))
        assert result.total_ascent_m == 0.0
        assert result.total_descent_m == 0.0


# =============================================================================
# Convenience wrappers
# =============================================================================

class TestConvenience:

    def test_calculate_elevation_gain_loss(self, hilly_route):
        gain, loss = calculate_elevation_gain_loss(*hilly_route)
        result = process_trace(*hilly_route)
        assert (gain, loss) == (result.total_ascent_m, result.total_descent_m)

    def test_segment_stats_on_route_section(self, hilly_route):
        distances, elevations = hilly_route
        length_km, gain, loss, min_e, max_e = segment_stats(distances[250:], elevations[250:])
        assert length_km == pytest.approx(7.5)
        assert gain == pytest.approx(375.0, abs=15.0)
        assert min_e == pytest.approx(-25.0, abs=1.0)
        assert max_e == pytest.approx(225.0, abs=1.0)

    def test_segment_stats_too_short(self):
        assert segment_stats(np.array([0.0]), np.array([100.0])) == (0.0, 0.0, 0.0, 0.0, 0.0)
