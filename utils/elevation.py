"""
Elevation gain/loss engine.
Turns a noisy (distance, elevation) trace into trustworthy ascent/descent
totals and a cleaned elevation series.

Pipeline:
    raw trace -> terrain classification -> uniform resampling
    -> denoising (spikes, median, gaussian, optional rolling mean)
    -> gradient capping -> deadband -> accumulation

Every stage is a pure function returning a new structure, and nothing is
kept between calls, so the engine can run on many traces concurrently.
"""

import logging
from typing import List, NamedTuple, Tuple

import numpy as np

from models import (
    AccumulationResult, EngineResult, GradeCapTier, ProcessedTrace,
    ProcessingConfig, ProcessingStats, TerrainProfile, Variant,
)
from utils.accumulation import accumulate
from utils.capping import cap_gradients, trace_from_elevations
from utils.deadband import asymmetric_deadband, symmetric_deadband
from utils.filters import denoise_elevations, gaussian_window_samples
from utils.resampling import resample_to_uniform_distance
from utils.terrain import classify_terrain, select_grade_cap, select_symmetric_tier, select_terrain_tier
import config

log = logging.getLogger(__name__)


class _GridPass(NamedTuple):
    """Output of one denoise -> cap -> deadband -> accumulate run."""
    trace: ProcessedTrace
    filtered_delta: np.ndarray
    accumulation: AccumulationResult
    gaussian_window: int
    rolling_mean_applied: bool
    spike_threshold_m: float
    deadband_threshold_m: float
    cap: GradeCapTier


def process_trace(
        distances: np.ndarray,
        elevations: np.ndarray,
        processing_config: ProcessingConfig | None = None
) -> EngineResult:
    """
    Compute total ascent and descent for a GPS trace.

    Args:
        distances: Non-decreasing cumulative distance per point (meters)
        elevations: Elevation per point (meters), same length as distances
        processing_config: Strategy and parameters, defaults to symmetric

    Returns:
        EngineResult with totals, the cleaned trace and diagnostics

    Note:
        Traces shorter than 3 points (or that resample to fewer than 3
        grid points) are summed raw with no smoothing. Non-monotonic
        distances or mismatched lengths are a caller error and are not
        checked.
    """
    cfg = processing_config or ProcessingConfig()
    distances = np.asarray(distances, dtype=float)
    elevations = np.asarray(elevations, dtype=float)

    steps: List[str] = []
    _step(steps, "Starting %s processing of %d points", cfg.variant.value, len(elevations))

    terrain = classify_terrain(distances, elevations, cfg.terrain_table)
    _step(steps, "Terrain classified as: %s", terrain.describe())

    if len(elevations) < config.MIN_TRACE_POINTS:
        _step(steps, "Too few points for smoothing, summing raw changes")
        result = _raw_result(distances, elevations, terrain, cfg, steps)
    elif cfg.variant is Variant.ASYMMETRIC:
        result = _run_single(distances, elevations, terrain, cfg, True, steps)
    elif cfg.variant is Variant.SYMMETRIC:
        result = _run_single(distances, elevations, terrain, cfg, False, steps)
    else:
        result = _run_adaptive(distances, elevations, terrain, cfg, steps)

    log.info(
        "%s: %.1fm -> %.1fm gain, %.1fm -> %.1fm loss (%s)",
        cfg.variant.value, terrain.raw_gain_m, result.total_ascent_m,
        terrain.raw_loss_m, result.total_descent_m, terrain.describe()
    )
    return result


def calculate_elevation_gain_loss(
        distances: np.ndarray,
        elevations: np.ndarray,
        processing_config: ProcessingConfig | None = None
) -> Tuple[float, float]:
    """
    Convenience wrapper returning only (gain_m, loss_m).
    """
    result = process_trace(distances, elevations, processing_config)
    return result.total_ascent_m, result.total_descent_m


def segment_stats(
        distances: np.ndarray,
        elevations: np.ndarray,
        processing_config: ProcessingConfig | None = None
) -> Tuple[float, float, float, float, float]:
    """
    Calculate summary statistics for a route or a section of one.

    Returns:
        Tuple of (length_km, gain_m, loss_m, min_elevation_m, max_elevation_m)
    """
    distances = np.asarray(distances, dtype=float)
    if len(distances) < 2:
        return 0.0, 0.0, 0.0, 0.0, 0.0

    # Sections cut from a longer route start part-way along it
    offset = distances - distances[0]
    result = process_trace(offset, elevations, processing_config)
    cleaned = result.cleaned_elevations

    length_km = float(offset[-1]) / config.METERS_PER_KM
    return (
        length_km,
        result.total_ascent_m,
        result.total_descent_m,
        float(np.nanmin(cleaned)),
        float(np.nanmax(cleaned)),
    )


def _run_single(
        distances: np.ndarray,
        elevations: np.ndarray,
        terrain: TerrainProfile,
        cfg: ProcessingConfig,
        legacy: bool,
        steps: List[str]
) -> EngineResult:
    """Asymmetric (legacy) or symmetric strategy, optionally with a separate loss grid."""
    grid_d, grid_e = resample_to_uniform_distance(distances, elevations, cfg.interval_m)
    _step(steps, "Resampled %d points to %d at %.1fm", len(distances), len(grid_d), cfg.interval_m)
    if len(grid_d) < config.MIN_TRACE_POINTS:
        _step(steps, "Route too short for a %.1fm grid, summing raw changes", cfg.interval_m)
        return _raw_result(distances, elevations, terrain, cfg, steps)

    grid_pass = _clean_grid(grid_d, grid_e, terrain, cfg, cfg.interval_m, None, legacy, steps)
    accumulation = grid_pass.accumulation

    if cfg.loss_interval_m is not None and cfg.loss_interval_m != cfg.interval_m:
        loss_d, loss_e = resample_to_uniform_distance(distances, elevations, cfg.loss_interval_m)
        if len(loss_d) >= config.MIN_TRACE_POINTS:
            loss_pass = _clean_grid(loss_d, loss_e, terrain, cfg, cfg.loss_interval_m, None, legacy, steps)
            _step(
                steps, "Descent taken from %.1fm grid: %.1fm",
                cfg.loss_interval_m, loss_pass.accumulation.total_descent_m
            )
            accumulation = AccumulationResult(
                total_ascent_m=accumulation.total_ascent_m,
                total_descent_m=loss_pass.accumulation.total_descent_m,
                per_point_ascent=accumulation.per_point_ascent,
                per_point_descent=loss_pass.accumulation.per_point_descent,
            )

    return _finish(grid_pass, accumulation, len(distances), cfg.interval_m, terrain, cfg, 1, steps)


def _run_adaptive(
        distances: np.ndarray,
        elevations: np.ndarray,
        terrain: TerrainProfile,
        cfg: ProcessingConfig,
        steps: List[str]
) -> EngineResult:
    """
    Trust balanced traces, repeatedly clean inflated ones.

    A raw gain/loss ratio within tolerance gets one symmetric pass on the
    tuned grid. Anything above runs denoise + cap + symmetric deadband
    again on its own output with tightening spike thresholds, until the
    ratio is back within tolerance or the pass budget is spent.
    """
    interval = cfg.adaptive_interval_m
    raw_ratio = terrain.raw_ratio
    _step(steps, "Raw gain/loss ratio: %.3f", raw_ratio)

    grid_d, grid_e = resample_to_uniform_distance(distances, elevations, interval)
    _step(steps, "Resampled %d points to %d at %.1fm", len(distances), len(grid_d), interval)
    if len(grid_d) < config.MIN_TRACE_POINTS:
        _step(steps, "Route too short for a %.1fm grid, summing raw changes", interval)
        return _raw_result(distances, elevations, terrain, cfg, steps)

    if raw_ratio <= cfg.adaptive_ratio_tolerance:
        _step(steps, "Ratio within %.2f, single symmetric pass", cfg.adaptive_ratio_tolerance)
        grid_pass = _clean_grid(grid_d, grid_e, terrain, cfg, interval, None, False, steps)
        return _finish(grid_pass, grid_pass.accumulation, len(distances), interval, terrain, cfg, 1, steps)

    schedule = _spike_schedule(raw_ratio)[:cfg.adaptive_max_passes]
    _step(steps, "Ratio above %.2f, up to %d cleaning passes", cfg.adaptive_ratio_tolerance, len(schedule))

    current = grid_e
    passes = 0
    for spike_threshold in schedule:
        grid_pass = _clean_grid(grid_d, current, terrain, cfg, interval, spike_threshold, False, steps)
        passes += 1
        ratio = grid_pass.accumulation.gain_loss_ratio
        _step(steps, "Pass %d (spikes %.1fm): ratio %.3f", passes, spike_threshold, ratio)
        if ratio <= cfg.adaptive_ratio_tolerance:
            break
        current = grid_pass.trace.elevations
    else:
        _step(steps, "Pass budget spent, ratio still above tolerance")

    return _finish(grid_pass, grid_pass.accumulation, len(distances), interval, terrain, cfg, passes, steps)


def _clean_grid(
        grid_d: np.ndarray,
        grid_e: np.ndarray,
        terrain: TerrainProfile,
        cfg: ProcessingConfig,
        interval_m: float,
        spike_threshold_m: float | None,
        legacy: bool,
        steps: List[str]
) -> _GridPass:
    """
    One denoise -> cap -> deadband -> accumulate run on a uniform grid.

    The legacy asymmetric grid takes its Gaussian window and deadband from
    the terrain tier (deadband = spike threshold). The symmetric strategies
    use the fine-grid symmetric tier instead.
    """
    tier = select_terrain_tier(terrain.gain_per_km, cfg.terrain_table)
    spike_threshold = tier.spike_threshold_m if spike_threshold_m is None else spike_threshold_m
    if legacy:
        deadband = asymmetric_deadband
        default_deadband = tier.spike_threshold_m
        gaussian_window = gaussian_window_samples(tier.smoothing_window_m, interval_m)
    else:
        symmetric_tier = select_symmetric_tier(terrain.gain_per_km, cfg.symmetric_table)
        deadband = symmetric_deadband
        default_deadband = symmetric_tier.deadband_m
        gaussian_window = symmetric_tier.gaussian_window(interval_m)
    deadband_threshold = default_deadband if cfg.deadband_threshold_m is None else cfg.deadband_threshold_m
    use_rolling = terrain.gain_per_km < cfg.flat_rolling_limit_m_per_km
    rolling_window = cfg.flat_rolling_window if use_rolling else None

    _step(
        steps,
        "Applying terrain-adaptive processing: median=%d, gaussian=%d, rolling=%s, spike_thresh=%.1fm",
        cfg.median_window, gaussian_window, rolling_window or "off", spike_threshold
    )
    smoothed = denoise_elevations(grid_e, spike_threshold, cfg.median_window, gaussian_window, rolling_window)
    denoised = trace_from_elevations(grid_d, smoothed)

    cap = select_grade_cap(terrain.gain_per_km, cfg.grade_cap_table)
    capped = cap_gradients(denoised, cap)
    _step(steps, "Gradients capped at +%.0f%% / -%.0f%%", cap.max_uphill_pct, cap.max_downhill_pct)

    filtered = deadband(capped.altitude_delta, deadband_threshold)
    accumulation = accumulate(filtered)
    _step(
        steps, "Deadband %.1fm: %.1fm gain, %.1fm loss",
        deadband_threshold, accumulation.total_ascent_m, accumulation.total_descent_m
    )

    return _GridPass(
        trace=capped,
        filtered_delta=filtered,
        accumulation=accumulation,
        gaussian_window=gaussian_window,
        rolling_mean_applied=use_rolling,
        spike_threshold_m=spike_threshold,
        deadband_threshold_m=deadband_threshold,
        cap=cap,
    )


def _finish(
        grid_pass: _GridPass,
        accumulation: AccumulationResult,
        original_points: int,
        interval_m: float,
        terrain: TerrainProfile,
        cfg: ProcessingConfig,
        passes: int,
        steps: List[str]
) -> EngineResult:
    _step(
        steps, "Processing complete: %.1fm -> %.1fm elevation gain",
        terrain.raw_gain_m, accumulation.total_ascent_m
    )
    stats = ProcessingStats(
        original_points=original_points,
        resampled_points=len(grid_pass.trace),
        interval_m=interval_m,
        terrain=terrain,
        median_window=cfg.median_window,
        gaussian_window=grid_pass.gaussian_window,
        rolling_mean_applied=grid_pass.rolling_mean_applied,
        spike_threshold_m=grid_pass.spike_threshold_m,
        deadband_threshold_m=grid_pass.deadband_threshold_m,
        max_uphill_pct=grid_pass.cap.max_uphill_pct,
        max_downhill_pct=grid_pass.cap.max_downhill_pct,
        passes=passes,
        original_elevation_gain=terrain.raw_gain_m,
        final_elevation_gain=accumulation.total_ascent_m,
        processing_steps=tuple(steps),
    )
    return EngineResult(
        accumulation=accumulation,
        trace=grid_pass.trace,
        filtered_delta=grid_pass.filtered_delta,
        stats=stats,
    )


def _raw_result(
        distances: np.ndarray,
        elevations: np.ndarray,
        terrain: TerrainProfile,
        cfg: ProcessingConfig,
        steps: List[str]
) -> EngineResult:
    """Fallback for tiny traces: input returned unchanged, totals summed raw."""
    trace = trace_from_elevations(distances, elevations)
    accumulation = accumulate(trace.altitude_delta)
    stats = ProcessingStats(
        original_points=len(elevations),
        resampled_points=len(trace),
        interval_m=0.0,
        terrain=terrain,
        original_elevation_gain=terrain.raw_gain_m,
        final_elevation_gain=accumulation.total_ascent_m,
        processing_steps=tuple(steps),
    )
    return EngineResult(
        accumulation=accumulation,
        trace=trace,
        filtered_delta=trace.altitude_delta,
        stats=stats,
    )


def _spike_schedule(raw_ratio: float) -> Tuple[float, ...]:
    for above, thresholds in config.ADAPTIVE_SPIKE_SCHEDULES:
        if raw_ratio > above:
            return thresholds
    return config.ADAPTIVE_SPIKE_SCHEDULES[-1][1]


def _step(steps: List[str], message: str, *args) -> None:
    text = message % args
    steps.append(text)
    log.debug(text)
