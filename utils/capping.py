"""
Gradient calculation and capping.
Bounds the damage any single outlier segment that survived denoising can
do to the totals.
"""

import logging

import numpy as np

from models import GradeCapTier, ProcessedTrace

log = logging.getLogger(__name__)


def compute_gradients(distance_delta: np.ndarray, altitude_delta: np.ndarray) -> np.ndarray:
    """
    Grade in percent per segment: rise / run * 100.

    Zero-distance segments get a gradient of 0 instead of dividing by zero.
    """
    distance_delta = np.asarray(distance_delta, dtype=float)
    altitude_delta = np.asarray(altitude_delta, dtype=float)
    moving = distance_delta > 0
    safe_run = np.where(moving, distance_delta, 1.0)
    return np.where(moving, altitude_delta / safe_run * 100.0, 0.0)


def trace_from_elevations(distances: np.ndarray, elevations: np.ndarray) -> ProcessedTrace:
    """Build a trace with per-point deltas; the first delta is always 0."""
    distances = np.array(distances, dtype=float)
    elevations = np.array(elevations, dtype=float)
    if len(elevations) == 0:
        empty = np.array([])
        return ProcessedTrace(empty, empty, empty, empty)

    altitude_delta = np.diff(elevations, prepend=elevations[0])
    distance_delta = np.diff(distances, prepend=distances[0])
    return ProcessedTrace(
        distances=distances,
        elevations=elevations,
        altitude_delta=altitude_delta,
        gradient_pct=compute_gradients(distance_delta, altitude_delta),
    )


def cap_gradients(trace: ProcessedTrace, cap: GradeCapTier) -> ProcessedTrace:
    """
    Clamp segment gradients to the terrain's uphill/downhill limits.

    A segment steeper than `max_uphill_pct` gets an altitude delta of
    max_uphill_pct * run / 100 (and the negative analogue downhill).
    Elevations are rebuilt from the capped deltas.

    Args:
        trace: Denoised uniform-grid trace
        cap: Gradient limits selected from the route's hilliness

    Returns:
        New ProcessedTrace with capped deltas, elevations and gradients
    """
    if len(trace) == 0:
        return trace

    distance_delta = np.diff(trace.distances, prepend=trace.distances[0])
    gradient = compute_gradients(distance_delta, trace.altitude_delta)

    too_steep_up = gradient > cap.max_uphill_pct
    too_steep_down = gradient < -cap.max_downhill_pct
    altitude_delta = trace.altitude_delta.copy()
    altitude_delta[too_steep_up] = cap.max_uphill_pct * distance_delta[too_steep_up] / 100.0
    altitude_delta[too_steep_down] = -cap.max_downhill_pct * distance_delta[too_steep_down] / 100.0

    capped = int(too_steep_up.sum() + too_steep_down.sum())
    if capped:
        log.debug(
            "Capped %d segments to +%.0f%% / -%.0f%%",
            capped, cap.max_uphill_pct, cap.max_downhill_pct
        )

    elevations = trace.elevations[0] + np.cumsum(altitude_delta)
    return ProcessedTrace(
        distances=trace.distances.copy(),
        elevations=elevations,
        altitude_delta=altitude_delta,
        gradient_pct=compute_gradients(distance_delta, altitude_delta),
    )
