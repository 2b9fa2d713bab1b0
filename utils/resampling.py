"""
Distance-based resampling.
Projects irregularly spaced GPS points onto a uniform distance grid so that
fixed-size filters behave the same regardless of the device sampling rate.
"""

from typing import Tuple

import numpy as np
import config


def resample_to_uniform_distance(
        distances: np.ndarray,
        elevations: np.ndarray,
        step_m: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Resample a trace onto the grid 0, step, 2*step, ... <= total distance.

    GPS devices record points based on time or when turning, not distance.
    This creates a consistent grid for analysis. Elevations are linearly
    interpolated between the bracketing raw samples and never extrapolated
    past the last sample.

    Args:
        distances: Non-decreasing cumulative distance (meters)
        elevations: Elevation per point (meters)
        step_m: Grid spacing (meters)

    Returns:
        Tuple of (grid_distances, grid_elevations)

    Example:
        Input:  points at 0m, 7m, 18m, 31m
        Output: points at 0m, 10m, 20m, 30m
    """
    distances = np.asarray(distances, dtype=float)
    elevations = np.asarray(elevations, dtype=float)
    if len(distances) == 0 or len(elevations) == 0:
        return np.array([]), np.array([])

    total_distance = float(distances[-1])
    num_points = int(np.floor(total_distance / step_m)) + 1 if total_distance > 0 else 1
    grid = np.arange(num_points, dtype=float) * step_m
    # Guard against float drift pushing the last target past the end
    grid = grid[grid <= total_distance + config.ZERO_SPAN_M]

    return grid, interpolate_elevation_at(distances, elevations, grid)


def interpolate_elevation_at(
        distances: np.ndarray,
        elevations: np.ndarray,
        targets: np.ndarray
) -> np.ndarray:
    """
    Linear interpolation e1 + (t - d1) / (d2 - d1) * (e2 - e1).

    The bracket is the first raw sample at or beyond the target and the one
    before it. Zero-width brackets return e1 instead of dividing by zero.
    """
    distances = np.asarray(distances, dtype=float)
    elevations = np.asarray(elevations, dtype=float)
    targets = np.asarray(targets, dtype=float)

    result = np.empty(len(targets), dtype=float)
    before_start = (targets <= 0.0) | (targets <= distances[0])
    past_end = targets >= distances[-1]
    result[before_start] = elevations[0]
    result[past_end & ~before_start] = elevations[-1]

    inside = ~before_start & ~past_end
    if not inside.any():
        return result

    hi = np.searchsorted(distances, targets[inside], side="left")
    hi = np.clip(hi, 1, len(distances) - 1)
    lo = hi - 1
    d1, d2 = distances[lo], distances[hi]
    e1, e2 = elevations[lo], elevations[hi]

    span = d2 - d1
    zero_span = np.abs(span) < config.ZERO_SPAN_M
    safe_span = np.where(zero_span, 1.0, span)
    t = (targets[inside] - d1) / safe_span
    result[inside] = np.where(zero_span, e1, e1 + t * (e2 - e1))
    return result
