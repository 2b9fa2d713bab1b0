"""
Elevation denoising filters.

Each filter takes an elevation array and returns a new one; inputs are
never modified. Windows are boundary-clamped: near the ends of the trace
the window shrinks instead of wrapping or padding.
"""

import logging

import numpy as np
import pandas as pd
import config

log = logging.getLogger(__name__)


def remove_spikes(elevations: np.ndarray, threshold_m: float) -> np.ndarray:
    """
    Replace single-point spikes by the average of their neighbours.

    A point is a spike when the change into it or out of it exceeds the
    threshold, the two changes point in opposite directions, and both are
    larger than half the threshold.

    Example:
        [100, 102, 150, 103, 105] with threshold 10 -> [100, 102, 102.5, 103, 105]
    """
    result = np.array(elevations, dtype=float)
    if len(result) < config.MIN_TRACE_POINTS or threshold_m <= 0:
        return result

    half = threshold_m * 0.5
    removed = 0
    for i in range(1, len(result) - 1):
        up_change = result[i] - result[i - 1]
        down_change = result[i + 1] - result[i]
        if abs(up_change) <= threshold_m and abs(down_change) <= threshold_m:
            continue
        if np.sign(up_change) != np.sign(down_change) and abs(up_change) > half and abs(down_change) > half:
            result[i] = (result[i - 1] + result[i + 1]) / 2.0
            removed += 1

    if removed:
        log.debug("Removed %d spikes (threshold %.1fm)", removed, threshold_m)
    return result


def median_filter(data: np.ndarray, window: int = config.MEDIAN_WINDOW) -> np.ndarray:
    """
    Centered rolling median.

    Removes single-point spikes without smearing step edges. Where the
    clamped window holds an even number of points the two middle values
    are averaged.
    """
    data = np.array(data, dtype=float)
    half = window // 2
    if half == 0 or len(data) < config.MIN_FILTER_POINTS:
        return data
    return (
        pd.Series(data)
        .rolling(2 * half + 1, center=True, min_periods=1)
        .median()
        .to_numpy()
    )


def gaussian_smooth(data: np.ndarray, window: int) -> np.ndarray:
    """
    Gaussian-weighted moving average.

    weight(j) = exp(-0.5 * ((i - j) / sigma)^2) with sigma = window / 6,
    normalised by the sum of the weights that fall inside the trace.
    """
    data = np.array(data, dtype=float)
    half = window // 2
    if half == 0 or len(data) < config.MIN_FILTER_POINTS:
        return data

    sigma = window / config.GAUSSIAN_SIGMA_DIVISOR
    offsets = np.arange(-half, half + 1, dtype=float)
    kernel = np.exp(-0.5 * (offsets / sigma) ** 2)

    # 'full' convolution sliced back to the input length keeps the kernel
    # centred for any input size
    n = len(data)
    weighted_sum = np.convolve(data, kernel, mode="full")[half:half + n]
    weight_sum = np.convolve(np.ones(n), kernel, mode="full")[half:half + n]
    return weighted_sum / weight_sum


def rolling_mean(data: np.ndarray, window: int = config.FLAT_ROLLING_WINDOW) -> np.ndarray:
    """Long centered rolling mean used for near-flat routes."""
    data = np.array(data, dtype=float)
    if window <= 1 or len(data) < config.MIN_FILTER_POINTS:
        return data
    return (
        pd.Series(data)
        .rolling(window, center=True, min_periods=1)
        .mean()
        .to_numpy()
    )


def gaussian_window_samples(smoothing_window_m: float, interval_m: float) -> int:
    """Convert a smoothing window in meters to a number of grid points."""
    return max(1, int(smoothing_window_m // interval_m))


def denoise_elevations(
        elevations: np.ndarray,
        spike_threshold_m: float,
        median_window: int,
        gaussian_window: int,
        rolling_window: int | None = None
) -> np.ndarray:
    """
    Run the full denoising chain on a uniform-grid elevation series.

    Stages:
    1. Spike removal (threshold from the terrain tier)
    2. Median filter (spike removal without edge smearing)
    3. Gaussian smoothing (noise suppression, window from the terrain tier)
    4. Optional long rolling mean for near-flat routes

    Args:
        elevations: Elevations on a uniform distance grid
        spike_threshold_m: Spike removal threshold (meters)
        median_window: Median window (points)
        gaussian_window: Gaussian window (points)
        rolling_window: Rolling mean window (points), None to skip

    Returns:
        New array of cleaned elevations, same length as the input
    """
    despiked = remove_spikes(elevations, spike_threshold_m)
    median_smoothed = median_filter(despiked, median_window)
    smoothed = gaussian_smooth(median_smoothed, gaussian_window)
    if rolling_window:
        smoothed = rolling_mean(smoothed, rolling_window)
    return smoothed
