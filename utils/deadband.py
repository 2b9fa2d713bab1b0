"""
Deadband filtering of altitude changes.

GPS elevation jitters by a meter or so between fixes. Counting every
wiggle as climbing wildly over-counts gain, so small changes are held in a
pending accumulator and only released ("flushed") once they add up to a
significant amount.

Hysteresis Algorithm (symmetric):
- Walk the altitude deltas keeping one signed running sum
- Add every delta to the sum and write 0 in its place, so opposite
  wiggles cancel instead of discarding the run
- Once |sum| >= threshold, spread the sum evenly over the points since the
  last flush and start again from 0
- A sum still pending at the end of the trace is spread the same way

Example:
    With a 3m threshold, [0, +1, +1, +1.5] becomes [0, 1.17, 1.17, 1.17]
    while [0, +1, -1, +1, -1, +1, +1, +1] becomes seven steps of 3/7 m:
    the wiggles cancel and the net 3m climb survives.
"""

import numpy as np


def asymmetric_deadband(altitude_delta: np.ndarray, threshold_m: float) -> np.ndarray:
    """
    Legacy strategy: only climbs go through the deadband.

    Descents pass through unfiltered and end any pending climb, so total
    descent is under-filtered relative to ascent and the gain/loss ratio
    drifts below 1.0 on noisy traces. Kept for backward-compatible output.
    """
    deltas = np.asarray(altitude_delta, dtype=float)
    n = len(deltas)
    filtered = np.zeros(n)

    pending = 0.0
    last_flush = 0

    for i in range(1, n):
        change = deltas[i]
        if change <= 0:
            filtered[i] = change
            pending = 0.0
            # Legacy output only moved the flush point when a climb was
            # pending, so a later flush overwrote these descents. Here the
            # flush point always moves and pass-through descents are kept.
            last_flush = i
            continue

        pending += change
        if pending >= threshold_m:
            filtered[last_flush + 1:i + 1] = pending / (i - last_flush)
            pending = 0.0
            last_flush = i

    _flush_remainder(filtered, pending, last_flush)
    return filtered


def symmetric_deadband(altitude_delta: np.ndarray, threshold_m: float) -> np.ndarray:
    """
    Climbs and descents go through the same deadband with the same threshold.

    Deltas are summed with their sign, so a jittery climb keeps its net
    height and the output sums to exactly the input. Gives gain/loss
    ratios close to 1.0 on loop routes.
    """
    deltas = np.asarray(altitude_delta, dtype=float)
    n = len(deltas)
    filtered = np.zeros(n)

    pending = 0.0
    last_flush = 0

    for i in range(1, n):
        pending += deltas[i]
        if abs(pending) >= threshold_m:
            filtered[last_flush + 1:i + 1] = pending / (i - last_flush)
            pending = 0.0
            last_flush = i

    _flush_remainder(filtered, pending, last_flush)
    return filtered


def _flush_remainder(filtered: np.ndarray, pending: float, last_flush: int) -> None:
    remaining = len(filtered) - 1 - last_flush
    if pending != 0.0 and remaining > 0:
        filtered[last_flush + 1:] = pending / remaining
