"""
Ascent/descent accumulation.
Pure reduction: all noise suppression has already happened upstream.
"""

import numpy as np

from models import AccumulationResult


def accumulate(altitude_delta: np.ndarray) -> AccumulationResult:
    """
    Sum positive deltas into ascent and negative deltas into descent.

    Args:
        altitude_delta: Final per-point altitude changes (meters)

    Returns:
        AccumulationResult with running totals per point; the totals are
        the last running values (0 for an empty sequence)
    """
    deltas = np.asarray(altitude_delta, dtype=float)
    per_point_ascent = np.cumsum(np.maximum(deltas, 0.0))
    per_point_descent = np.cumsum(np.maximum(-deltas, 0.0))

    return AccumulationResult(
        total_ascent_m=float(per_point_ascent[-1]) if len(deltas) else 0.0,
        total_descent_m=float(per_point_descent[-1]) if len(deltas) else 0.0,
        per_point_ascent=per_point_ascent,
        per_point_descent=per_point_descent,
    )
