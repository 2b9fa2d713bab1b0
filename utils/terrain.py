"""
Terrain classification.
Labels a route's steepness from its raw (unfiltered) gain per kilometer.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from models import GradeCapTier, SymmetricTier, TerrainProfile, TerrainTier
import config

log = logging.getLogger(__name__)


def raw_gain_loss(elevations: np.ndarray) -> Tuple[float, float]:
    """
    Sum positive and negative point-to-point changes with no filtering.

    Returns:
        Tuple of (gain_m, loss_m), both non-negative
    """
    elevations = np.asarray(elevations, dtype=float)
    if len(elevations) < 2:
        return 0.0, 0.0
    deltas = np.diff(elevations)
    return float(deltas[deltas > 0].sum()), float(-deltas[deltas < 0].sum())


def classify_terrain(
        distances: np.ndarray,
        elevations: np.ndarray,
        terrain_table: Sequence[TerrainTier]
) -> TerrainProfile:
    """
    Classify a route as flat, rolling, hilly or mountainous.

    Uses raw gain per km against the ascending limits of the terrain table
    (12 / 30 / 60 m/km by default). Zero-length routes are flat with
    a gain per km of 0.

    Args:
        distances: Cumulative distance per point (meters)
        elevations: Raw elevation per point (meters)
        terrain_table: Ascending terrain tiers

    Returns:
        TerrainProfile computed once for the trace

    Example:
        A 6 km route with 3 m of climbing -> flat (0.5 m/km)
    """
    gain, loss = raw_gain_loss(elevations)
    total_km = float(distances[-1]) / config.METERS_PER_KM if len(distances) else 0.0
    gain_per_km = gain / total_km if total_km > 0 else 0.0

    tier = select_terrain_tier(gain_per_km, terrain_table)
    profile = TerrainProfile(
        label=tier.label,
        gain_per_km=gain_per_km,
        raw_gain_m=gain,
        raw_loss_m=loss,
        total_km=total_km,
    )
    log.debug("Terrain classified as: %s", profile.describe())
    return profile


def select_terrain_tier(gain_per_km: float, terrain_table: Sequence[TerrainTier]) -> TerrainTier:
    """First tier whose limit exceeds the gain per km; the last tier otherwise."""
    for tier in terrain_table:
        if gain_per_km < tier.limit_m_per_km:
            return tier
    return terrain_table[-1]


def select_grade_cap(hilliness_ratio: float, grade_cap_table: Sequence[GradeCapTier]) -> GradeCapTier:
    """
    Pick the gradient limits for a route.

    The first tier whose limit exceeds the hilliness ratio wins, e.g.
    15 m/km -> (15% up, 12% down), 45 m/km -> (32% up, 27% down).
    """
    for tier in grade_cap_table:
        if hilliness_ratio < tier.limit_m_per_km:
            return tier
    return grade_cap_table[-1]


def select_symmetric_tier(gain_per_km: float, symmetric_table: Sequence[SymmetricTier]) -> SymmetricTier:
    """
    Fine-grid parameters for the symmetric strategies.

    Split on uphill gain per km at 20 and 40 m/km by default.
    """
    for tier in symmetric_table:
        if gain_per_km < tier.limit_m_per_km:
            return tier
    return symmetric_table[-1]
