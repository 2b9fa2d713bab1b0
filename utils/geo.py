"""
Geographic utility functions.
Handles great-circle distances along a GPS track.
"""

import math
import numpy as np
import config


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the Haversine formula to calculate the shortest distance between
    two points on a sphere (Earth), measured along the surface.

    Args:
        lat1, lon1: Latitude and longitude of first point (degrees)
        lat2, lon2: Latitude and longitude of second point (degrees)

    Returns:
        Distance in meters

    Example:
        # Distance from NYC to London
        haversine_m(40.7128, -74.0060, 51.5074, -0.1278) -> ~5,570,000m
    """
    lat1_rad, lat2_rad = math.radians(lat1), math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return config.EARTH_R * c


def cumulative_distance_m(lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """
    Running along-track distance for a sequence of coordinates.

    Vectorised haversine; the first point is at 0 m and the result is
    non-decreasing.

    Example:
        Three points 0.001 degrees of latitude apart -> [0.0, ~111.2, ~222.4]
    """
    lats = np.radians(np.asarray(lats, dtype=float))
    lons = np.radians(np.asarray(lons, dtype=float))
    if len(lats) == 0:
        return np.array([])

    delta_lat = np.diff(lats)
    delta_lon = np.diff(lons)
    a = (np.sin(delta_lat / 2) ** 2 +
         np.cos(lats[:-1]) * np.cos(lats[1:]) *
         np.sin(delta_lon / 2) ** 2)
    step = 2 * config.EARTH_R * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    step = np.nan_to_num(step, nan=0.0)

    return np.concatenate(([0.0], np.cumsum(step)))
