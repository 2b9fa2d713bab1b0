"""
GPX file parsing and writing.
Reads GPX tracks into clean DataFrames and writes cleaned elevation
profiles back out as GPX.
"""

import io
import logging
from typing import List, Tuple

import numpy as np
import pandas as pd
import gpxpy
import gpxpy.gpx

from models import ProcessedTrace
from utils.geo import cumulative_distance_m
from utils.resampling import interpolate_elevation_at

log = logging.getLogger(__name__)


def parse_gpx(file_bytes: bytes) -> pd.DataFrame:
    """
    Parse GPX file and return DataFrame with coordinates and distances.

    Track points from every track and segment are concatenated in file
    order, and distance keeps accumulating across segment boundaries.

    Args:
        file_bytes: Raw GPX file bytes

    Returns:
        DataFrame with columns: lat, lon, ele_m, dist_m

    Raises:
        ValueError: If GPX file cannot be parsed or contains no valid tracks
    """
    gpx_data = _parse_gpx_data(file_bytes)
    points = _extract_gps_points(gpx_data)
    df = _create_base_dataframe(points)
    df = _interpolate_elevation(df)
    log.debug("Parsed %d track points over %.0fm", len(df), df["dist_m"].iloc[-1])
    return df


def write_cleaned_gpx(df_raw: pd.DataFrame, trace: ProcessedTrace, name: str = "") -> str:
    """
    Build a GPX document holding the cleaned elevation profile.

    Each grid point of the cleaned trace becomes a track point. Its
    position is interpolated from the raw track at the same along-track
    distance.

    Args:
        df_raw: Parsed track from parse_gpx (lat, lon, dist_m)
        trace: Cleaned uniform-grid trace from the engine
        name: Track name written into the file

    Returns:
        GPX XML as a string
    """
    raw_dist = df_raw["dist_m"].to_numpy(dtype=float)
    lats = interpolate_elevation_at(raw_dist, df_raw["lat"].to_numpy(dtype=float), trace.distances)
    lons = interpolate_elevation_at(raw_dist, df_raw["lon"].to_numpy(dtype=float), trace.distances)

    gpx = gpxpy.gpx.GPX()
    track = gpxpy.gpx.GPXTrack(name=name or None)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)
    gpx.tracks.append(track)

    for lat, lon, ele in zip(lats, lons, trace.elevations):
        segment.points.append(gpxpy.gpx.GPXTrackPoint(float(lat), float(lon), elevation=round(float(ele), 2)))

    return gpx.to_xml()


def _parse_gpx_data(file_bytes: bytes):
    """Parse GPX bytes into gpxpy object with error handling."""
    try:
        gpx_content = file_bytes.decode('utf-8', errors='ignore')
        gpx_data = gpxpy.parse(io.StringIO(gpx_content))
    except Exception as e:
        raise ValueError(f"Failed to parse GPX file: {e}")

    if not gpx_data.tracks:
        raise ValueError("No tracks found in GPX file")

    return gpx_data


def _extract_gps_points(gpx_data) -> List[Tuple[float, float, float]]:
    """
    Extract GPS coordinates from GPX data in file order.

    Returns:
        List of tuples: (latitude, longitude, elevation_m)
    """
    points = []
    for track in gpx_data.tracks:
        for segment in track.segments:
            for point in segment.points:
                elevation = point.elevation if point.elevation is not None else np.nan
                points.append((point.latitude, point.longitude, elevation))

    if not points:
        raise ValueError("No valid GPS points found in GPX file")

    return points


def _create_base_dataframe(points: List[Tuple[float, float, float]]) -> pd.DataFrame:
    """Create DataFrame from GPS points and add cumulative distances."""
    df = pd.DataFrame(points, columns=['lat', 'lon', 'ele_m'])
    df['dist_m'] = cumulative_distance_m(df['lat'].to_numpy(), df['lon'].to_numpy())
    return df


def _interpolate_elevation(df: pd.DataFrame) -> pd.DataFrame:
    """Fill missing elevation data using interpolation."""
    df = df.copy()
    missing = int(df['ele_m'].isna().sum())
    if missing:
        log.warning("%d of %d track points have no elevation, interpolating", missing, len(df))
    df['ele_m'] = df['ele_m'].interpolate().bfill().ffill()
    if df['ele_m'].isna().all():
        raise ValueError("No elevation data found in GPX file")
    return df
