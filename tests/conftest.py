"""
Shared fixtures: synthetic elevation traces and GPX documents.
"""

import numpy as np
import pytest


def sine_route(length_m: float, spacing_m: float, amplitude_m: float, period_m: float, base_m: float = 100.0):
    """Smooth rolling profile starting upward from `base_m`."""
    distances = np.arange(0.0, length_m + spacing_m / 2, spacing_m)
    elevations = base_m + amplitude_m * np.sin(2 * np.pi * distances / period_m)
    return distances, elevations


def build_gpx(points, name: str = "Test Route") -> bytes:
    """GPX 1.1 document with one track and one segment per list of (lat, lon, ele)."""
    segments = points if points and isinstance(points[0], list) else [points]
    segment_xml = []
    for segment in segments:
        trkpts = []
        for lat, lon, ele in segment:
            ele_xml = f"<ele>{ele}</ele>" if ele is not None else ""
            trkpts.append(f'<trkpt lat="{lat}" lon="{lon}">{ele_xml}</trkpt>')
        segment_xml.append(f"<trkseg>{''.join(trkpts)}</trkseg>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">'
        f"<trk><name>{name}</name>{''.join(segment_xml)}</trk>"
        "</gpx>"
    ).encode("utf-8")


@pytest.fixture
def flat_route():
    """6 km with about 3 m of real climbing: 0.5 m/km."""
    distances = np.arange(0.0, 6000.0 + 1.0, 5.0)
    elevations = 100.0 + 1.5 * np.sin(np.pi * distances / 6000.0)
    return distances, elevations


@pytest.fixture
def hilly_route():
    """10 km, two 250 m climbs and descents: 50 m/km."""
    return sine_route(10000.0, 10.0, 125.0, 5000.0)


@pytest.fixture
def noisy_loop():
    """Rolling loop with GPS-like jitter; start and finish at the same height."""
    rng = np.random.default_rng(42)
    distances, elevations = sine_route(8000.0, 5.0, 40.0, 4000.0)
    noise = rng.normal(0.0, 1.0, len(elevations))
    noise[0] = noise[-1] = 0.0
    return distances, elevations + noise


@pytest.fixture
def noisy_climb():
    """100 m -> 400 m over 6 km sampled every 5 m with 1 m GPS jitter."""
    rng = np.random.default_rng(11)
    distances = np.arange(0.0, 6000.0 + 1.0, 5.0)
    elevations = 100.0 + distances * 0.05 + rng.normal(0.0, 1.0, len(distances))
    return distances, elevations


@pytest.fixture
def steady_climb():
    """Noise-free 300 m climb over 10 km, no descent at all."""
    distances = np.arange(0.0, 10000.0 + 1.0, 10.0)
    return distances, distances * 0.03


@pytest.fixture
def loop_gpx() -> bytes:
    """Out-and-back along a meridian, climbing 30 m and returning."""
    out = [(46.0 + i * 0.0005, 7.0, 500.0 + i * 1.5) for i in range(21)]
    back = [(lat, lon, ele) for lat, lon, ele in reversed(out[:-1])]
    return build_gpx(out + back)
