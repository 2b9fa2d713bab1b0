"""
Official elevation benchmarks.
Loads published gain figures so processed routes can be compared against
what the race organisers report.
"""

import logging
from pathlib import Path
from typing import Dict

import pandas as pd
import config

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("filename", "official_elevation_gain_m")


def load_official_elevation_data(csv_path: str | Path = config.OFFICIAL_ELEVATION_CSV) -> Dict[str, float]:
    """
    Read a benchmark CSV into a filename -> official gain lookup.

    The CSV needs `filename` and `official_elevation_gain_m` columns. Keys
    are normalised with `benchmark_key` so lookups ignore case and the
    processed-file suffix. Rows with a missing or non-numeric gain are
    skipped.

    Raises:
        FileNotFoundError: If the CSV does not exist
        ValueError: If a required column is missing
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Official elevation data not found: {csv_path}")

    df = pd.read_csv(csv_path)
    df.columns = [c.strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Official elevation CSV is missing columns: {', '.join(missing)}")

    gains = pd.to_numeric(df["official_elevation_gain_m"], errors="coerce")
    valid = gains.notna() & df["filename"].notna()
    skipped = int((~valid).sum())
    if skipped:
        log.warning("Skipped %d benchmark rows without a usable gain", skipped)

    official = {
        benchmark_key(str(name)): float(gain)
        for name, gain in zip(df.loc[valid, "filename"], gains[valid])
    }
    log.info("Loaded %d official elevation records from %s", len(official), csv_path)
    return official


def benchmark_key(filename: str) -> str:
    """
    Normalise a GPX filename for benchmark lookups.

    Example:
        "Western_States_processed.gpx" -> "western_states.gpx"
    """
    name = Path(filename.strip()).name.lower()
    stem, dot, suffix = name.rpartition(".")
    if not dot:
        stem, suffix = name, ""
    stem = stem.removesuffix(config.PROCESSED_SUFFIX)
    return f"{stem}.{suffix}" if suffix else stem


def lookup_official_gain(official: Dict[str, float], filename: str) -> float | None:
    """Official gain for a GPX file, or None when it has no benchmark."""
    return official.get(benchmark_key(filename))
