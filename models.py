import hashlib
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple

import numpy as np
import config


class Variant(str, Enum):
    """Deadband strategy used for one engine call."""
    ASYMMETRIC = "asymmetric"
    SYMMETRIC = "symmetric"
    ADAPTIVE = "adaptive"


class TerrainLabel(Enum):
    FLAT = "flat"
    ROLLING = "rolling"
    HILLY = "hilly"
    MOUNTAINOUS = "mountainous"


@dataclass(frozen=True)
class TerrainTier:
    """One row of the terrain table: parameters used below `limit_m_per_km`."""
    limit_m_per_km: float
    label: TerrainLabel
    smoothing_window_m: float
    spike_threshold_m: float


@dataclass(frozen=True)
class GradeCapTier:
    """One row of the gradient capping table."""
    limit_m_per_km: float
    max_uphill_pct: float
    max_downhill_pct: float


@dataclass(frozen=True)
class SymmetricTier:
    """Fine-grid smoothing and deadband for the symmetric strategies."""
    limit_m_per_km: float
    gaussian_span_m: float
    min_window: int
    max_window: int
    deadband_m: float

    def gaussian_window(self, interval_m: float) -> int:
        """Span converted to grid points, clamped to the tier's bounds."""
        return min(self.max_window, max(self.min_window, int(round(self.gaussian_span_m / interval_m))))


def _default_terrain_table() -> Tuple[TerrainTier, ...]:
    return tuple(
        TerrainTier(limit, TerrainLabel(label), window_m, spike_m)
        for limit, label, window_m, spike_m in config.TERRAIN_TIERS
    )


def _default_grade_cap_table() -> Tuple[GradeCapTier, ...]:
    return tuple(GradeCapTier(*row) for row in config.GRADE_CAP_TIERS)


def _default_symmetric_table() -> Tuple[SymmetricTier, ...]:
    return tuple(SymmetricTier(*row) for row in config.SYMMETRIC_TIERS)


@dataclass(frozen=True)
class ProcessingConfig:
    """
    Immutable parameters for one engine invocation.

    `deadband_threshold_m=None` means "use the terrain default": the
    symmetric tier's deadband for the symmetric and adaptive strategies,
    the terrain tier's spike threshold for the legacy asymmetric one.
    `loss_interval_m` runs a second pipeline on a different grid and takes
    the descent total from it (gain/loss interval pair).
    """
    variant: Variant = Variant.SYMMETRIC
    interval_m: float = config.SYMMETRIC_INTERVAL_M
    loss_interval_m: float | None = None
    deadband_threshold_m: float | None = None
    median_window: int = config.MEDIAN_WINDOW
    flat_rolling_window: int = config.FLAT_ROLLING_WINDOW
    flat_rolling_limit_m_per_km: float = config.FLAT_ROLLING_LIMIT
    adaptive_ratio_tolerance: float = config.ADAPTIVE_RATIO_TOLERANCE
    adaptive_interval_m: float = config.ADAPTIVE_INTERVAL_M
    adaptive_max_passes: int = config.ADAPTIVE_MAX_PASSES
    terrain_table: Tuple[TerrainTier, ...] = field(default_factory=_default_terrain_table)
    grade_cap_table: Tuple[GradeCapTier, ...] = field(default_factory=_default_grade_cap_table)
    symmetric_table: Tuple[SymmetricTier, ...] = field(default_factory=_default_symmetric_table)

    def __post_init__(self):
        # Accept "symmetric" as well as Variant.SYMMETRIC
        object.__setattr__(self, "variant", Variant(self.variant))
        if self.interval_m <= 0:
            raise ValueError(f"interval_m must be positive, got {self.interval_m}")
        if self.loss_interval_m is not None and self.loss_interval_m <= 0:
            raise ValueError(f"loss_interval_m must be positive, got {self.loss_interval_m}")
        if self.adaptive_interval_m <= 0:
            raise ValueError(f"adaptive_interval_m must be positive, got {self.adaptive_interval_m}")
        if self.deadband_threshold_m is not None and self.deadband_threshold_m < 0:
            raise ValueError(f"deadband_threshold_m must be >= 0, got {self.deadband_threshold_m}")
        if self.median_window < 1:
            raise ValueError(f"median_window must be >= 1, got {self.median_window}")
        if self.adaptive_max_passes < 1:
            raise ValueError(f"adaptive_max_passes must be >= 1, got {self.adaptive_max_passes}")
        if not self.terrain_table or not self.grade_cap_table or not self.symmetric_table:
            raise ValueError("terrain_table, grade_cap_table and symmetric_table must not be empty")

    @classmethod
    def for_variant(cls, variant: Variant, **overrides) -> "ProcessingConfig":
        """
        Default configuration for a strategy.

        The legacy asymmetric strategy runs on a 10 m grid, the symmetric
        and adaptive ones on the tuned 1.9 m grid.

        Example:
            ProcessingConfig.for_variant(Variant.ASYMMETRIC, median_window=5)
        """
        interval = config.LEGACY_INTERVAL_M if variant is Variant.ASYMMETRIC else config.SYMMETRIC_INTERVAL_M
        return replace(cls(variant=variant, interval_m=interval), **overrides)


@dataclass(frozen=True)
class TerrainProfile:
    label: TerrainLabel
    gain_per_km: float
    raw_gain_m: float = 0.0
    raw_loss_m: float = 0.0
    total_km: float = 0.0

    @property
    def raw_ratio(self) -> float:
        return gain_loss_ratio(self.raw_gain_m, self.raw_loss_m)

    def describe(self) -> str:
        return f"{self.label.value} ({self.gain_per_km:.1f}m/km)"


@dataclass(frozen=True)
class ProcessedTrace:
    """Uniform-grid trace handed from one pipeline stage to the next."""
    distances: np.ndarray
    elevations: np.ndarray
    altitude_delta: np.ndarray
    gradient_pct: np.ndarray

    def __len__(self):
        return len(self.distances)


@dataclass(frozen=True)
class AccumulationResult:
    total_ascent_m: float
    total_descent_m: float
    per_point_ascent: np.ndarray
    per_point_descent: np.ndarray

    @property
    def gain_loss_ratio(self) -> float:
        return gain_loss_ratio(self.total_ascent_m, self.total_descent_m)


@dataclass(frozen=True)
class ProcessingStats:
    """Read-only diagnostics describing how a trace was processed."""
    original_points: int
    resampled_points: int
    interval_m: float
    terrain: TerrainProfile
    median_window: int = 0
    gaussian_window: int = 0
    rolling_mean_applied: bool = False
    spike_threshold_m: float = 0.0
    deadband_threshold_m: float = 0.0
    max_uphill_pct: float = 0.0
    max_downhill_pct: float = 0.0
    passes: int = 0
    original_elevation_gain: float = 0.0
    final_elevation_gain: float = 0.0
    processing_steps: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EngineResult:
    accumulation: AccumulationResult
    trace: ProcessedTrace
    filtered_delta: np.ndarray
    stats: ProcessingStats

    @property
    def total_ascent_m(self) -> float:
        return self.accumulation.total_ascent_m

    @property
    def total_descent_m(self) -> float:
        return self.accumulation.total_descent_m

    @property
    def cleaned_elevations(self) -> np.ndarray:
        return self.trace.elevations


def gain_loss_ratio(gain: float, loss: float) -> float:
    """Gain divided by loss; infinite when there is no loss."""
    if loss > 0.0:
        return gain / loss
    return float("inf")


class Course:
    """
    Represents a GPX route, handling parsing and running the elevation engine.
    """

    def __init__(self, gpx_bytes: bytes, processing_config: ProcessingConfig | None = None, name: str = ""):
        self.gpx_bytes = gpx_bytes
        self.name = name
        self.processing_config = processing_config or ProcessingConfig()
        self._compute_context()
        self.fingerprint = self._compute_fingerprint()

    def _compute_context(self):
        """
        Parses the GPX file and calculates all route-derived attributes.
        """
        from utils.gpx_parsing import parse_gpx
        from utils.elevation import process_trace
        from utils.geo import haversine_m

        self.df_raw = parse_gpx(self.gpx_bytes)
        distances = self.df_raw["dist_m"].to_numpy(dtype=float)
        elevations = self.df_raw["ele_m"].to_numpy(dtype=float)

        self.result = process_trace(distances, elevations, self.processing_config)
        self.terrain = self.result.stats.terrain

        self.total_km = float(distances[-1]) / config.METERS_PER_KM if len(distances) else 0.0
        self.gain_m = self.result.total_ascent_m
        self.loss_m = self.result.total_descent_m
        cleaned = self.result.cleaned_elevations
        self.min_ele = float(np.nanmin(cleaned)) if len(cleaned) else 0.0
        self.max_ele = float(np.nanmax(cleaned)) if len(cleaned) else 0.0

        # Loops start and finish at the same place, so gain should match loss
        start, finish = self.df_raw.iloc[0], self.df_raw.iloc[-1]
        self.closure_m = haversine_m(start["lat"], start["lon"], finish["lat"], finish["lon"])
        self.is_loop = self.closure_m <= config.LOOP_CLOSURE_M

    def _compute_fingerprint(self):
        """
        A deterministic key identifying this file + configuration pair.
        """
        h = hashlib.md5(self.gpx_bytes).hexdigest()
        cfg = self.processing_config
        return f"{h}|{cfg.variant.value}|{cfg.interval_m:.2f}|{cfg.deadband_threshold_m}|{cfg.median_window}"
