"""
Display helper functions for the command-line tools.
Rich tables for terminal output and matplotlib figures for elevation profiles.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from rich.table import Table

from models import Course, EngineResult, ProcessingStats
from utils.app_utils import fmt_error_pct, fmt_m, fmt_ratio
import config


def course_table(course: Course, official_gain: float | None = None) -> Table:
    """Summary of one processed route."""
    table = Table(show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    terrain = course.terrain
    table.add_row("Distance", f"{course.total_km:.2f} km")
    table.add_row("Terrain", terrain.describe())
    table.add_row("Raw Gain / Loss", f"{fmt_m(terrain.raw_gain_m)} / {fmt_m(terrain.raw_loss_m)}")
    table.add_row("Elevation Gain", fmt_m(course.gain_m))
    table.add_row("Elevation Loss", fmt_m(course.loss_m))
    table.add_row("Gain/Loss Ratio", fmt_ratio(course.result.accumulation.gain_loss_ratio))
    table.add_row("Min/Max Elevation", f"{course.min_ele:.0f}m / {course.max_ele:.0f}m")
    table.add_row("Loop Route", "Yes" if course.is_loop else f"No ({course.closure_m:.0f} m apart)")

    if official_gain is not None:
        table.add_row("Official Gain", fmt_m(official_gain))
        table.add_row("Error vs Official", fmt_error_pct(course.gain_m, official_gain))

    return table


def stats_table(stats: ProcessingStats) -> Table:
    """Parameters the engine chose for a route."""
    table = Table(show_header=False)
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Points", f"{stats.original_points} -> {stats.resampled_points}")
    table.add_row("Grid Interval", f"{stats.interval_m:.1f} m")
    table.add_row("Median / Gaussian Window", f"{stats.median_window} / {stats.gaussian_window} pts")
    table.add_row("Rolling Mean", "Yes" if stats.rolling_mean_applied else "No")
    table.add_row("Spike Threshold", f"{stats.spike_threshold_m:.1f} m")
    table.add_row("Deadband Threshold", f"{stats.deadband_threshold_m:.1f} m")
    table.add_row("Gradient Caps", f"+{stats.max_uphill_pct:.0f}% / -{stats.max_downhill_pct:.0f}%")
    table.add_row("Passes", str(stats.passes))
    return table


def batch_table(results_df: pd.DataFrame) -> Table:
    """
    One row per processed file.

    Expects the columns written by the batch command: file, terrain,
    distance_km, raw_gain_m, gain_m, loss_m, ratio and official_gain_m.
    """
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Terrain", style="white")
    table.add_column("Distance", justify="right")
    table.add_column("Raw Gain", justify="right")
    table.add_column("Gain", style="green", justify="right")
    table.add_column("Loss", style="green", justify="right")
    table.add_column("Ratio", style="yellow", justify="right")
    table.add_column("Official", justify="right")
    table.add_column("Error", style="yellow", justify="right")

    for row in results_df.itertuples(index=False):
        official = None if pd.isna(row.official_gain_m) else float(row.official_gain_m)
        table.add_row(
            row.file,
            row.terrain,
            f"{row.distance_km:.1f} km",
            fmt_m(row.raw_gain_m),
            fmt_m(row.gain_m),
            fmt_m(row.loss_m),
            fmt_ratio(row.ratio),
            fmt_m(official) if official is not None else "-",
            fmt_error_pct(row.gain_m, official),
        )

    return table


def create_profile_comparison(df_raw: pd.DataFrame, result: EngineResult, title: str):
    """
    Plot the raw GPS elevation against the cleaned profile.

    The area under the cleaned profile is coloured by gradient so the
    capped stretches stand out.

    Args:
        df_raw: Parsed track with dist_m and ele_m columns
        result: Engine output for the same track
        title: Title for the plot

    Returns:
        matplotlib figure
    """
    raw_km = df_raw['dist_m'].to_numpy(dtype=float) / config.METERS_PER_KM
    raw_ele = df_raw['ele_m'].to_numpy(dtype=float)
    x_km = result.trace.distances / config.METERS_PER_KM
    y_m = result.cleaned_elevations
    grades = result.trace.gradient_pct

    fig, (ax, ax_gain) = plt.subplots(2, 1, figsize=(10, 6), sharex=True,
                                      gridspec_kw={'height_ratios': [3, 1]})

    # ~100 colour bands keeps long routes readable
    chunk_size = max(1, len(x_km) // 100)
    floor = np.min(y_m) - 100 if len(y_m) else 0.0
    for i in range(0, len(x_km) - 1, chunk_size):
        end_idx = min(i + chunk_size + 1, len(x_km))
        ax.fill_between(x_km[i:end_idx], y_m[i:end_idx], floor,
                        color=_grade_to_color(float(np.mean(grades[i:end_idx]))),
                        alpha=0.4, edgecolor='none')

    ax.plot(raw_km, raw_ele, color='#95A5A6', linewidth=1, alpha=0.8, label='Raw GPS')
    ax.plot(x_km, y_m, color='#2C3E50', linewidth=2, zorder=3, label='Cleaned')

    ax.set_ylabel("Elevation (m)", fontsize=10, color='#34495E')
    ax.set_title(title, fontsize=11, fontweight='bold', color='#2C3E50')
    if len(y_m):
        y_padding = max(20, (y_m.max() - y_m.min()) * 0.15)
        ax.set_ylim(min(y_m.min(), np.nanmin(raw_ele)) - y_padding,
                    max(y_m.max(), np.nanmax(raw_ele)) + y_padding)
    ax.legend(loc='upper right', fontsize=8)

    accumulation = result.accumulation
    ax_gain.plot(x_km, accumulation.per_point_ascent, color='#E74C3C', label='Ascent')
    if len(accumulation.per_point_descent) == len(x_km):
        ax_gain.plot(x_km, accumulation.per_point_descent, color='#3498DB', label='Descent')
    ax_gain.set_xlabel("Distance (km)", fontsize=10, color='#34495E')
    ax_gain.set_ylabel("Cumulative (m)", fontsize=10, color='#34495E')
    ax_gain.legend(loc='upper left', fontsize=8)

    for axis in (ax, ax_gain):
        axis.grid(True, alpha=0.2, linestyle=':', color='#95A5A6')
        axis.spines['top'].set_visible(False)
        axis.spines['right'].set_visible(False)
        axis.set_facecolor('#FAFAFA')

    ax.text(0.02, 0.98,
            f"Gain {fmt_m(accumulation.total_ascent_m)} • Loss {fmt_m(accumulation.total_descent_m)}",
            transform=ax.transAxes, fontsize=8, verticalalignment='top', color='#7F8C8D',
            bbox=dict(boxstyle='round,pad=0.3', facecolor='white', alpha=0.7, edgecolor='none'))

    fig.patch.set_facecolor('white')
    plt.tight_layout()
    return fig


def _grade_to_color(grade: float) -> str:
    """Green for flat through red for steep, blended between bands."""
    abs_grade = abs(grade)
    if abs_grade < 2:
        return '#2ECC71'
    if abs_grade < 5:
        return _interpolate_color('#2ECC71', '#F39C12', (abs_grade - 2) / 3)
    if abs_grade < 10:
        return _interpolate_color('#F39C12', '#E67E22', (abs_grade - 5) / 5)
    if abs_grade < 15:
        return _interpolate_color('#E67E22', '#E74C3C', (abs_grade - 10) / 5)
    return _interpolate_color('#E74C3C', '#C0392B', min(1, (abs_grade - 15) / 10))


def _interpolate_color(color1: str, color2: str, blend: float) -> str:
    c1 = [int(color1[i:i + 2], 16) for i in (1, 3, 5)]
    c2 = [int(color2[i:i + 2], 16) for i in (1, 3, 5)]
    c = [int(c1[i] + (c2[i] - c1[i]) * blend) for i in range(3)]
    return '#{:02x}{:02x}{:02x}'.format(*c)
