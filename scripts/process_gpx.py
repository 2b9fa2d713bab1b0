#!/usr/bin/env python3
"""
Compute trustworthy elevation gain/loss for GPX files.

Processes a single route or a whole folder, prints the results, and
optionally writes cleaned GPX files and profile plots. When an official
benchmark CSV is available the computed gain is compared against it.

Usage:
    python scripts/process_gpx.py analyze my_race.gpx --variant adaptive --plot profile.png
    python scripts/process_gpx.py batch data/gpx --output-dir data/processed
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import typer
import pandas as pd
import matplotlib.pyplot as plt
from rich.console import Console
from rich.markup import escape
from rich.progress import track

from models import Course, ProcessingConfig, Variant
from utils.app_utils import fmt_m, setup_logging
from utils.benchmarks import load_official_elevation_data, lookup_official_gain
from utils.display import batch_table, course_table, create_profile_comparison, stats_table
from utils.gpx_parsing import write_cleaned_gpx
import config

app = typer.Typer()
console = Console()
log = logging.getLogger(__name__)


def _build_config(
        variant: Variant,
        interval: float | None,
        loss_interval: float | None,
        threshold: float | None,
        precision: bool
) -> ProcessingConfig:
    """Turn command-line options into a validated processing configuration."""
    overrides = {}
    if interval is not None:
        overrides["interval_m"] = interval
        overrides["adaptive_interval_m"] = interval
    if loss_interval is not None:
        overrides["loss_interval_m"] = loss_interval
    if threshold is not None:
        overrides["deadband_threshold_m"] = threshold
    if precision:
        overrides["median_window"] = config.PRECISION_MEDIAN_WINDOW

    try:
        return ProcessingConfig.for_variant(variant, **overrides)
    except ValueError as e:
        console.print(f"[red]❌ Invalid options: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _load_official(official_csv: str | None) -> dict:
    """Benchmarks from an explicit CSV, or the default one when it exists."""
    if official_csv is None:
        if not Path(config.OFFICIAL_ELEVATION_CSV).exists():
            return {}
        official_csv = config.OFFICIAL_ELEVATION_CSV

    try:
        return load_official_elevation_data(official_csv)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _processed_path(output_dir: Path, gpx_path: Path) -> Path:
    return output_dir / f"{gpx_path.stem}{config.PROCESSED_SUFFIX}{gpx_path.suffix}"


@app.command()
def analyze(
        gpx_file: str = typer.Argument(..., help="Path to GPX file"),
        variant: Variant = typer.Option(Variant.SYMMETRIC, "--variant", "-V",
                                        help="Deadband strategy"),
        interval: float = typer.Option(None, "--interval", "-i",
                                       help="Resampling interval in meters (default depends on variant)"),
        loss_interval: float = typer.Option(None, "--loss-interval",
                                            help="Separate resampling interval for descent (meters)"),
        threshold: float = typer.Option(None, "--threshold", "-t",
                                        help="Deadband threshold in meters (default from terrain)"),
        precision: bool = typer.Option(False, "--precision",
                                       help="Use the wider precision median window"),
        official_csv: str = typer.Option(None, "--official-csv",
                                         help="CSV with official elevation gains"),
        output: str = typer.Option(None, "--output", "-o",
                                   help="Write the cleaned profile to this GPX file"),
        plot: str = typer.Option(None, "--plot", "-p",
                                 help="Save a raw vs cleaned profile plot (PNG)"),
        verbose: bool = typer.Option(False, "--verbose", "-v",
                                     help="Show processing steps and debug logging"),
        log_file: str = typer.Option(None, "--log-file",
                                     help="Also write the log to this file")
):
    """
    Process a single GPX file and report its elevation gain and loss.

    Example:
        python scripts/process_gpx.py analyze my_race.gpx --variant adaptive
    """
    setup_logging(verbose, log_file)
    processing_config = _build_config(variant, interval, loss_interval, threshold, precision)
    official = _load_official(official_csv)

    gpx_path = Path(gpx_file)
    if not gpx_path.exists():
        console.print(f"[red]❌ GPX file not found: {gpx_file}[/red]")
        raise typer.Exit(1)

    console.print(f"[blue]Processing {gpx_path.name} ({processing_config.variant.value})...[/blue]")
    try:
        course = Course(gpx_path.read_bytes(), processing_config, name=gpx_path.stem)
    except ValueError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print("\n[bold]📍 Route Details[/bold]")
    console.print(course_table(course, lookup_official_gain(official, gpx_path.name)))

    if verbose:
        console.print("\n[bold]🔧 Processing Parameters[/bold]")
        console.print(stats_table(course.result.stats))
        console.print("\n[bold]Processing Steps[/bold]")
        for step in course.result.stats.processing_steps:
            console.print(f"  [dim]{escape(step)}[/dim]")

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(write_cleaned_gpx(course.df_raw, course.result.trace, course.name), encoding="utf-8")
        console.print(f"[green]✅ Saved cleaned GPX to {output_path}[/green]")

    if plot:
        fig = create_profile_comparison(course.df_raw, course.result, f"{course.name} ({course.terrain.describe()})")
        fig.savefig(plot, dpi=150, bbox_inches='tight')
        plt.close(fig)
        console.print(f"[green]✅ Saved profile plot to {plot}[/green]")


@app.command()
def batch(
        folder: str = typer.Argument(..., help="Folder containing GPX files"),
        variant: Variant = typer.Option(Variant.SYMMETRIC, "--variant", "-V",
                                        help="Deadband strategy"),
        interval: float = typer.Option(None, "--interval", "-i",
                                       help="Resampling interval in meters (default depends on variant)"),
        loss_interval: float = typer.Option(None, "--loss-interval",
                                            help="Separate resampling interval for descent (meters)"),
        threshold: float = typer.Option(None, "--threshold", "-t",
                                        help="Deadband threshold in meters (default from terrain)"),
        precision: bool = typer.Option(False, "--precision",
                                       help="Use the wider precision median window"),
        official_csv: str = typer.Option(None, "--official-csv",
                                         help="CSV with official elevation gains"),
        output_dir: str = typer.Option(None, "--output-dir", "-o",
                                       help=f"Write cleaned GPX files here (e.g. {config.PROCESSED_DIR})"),
        results_csv: str = typer.Option(None, "--results-csv",
                                        help="Save the per-file results table as CSV"),
        verbose: bool = typer.Option(False, "--verbose", "-v",
                                     help="Debug logging"),
        log_file: str = typer.Option(None, "--log-file",
                                     help="Also write the log to this file")
):
    """
    Process every GPX file in a folder and summarise the results.

    Files that fail to parse are reported and skipped.
    """
    setup_logging(verbose, log_file)
    processing_config = _build_config(variant, interval, loss_interval, threshold, precision)
    official = _load_official(official_csv)

    folder_path = Path(folder)
    gpx_files = sorted(folder_path.glob("*.gpx")) if folder_path.is_dir() else []
    if not gpx_files:
        console.print(f"[red]❌ No GPX files found in {folder}[/red]")
        raise typer.Exit(1)

    out_path = Path(output_dir) if output_dir else None
    if out_path:
        out_path.mkdir(parents=True, exist_ok=True)

    console.print(f"Found {len(gpx_files)} GPX files")

    results = []
    skipped = 0
    for gpx_path in track(gpx_files, description="Processing routes...", console=console):
        try:
            course = Course(gpx_path.read_bytes(), processing_config, name=gpx_path.stem)
        except ValueError as e:
            console.print(f"[yellow]Warning: Skipping {gpx_path.name}: {escape(str(e))}[/yellow]")
            skipped += 1
            continue

        if out_path:
            cleaned = write_cleaned_gpx(course.df_raw, course.result.trace, course.name)
            _processed_path(out_path, gpx_path).write_text(cleaned, encoding="utf-8")

        results.append({
            "file": gpx_path.name,
            "terrain": course.terrain.label.value,
            "distance_km": course.total_km,
            "raw_gain_m": course.terrain.raw_gain_m,
            "gain_m": course.gain_m,
            "loss_m": course.loss_m,
            "ratio": course.result.accumulation.gain_loss_ratio,
            "official_gain_m": lookup_official_gain(official, gpx_path.name),
        })

    if not results:
        console.print("[red]❌ No routes could be processed.[/red]")
        raise typer.Exit(1)

    results_df = pd.DataFrame(results)
    console.print("\n[bold]📊 Batch Results[/bold]")
    console.print(batch_table(results_df))

    benchmarked = results_df.dropna(subset=["official_gain_m"])
    if not benchmarked.empty:
        error_pct = (benchmarked["gain_m"] - benchmarked["official_gain_m"]) / benchmarked["official_gain_m"] * 100
        console.print(
            f"\nAgainst {len(benchmarked)} official figures: "
            f"mean error {error_pct.mean():+.1f}%, mean absolute error {error_pct.abs().mean():.1f}%"
        )

    console.print(f"Total gain {fmt_m(results_df['gain_m'].sum())}, skipped {skipped} files")
    log.info("Processed %d of %d files", len(results_df), len(gpx_files))

    if results_csv:
        results_df.to_csv(results_csv, index=False)
        console.print(f"[green]✅ Saved results to {results_csv}[/green]")
    if out_path:
        console.print(f"[green]✅ Saved cleaned GPX files to {out_path}/[/green]")


if __name__ == "__main__":
    app()
