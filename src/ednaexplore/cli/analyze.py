"""
Validate and analyze commands.

``analyze`` is the command most users run: it reads an input table, validates
it, runs the full pipeline with a progress bar and writes the export tables
and text report to an output directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import polars as pl
import typer
import yaml
from rich.console import Console
from rich.table import Table

from ednaexplore.cli.utils import QuietConsole, pipeline_progress, validation_table
from ednaexplore.core.exceptions import EdnaExploreError, EmptyResultError
from ednaexplore.core.io_utils import read_rows, write_dataframe, write_text
from ednaexplore.core.novel_diversity import NovelDiversitySummary, summarize_clusters
from ednaexplore.core.pipeline import PipelineOrchestrator
from ednaexplore.core.preprocessing import REJECTION_LABELS, summarize_filtering
from ednaexplore.core.reporting import (
    SUMMARY_REPORT_FILE,
    build_export_tables,
    render_summary_report,
)
from ednaexplore.core.validation import EMPTY_INPUT_ERROR, validate
from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.results import PipelineResult

logger = logging.getLogger(__name__)

console = Console()

CLUSTERING_MODES = ("round-robin", "lineage")


def _load_rows(input_file: Path) -> list[dict[str, Any]]:
    if not input_file.exists():
        console.print(f"[red]Error: Input file not found: {input_file}[/red]")
        raise typer.Exit(code=1)
    try:
        return read_rows(input_file)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[dim]Supported formats: .csv, .tsv, .parquet (optionally .gz)[/dim]")
        raise typer.Exit(code=1) from None
    except pl.exceptions.PolarsError as e:
        console.print(f"[red]Could not parse {input_file}: {e}[/red]")
        raise typer.Exit(code=1) from None


def _load_config(
    config_file: Path | None,
    workers: int | None,
    clustering: str | None,
) -> PipelineConfig:
    try:
        config = PipelineConfig.from_yaml(config_file) if config_file else PipelineConfig()
        overrides: dict[str, Any] = {}
        if workers is not None:
            overrides["num_workers"] = workers
        if clustering is not None:
            overrides["clustering_mode"] = clustering
        if overrides:
            config = PipelineConfig(**{**config.model_dump(), **overrides})
    except FileNotFoundError:
        console.print(f"[red]Error: Config file not found: {config_file}[/red]")
        raise typer.Exit(code=1) from None
    except (ValueError, EdnaExploreError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/red]\n{e}")
        raise typer.Exit(code=1) from None
    return config


def _summary_table(result: PipelineResult, config: PipelineConfig) -> Table:
    metrics = result.metrics.rounded(config.index_decimals, config.chao1_decimals)
    table = Table(title="Biodiversity Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Input records", f"{len(result.original_records):,}")
    table.add_row("Passed quality filtering", f"{len(result.records):,}")
    filtering = summarize_filtering(result.original_records, config)
    for reason, count in filtering.rejected.items():
        if count:
            table.add_row(f"Rejected: {REJECTION_LABELS[reason].lower()}", f"{count:,}")
    table.add_row("Total reads", f"{metrics.total_reads:,}")
    table.add_row("Species richness", str(metrics.species_richness))
    table.add_row("Shannon index", f"{metrics.shannon_index}")
    table.add_row("Simpson index", f"{metrics.simpson_index}")
    table.add_row("Chao1 estimator", f"{metrics.chao1_estimator}")
    table.add_row("Novel taxa clusters", str(result.cluster_count))
    table.add_row("Clustered sequences", f"{len(result.clustered_results):,}")
    novel = NovelDiversitySummary.from_clusters(
        summarize_clusters(result.records, result.classifications)
    )
    table.add_row("Clustered reads", f"{novel.clustered_reads:,}")
    table.add_row("Largest cluster", str(novel.largest_cluster_size))
    return table


def validate_command(
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="Input table with sequence_id, raw_sequence, read_count, sample_location, depth",
    ),
    max_errors: int = typer.Option(
        10,
        "--max-errors",
        min=1,
        help="Maximum number of problems to report",
    ),
) -> None:
    """
    Check an input table without running the analysis.

    Example:

        ednaexplore validate --input samples.csv
    """
    rows = _load_rows(input_file)
    outcome = validate(rows, max_errors=max_errors)

    if outcome.errors:
        console.print(validation_table(outcome.errors, len(outcome.valid)))
    if not outcome.valid:
        console.print("[red]No valid records found.[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]{len(outcome.valid):,} of {len(rows):,} rows are valid.[/green]"
    )


def analyze_command(
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="Input table with sequence_id, raw_sequence, read_count, sample_location, depth",
    ),
    output_dir: Path = typer.Option(
        ...,
        "--output-dir",
        "-o",
        help="Directory for exported tables and report",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (see 'ednaexplore config')",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Classification worker threads (overrides config)",
    ),
    clustering: str | None = typer.Option(
        None,
        "--clustering",
        help="Novel-taxon grouping: 'round-robin' or 'lineage' (overrides config)",
    ),
    include_sequences: bool = typer.Option(
        False,
        "--include-sequences",
        help="Also export processed-sequences.csv",
    ),
    report: bool = typer.Option(
        True,
        "--report/--no-report",
        help="Write the plain-text analysis report",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output (for scripting)",
    ),
) -> None:
    """
    Run the eDNA biodiversity pipeline on an input table.

    Example:

        ednaexplore analyze --input samples.csv --output-dir results/

        # Group low-confidence sequences by predicted lineage:
        ednaexplore analyze -i samples.csv -o results/ --clustering lineage
    """
    out = QuietConsole(console, quiet=quiet)

    if clustering is not None and clustering not in CLUSTERING_MODES:
        console.print(
            f"[red]Error: Invalid clustering mode '{clustering}'. "
            f"Use 'round-robin' or 'lineage'.[/red]"
        )
        raise typer.Exit(code=1)

    config = _load_config(config_file, workers, clustering)

    out.print("\n[bold blue]eDNA Biodiversity Analysis[/bold blue]\n")

    rows = _load_rows(input_file)
    outcome = validate(rows, max_errors=config.max_reported_errors)
    if outcome.errors:
        out.print(validation_table(outcome.errors, len(outcome.valid)))
    if not outcome.valid:
        reason = outcome.errors[0] if outcome.errors else EMPTY_INPUT_ERROR
        console.print(f"[red]Error: No valid records to analyze ({reason})[/red]")
        raise typer.Exit(code=1)

    out.print(f"Loaded {len(outcome.valid):,} valid records from {input_file}")

    try:
        with pipeline_progress(console, quiet=quiet) as on_event:
            orchestrator = PipelineOrchestrator(config=config, progress_callback=on_event)
            result = orchestrator.run(outcome.valid)
    except EmptyResultError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        if e.suggestion:
            console.print(f"[dim]{e.suggestion}[/dim]")
        raise typer.Exit(code=1) from None

    output_dir.mkdir(parents=True, exist_ok=True)
    tables = build_export_tables(result, config, include_sequences=include_sequences)
    for filename, df in tables.items():
        write_dataframe(df, output_dir / filename)
        logger.debug(f"Wrote {df.height:,} rows to {output_dir / filename}")

    if report:
        write_text(render_summary_report(result, config=config), output_dir / SUMMARY_REPORT_FILE)

    out.print(_summary_table(result, config))
    written = len(tables) + (1 if report else 0)
    out.print(f"\n[green]Wrote {written} file(s) to {output_dir}[/green]\n")
