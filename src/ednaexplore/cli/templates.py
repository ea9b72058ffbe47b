"""
Starter files: a sample dataset and a default configuration.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ednaexplore.core.io_utils import write_dataframe
from ednaexplore.core.sample_data import SAMPLE_FILENAME, sample_dataframe
from ednaexplore.models.config import PipelineConfig

console = Console()


def sample_data_command(
    output: Path = typer.Option(
        Path(SAMPLE_FILENAME),
        "--output",
        "-o",
        help="Where to write the sample CSV",
    ),
) -> None:
    """Write a small sample dataset to try the pipeline on."""
    output.parent.mkdir(parents=True, exist_ok=True)
    write_dataframe(sample_dataframe(), output)
    console.print(f"[green]Sample dataset written to {output}[/green]")


def config_command(
    output: Path = typer.Option(
        Path("ednaexplore.yaml"),
        "--output",
        "-o",
        help="Where to write the configuration file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing file",
    ),
) -> None:
    """Write the default pipeline configuration as YAML."""
    if output.exists() and not force:
        console.print(f"[red]Error: {output} already exists (use --force to overwrite)[/red]")
        raise typer.Exit(code=1)
    output.parent.mkdir(parents=True, exist_ok=True)
    PipelineConfig().to_yaml(output)
    console.print(f"[green]Default configuration written to {output}[/green]")
