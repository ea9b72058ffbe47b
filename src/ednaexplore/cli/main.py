"""
Main CLI entry point for ednaexplore.

Provides the pipeline commands:
- validate: Check an input table and list row-level problems
- analyze: Run the full biodiversity pipeline and export results
- sample-data: Write a small sample dataset
- config: Write the default configuration file
"""

from __future__ import annotations

import typer
from rich import print as rprint

from ednaexplore import __version__
from ednaexplore.cli import analyze, templates

app = typer.Typer(
    name="ednaexplore",
    help="Environmental DNA biodiversity analysis from tabular sequence data",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"ednaexplore version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    ednaexplore: eDNA biodiversity analysis.

    Validates tabular sequence data, filters it by quality, assigns taxa,
    clusters low-confidence assignments as candidate novel taxa and reports
    species richness, Shannon, Simpson and Chao1 diversity.
    """


app.command(name="validate")(analyze.validate_command)
app.command(name="analyze")(analyze.analyze_command)
app.command(name="sample-data")(templates.sample_data_command)
app.command(name="config")(templates.config_command)


if __name__ == "__main__":
    app()
