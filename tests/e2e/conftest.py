"""
E2E test fixtures for ednaexplore CLI testing.

Provides fixtures that combine test factories with CLI invocation
helpers for end-to-end testing.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from ednaexplore.cli.main import app
from tests.factories import E2ETestDataset

if TYPE_CHECKING:
    from click.testing import Result


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def e2e_runner() -> CliRunner:
    """Provide a CLI runner for E2E tests."""
    return CliRunner()


@pytest.fixture
def e2e_temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for E2E test files."""
    return tmp_path


@pytest.fixture
def test_dataset(e2e_temp_dir: Path) -> E2ETestDataset:
    """Provide a seeded test dataset generator."""
    return E2ETestDataset(e2e_temp_dir, seed=42)


@pytest.fixture
def standard_dataset(test_dataset: E2ETestDataset) -> Path:
    """Mixed dataset with valid, filtered and invalid rows."""
    return test_dataset.create_standard_dataset()


@pytest.fixture
def clean_dataset(test_dataset: E2ETestDataset) -> Path:
    """Dataset in which every row is analyzed."""
    return test_dataset.create_clean_dataset()


# =============================================================================
# CLI Invocation Helpers
# =============================================================================


@pytest.fixture
def run_analyze(
    e2e_runner: CliRunner,
    e2e_temp_dir: Path,
) -> Callable[..., Result]:
    """
    Fixture that returns a function to run the analyze command.

    Usage:
        result = run_analyze(
            input_file=csv_path,
            output_dir_name="results",
            clustering="lineage",
        )
    """

    def _run(
        input_file: Path,
        output_dir_name: str = "results",
        config: Path | None = None,
        workers: int | None = None,
        clustering: str | None = None,
        include_sequences: bool = False,
        report: bool = True,
        quiet: bool = True,
        extra_args: list[str] | None = None,
    ) -> Result:
        args = [
            "analyze",
            "--input", str(input_file),
            "--output-dir", str(e2e_temp_dir / output_dir_name),
        ]

        if config is not None:
            args.extend(["--config", str(config)])
        if workers is not None:
            args.extend(["--workers", str(workers)])
        if clustering is not None:
            args.extend(["--clustering", clustering])
        if include_sequences:
            args.append("--include-sequences")
        if not report:
            args.append("--no-report")
        if quiet:
            args.append("--quiet")

        if extra_args:
            args.extend(extra_args)

        return e2e_runner.invoke(app, args)

    return _run


@pytest.fixture
def run_validate(e2e_runner: CliRunner) -> Callable[..., Result]:
    """Fixture that returns a function to run the validate command."""

    def _run(input_file: Path, max_errors: int | None = None) -> Result:
        args = ["validate", "--input", str(input_file)]
        if max_errors is not None:
            args.extend(["--max-errors", str(max_errors)])
        return e2e_runner.invoke(app, args)

    return _run
