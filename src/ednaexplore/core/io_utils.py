"""
I/O utilities for DataFrame serialization and row ingestion.

Provides consistent handling of tabular formats (CSV/TSV/Parquet) for the CLI
and the report exporters.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

import polars as pl

logger = logging.getLogger(__name__)

OutputFormat = Literal["csv", "parquet"]


def write_dataframe(
    df: pl.DataFrame,
    path: Path,
    output_format: OutputFormat = "csv",
) -> None:
    """
    Write DataFrame to file in specified format.

    Args:
        df: Polars DataFrame to write.
        path: Output file path.
        output_format: Output format - 'csv' or 'parquet'.

    Example:
        >>> df = pl.DataFrame({"Taxon": ["Bacteria;Proteobacteria"], "Site A": [120]})
        >>> write_dataframe(df, Path("abundance-matrix.csv"))
    """
    if output_format == "parquet":
        df.write_parquet(path, compression="zstd")
    else:
        df.write_csv(path)


def read_dataframe(path: Path, as_strings: bool = False) -> pl.DataFrame:
    """
    Read DataFrame from file, auto-detecting format from extension.

    Supports: .csv, .tsv, .parquet, .csv.gz, .tsv.gz

    Args:
        path: Input file path.
        as_strings: Read every CSV/TSV column as text instead of inferring types.

    Returns:
        Polars DataFrame.

    Raises:
        ValueError: If file extension is not recognized.
    """
    suffix = path.suffix.lower()
    name = path.name.lower()
    # infer_schema_length=0 makes every column Utf8
    csv_options: dict[str, Any] = {"infer_schema_length": 0} if as_strings else {}

    if suffix == ".parquet":
        return pl.read_parquet(path)
    if suffix == ".csv" or name.endswith(".csv.gz"):
        return pl.read_csv(path, **csv_options)
    if suffix == ".tsv" or name.endswith(".tsv.gz"):
        return pl.read_csv(path, separator="\t", **csv_options)
    msg = f"Unrecognized file format: {path}"
    raise ValueError(msg)


def read_rows(path: Path) -> list[dict[str, Any]]:
    """
    Read an input table as a list of row mappings keyed by column name.

    Text formats are read without type inference so the validator sees the
    values as written. Empty cells become None. A zero-byte file yields no rows.
    """
    if path.stat().st_size == 0:
        logger.warning(f"Input file is empty: {path}")
        return []
    df = read_dataframe(path, as_strings=True)
    logger.debug(f"Read {df.height:,} rows with columns {df.columns} from {path}")
    return df.to_dicts()


def write_text(text: str, path: Path) -> None:
    """Write a text report, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
