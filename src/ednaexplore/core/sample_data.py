"""
Bundled sample dataset for trying the pipeline without real data.
"""

from __future__ import annotations

from typing import Any

import polars as pl

from ednaexplore.models.records import REQUIRED_FIELDS

SAMPLE_FILENAME = "sample-edna-data.csv"

SAMPLE_ROWS: list[dict[str, Any]] = [
    {
        "sequence_id": "SEQ001",
        "raw_sequence": "ATCGATCGATCGATCG",
        "read_count": 150,
        "sample_location": "Marine_Site_A",
        "depth": 10.5,
    },
    {
        "sequence_id": "SEQ002",
        "raw_sequence": "GCTAGCTAGCTAGCTA",
        "read_count": 230,
        "sample_location": "Marine_Site_A",
        "depth": 10.5,
    },
    {
        "sequence_id": "SEQ003",
        "raw_sequence": "TTAAGGCCTTAAGGCC",
        "read_count": 89,
        "sample_location": "Marine_Site_B",
        "depth": 25.0,
    },
]


def sample_dataframe() -> pl.DataFrame:
    """Sample rows as a DataFrame with the input column order."""
    return pl.DataFrame(SAMPLE_ROWS).select(list(REQUIRED_FIELDS))
