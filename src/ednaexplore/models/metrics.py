"""
Pydantic models for biodiversity statistics and derived report structures.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Self

import polars as pl
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

TAXON_COLUMN = "Taxon"
LOCATION_SUFFIX = " (location)"


def location_columns(
    locations: Sequence[str],
    reserved: Sequence[str] = (),
) -> dict[str, str]:
    """
    Map each location to a unique export column name.

    Locations keep their own name unless it is already taken by a reserved
    column or an earlier location; clashing names get LOCATION_SUFFIX
    appended until unique.

    Example:
        >>> location_columns(["Taxon", "Site_A"], reserved=["Taxon"])
        {'Taxon': 'Taxon (location)', 'Site_A': 'Site_A'}
    """
    taken = set(reserved)
    columns: dict[str, str] = {}
    for loc in locations:
        name = loc
        while name in taken:
            name += LOCATION_SUFFIX
        if name != loc:
            logger.warning(f"Location '{loc}' exported as column '{name}' to avoid a clash")
        taken.add(name)
        columns[loc] = name
    return columns


class BiodiversityMetrics(BaseModel):
    """
    Diversity statistics for a set of classified sequences.

    Values are stored unrounded; call rounded() at the reporting boundary so
    recomputation on filtered subsets does not compound rounding error.

    Attributes:
        species_richness: Number of distinct predicted taxa
        shannon_index: -sum(p_i * ln p_i) over taxon read proportions
        simpson_index: sum(p_i ** 2) (dominance form, 1 = single taxon)
        chao1_estimator: S + F1^2 / (2 * max(F2, 1)), simplified form
        total_sequences: Classified sequences contributing to the statistics
        total_reads: Reads summed over those sequences
    """

    species_richness: int = Field(ge=0, description="Distinct predicted taxa")
    shannon_index: float = Field(ge=0, description="Shannon diversity index")
    simpson_index: float = Field(ge=0, le=1, description="Simpson dominance index")
    chao1_estimator: float = Field(ge=0, description="Simplified Chao1 richness estimate")
    total_sequences: int = Field(default=0, ge=0, description="Sequences contributing")
    total_reads: int = Field(default=0, ge=0, description="Reads contributing")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_chao1_lower_bound(self) -> Self:
        """Chao1 can never estimate fewer taxa than were observed."""
        if self.chao1_estimator < self.species_richness:
            msg = (
                f"chao1_estimator ({self.chao1_estimator}) must be >= "
                f"species_richness ({self.species_richness})"
            )
            raise ValueError(msg)
        return self

    @classmethod
    def empty(cls) -> BiodiversityMetrics:
        """Metrics for an input with no reads."""
        return cls(
            species_richness=0,
            shannon_index=0.0,
            simpson_index=0.0,
            chao1_estimator=0.0,
        )

    def rounded(self, index_decimals: int = 3, chao1_decimals: int = 1) -> BiodiversityMetrics:
        """Return a copy rounded for display and export."""
        return BiodiversityMetrics(
            species_richness=self.species_richness,
            shannon_index=round(self.shannon_index, index_decimals),
            simpson_index=round(self.simpson_index, index_decimals),
            chao1_estimator=round(self.chao1_estimator, chao1_decimals),
            total_sequences=self.total_sequences,
            total_reads=self.total_reads,
        )


class AbundanceMatrix(BaseModel):
    """
    Taxon x location table of summed read counts.

    Every taxon row carries a value for every location column; missing
    observations are explicit zeros.
    """

    taxa: tuple[str, ...] = Field(default=(), description="Row order")
    locations: tuple[str, ...] = Field(default=(), description="Column order")
    counts: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="taxon -> location -> summed read_count",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_rectangular(self) -> Self:
        """Reject ragged matrices and rows not listed in ``taxa``."""
        if set(self.counts) != set(self.taxa):
            msg = "AbundanceMatrix rows do not match the taxa index"
            raise ValueError(msg)
        columns = set(self.locations)
        for taxon, row in self.counts.items():
            if set(row) != columns:
                msg = f"AbundanceMatrix row '{taxon}' does not cover every location"
                raise ValueError(msg)
        return self

    def get(self, taxon: str, location: str) -> int:
        """Read count for one cell."""
        return self.counts[taxon][location]

    def row_total(self, taxon: str) -> int:
        """Total reads assigned to ``taxon`` across all locations."""
        return sum(self.counts[taxon].values())

    def column_total(self, location: str) -> int:
        """Total reads observed at ``location`` across all taxa."""
        return sum(row[location] for row in self.counts.values())

    def to_rows(self) -> list[list[Any]]:
        """Export rows of the form [taxon, count_1, count_2, ...]."""
        return [
            [taxon, *(self.counts[taxon][loc] for loc in self.locations)]
            for taxon in self.taxa
        ]

    def to_dataframe(self) -> pl.DataFrame:
        """
        Convert to a DataFrame with a Taxon column and one column per location.

        A location whose name clashes with ``Taxon`` gets a suffixed column
        name (see location_columns).
        """
        columns = location_columns(self.locations, reserved=(TAXON_COLUMN,))
        data: dict[str, list[Any]] = {TAXON_COLUMN: list(self.taxa)}
        schema: dict[str, pl.DataType] = {TAXON_COLUMN: pl.Utf8}
        for loc, column in columns.items():
            data[column] = [self.counts[taxon][loc] for taxon in self.taxa]
            schema[column] = pl.Int64
        return pl.DataFrame(data, schema=schema)
