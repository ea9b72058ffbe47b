"""
Pydantic models for eDNA sequence records and their classifications.

A SequenceRecord is one validated observation from the input table; a
ClassificationResult is the taxonomic assignment produced for it.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, computed_field, field_validator

REQUIRED_FIELDS: tuple[str, ...] = (
    "sequence_id",
    "raw_sequence",
    "read_count",
    "sample_location",
    "depth",
)

DNA_ALPHABET_PATTERN = re.compile(r"^[ATCGN]+$", re.IGNORECASE)

UNKNOWN_RANK = "Unknown"


class SequenceRecord(BaseModel):
    """
    One environmental DNA observation.

    Attributes:
        sequence_id: Identifier, unique within a dataset
        raw_sequence: Bases from the reduced IUPAC alphabet (A, T, C, G, N)
        read_count: Number of reads supporting the sequence
        sample_location: Sampling site label
        depth: Sampling depth in meters
    """

    sequence_id: str = Field(min_length=1, description="Sequence identifier")
    raw_sequence: str = Field(min_length=1, description="Upper-case A/T/C/G/N sequence")
    read_count: int = Field(ge=1, description="Reads supporting this sequence")
    sample_location: str = Field(min_length=1, description="Sampling site")
    depth: float = Field(ge=0, allow_inf_nan=False, description="Sampling depth in meters")

    model_config = {"frozen": True}

    @field_validator("raw_sequence")
    @classmethod
    def normalize_sequence(cls, value: str) -> str:
        """Upper-case the sequence and reject characters outside the alphabet."""
        value = value.strip()
        if not DNA_ALPHABET_PATTERN.match(value):
            msg = "raw_sequence may only contain A, T, C, G, N"
            raise ValueError(msg)
        return value.upper()

    @computed_field
    @property
    def sequence_length(self) -> int:
        """Number of bases in the sequence."""
        return len(self.raw_sequence)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for DataFrame creation."""
        return {
            "sequence_id": self.sequence_id,
            "raw_sequence": self.raw_sequence,
            "read_count": self.read_count,
            "sample_location": self.sample_location,
            "depth": self.depth,
        }


class ClassificationResult(BaseModel):
    """
    Taxonomic assignment for a single sequence record.

    Attributes:
        sequence_id: Identifier of the classified SequenceRecord
        predicted_taxon: Semicolon-delimited lineage (domain;phylum;class;...)
        confidence: Classifier certainty in [0, 1]
        cluster_id: Novel-taxon cluster, set only for low-confidence results
    """

    sequence_id: str = Field(description="Identifier of the classified record")
    predicted_taxon: str = Field(min_length=1, description="Semicolon-delimited lineage")
    confidence: float = Field(ge=0, le=1, description="Classifier certainty")
    cluster_id: int | None = Field(
        default=None,
        ge=1,
        description="Novel-taxon cluster (1-based), only for low-confidence results",
    )

    model_config = {"frozen": True}

    @property
    def lineage(self) -> tuple[str, ...]:
        """Lineage split into ranks, outermost first."""
        return tuple(part.strip() for part in self.predicted_taxon.split(";"))

    def rank(self, level: int) -> str:
        """Rank name at ``level`` (0 = domain, 1 = phylum, ...) or 'Unknown'."""
        lineage = self.lineage
        if 0 <= level < len(lineage) and lineage[level]:
            return lineage[level]
        return UNKNOWN_RANK

    @computed_field
    @property
    def is_clustered(self) -> bool:
        """Whether the result was routed into a novel-taxon cluster."""
        return self.cluster_id is not None

    def with_cluster(self, cluster_id: int) -> ClassificationResult:
        """Return a copy assigned to ``cluster_id``."""
        return self.model_copy(update={"cluster_id": cluster_id})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for DataFrame creation."""
        return {
            "sequence_id": self.sequence_id,
            "predicted_taxon": self.predicted_taxon,
            "confidence": self.confidence,
            "cluster_id": self.cluster_id,
        }
