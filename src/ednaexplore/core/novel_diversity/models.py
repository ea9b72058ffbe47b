"""
Data models for novel diversity clustering.

Defines the NovelCluster model representing a group of low-confidence
sequences treated as a candidate novel taxon, and the run-level summary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, computed_field


class NovelCluster(BaseModel):
    """
    Represents a candidate novel taxon cluster.

    Attributes:
        cluster_id: 1-based cluster number written onto member results
        sequence_count: Number of member sequences
        total_reads: Reads summed over member sequences
        mean_confidence: Average classifier confidence of members
        locations: Sampling sites of members, in first-appearance order
        sequence_ids: Member sequence identifiers, in input order
    """

    cluster_id: int = Field(ge=1, description="Cluster number")
    sequence_count: int = Field(ge=1, description="Sequences in this cluster")
    total_reads: int = Field(ge=0, description="Reads in this cluster")
    mean_confidence: float = Field(ge=0, le=1, description="Mean member confidence")
    locations: list[str] = Field(default_factory=list, description="Member sampling sites")
    sequence_ids: list[str] = Field(default_factory=list, description="Member identifiers")

    model_config = {"frozen": True}

    @computed_field
    @property
    def label(self) -> str:
        """Display label used in reports."""
        return f"Cluster {self.cluster_id}"

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to dictionary for summary output (excludes sequence_ids)."""
        return {
            "cluster_id": self.label,
            "sequence_count": self.sequence_count,
            "total_reads": self.total_reads,
            "avg_confidence": round(self.mean_confidence, 3),
            "locations": ", ".join(self.locations),
        }


class NovelDiversitySummary(BaseModel):
    """
    Summary of novel diversity clustering for one run.

    Attributes:
        total_clusters: Number of clusters formed
        clustered_sequences: Sequences assigned to any cluster
        clustered_reads: Reads carried by clustered sequences
        mean_cluster_size: Average sequences per cluster
        largest_cluster_size: Sequences in the largest cluster
    """

    total_clusters: int = Field(default=0)
    clustered_sequences: int = Field(default=0)
    clustered_reads: int = Field(default=0)
    mean_cluster_size: float = Field(default=0.0)
    largest_cluster_size: int = Field(default=0)

    model_config = {"frozen": True}

    @classmethod
    def from_clusters(cls, clusters: list[NovelCluster]) -> NovelDiversitySummary:
        """Aggregate a list of clusters."""
        if not clusters:
            return cls()
        sizes = [c.sequence_count for c in clusters]
        return cls(
            total_clusters=len(clusters),
            clustered_sequences=sum(sizes),
            clustered_reads=sum(c.total_reads for c in clusters),
            mean_cluster_size=sum(sizes) / len(sizes),
            largest_cluster_size=max(sizes),
        )
