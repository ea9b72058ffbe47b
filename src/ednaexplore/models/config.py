"""
Pydantic configuration models for ednaexplore.

These models define the quality-filter thresholds, the clustering cut-off and
the reporting precision used by the analysis pipeline. Configuration can be
loaded from YAML files or built from CLI arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)


class PipelineConfig(BaseModel):
    """
    Configuration for the eDNA analysis pipeline.

    Quality filtering:
        - Sequences shorter than min_sequence_length or longer than
          max_sequence_length bases are discarded.
        - Sequences supported by fewer than min_read_count reads are discarded.

    Clustering:
        - Classifications with confidence strictly below confidence_threshold
          are grouped into candidate novel-taxon clusters.
        - "round-robin" spreads them over n_clusters groups in input order;
          "lineage" groups them by predicted taxon.

    Reporting:
        - Shannon and Simpson indices are rounded to index_decimals, Chao1 to
          chao1_decimals, only when tables and summaries are produced.
    """

    # Quality filters
    min_sequence_length: int = Field(
        default=10,
        ge=1,
        description="Minimum sequence length in bases (inclusive)",
    )
    max_sequence_length: int = Field(
        default=500,
        ge=1,
        description="Maximum sequence length in bases (inclusive)",
    )
    min_read_count: int = Field(
        default=5,
        ge=1,
        description="Minimum read count for a sequence to pass filtering",
    )

    # Validation
    max_reported_errors: int = Field(
        default=10,
        ge=1,
        description="Maximum number of row-level validation errors reported",
    )

    # Classification
    num_workers: int = Field(
        default=1,
        ge=1,
        description="Worker threads for per-record classification",
    )

    # Clustering
    confidence_threshold: float = Field(
        default=0.7,
        ge=0,
        le=1,
        description="Classifications below this confidence are clustered",
    )
    clustering_mode: Literal["round-robin", "lineage"] = Field(
        default="round-robin",
        description="Grouping strategy for low-confidence classifications",
    )
    n_clusters: int = Field(
        default=3,
        ge=1,
        description="Number of round-robin groups",
    )

    # Reporting
    index_decimals: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Decimal places for Shannon and Simpson indices",
    )
    chao1_decimals: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Decimal places for the Chao1 estimator",
    )
    depth_bin_size: float = Field(
        default=10.0,
        gt=0,
        description="Width in meters of depth ranges used for filtering",
    )
    composition_level: int = Field(
        default=1,
        ge=0,
        description="Lineage rank used for taxonomic composition (1 = phylum)",
    )
    composition_top_n: int = Field(
        default=10,
        ge=1,
        description="Number of taxa listed in the composition summary",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_length_bounds(self) -> Self:
        """Length window must not be inverted."""
        if self.min_sequence_length > self.max_sequence_length:
            msg = (
                f"min_sequence_length ({self.min_sequence_length}) must be <= "
                f"max_sequence_length ({self.max_sequence_length})"
            )
            raise ValueError(msg)
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> PipelineConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to a YAML file using the nested layout written by
                to_yaml (filters / validation / classification / clustering /
                reporting sections). Missing keys fall back to defaults.

        Returns:
            PipelineConfig instance.
        """
        import yaml

        raw = yaml.safe_load(path.read_text()) or {}
        if not isinstance(raw, dict):
            msg = f"Configuration file must contain a mapping: {path}"
            raise ValueError(msg)
        flat = _flatten_yaml_config(raw)
        logger.debug("Loaded configuration from %s: %s", path, flat)
        return cls(**flat)

    def to_yaml(self, path: Path) -> None:
        """Write configuration to a YAML file."""
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """Serialize configuration to the nested YAML layout."""
        import yaml

        data = _build_yaml_structure(self)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)


def _flatten_yaml_config(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten nested YAML config structure into PipelineConfig keyword arguments.

    Maps the documented nested YAML structure:
        filters.min_length -> min_sequence_length
        clustering.confidence_threshold -> confidence_threshold
        reporting.index_decimals -> index_decimals
    """
    flat: dict[str, Any] = {}

    filters = raw.get("filters", {})
    _map_if_present(filters, "min_length", flat, "min_sequence_length")
    _map_if_present(filters, "max_length", flat, "max_sequence_length")
    _map_if_present(filters, "min_read_count", flat, "min_read_count")

    validation = raw.get("validation", {})
    _map_if_present(validation, "max_reported_errors", flat, "max_reported_errors")

    classification = raw.get("classification", {})
    _map_if_present(classification, "num_workers", flat, "num_workers")

    clustering = raw.get("clustering", {})
    _map_if_present(clustering, "confidence_threshold", flat, "confidence_threshold")
    _map_if_present(clustering, "mode", flat, "clustering_mode")
    _map_if_present(clustering, "n_clusters", flat, "n_clusters")

    reporting = raw.get("reporting", {})
    _map_if_present(reporting, "index_decimals", flat, "index_decimals")
    _map_if_present(reporting, "chao1_decimals", flat, "chao1_decimals")
    _map_if_present(reporting, "depth_bin_size", flat, "depth_bin_size")
    _map_if_present(reporting, "composition_level", flat, "composition_level")
    _map_if_present(reporting, "composition_top_n", flat, "composition_top_n")

    return flat


def _map_if_present(
    source: dict[str, Any],
    source_key: str,
    target: dict[str, Any],
    target_key: str,
) -> None:
    """Copy value from source dict to target dict if key exists."""
    if source_key in source and source[source_key] is not None:
        target[target_key] = source[source_key]


def _build_yaml_structure(config: PipelineConfig) -> dict[str, Any]:
    """Build nested YAML dict from a PipelineConfig instance."""
    return {
        "filters": {
            "min_length": config.min_sequence_length,
            "max_length": config.max_sequence_length,
            "min_read_count": config.min_read_count,
        },
        "validation": {
            "max_reported_errors": config.max_reported_errors,
        },
        "classification": {
            "num_workers": config.num_workers,
        },
        "clustering": {
            "confidence_threshold": config.confidence_threshold,
            "mode": config.clustering_mode,
            "n_clusters": config.n_clusters,
        },
        "reporting": {
            "index_decimals": config.index_decimals,
            "chao1_decimals": config.chao1_decimals,
            "depth_bin_size": config.depth_bin_size,
            "composition_level": config.composition_level,
            "composition_top_n": config.composition_top_n,
        },
    }
