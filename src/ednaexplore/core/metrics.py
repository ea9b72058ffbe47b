"""
Biodiversity metrics over classified sequences.

Read counts are joined onto classifications by sequence_id and summed per
predicted taxon. The resulting abundance vector feeds species richness,
Shannon, Simpson and a simplified Chao1 estimate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np
import polars as pl

from ednaexplore.models.metrics import BiodiversityMetrics
from ednaexplore.models.records import ClassificationResult, SequenceRecord

logger = logging.getLogger(__name__)

RECORD_SCHEMA = {
    "sequence_id": pl.Utf8,
    "sample_location": pl.Utf8,
    "depth": pl.Float64,
    "read_count": pl.Int64,
}

CLASSIFICATION_SCHEMA = {
    "sequence_id": pl.Utf8,
    "predicted_taxon": pl.Utf8,
    "confidence": pl.Float64,
    "cluster_id": pl.Int64,
}


def records_frame(records: Sequence[SequenceRecord]) -> pl.DataFrame:
    """Record metadata as a DataFrame, one row per distinct sequence_id (first wins)."""
    df = pl.DataFrame(
        {
            "sequence_id": [r.sequence_id for r in records],
            "sample_location": [r.sample_location for r in records],
            "depth": [r.depth for r in records],
            "read_count": [r.read_count for r in records],
        },
        schema=RECORD_SCHEMA,
    )
    return df.unique(subset="sequence_id", keep="first", maintain_order=True)


def classifications_frame(classifications: Sequence[ClassificationResult]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "sequence_id": [c.sequence_id for c in classifications],
            "predicted_taxon": [c.predicted_taxon for c in classifications],
            "confidence": [c.confidence for c in classifications],
            "cluster_id": [c.cluster_id for c in classifications],
        },
        schema=CLASSIFICATION_SCHEMA,
    )


def join_records(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
    keep_unmatched: bool = False,
) -> pl.DataFrame:
    """
    Join classifications to record metadata on sequence_id.

    Rows follow classification order. With ``keep_unmatched`` classifications
    without a record are kept with null metadata; otherwise they are dropped.
    """
    joined = (
        classifications_frame(classifications)
        .with_row_index("_order")
        .join(records_frame(records), on="sequence_id", how="left")
        .sort("_order")
        .drop("_order")
    )
    if not keep_unmatched:
        joined = joined.filter(pl.col("read_count").is_not_null())
    return joined


def _sum_by_taxon(joined: pl.DataFrame) -> dict[str, int]:
    grouped = joined.group_by("predicted_taxon", maintain_order=True).agg(
        pl.col("read_count").sum()
    )
    return dict(zip(grouped["predicted_taxon"].to_list(), grouped["read_count"].to_list()))


def taxon_abundances(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
) -> dict[str, int]:
    """Summed read counts per predicted taxon, in first-appearance order."""
    return _sum_by_taxon(join_records(records, classifications))


def diversity_from_abundances(
    abundances: Mapping[str, int],
    total_sequences: int = 0,
) -> BiodiversityMetrics:
    """
    Compute the four diversity statistics from per-taxon read counts.

    Args:
        abundances: taxon -> summed read count
        total_sequences: Number of sequences behind the counts (reported only)

    Returns:
        Unrounded BiodiversityMetrics. A zero total yields all-zero statistics.
    """
    counts = np.fromiter(abundances.values(), dtype=np.float64, count=len(abundances))
    total = float(counts.sum()) if counts.size else 0.0

    if total <= 0:
        return BiodiversityMetrics.empty().model_copy(
            update={"total_sequences": total_sequences}
        )

    richness = int(np.count_nonzero(counts))
    p = counts[counts > 0] / total

    # Floating error can push these a hair past their bounds
    shannon = max(0.0, float(-np.sum(p * np.log(p))))
    simpson = min(1.0, float(np.sum(p**2)))

    singletons = int(np.count_nonzero(counts == 1))
    doubletons = int(np.count_nonzero(counts == 2))
    chao1 = richness + singletons**2 / (2 * max(doubletons, 1))

    return BiodiversityMetrics(
        species_richness=richness,
        shannon_index=shannon,
        simpson_index=simpson,
        chao1_estimator=chao1,
        total_sequences=total_sequences,
        total_reads=int(total),
    )


def compute_metrics(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
) -> BiodiversityMetrics:
    """
    Compute biodiversity metrics for a set of classified sequences.

    Classifications whose sequence_id has no matching record contribute
    nothing. When several records share an id, the first one is used.

    Example:
        >>> metrics = compute_metrics(result.records, result.classifications)
        >>> metrics.rounded().shannon_index
        1.386
    """
    joined = join_records(records, classifications)
    metrics = diversity_from_abundances(_sum_by_taxon(joined), total_sequences=joined.height)

    logger.debug(
        f"Computed metrics over {joined.height:,} sequences: "
        f"S={metrics.species_richness}, H={metrics.shannon_index:.4f}, "
        f"D={metrics.simpson_index:.4f}, Chao1={metrics.chao1_estimator:.2f}"
    )
    return metrics
