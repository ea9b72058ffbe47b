"""
Report tables derived from a pipeline result.

Builds the abundance matrix, per-location metrics, classification and
metrics tables, the dashboard-style filters and composition breakdown, and
the plain-text analysis report. Every function here is read-only over its
inputs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import date

import polars as pl

from ednaexplore.core.metrics import compute_metrics, join_records
from ednaexplore.core.novel_diversity import NovelDiversitySummary, summarize_clusters
from ednaexplore.core.preprocessing import REJECTION_LABELS, summarize_filtering
from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.metrics import AbundanceMatrix, BiodiversityMetrics, location_columns
from ednaexplore.models.records import ClassificationResult, SequenceRecord
from ednaexplore.models.results import PipelineResult

logger = logging.getLogger(__name__)

ABUNDANCE_MATRIX_FILE = "abundance-matrix.csv"
TAXONOMY_RESULTS_FILE = "taxonomy-results.csv"
BIODIVERSITY_METRICS_FILE = "biodiversity-metrics.csv"
PROCESSED_SEQUENCES_FILE = "processed-sequences.csv"
SUMMARY_REPORT_FILE = "edna-biodiversity-report.txt"

METRIC_ROWS = (
    "Species Richness",
    "Shannon Index",
    "Simpson Index",
    "Chao1 Estimator",
    "Total Sequences",
    "Total Reads",
)

CLASSIFICATION_COLUMNS = [
    "sequence_id",
    "predicted_taxon",
    "confidence",
    "cluster_id",
    "sample_location",
    "depth",
    "read_count",
]


def _locations(records: Sequence[SequenceRecord]) -> list[str]:
    return list(dict.fromkeys(r.sample_location for r in records))


def build_abundance_matrix(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
) -> AbundanceMatrix:
    """
    Build the taxon x location read-count matrix.

    Columns are the distinct sample locations of ``records`` in first-appearance
    order; rows are predicted taxa in first-appearance order among the
    classifications that matched a record. Missing cells are zero.
    """
    locations = _locations(records)
    joined = join_records(records, classifications)

    taxa = list(dict.fromkeys(joined["predicted_taxon"].to_list()))
    counts = {taxon: dict.fromkeys(locations, 0) for taxon in taxa}

    cells = joined.group_by(["predicted_taxon", "sample_location"]).agg(
        pl.col("read_count").sum()
    )
    for taxon, location, reads in cells.iter_rows():
        counts[taxon][location] = reads

    return AbundanceMatrix(taxa=tuple(taxa), locations=tuple(locations), counts=counts)


def build_location_metrics(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
) -> dict[str, BiodiversityMetrics]:
    """Recompute metrics independently for each sample location."""
    per_location = {}
    for location in _locations(records):
        subset = [r for r in records if r.sample_location == location]
        per_location[location] = compute_metrics(subset, classifications)
    return per_location


def build_classification_table(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
) -> pl.DataFrame:
    """
    One row per classification with the matching record's metadata.

    Record columns are null when no record matches; cluster_id is null for
    results that were not clustered.
    """
    return join_records(records, classifications, keep_unmatched=True).select(
        CLASSIFICATION_COLUMNS
    )


def _metric_values(metrics: BiodiversityMetrics) -> list[float]:
    return [
        float(metrics.species_richness),
        metrics.shannon_index,
        metrics.simpson_index,
        metrics.chao1_estimator,
        float(metrics.total_sequences),
        float(metrics.total_reads),
    ]


def build_metrics_table(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
    metrics: BiodiversityMetrics | None = None,
    index_decimals: int = 3,
    chao1_decimals: int = 1,
) -> pl.DataFrame:
    """
    Build the metrics report with an overall column and one per location.

    Args:
        records: Quality-filtered records
        classifications: Results for those records
        metrics: Precomputed overall metrics (recomputed when omitted)
        index_decimals: Decimals for Shannon and Simpson
        chao1_decimals: Decimals for Chao1

    Returns:
        DataFrame with columns ``metric``, ``overall`` and one per location.
        Locations named ``metric`` or ``overall`` get a suffixed column name.
    """
    overall = metrics or compute_metrics(records, classifications)
    per_location = build_location_metrics(records, classifications)
    names = location_columns(list(per_location), reserved=("metric", "overall"))
    columns: dict[str, BiodiversityMetrics] = {"overall": overall}
    for location, values in per_location.items():
        columns[names[location]] = values

    data: dict[str, list] = {"metric": list(METRIC_ROWS)}
    schema: dict[str, pl.DataType] = {"metric": pl.Utf8}
    for name, values in columns.items():
        data[name] = _metric_values(values.rounded(index_decimals, chao1_decimals))
        schema[name] = pl.Float64
    return pl.DataFrame(data, schema=schema)


def build_sequence_table(records: Sequence[SequenceRecord]) -> pl.DataFrame:
    """Processed sequences export."""
    return pl.DataFrame(
        [r.to_dict() for r in records],
        schema={
            "sequence_id": pl.Utf8,
            "raw_sequence": pl.Utf8,
            "read_count": pl.Int64,
            "sample_location": pl.Utf8,
            "depth": pl.Float64,
        },
    )


def filter_records(
    records: Sequence[SequenceRecord],
    location: str | None = None,
    depth_range: tuple[float, float] | None = None,
) -> list[SequenceRecord]:
    """
    Subset records by sample location and/or depth.

    ``depth_range`` is half-open: ``min <= depth < max``.
    """
    selected = list(records)
    if location is not None:
        selected = [r for r in selected if r.sample_location == location]
    if depth_range is not None:
        low, high = depth_range
        selected = [r for r in selected if low <= r.depth < high]
    return selected


def depth_ranges(
    records: Sequence[SequenceRecord],
    bin_size: float = 10.0,
) -> list[tuple[float, float]]:
    """
    Fixed-width depth bins from 0 up to the deepest record.

    The last bin is capped at the maximum depth. Because filter_records treats
    a range as half-open, records at exactly the maximum depth fall outside
    every bin (the bundled sample's 25.0 m row is one); depth_distribution
    closes the last bin to count them. No bins are produced when every record
    is at the surface.
    """
    if bin_size <= 0:
        msg = f"bin_size must be positive, got {bin_size}"
        raise ValueError(msg)
    if not records:
        return []
    max_depth = max(r.depth for r in records)
    n_bins = math.ceil(max_depth / bin_size)
    return [
        (i * bin_size, min((i + 1) * bin_size, max_depth))
        for i in range(n_bins)
    ]


def depth_distribution(
    records: Sequence[SequenceRecord],
    bin_size: float = 10.0,
) -> pl.DataFrame:
    """
    Sequences and reads per depth bin.

    Bins come from depth_ranges and are half-open, except the last one, which
    also holds the records at the maximum depth.

    Returns:
        DataFrame with columns ``min_depth``, ``max_depth``, ``sequences`` and
        ``reads``, shallowest bin first.
    """
    bins = depth_ranges(records, bin_size)
    rows = []
    for i, (low, high) in enumerate(bins):
        subset = filter_records(records, depth_range=(low, high))
        if i == len(bins) - 1:
            subset += [r for r in records if r.depth == high]
        rows.append((low, high, len(subset), sum(r.read_count for r in subset)))
    return pl.DataFrame(
        rows,
        schema={
            "min_depth": pl.Float64,
            "max_depth": pl.Float64,
            "sequences": pl.Int64,
            "reads": pl.Int64,
        },
        orient="row",
    )


def taxonomic_composition(
    records: Sequence[SequenceRecord],
    classifications: Sequence[ClassificationResult],
    level: int = 1,
    top_n: int = 10,
) -> pl.DataFrame:
    """
    Reads per lineage rank, largest first.

    Args:
        records: Records to summarize (typically a filter_records subset)
        classifications: Results to look taxa up in
        level: Lineage rank (0 = domain, 1 = phylum, ...)
        top_n: Number of rows to keep

    Returns:
        DataFrame with columns ``taxon``, ``reads`` and ``percentage`` (of all
        reads in ``records``).
    """
    taxonomy: dict[str, ClassificationResult] = {}
    for result in classifications:
        taxonomy.setdefault(result.sequence_id, result)

    reads: dict[str, int] = {}
    for record in records:
        result = taxonomy.get(record.sequence_id)
        if result is not None:
            name = result.rank(level)
            reads[name] = reads.get(name, 0) + record.read_count

    total_reads = sum(r.read_count for r in records)
    df = pl.DataFrame(
        {"taxon": list(reads), "reads": list(reads.values())},
        schema={"taxon": pl.Utf8, "reads": pl.Int64},
    )
    return (
        df.with_columns((pl.col("reads") / max(total_reads, 1) * 100).alias("percentage"))
        .sort("reads", descending=True, maintain_order=True)
        .head(top_n)
    )


def build_export_tables(
    result: PipelineResult,
    config: PipelineConfig | None = None,
    include_sequences: bool = False,
) -> dict[str, pl.DataFrame]:
    """Map export file names to the tables written for a completed run."""
    config = config or PipelineConfig()
    records = result.records
    classifications = result.classifications

    tables = {
        ABUNDANCE_MATRIX_FILE: build_abundance_matrix(records, classifications).to_dataframe(),
        TAXONOMY_RESULTS_FILE: build_classification_table(records, classifications),
        BIODIVERSITY_METRICS_FILE: build_metrics_table(
            records,
            classifications,
            metrics=result.metrics,
            index_decimals=config.index_decimals,
            chao1_decimals=config.chao1_decimals,
        ),
    }
    if include_sequences:
        tables[PROCESSED_SEQUENCES_FILE] = build_sequence_table(records)
    return tables


def render_summary_report(
    result: PipelineResult,
    generated_on: date | None = None,
    config: PipelineConfig | None = None,
) -> str:
    """Render the plain-text biodiversity analysis report."""
    config = config or PipelineConfig()
    generated_on = generated_on or date.today()
    records = result.records
    metrics = result.metrics.rounded(config.index_decimals, config.chao1_decimals)
    total_reads = sum(r.read_count for r in records)
    filtering = summarize_filtering(result.original_records, config)

    lines = [
        "eDNA BIODIVERSITY ANALYSIS REPORT",
        "=================================",
        "",
        "Dataset Summary:",
        f"- Total sequences analyzed: {len(records)}",
        f"- Original sequences: {len(result.original_records)}",
        f"- Sequences after quality filtering: {len(records)}",
        f"- Sample locations: {len(_locations(records))}",
        f"- Total reads: {total_reads:,}",
        "",
        "Quality Filtering:",
        f"- Pass rate: {filtering.pass_rate:.1%}",
    ]
    for reason, count in filtering.rejected.items():
        lines.append(f"- {REJECTION_LABELS[reason]}: {count}")

    lines.append("")
    lines.append("Depth Distribution:")
    depths = depth_distribution(records, config.depth_bin_size)
    if depths.is_empty():
        lines.append("- All sequences at the surface")
    for low, high, sequences, reads in depths.iter_rows():
        lines.append(f"- {low:.1f}-{high:.1f} m: {sequences} sequences, {reads:,} reads")

    lines += [
        "",
        "Biodiversity Metrics:",
        f"- Species Richness: {metrics.species_richness}",
        f"- Shannon Diversity Index: {metrics.shannon_index}",
        f"- Simpson Dominance Index: {metrics.simpson_index}",
        f"- Chao1 Richness Estimator: {metrics.chao1_estimator}",
        "",
        "Taxonomic Composition:",
    ]

    composition = taxonomic_composition(
        records,
        result.classifications,
        level=config.composition_level,
        top_n=config.composition_top_n,
    )
    if composition.is_empty():
        lines.append("- No classified sequences")
    for taxon, reads, percentage in composition.iter_rows():
        lines.append(f"- {taxon}: {reads:,} reads ({percentage:.1f}%)")

    clusters = summarize_clusters(records, result.classifications)
    novel = NovelDiversitySummary.from_clusters(clusters)
    lines += [
        "",
        "Novel Taxa Clusters:",
        f"- Number of clusters identified: {result.cluster_count}",
        f"- Sequences in clusters: {len(result.clustered_results)}",
        f"- Reads in clusters: {novel.clustered_reads:,}",
        f"- Mean cluster size: {novel.mean_cluster_size:.1f}",
        f"- Largest cluster: {novel.largest_cluster_size} sequences",
    ]
    for cluster in clusters:
        summary = cluster.to_summary_dict()
        lines.append(
            f"- {summary['cluster_id']}: {summary['sequence_count']} sequences, "
            f"{summary['total_reads']:,} reads, mean confidence "
            f"{summary['avg_confidence']:.3f} ({summary['locations']})"
        )

    lines += [
        "",
        f"This report was generated on {generated_on.isoformat()} "
        "using the eDNA Analysis Pipeline.",
        "",
    ]
    logger.debug(f"Rendered summary report for {len(records):,} sequences")
    return "\n".join(lines)
