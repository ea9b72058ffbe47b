"""
Unit tests for report tables and the text summary.

Tests the abundance matrix, per-location metrics, classification and metrics
tables, the dashboard filters and the rendered analysis report.
"""

from __future__ import annotations

import math
from datetime import date

import polars as pl
import pytest

from ednaexplore.core.metrics import compute_metrics
from ednaexplore.core.reporting import (
    ABUNDANCE_MATRIX_FILE,
    BIODIVERSITY_METRICS_FILE,
    CLASSIFICATION_COLUMNS,
    METRIC_ROWS,
    PROCESSED_SEQUENCES_FILE,
    TAXONOMY_RESULTS_FILE,
    build_abundance_matrix,
    build_classification_table,
    build_export_tables,
    build_location_metrics,
    build_metrics_table,
    build_sequence_table,
    depth_distribution,
    depth_ranges,
    filter_records,
    render_summary_report,
    taxonomic_composition,
)
from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.metrics import BiodiversityMetrics
from ednaexplore.models.results import PipelineResult

PROTEO = "Bacteria;Proteobacteria;Gammaproteobacteria"
BACTEROIDETES = "Bacteria;Bacteroidetes;Flavobacteriia"


@pytest.fixture
def clustered_result(two_site_records, two_site_results) -> PipelineResult:
    """Completed run over two_site_records with S2 in cluster 1."""
    results = [
        r.with_cluster(1) if r.sequence_id == "S2" else r for r in two_site_results
    ]
    return PipelineResult(
        original_records=tuple(two_site_records),
        preprocessed_records=tuple(two_site_records),
        classification_results=tuple(results),
        biodiversity_metrics=compute_metrics(two_site_records, results),
    )


# =============================================================================
# Abundance Matrix
# =============================================================================


class TestBuildAbundanceMatrix:
    """Tests for the taxon x location matrix."""

    def test_axes_in_first_appearance_order(self, two_site_records, two_site_results):
        matrix = build_abundance_matrix(two_site_records, two_site_results)
        assert matrix.taxa == (PROTEO, BACTEROIDETES)
        assert matrix.locations == ("Site_A", "Site_B")

    def test_cells(self, two_site_records, two_site_results):
        matrix = build_abundance_matrix(two_site_records, two_site_results)
        assert matrix.counts == {
            PROTEO: {"Site_A": 10, "Site_B": 30},
            BACTEROIDETES: {"Site_A": 10, "Site_B": 50},
        }

    def test_missing_cells_are_zero(self, two_site_records, make_result):
        results = [make_result("S1", "Only;Here")]
        matrix = build_abundance_matrix(two_site_records, results)
        assert matrix.get("Only;Here", "Site_B") == 0

    def test_totals_match_reads(self, two_site_records, two_site_results):
        """Column totals equal the classified reads at each location."""
        matrix = build_abundance_matrix(two_site_records, two_site_results)
        assert matrix.column_total("Site_A") == 20
        assert matrix.column_total("Site_B") == 80
        assert sum(matrix.row_total(t) for t in matrix.taxa) == 100

    def test_to_dataframe(self, two_site_records, two_site_results):
        df = build_abundance_matrix(two_site_records, two_site_results).to_dataframe()
        assert df.columns == ["Taxon", "Site_A", "Site_B"]
        assert df.row(1) == (BACTEROIDETES, 10, 50)

    def test_empty(self):
        matrix = build_abundance_matrix([], [])
        assert matrix.taxa == ()
        assert matrix.to_rows() == []


# =============================================================================
# Metric Tables
# =============================================================================


class TestBuildLocationMetrics:
    """Tests for per-location recomputation."""

    def test_each_location_independent(self, two_site_records, two_site_results):
        per_location = build_location_metrics(two_site_records, two_site_results)

        assert list(per_location) == ["Site_A", "Site_B"]
        site_a = per_location["Site_A"]
        assert site_a.species_richness == 2
        assert site_a.shannon_index == pytest.approx(math.log(2))
        assert site_a.simpson_index == pytest.approx(0.5)
        assert site_a.total_reads == 20
        assert per_location["Site_B"].simpson_index == pytest.approx(0.375**2 + 0.625**2)


class TestBuildMetricsTable:
    """Tests for the metrics report table."""

    def test_layout(self, two_site_records, two_site_results):
        df = build_metrics_table(two_site_records, two_site_results)

        assert df.columns == ["metric", "overall", "Site_A", "Site_B"]
        assert df["metric"].to_list() == list(METRIC_ROWS)
        assert df.schema["overall"] == pl.Float64

    def test_values_rounded(self, two_site_records, two_site_results):
        df = build_metrics_table(two_site_records, two_site_results)
        overall = dict(zip(df["metric"].to_list(), df["overall"].to_list(), strict=True))

        assert overall["Species Richness"] == 2.0
        assert overall["Shannon Index"] == 0.673
        assert overall["Simpson Index"] == 0.52
        assert overall["Total Reads"] == 100.0

    def test_custom_precision(self, two_site_records, two_site_results):
        df = build_metrics_table(two_site_records, two_site_results, index_decimals=1)
        assert df.filter(pl.col("metric") == "Shannon Index")["overall"][0] == 0.7

    def test_precomputed_metrics_used(self, two_site_records, two_site_results):
        metrics = compute_metrics(two_site_records[:1], two_site_results)
        df = build_metrics_table(two_site_records, two_site_results, metrics=metrics)
        assert df.filter(pl.col("metric") == "Total Reads")["overall"][0] == 10.0

    def test_location_named_like_fixed_column(self, make_record, make_result):
        """A location called 'overall' keeps the whole-run column intact."""
        records = [
            make_record("A1", read_count=10, sample_location="overall"),
            make_record("B1", read_count=20, sample_location="Site"),
        ]
        results = [make_result("A1", PROTEO), make_result("B1", BACTEROIDETES)]

        df = build_metrics_table(records, results)

        assert df.columns == ["metric", "overall", "overall (location)", "Site"]
        overall = dict(zip(df["metric"].to_list(), df["overall"].to_list(), strict=True))
        assert overall["Species Richness"] == 2.0
        assert overall["Total Reads"] == 30.0
        location = df.filter(pl.col("metric") == "Total Reads")["overall (location)"][0]
        assert location == 10.0

    def test_location_named_metric(self, make_record, make_result):
        records = [make_record("A1", sample_location="metric")]
        df = build_metrics_table(records, [make_result("A1")])

        assert df.columns == ["metric", "overall", "metric (location)"]
        assert df["metric"].to_list() == list(METRIC_ROWS)


class TestBuildClassificationTable:
    """Tests for the taxonomy results table."""

    def test_columns_and_values(self, two_site_records, two_site_results):
        df = build_classification_table(two_site_records, two_site_results)

        assert df.columns == CLASSIFICATION_COLUMNS
        assert df.height == 4
        assert df.row(3) == ("S4", BACTEROIDETES, 0.95, None, "Site_B", 32.0, 50)

    def test_unmatched_rows_kept_with_nulls(self, two_site_records, make_result):
        df = build_classification_table(two_site_records, [make_result("GHOST")])
        assert df.row(0) == ("GHOST", PROTEO, 0.9, None, None, None, None)


class TestBuildSequenceTable:
    """Tests for the processed sequence export."""

    def test_rows(self, two_site_records):
        df = build_sequence_table(two_site_records)
        assert df.height == 4
        assert df["read_count"].sum() == 100

    def test_empty_has_schema(self):
        df = build_sequence_table([])
        assert df.height == 0
        assert df.schema["depth"] == pl.Float64


# =============================================================================
# Dashboard Helpers
# =============================================================================


class TestFilterRecords:
    """Tests for location and depth subsetting."""

    def test_no_filters(self, two_site_records):
        assert filter_records(two_site_records) == two_site_records

    def test_by_location(self, two_site_records):
        selected = filter_records(two_site_records, location="Site_B")
        assert [r.sequence_id for r in selected] == ["S3", "S4"]

    def test_depth_range_half_open(self, two_site_records):
        selected = filter_records(two_site_records, depth_range=(15.0, 32.0))
        assert [r.sequence_id for r in selected] == ["S2", "S3"]

    def test_combined(self, two_site_records):
        selected = filter_records(two_site_records, "Site_A", (0.0, 10.0))
        assert [r.sequence_id for r in selected] == ["S1"]

    def test_unknown_location(self, two_site_records):
        assert filter_records(two_site_records, location="Nowhere") == []


class TestDepthRanges:
    """Tests for depth bins."""

    def test_last_bin_capped(self, two_site_records):
        assert depth_ranges(two_site_records) == [
            (0.0, 10.0),
            (10.0, 20.0),
            (20.0, 30.0),
            (30.0, 32.0),
        ]

    def test_exact_multiple(self, make_record):
        assert depth_ranges([make_record(depth=20.0)]) == [(0.0, 10.0), (10.0, 20.0)]

    def test_max_depth_outside_half_open_bins(self, make_record):
        """The deepest record matches no bin through filter_records."""
        records = [make_record("SEQ001", depth=10.5), make_record("SEQ003", depth=25.0)]
        binned = [
            r.sequence_id
            for low, high in depth_ranges(records)
            for r in filter_records(records, depth_range=(low, high))
        ]
        assert binned == ["SEQ001"]

    def test_surface_only(self, make_record):
        assert depth_ranges([make_record(depth=0.0)]) == []

    def test_empty(self):
        assert depth_ranges([]) == []

    def test_invalid_bin_size(self, two_site_records):
        with pytest.raises(ValueError, match="bin_size"):
            depth_ranges(two_site_records, bin_size=0)


class TestDepthDistribution:
    """Tests for sequences and reads per depth bin."""

    def test_counts_per_bin(self, two_site_records):
        df = depth_distribution(two_site_records)

        assert df.columns == ["min_depth", "max_depth", "sequences", "reads"]
        assert df.rows() == [
            (0.0, 10.0, 1, 10),
            (10.0, 20.0, 1, 10),
            (20.0, 30.0, 1, 30),
            (30.0, 32.0, 1, 50),
        ]

    def test_deepest_record_counted(self, make_record):
        """Records at exactly the maximum depth land in the last bin."""
        records = [
            make_record("SEQ001", read_count=150, depth=10.5),
            make_record("SEQ002", read_count=230, depth=10.5),
            make_record("SEQ003", read_count=89, depth=25.0),
        ]

        df = depth_distribution(records)

        assert df.rows() == [
            (0.0, 10.0, 0, 0),
            (10.0, 20.0, 2, 380),
            (20.0, 25.0, 1, 89),
        ]
        assert df["sequences"].sum() == len(records)

    def test_bin_size(self, two_site_records):
        df = depth_distribution(two_site_records, bin_size=20.0)
        assert df.rows() == [(0.0, 20.0, 2, 20), (20.0, 32.0, 2, 80)]

    def test_surface_only(self, make_record):
        df = depth_distribution([make_record(depth=0.0)])
        assert df.is_empty()
        assert df.columns == ["min_depth", "max_depth", "sequences", "reads"]


class TestTaxonomicComposition:
    """Tests for the composition breakdown."""

    def test_phylum_level(self, two_site_records, two_site_results):
        df = taxonomic_composition(two_site_records, two_site_results)

        assert df["taxon"].to_list() == ["Bacteroidetes", "Proteobacteria"]
        assert df["reads"].to_list() == [60, 40]
        assert df["percentage"].to_list() == pytest.approx([60.0, 40.0])

    def test_domain_level(self, two_site_records, two_site_results):
        df = taxonomic_composition(two_site_records, two_site_results, level=0)
        assert df.rows() == [("Bacteria", 100, 100.0)]

    def test_missing_rank_is_unknown(self, two_site_records, make_result):
        df = taxonomic_composition(two_site_records[:1], [make_result("S1", "Bacteria")])
        assert df["taxon"].to_list() == ["Unknown"]

    def test_percentage_of_subset(self, two_site_records, two_site_results):
        """Percentages are relative to all reads in the record subset."""
        subset = filter_records(two_site_records, location="Site_B")
        df = taxonomic_composition(subset, two_site_results[2:3])
        assert df.rows() == [("Proteobacteria", 30, 37.5)]

    def test_top_n(self, two_site_records, two_site_results):
        df = taxonomic_composition(two_site_records, two_site_results, top_n=1)
        assert df["taxon"].to_list() == ["Bacteroidetes"]

    def test_empty(self):
        df = taxonomic_composition([], [])
        assert df.is_empty()
        assert df.columns == ["taxon", "reads", "percentage"]


# =============================================================================
# Exports and Report
# =============================================================================


class TestBuildExportTables:
    """Tests for the export file map."""

    def test_default_tables(self, clustered_result):
        tables = build_export_tables(clustered_result)
        assert set(tables) == {
            ABUNDANCE_MATRIX_FILE,
            TAXONOMY_RESULTS_FILE,
            BIODIVERSITY_METRICS_FILE,
        }
        assert tables[TAXONOMY_RESULTS_FILE]["cluster_id"].to_list() == [None, 1, None, None]

    def test_include_sequences(self, clustered_result):
        tables = build_export_tables(clustered_result, include_sequences=True)
        assert tables[PROCESSED_SEQUENCES_FILE].height == 4

    def test_precision_from_config(self, clustered_result):
        config = PipelineConfig(index_decimals=1)
        metrics = build_export_tables(clustered_result, config)[BIODIVERSITY_METRICS_FILE]
        assert metrics.filter(pl.col("metric") == "Simpson Index")["overall"][0] == 0.5


class TestRenderSummaryReport:
    """Tests for the plain-text report."""

    @pytest.fixture
    def report(self, clustered_result) -> str:
        return render_summary_report(clustered_result, generated_on=date(2024, 5, 1))

    def test_sections(self, report):
        assert report.startswith("eDNA BIODIVERSITY ANALYSIS REPORT\n")
        for header in (
            "Dataset Summary:",
            "Biodiversity Metrics:",
            "Taxonomic Composition:",
            "Novel Taxa Clusters:",
        ):
            assert header in report

    def test_dataset_summary(self, report):
        assert "- Total sequences analyzed: 4" in report
        assert "- Sample locations: 2" in report
        assert "- Total reads: 100" in report

    def test_metrics_rounded(self, report):
        assert "- Species Richness: 2" in report
        assert "- Shannon Diversity Index: 0.673" in report
        assert "- Simpson Dominance Index: 0.52" in report
        assert "- Chao1 Richness Estimator: 2.0" in report

    def test_composition(self, report):
        assert "- Bacteroidetes: 60 reads (60.0%)" in report
        assert "- Proteobacteria: 40 reads (40.0%)" in report

    def test_clusters(self, report):
        assert "- Number of clusters identified: 1" in report
        assert "- Sequences in clusters: 1" in report
        assert "- Cluster 1: 1 sequences, 10 reads, mean confidence 0.650 (Site_A)" in report

    def test_quality_filtering(self, report):
        assert "Quality Filtering:" in report
        assert "- Pass rate: 100.0%" in report
        assert "- Too short: 0" in report
        assert "- Low read count: 0" in report

    def test_quality_filtering_counts_rejections(self, two_site_records, make_record):
        """Rejected input records are counted by reason."""
        result = PipelineResult(
            original_records=(
                *two_site_records,
                make_record("SHORT", raw_sequence="ATCG"),
                make_record("FEW", read_count=2),
            ),
            preprocessed_records=tuple(two_site_records),
            biodiversity_metrics=BiodiversityMetrics.empty(),
        )

        report = render_summary_report(result)

        assert "- Pass rate: 66.7%" in report
        assert "- Too short: 1" in report
        assert "- Low read count: 1" in report
        assert "- Too long: 0" in report

    def test_depth_distribution(self, report):
        assert "Depth Distribution:" in report
        assert "- 0.0-10.0 m: 1 sequences, 10 reads" in report
        assert "- 30.0-32.0 m: 1 sequences, 50 reads" in report

    def test_depth_bin_size_from_config(self, clustered_result):
        report = render_summary_report(
            clustered_result,
            generated_on=date(2024, 5, 1),
            config=PipelineConfig(depth_bin_size=20.0),
        )

        assert "- 0.0-20.0 m: 2 sequences, 20 reads" in report
        assert "- 20.0-32.0 m: 2 sequences, 80 reads" in report
        assert "- 0.0-10.0 m" not in report

    def test_surface_only_depths(self, make_record, make_result):
        record = make_record("S1", depth=0.0)
        result = PipelineResult(
            original_records=(record,),
            preprocessed_records=(record,),
            classification_results=(make_result("S1"),),
            biodiversity_metrics=compute_metrics([record], [make_result("S1")]),
        )
        assert "- All sequences at the surface" in render_summary_report(result)

    def test_cluster_totals(self, report):
        assert "- Reads in clusters: 10" in report
        assert "- Mean cluster size: 1.0" in report
        assert "- Largest cluster: 1 sequences" in report

    def test_footer_date(self, report):
        assert report.rstrip().endswith(
            "This report was generated on 2024-05-01 using the eDNA Analysis Pipeline."
        )
