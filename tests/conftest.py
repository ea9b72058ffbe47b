"""
Shared pytest fixtures for ednaexplore tests.

Provides reusable records, classifications, stub classifiers and
configuration objects for unit and end-to-end testing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.records import ClassificationResult, SequenceRecord
from tests.factories import EdnaRowFactory


# =============================================================================
# Raw Row Fixtures
# =============================================================================


@pytest.fixture
def valid_row() -> dict[str, Any]:
    """Single raw row that passes validation, as a CSV reader yields it."""
    return {
        "sequence_id": "SEQ001",
        "raw_sequence": "atcgatcgatcgatcg",
        "read_count": "150",
        "sample_location": "Marine_Site_A",
        "depth": "10.5",
    }


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    """The bundled three-row sample dataset."""
    return [
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


@pytest.fixture
def row_factory() -> EdnaRowFactory:
    """Seeded raw row factory."""
    return EdnaRowFactory(seed=42)


# =============================================================================
# Record and Classification Fixtures
# =============================================================================


@pytest.fixture
def make_record() -> Callable[..., SequenceRecord]:
    """Factory for SequenceRecord objects with sensible defaults."""

    def _make(
        sequence_id: str = "SEQ001",
        raw_sequence: str = "ATCGATCGATCG",
        read_count: int = 10,
        sample_location: str = "Site_A",
        depth: float = 5.0,
    ) -> SequenceRecord:
        return SequenceRecord(
            sequence_id=sequence_id,
            raw_sequence=raw_sequence,
            read_count=read_count,
            sample_location=sample_location,
            depth=depth,
        )

    return _make


@pytest.fixture
def make_result() -> Callable[..., ClassificationResult]:
    """Factory for ClassificationResult objects."""

    def _make(
        sequence_id: str = "SEQ001",
        predicted_taxon: str = "Bacteria;Proteobacteria;Gammaproteobacteria",
        confidence: float = 0.9,
        cluster_id: int | None = None,
    ) -> ClassificationResult:
        return ClassificationResult(
            sequence_id=sequence_id,
            predicted_taxon=predicted_taxon,
            confidence=confidence,
            cluster_id=cluster_id,
        )

    return _make


@pytest.fixture
def two_site_records(make_record) -> list[SequenceRecord]:
    """Four records over two sites with known read counts."""
    return [
        make_record("S1", read_count=10, sample_location="Site_A", depth=5.0),
        make_record("S2", read_count=10, sample_location="Site_A", depth=15.0),
        make_record("S3", read_count=30, sample_location="Site_B", depth=25.0),
        make_record("S4", read_count=50, sample_location="Site_B", depth=32.0),
    ]


@pytest.fixture
def two_site_results(make_result) -> list[ClassificationResult]:
    """Classifications for two_site_records: two taxa, one low-confidence."""
    return [
        make_result("S1", "Bacteria;Proteobacteria;Gammaproteobacteria", 0.9),
        make_result("S2", "Bacteria;Bacteroidetes;Flavobacteriia", 0.65),
        make_result("S3", "Bacteria;Proteobacteria;Gammaproteobacteria", 0.8),
        make_result("S4", "Bacteria;Bacteroidetes;Flavobacteriia", 0.95),
    ]


class FixedClassifier:
    """Classifier stub returning preset confidences keyed by sequence_id."""

    def __init__(
        self,
        confidences: dict[str, float],
        taxon: str = "Bacteria;Proteobacteria;Gammaproteobacteria",
        default: float = 0.9,
    ):
        self.confidences = confidences
        self.taxon = taxon
        self.default = default
        self.calls: list[str] = []

    def classify(self, record: SequenceRecord) -> ClassificationResult:
        self.calls.append(record.sequence_id)
        return ClassificationResult(
            sequence_id=record.sequence_id,
            predicted_taxon=self.taxon,
            confidence=self.confidences.get(record.sequence_id, self.default),
        )


@pytest.fixture
def fixed_classifier() -> Callable[..., FixedClassifier]:
    """Factory for FixedClassifier stubs."""
    return FixedClassifier


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def default_config() -> PipelineConfig:
    """Default pipeline configuration."""
    return PipelineConfig()


@pytest.fixture
def lenient_config() -> PipelineConfig:
    """Configuration that lets short, low-read test records through."""
    return PipelineConfig(min_sequence_length=1, min_read_count=1)
