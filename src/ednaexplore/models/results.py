"""
Result bundle returned by a completed pipeline run.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from ednaexplore.models.metrics import BiodiversityMetrics
from ednaexplore.models.records import ClassificationResult, SequenceRecord


class PipelineResult(BaseModel):
    """
    Immutable output of one pipeline run.

    Downstream consumers (report builder, exporters) read from this bundle and
    never modify it.

    Attributes:
        original_records: Validated records handed to the pipeline
        preprocessed_records: Records that passed quality filtering
        classification_results: One result per preprocessed record, clustered
        biodiversity_metrics: Unrounded statistics over the whole run
    """

    original_records: tuple[SequenceRecord, ...] = Field(default=())
    preprocessed_records: tuple[SequenceRecord, ...] = Field(default=())
    classification_results: tuple[ClassificationResult, ...] = Field(default=())
    biodiversity_metrics: BiodiversityMetrics

    model_config = {"frozen": True}

    @property
    def records(self) -> tuple[SequenceRecord, ...]:
        """Quality-filtered records (output boundary name)."""
        return self.preprocessed_records

    @property
    def classifications(self) -> tuple[ClassificationResult, ...]:
        """Classification results (output boundary name)."""
        return self.classification_results

    @property
    def metrics(self) -> BiodiversityMetrics:
        """Biodiversity metrics (output boundary name)."""
        return self.biodiversity_metrics

    @property
    def clustered_results(self) -> tuple[ClassificationResult, ...]:
        """Results routed into novel-taxon clusters."""
        return tuple(r for r in self.classification_results if r.cluster_id is not None)

    @computed_field
    @property
    def cluster_count(self) -> int:
        """Number of distinct novel-taxon clusters."""
        return len({r.cluster_id for r in self.clustered_results})

    @computed_field
    @property
    def filtered_out(self) -> int:
        """Records removed by quality filtering."""
        return len(self.original_records) - len(self.preprocessed_records)
