"""
Pipeline orchestration: preprocess, classify, cluster, compute metrics.

The orchestrator owns a small forward-only state machine and turns each
stage's completed fraction into ProgressEvent objects for an injected
listener. Each run's state lives on its orchestrator instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import Enum
from typing import Any

from ednaexplore.core.classification import Classifier, HashLineageClassifier, classify_records
from ednaexplore.core.exceptions import EmptyInputError, EmptyResultError, PipelineStateError
from ednaexplore.core.metrics import compute_metrics
from ednaexplore.core.novel_diversity import (
    ClusterAssigner,
    GroupingStrategy,
    LineageGrouping,
    RoundRobinGrouping,
)
from ednaexplore.core.preprocessing import preprocess
from ednaexplore.core.progress import ProgressEvent, StageProgress
from ednaexplore.core.validation import validate
from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.records import SequenceRecord
from ednaexplore.models.results import PipelineResult

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Lifecycle stages of a pipeline run, in order."""

    IDLE = "idle"
    PREPROCESSING = "preprocessing"
    CLASSIFYING = "classifying"
    CLUSTERING = "clustering"
    COMPUTING_METRICS = "computing_metrics"
    COMPLETE = "complete"
    FAILED = "failed"


_ORDER = [
    PipelineStage.IDLE,
    PipelineStage.PREPROCESSING,
    PipelineStage.CLASSIFYING,
    PipelineStage.CLUSTERING,
    PipelineStage.COMPUTING_METRICS,
    PipelineStage.COMPLETE,
]

WORKING_STAGES = (
    PipelineStage.PREPROCESSING,
    PipelineStage.CLASSIFYING,
    PipelineStage.CLUSTERING,
    PipelineStage.COMPUTING_METRICS,
)

TERMINAL_STAGES = (PipelineStage.COMPLETE, PipelineStage.FAILED)


def make_grouping(config: PipelineConfig) -> GroupingStrategy:
    """Grouping strategy selected by ``config.clustering_mode``."""
    if config.clustering_mode == "lineage":
        return LineageGrouping()
    return RoundRobinGrouping(n_groups=config.n_clusters)


class PipelineOrchestrator:
    """
    Runs validated records through the analysis stages.

    One orchestrator runs once; call reset() before running it again.

    Example:
        >>> events = []
        >>> orchestrator = PipelineOrchestrator(progress_callback=events.append)
        >>> result = orchestrator.run(records)
        >>> orchestrator.stage, events[-1].overall_progress
        (<PipelineStage.COMPLETE: 'complete'>, 100.0)
    """

    def __init__(
        self,
        classifier: Classifier | None = None,
        grouping: GroupingStrategy | None = None,
        config: PipelineConfig | None = None,
        progress_callback: Callable[[ProgressEvent], None] | None = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.classifier = classifier or HashLineageClassifier()
        self.grouping = grouping or make_grouping(self.config)
        self.progress_callback = progress_callback
        self.reset()

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    @property
    def overall_progress(self) -> float:
        """Mean progress of the working stages, in percent."""
        return sum(p.value for p in self._progress.values()) / len(self._progress)

    def reset(self) -> None:
        """Return to IDLE with all progress cleared."""
        self._stage = PipelineStage.IDLE
        self.failure_reason: str | None = None
        self._progress = {stage: StageProgress() for stage in WORKING_STAGES}

    def _transition(self, target: PipelineStage) -> None:
        current = self._stage
        if target == PipelineStage.FAILED:
            allowed = current not in TERMINAL_STAGES
        else:
            allowed = (
                current not in TERMINAL_STAGES
                and _ORDER.index(target) > _ORDER.index(current)
            )
        if not allowed:
            raise PipelineStateError(current.value, target.value)
        logger.debug(f"Pipeline stage {current.value} -> {target.value}")
        self._stage = target

    def _emit(self, stage: PipelineStage) -> None:
        if self.progress_callback is not None:
            self.progress_callback(
                ProgressEvent(
                    stage=stage.value,
                    stage_progress=self._progress[stage].value,
                    overall_progress=self.overall_progress,
                )
            )

    def _stage_reporter(self, stage: PipelineStage) -> Callable[[float], None]:
        def update(fraction: float) -> None:
            if self._progress[stage].update(fraction * 100.0):
                self._emit(stage)

        return update

    def _begin(self, stage: PipelineStage) -> Callable[[float], None]:
        self._transition(stage)
        self._emit(stage)
        return self._stage_reporter(stage)

    def _finish(self, stage: PipelineStage) -> None:
        if self._progress[stage].complete():
            self._emit(stage)

    def _fail(self, reason: str) -> None:
        self.failure_reason = reason
        self._transition(PipelineStage.FAILED)
        logger.warning(f"Pipeline failed: {reason}")

    def run(self, records: Sequence[SequenceRecord]) -> PipelineResult:
        """
        Run all stages over ``records``.

        Args:
            records: Validated records (see ednaexplore.core.validation)

        Returns:
            Immutable PipelineResult.

        Raises:
            PipelineStateError: If the orchestrator is not IDLE.
            EmptyResultError: If no record passes quality filtering.
        """
        if self._stage != PipelineStage.IDLE:
            raise PipelineStateError(self._stage.value, PipelineStage.PREPROCESSING.value)

        try:
            return self._run_stages(records)
        except EmptyResultError as e:
            self._fail(e.message)
            raise
        except Exception as e:
            if self._stage not in TERMINAL_STAGES:
                self._fail(str(e))
            raise

    def _run_stages(self, records: Sequence[SequenceRecord]) -> PipelineResult:
        logger.info(f"Starting pipeline on {len(records):,} records")

        progress = self._begin(PipelineStage.PREPROCESSING)
        processed = preprocess(records, self.config, progress=progress)
        if not processed:
            raise EmptyResultError(PipelineStage.PREPROCESSING.value)
        self._finish(PipelineStage.PREPROCESSING)

        progress = self._begin(PipelineStage.CLASSIFYING)
        classified = classify_records(
            self.classifier,
            processed,
            num_workers=self.config.num_workers,
            progress=progress,
        )
        self._finish(PipelineStage.CLASSIFYING)

        progress = self._begin(PipelineStage.CLUSTERING)
        assigner = ClusterAssigner(
            grouping=self.grouping,
            threshold=self.config.confidence_threshold,
        )
        clustered = assigner.assign(classified, progress=progress)
        self._finish(PipelineStage.CLUSTERING)

        self._begin(PipelineStage.COMPUTING_METRICS)
        metrics = compute_metrics(processed, clustered)
        self._finish(PipelineStage.COMPUTING_METRICS)

        self._transition(PipelineStage.COMPLETE)
        result = PipelineResult(
            original_records=tuple(records),
            preprocessed_records=tuple(processed),
            classification_results=tuple(clustered),
            biodiversity_metrics=metrics,
        )
        logger.info(
            f"Pipeline complete: {len(processed):,} sequences, "
            f"{metrics.species_richness} taxa, {result.cluster_count} novel clusters"
        )
        return result


def run_pipeline(
    rows: Iterable[Mapping[str, Any]],
    classifier: Classifier | None = None,
    grouping: GroupingStrategy | None = None,
    config: PipelineConfig | None = None,
    progress_callback: Callable[[ProgressEvent], None] | None = None,
) -> PipelineResult:
    """
    Validate raw rows and run the pipeline on the valid records.

    Raises:
        EmptyInputError: If validation yields no records; the pipeline is
            never started.
        EmptyResultError: If no record passes quality filtering.
    """
    config = config or PipelineConfig()
    outcome = validate(list(rows), max_errors=config.max_reported_errors)
    if outcome.errors:
        logger.warning(f"Validation reported {len(outcome.errors)} problem(s)")
    if not outcome.valid:
        raise EmptyInputError(outcome.errors)

    orchestrator = PipelineOrchestrator(
        classifier=classifier,
        grouping=grouping,
        config=config,
        progress_callback=progress_callback,
    )
    return orchestrator.run(outcome.valid)
