"""
Core algorithms for eDNA biodiversity analysis.

This module contains the pipeline stages (validation, preprocessing,
classification, novel-taxon clustering, metrics) and the orchestrator that
runs them.
"""

from ednaexplore.core.metrics import compute_metrics
from ednaexplore.core.pipeline import PipelineOrchestrator, PipelineStage, run_pipeline
from ednaexplore.core.preprocessing import preprocess
from ednaexplore.core.validation import ValidationOutcome, validate

__all__ = [
    "PipelineOrchestrator",
    "PipelineStage",
    "ValidationOutcome",
    "compute_metrics",
    "preprocess",
    "run_pipeline",
    "validate",
]
