"""
Pydantic data models for ednaexplore.

Provides type-safe models for sequence records, classifications,
biodiversity statistics, configuration and pipeline results.
"""

from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.metrics import AbundanceMatrix, BiodiversityMetrics
from ednaexplore.models.records import (
    REQUIRED_FIELDS,
    ClassificationResult,
    SequenceRecord,
)
from ednaexplore.models.results import PipelineResult

__all__ = [
    "REQUIRED_FIELDS",
    "AbundanceMatrix",
    "BiodiversityMetrics",
    "ClassificationResult",
    "PipelineConfig",
    "PipelineResult",
    "SequenceRecord",
]
