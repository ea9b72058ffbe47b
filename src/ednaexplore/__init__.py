"""
ednaexplore: biodiversity analysis for environmental DNA sequence tables.

Validates tabular eDNA records, filters them by sequence quality, assigns
taxonomic lineages, groups low-confidence assignments into candidate novel
taxa and reports species richness, Shannon, Simpson and Chao1 diversity.
"""

__version__ = "0.1.0"
__author__ = "ednaexplore Team"

from ednaexplore.core.pipeline import PipelineOrchestrator, run_pipeline
from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.metrics import BiodiversityMetrics
from ednaexplore.models.records import ClassificationResult, SequenceRecord
from ednaexplore.models.results import PipelineResult

__all__ = [
    "BiodiversityMetrics",
    "ClassificationResult",
    "PipelineConfig",
    "PipelineOrchestrator",
    "PipelineResult",
    "SequenceRecord",
    "__version__",
    "run_pipeline",
]
