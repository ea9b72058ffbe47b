"""
Classifier implementations for taxonomic assignment.

This package provides the classifier contract, the deterministic reference
classifier, and batch helpers for running any classifier over many records.
"""

from ednaexplore.core.classification.classifiers.base import (
    DEFAULT_TAXON_CATALOG,
    Classifier,
    HashLineageClassifier,
    sequence_hash,
)
from ednaexplore.core.classification.classifiers.parallel import classify_records

__all__ = [
    "DEFAULT_TAXON_CATALOG",
    "Classifier",
    "HashLineageClassifier",
    "classify_records",
    "sequence_hash",
]
