"""
Taxonomic classification of preprocessed sequence records.

The pipeline depends only on the Classifier protocol; HashLineageClassifier
is the default implementation.
"""

from ednaexplore.core.classification.classifiers import (
    DEFAULT_TAXON_CATALOG,
    Classifier,
    HashLineageClassifier,
    classify_records,
    sequence_hash,
)

__all__ = [
    "DEFAULT_TAXON_CATALOG",
    "Classifier",
    "HashLineageClassifier",
    "classify_records",
    "sequence_hash",
]
