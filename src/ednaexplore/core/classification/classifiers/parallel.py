"""
Batch classification with optional thread parallelism.

Classification of one record never depends on another, so records can be
spread over worker threads. Results are always returned in input order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from ednaexplore.core.classification.classifiers.base import Classifier
from ednaexplore.core.progress import ProgressCallback, report
from ednaexplore.models.records import ClassificationResult, SequenceRecord

logger = logging.getLogger(__name__)


def classify_records(
    classifier: Classifier,
    records: Sequence[SequenceRecord],
    num_workers: int = 1,
    progress: ProgressCallback | None = None,
) -> list[ClassificationResult]:
    """
    Classify every record, one result per record.

    Args:
        classifier: Any object implementing the Classifier protocol
        records: Preprocessed records
        num_workers: Worker threads; 1 classifies sequentially
        progress: Called with the completed fraction after each record

    Returns:
        Classification results aligned with ``records``.
    """
    total = len(records)
    if num_workers <= 1 or total <= 1:
        results = []
        for i, record in enumerate(records):
            results.append(classifier.classify(record))
            report(progress, i + 1, total)
        return results

    logger.debug(f"Classifying {total:,} records with {num_workers} workers")
    ordered: list[ClassificationResult | None] = [None] * total
    done = 0
    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        futures = {
            executor.submit(classifier.classify, record): index
            for index, record in enumerate(records)
        }
        for future in as_completed(futures):
            ordered[futures[future]] = future.result()
            done += 1
            report(progress, done, total)

    return [result for result in ordered if result is not None]
