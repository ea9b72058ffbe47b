"""
Quality-based preprocessing of validated sequence records.

Filters records by sequence length and read support, then strips characters
outside the A/T/C/G/N alphabet. Record order is preserved.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from ednaexplore.core.progress import ProgressCallback, report
from ednaexplore.models.config import PipelineConfig
from ednaexplore.models.records import SequenceRecord

logger = logging.getLogger(__name__)

_INVALID_BASES = re.compile(r"[^ATCGN]", re.IGNORECASE)

TOO_SHORT = "too_short"
TOO_LONG = "too_long"
LOW_READ_COUNT = "low_read_count"
EMPTY_AFTER_CLEANING = "empty_after_cleaning"

REJECTION_LABELS = {
    TOO_SHORT: "Too short",
    TOO_LONG: "Too long",
    LOW_READ_COUNT: "Low read count",
    EMPTY_AFTER_CLEANING: "Empty after cleaning",
}


@dataclass
class PreprocessingStats:
    """Counts of records kept and dropped by the quality filters."""

    input_records: int = 0
    passed_records: int = 0
    rejected: dict[str, int] = field(
        default_factory=lambda: {
            TOO_SHORT: 0,
            TOO_LONG: 0,
            LOW_READ_COUNT: 0,
            EMPTY_AFTER_CLEANING: 0,
        }
    )

    @property
    def pass_rate(self) -> float:
        return self.passed_records / max(1, self.input_records)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            "input_records": self.input_records,
            "passed_records": self.passed_records,
            "pass_rate": round(self.pass_rate, 4),
            **self.rejected,
        }


def clean_sequence(sequence: str) -> str:
    """Remove characters outside A/T/C/G/N and upper-case the rest."""
    return _INVALID_BASES.sub("", sequence).upper()


def _rejection_reason(record: SequenceRecord, config: PipelineConfig) -> str | None:
    length = len(record.raw_sequence)
    if length < config.min_sequence_length:
        return TOO_SHORT
    if length > config.max_sequence_length:
        return TOO_LONG
    if record.read_count < config.min_read_count:
        return LOW_READ_COUNT
    if not clean_sequence(record.raw_sequence):
        return EMPTY_AFTER_CLEANING
    return None


def preprocess(
    records: Sequence[SequenceRecord],
    config: PipelineConfig | None = None,
    progress: ProgressCallback | None = None,
) -> list[SequenceRecord]:
    """
    Apply quality filters and sequence cleanup.

    Args:
        records: Validated records in input order
        config: Filter thresholds (defaults: 10-500 bases, >= 5 reads)
        progress: Called with the completed fraction after each record

    Returns:
        Records that passed, in input order, with cleaned sequences. May be
        empty; the orchestrator decides whether that is fatal.
    """
    config = config or PipelineConfig()
    kept: list[SequenceRecord] = []
    total = len(records)

    for i, record in enumerate(records):
        if _rejection_reason(record, config) is None:
            cleaned = clean_sequence(record.raw_sequence)
            if cleaned != record.raw_sequence:
                record = record.model_copy(update={"raw_sequence": cleaned})
            kept.append(record)
        report(progress, i + 1, total)

    logger.info(f"Quality filtering kept {len(kept):,} of {total:,} records")
    return kept


def summarize_filtering(
    records: Sequence[SequenceRecord],
    config: PipelineConfig | None = None,
) -> PreprocessingStats:
    """Count how many records each quality filter rejects."""
    config = config or PipelineConfig()
    stats = PreprocessingStats(input_records=len(records))
    for record in records:
        reason = _rejection_reason(record, config)
        if reason is None:
            stats.passed_records += 1
        else:
            stats.rejected[reason] += 1
    return stats
