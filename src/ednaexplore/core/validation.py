"""
Record validation for raw tabular eDNA rows.

Turns untyped rows (as produced by a CSV reader) into SequenceRecord objects.
Validation never raises: every problem is returned as a human-readable error
string next to the records that did validate.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from pydantic import ValidationError

from ednaexplore.core.exceptions import RecordValidationError, SchemaError
from ednaexplore.models.records import (
    DNA_ALPHABET_PATTERN,
    REQUIRED_FIELDS,
    SequenceRecord,
)

logger = logging.getLogger(__name__)

EMPTY_INPUT_ERROR = "File is empty"
DEFAULT_MAX_ERRORS = 10


class ValidationOutcome(NamedTuple):
    """Validated records and the (capped) list of error messages."""

    valid: list[SequenceRecord]
    errors: list[str]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_int(value: Any) -> int | None:
    """Parse an integer from int, integral float or numeric text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    text = _text(value)
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isfinite(number) and number.is_integer():
        return int(number)
    return None


def _parse_float(value: Any) -> float | None:
    """Parse a finite float from a number or numeric text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _text(value)
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def find_missing_fields(header: Sequence[str] | Mapping[str, Any]) -> list[str]:
    """Required fields absent from a header or row, in canonical order."""
    present = set(header)
    return [name for name in REQUIRED_FIELDS if name not in present]


def validate_row(row: Mapping[str, Any], row_number: int) -> SequenceRecord:
    """
    Validate a single row.

    Rules are checked in field order and the first failure wins.

    Args:
        row: Mapping from field name to raw value
        row_number: 1-based row number used in error messages

    Returns:
        The normalized SequenceRecord.

    Raises:
        RecordValidationError: If any field rule fails.
    """
    if not isinstance(row, Mapping):
        row = {}

    sequence_id = _text(row.get("sequence_id"))
    if not sequence_id:
        raise RecordValidationError(row_number, "Missing sequence_id")

    raw_sequence = _text(row.get("raw_sequence"))
    if not raw_sequence or not DNA_ALPHABET_PATTERN.match(raw_sequence):
        raise RecordValidationError(
            row_number, "Invalid DNA sequence (should contain only A, T, C, G, N)"
        )

    read_count = _parse_int(row.get("read_count"))
    if read_count is None or read_count < 1:
        raise RecordValidationError(
            row_number, "Invalid read_count (should be a positive integer)"
        )

    sample_location = _text(row.get("sample_location"))
    if not sample_location:
        raise RecordValidationError(row_number, "Missing sample_location")

    depth = _parse_float(row.get("depth"))
    if depth is None or depth < 0:
        raise RecordValidationError(
            row_number, "Invalid depth (should be a non-negative number)"
        )

    try:
        return SequenceRecord(
            sequence_id=sequence_id,
            raw_sequence=raw_sequence.upper(),
            read_count=read_count,
            sample_location=sample_location,
            depth=depth,
        )
    except ValidationError as e:
        raise RecordValidationError(
            row_number, f"Invalid record ({e.error_count()} field errors)"
        ) from e


def validate(
    rows: Sequence[Mapping[str, Any]],
    max_errors: int = DEFAULT_MAX_ERRORS,
) -> ValidationOutcome:
    """
    Validate raw rows into typed sequence records.

    Args:
        rows: Untyped rows in input order
        max_errors: Maximum number of error messages returned. Rows past the
            cap are still validated; only their messages are dropped.

    Returns:
        ValidationOutcome(valid, errors). ``valid`` keeps input order.
    """
    if len(rows) == 0:
        return ValidationOutcome(valid=[], errors=[EMPTY_INPUT_ERROR])

    errors: list[str] = []
    valid: list[SequenceRecord] = []

    first = rows[0] if isinstance(rows[0], Mapping) else {}
    missing = find_missing_fields(first)
    if missing:
        schema_error = SchemaError(missing)
        logger.warning(schema_error.message)
        errors.append(schema_error.message)

    n_invalid = 0
    for index, row in enumerate(rows):
        try:
            valid.append(validate_row(row, index + 1))
        except RecordValidationError as e:
            n_invalid += 1
            errors.append(e.message)

    if n_invalid:
        logger.info(f"Validated {len(valid):,} rows, skipped {n_invalid:,} invalid rows")
    else:
        logger.debug(f"Validated {len(valid):,} rows")

    return ValidationOutcome(valid=valid, errors=errors[:max_errors])
