"""
Custom exceptions with actionable guidance.

Provides specific error types for common failure scenarios,
each with helpful suggestions for resolution.
"""

from __future__ import annotations


class EdnaExploreError(Exception):
    """Base exception for ednaexplore errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class InputDataError(EdnaExploreError):
    """Base class for problems with the input rows."""


class RecordValidationError(InputDataError):
    """Raised when a single row fails a field rule.

    Recoverable: the validator catches it, records the message and skips the row.
    """

    def __init__(self, row_number: int, reason: str):
        super().__init__(message=f"Row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class SchemaError(InputDataError):
    """Raised when required fields are missing from the input header."""

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            message=f"Missing required fields: {', '.join(missing_fields)}",
            suggestion=(
                "The input table must have the columns "
                "sequence_id, raw_sequence, read_count, sample_location, depth. "
                "Check the header row for typos or a different delimiter."
            ),
        )
        self.missing_fields = list(missing_fields)


class EmptyInputError(InputDataError):
    """Raised when no valid records are available to start a pipeline run."""

    def __init__(self, errors: list[str] | None = None):
        self.errors = list(errors or [])
        details = f" ({self.errors[0]})" if self.errors else ""
        super().__init__(
            message=f"No valid sequence records to analyze{details}",
            suggestion=(
                "Run 'ednaexplore validate' on the input file to see every "
                "row-level problem before starting an analysis."
            ),
        )


class PipelineError(EdnaExploreError):
    """Base class for pipeline run failures."""


class EmptyResultError(PipelineError):
    """Raised when a stage produces no records for the next stage."""

    def __init__(self, stage: str, message: str = "No sequences passed quality filtering"):
        super().__init__(
            message=message,
            suggestion=(
                "Sequences must be 10-500 bases long with a read_count of at "
                "least 5. Relax min_sequence_length, max_sequence_length or "
                "min_read_count in the configuration if your data needs it."
            ),
        )
        self.stage = stage


class PipelineStateError(PipelineError):
    """Raised on an invalid pipeline stage transition."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot move pipeline from '{current}' to '{requested}'",
            suggestion="Call reset() on the orchestrator and run again with the original input.",
        )
        self.current = current
        self.requested = requested


class ClusteringError(PipelineError):
    """Raised when a grouping strategy does not return a valid partition."""

    def __init__(self, detail: str):
        super().__init__(
            message=f"Grouping strategy returned an invalid partition: {detail}",
            suggestion=(
                "A grouping must return non-empty lists of indices that cover "
                "every low-confidence result exactly once."
            ),
        )


class ConfigurationError(EdnaExploreError):
    """Raised when configuration is invalid."""


class InvalidThresholdError(ConfigurationError):
    """Raised when a threshold parameter is out of valid range."""

    def __init__(self, param_name: str, value: float, min_val: float, max_val: float):
        super().__init__(
            message=f"{param_name} = {value} is out of valid range [{min_val}, {max_val}]",
            suggestion=f"Set {param_name} to a value between {min_val} and {max_val}.",
        )
