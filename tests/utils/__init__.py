"""Testing utilities for ednaexplore."""

from tests.utils.assertions import (
    CLIAssertions,
    ExportAssertions,
    MetricsAssertions,
)

__all__ = [
    "CLIAssertions",
    "ExportAssertions",
    "MetricsAssertions",
]
