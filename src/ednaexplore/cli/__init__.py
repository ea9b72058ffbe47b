"""
CLI commands for ednaexplore.

Provides command-line interface for validating input tables, running the
analysis pipeline and writing starter files.
"""

__all__ = ["analyze", "main", "templates"]
