"""
Progress reporting primitives shared by the pipeline stages.

Stages report a completed fraction through a plain callback. The orchestrator
turns those fractions into ProgressEvent objects for its own listener, so no
progress state lives outside a single run.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

# Called with the completed fraction of the current stage, in [0, 1]
ProgressCallback: TypeAlias = Callable[[float], None]


@dataclass(frozen=True)
class ProgressEvent:
    """Progress snapshot emitted by the orchestrator."""

    stage: str
    stage_progress: float
    overall_progress: float


class StageProgress:
    """
    Monotonic progress value for one stage, in percent.

    Updates that would move progress backwards are ignored, and values are
    clamped to [0, 100].
    """

    def __init__(self) -> None:
        self._value = 0.0

    @property
    def value(self) -> float:
        return self._value

    def update(self, percent: float) -> bool:
        """Set progress; returns True if the stored value changed."""
        percent = min(100.0, max(0.0, percent))
        if percent <= self._value:
            return False
        self._value = percent
        return True

    def complete(self) -> bool:
        return self.update(100.0)


def report(progress: ProgressCallback | None, done: int, total: int) -> None:
    """Invoke ``progress`` with done/total when a callback was supplied."""
    if progress is not None and total > 0:
        progress(done / total)
