"""
clipscribe.transcribe.progress - Progress reporting and failure aggregation.

Both transcription strategies push progress through ProgressReporter, which
keeps ``completed`` monotonic and tolerates an absent callback. Per-segment
failures are collected as SegmentFailure records and logged once at the end
of a run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from clipscribe.models import TranscriptionProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[TranscriptionProgress], object]


class ProgressReporter:
    """Push-style progress emitter bound to one run."""

    def __init__(self, total: int, callback: ProgressCallback | None = None) -> None:
        self.total = total
        self.callback = callback
        self.completed = 0

    def emit(self, completed: int, current_segment: int | None = None) -> None:
        """Report ``completed`` units of work out of ``total``.

        Values are clamped into ``[previous, total]`` so callers can pass a
        running count without worrying about overshoot.
        """
        self.completed = max(self.completed, min(completed, self.total))
        if self.callback is None:
            return
        self.callback(
            TranscriptionProgress(
                completed=self.completed,
                total=self.total,
                current_segment=current_segment,
            )
        )


@dataclass(frozen=True)
class SegmentFailure:
    segment_index: int
    error: BaseException

    def describe(self) -> str:
        return f"segment {self.segment_index}: {self.error}"


def log_failures(failures: list[SegmentFailure], total: int) -> None:
    """Log the failures of a finished run as one warning."""
    if not failures:
        return
    details = "; ".join(f.describe() for f in sorted(failures, key=lambda f: f.segment_index))
    logger.warning(
        "Transcription completed with %d error(s) out of %d segment(s): %s",
        len(failures),
        total,
        details,
    )


def placeholder_text(segment_index: int) -> str:
    """Visible substitute transcription for a segment that failed."""
    return f"[Error transcribing segment {segment_index}]"


class RichProgress:
    """Progress callback that drives a rich progress bar.

    Use as a context manager; the instance itself is the callback passed to
    ``transcribe_segments``.
    """

    def __init__(self, description: str = "Transcribing", console=None) -> None:
        from rich.progress import (
            BarColumn,
            MofNCompleteColumn,
            Progress,
            TaskProgressColumn,
            TextColumn,
            TimeElapsedColumn,
        )

        self._progress = Progress(
            TextColumn("[cyan]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._description = description
        self._task_id = None

    def __enter__(self) -> RichProgress:
        self._progress.start()
        self._task_id = self._progress.add_task(self._description, total=None)
        return self

    def __exit__(self, *exc_info) -> None:
        self._progress.stop()

    def __call__(self, progress: TranscriptionProgress) -> None:
        if self._task_id is None:
            return
        description = self._description
        if progress.current_segment is not None:
            description = f"{self._description} (segment {progress.current_segment})"
        self._progress.update(
            self._task_id,
            completed=progress.completed,
            total=progress.total,
            description=description,
        )
