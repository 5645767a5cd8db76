"""
clipscribe.transcribe.base - Transcription service contract.

Both execution strategies implement TranscriptionService. Whatever order
the work completes in, and whichever segments fail, a run over N segments
returns exactly N results sorted by segment index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from clipscribe.models import AudioSegment, TranscriptionResult
from clipscribe.transcribe.progress import ProgressCallback


class TranscriptionService(ABC):
    """Turns an ordered list of segments into ordered transcription results."""

    mode: str = ""

    @abstractmethod
    async def transcribe_segments(
        self,
        segments: Sequence[AudioSegment],
        on_progress: ProgressCallback | None = None,
    ) -> list[TranscriptionResult]:
        """Transcribe every segment.

        Args:
            segments: Segments in recording order (may be empty)
            on_progress: Optional callback receiving TranscriptionProgress

        Returns:
            One result per segment, sorted by segment index. Failed segments
            carry a placeholder transcription instead of being dropped.

        Raises:
            TranscriptionError: Only for whole-run failures
        """


def sort_results(results: list[TranscriptionResult]) -> list[TranscriptionResult]:
    return sorted(results, key=lambda r: r.segment_index)


def create_service(config: Any) -> TranscriptionService:
    """Create the transcription strategy selected by ``config.mode``.

    Args:
        config: ClipscribeConfig instance

    Returns:
        RemoteBatchTranscriber or LocalSequentialTranscriber
    """
    from clipscribe.exceptions import ConfigError

    if config.mode == "remote":
        from clipscribe.transcribe.remote import RemoteBatchTranscriber

        return RemoteBatchTranscriber(
            max_concurrent_requests=config.max_concurrent_requests,
            model=config.remote_model,
            response_format=config.remote_response_format,
            api_base=config.remote_api_base,
        )
    if config.mode == "local":
        from clipscribe.transcribe.local import LocalSequentialTranscriber

        return LocalSequentialTranscriber(
            backend=config.local_backend,
            model=config.local_model,
        )
    raise ConfigError(f"Unknown transcription mode: {config.mode}")
