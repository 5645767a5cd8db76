"""
clipscribe.transcribe.remote - Remote batch transcriber.

Sends segments to a hosted Whisper endpoint through litellm. Segments are
processed in contiguous batches of at most ``max_concurrent_requests``;
every call in a batch is in flight at once and the next batch starts only
after the whole batch has settled. Progress is reported once per batch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from clipscribe.exceptions import ConfigError, RemoteTranscriptionError
from clipscribe.models import AudioSegment, TranscriptionResult
from clipscribe.transcribe.base import TranscriptionService, sort_results
from clipscribe.transcribe.progress import (
    ProgressCallback,
    ProgressReporter,
    SegmentFailure,
    log_failures,
    placeholder_text,
)
from clipscribe.utils import chunked

logger = logging.getLogger(__name__)

# (filename hint, audio bytes, content type) -> transcript text
RemoteBackend = Callable[[tuple[str, bytes, str], str, str], Awaitable[str]]


class LiteLLMBackend:
    """Calls ``litellm.atranscription`` for one encoded segment."""

    def __init__(self, api_base: str | None = None) -> None:
        self.api_base = api_base

    async def __call__(
        self,
        payload: tuple[str, bytes, str],
        model: str,
        response_format: str,
    ) -> str:
        try:
            import litellm
        except ImportError as e:
            raise RemoteTranscriptionError(
                None, "litellm not installed. Install with: pip install litellm"
            ) from e

        litellm.telemetry = False

        kwargs = {
            "model": model,
            "file": payload,
            "response_format": response_format,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await litellm.atranscription(**kwargs)
        except Exception as e:
            status = getattr(e, "status_code", None)
            message = getattr(e, "message", None) or str(e)
            raise RemoteTranscriptionError(status, message) from e

        return _response_text(response)


def _response_text(response) -> str:
    if response is None:
        return ""
    if isinstance(response, str):
        return response
    if isinstance(response, dict):
        return response.get("text") or ""
    return getattr(response, "text", None) or ""


class RemoteBatchTranscriber(TranscriptionService):
    """Bounded-concurrency transcriber for a remote speech-to-text backend."""

    mode = "remote"

    def __init__(
        self,
        max_concurrent_requests: int = 5,
        model: str = "whisper-1",
        response_format: str = "text",
        api_base: str | None = None,
        backend: RemoteBackend | None = None,
    ) -> None:
        if max_concurrent_requests <= 0:
            raise ConfigError(
                f"max_concurrent_requests must be positive, got {max_concurrent_requests}"
            )
        self.max_concurrent_requests = max_concurrent_requests
        self.model = model
        self.response_format = response_format
        self.backend = backend or LiteLLMBackend(api_base=api_base)

    def plan_batches(self, segments: Sequence[AudioSegment]) -> list[list[AudioSegment]]:
        """Partition segments into contiguous batches, preserving order."""
        return chunked(list(segments), self.max_concurrent_requests)

    async def transcribe_segments(
        self,
        segments: Sequence[AudioSegment],
        on_progress: ProgressCallback | None = None,
    ) -> list[TranscriptionResult]:
        total = len(segments)
        if total == 0:
            return []

        reporter = ProgressReporter(total, on_progress)
        results: list[TranscriptionResult] = []
        failures: list[SegmentFailure] = []
        processed = 0

        batches = self.plan_batches(segments)
        logger.debug(
            "Transcribing %d segment(s) in %d batch(es) of up to %d",
            total,
            len(batches),
            self.max_concurrent_requests,
        )

        for batch in batches:
            outcomes = await asyncio.gather(*(self._transcribe_one(s) for s in batch))
            for result, failure in outcomes:
                results.append(result)
                if failure is not None:
                    failures.append(failure)

            processed += len(batch)
            reporter.emit(min(processed, total), current_segment=batch[-1].index)

        log_failures(failures, total)
        return sort_results(results)

    async def _transcribe_one(
        self, segment: AudioSegment
    ) -> tuple[TranscriptionResult, SegmentFailure | None]:
        try:
            text = await self.transcribe_segment(segment)
        except Exception as e:
            logger.debug("Segment %d failed: %s", segment.index, e)
            return (
                TranscriptionResult(
                    transcription=placeholder_text(segment.index),
                    segment_index=segment.index,
                ),
                SegmentFailure(segment.index, e),
            )
        return TranscriptionResult(transcription=text, segment_index=segment.index), None

    async def transcribe_segment(self, segment: AudioSegment) -> str:
        """Send one segment to the backend and return its transcript text.

        Raises:
            RemoteTranscriptionError: If the backend rejects the request
        """
        payload = encode_payload(segment)
        text = await self.backend(payload, self.model, self.response_format)
        return text or ""


def encode_payload(segment: AudioSegment) -> tuple[str, bytes, str]:
    """Multipart file tuple for one segment."""
    return (f"segment_{segment.index}.wav", bytes(segment.buffer), "audio/wav")
