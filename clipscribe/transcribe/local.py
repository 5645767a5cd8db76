"""
clipscribe.transcribe.local - Local sequential transcriber.

Runs an on-device Whisper model one segment at a time. The model is loaded
on first use and kept for the lifetime of the transcriber instance. Each
segment is decoded, resampled to 16kHz and transcribed in a worker thread
so the event loop stays responsive between segments.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from clipscribe.exceptions import ClipscribeError, ConfigError, TranscriptionError
from clipscribe.models import AudioSegment, TranscriptionResult
from clipscribe.transcribe.base import TranscriptionService, sort_results
from clipscribe.transcribe.progress import (
    ProgressCallback,
    ProgressReporter,
    placeholder_text,
)
from clipscribe.transcribe.resample import decode_audio
from clipscribe.transcribe.runtime import (
    LOADERS,
    Runtime,
    RuntimeLoader,
    decode_runtime_output,
)

logger = logging.getLogger(__name__)


class LocalSequentialTranscriber(TranscriptionService):
    """On-device transcriber that processes segments strictly in order."""

    mode = "local"

    def __init__(
        self,
        backend: str = "transformers",
        model: str = "tiny",
        loader: RuntimeLoader | None = None,
    ) -> None:
        if loader is None:
            if backend not in LOADERS:
                raise ConfigError(f"Unknown local backend: {backend}")
            loader = LOADERS[backend]
        self.backend = backend
        self.model = model
        self._loader = loader
        self._runtime: Runtime | None = None
        self._init_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._runtime is not None

    async def get_runtime(self) -> Runtime:
        """Return the loaded runtime, loading it on first call.

        Raises:
            TranscriptionError: If the model cannot be loaded. Nothing is
                cached, so the next call tries again.
        """
        if self._runtime is not None:
            return self._runtime
        async with self._init_lock:
            if self._runtime is None:
                logger.info("Loading %s model '%s'", self.backend, self.model)
                try:
                    self._runtime = await asyncio.to_thread(self._loader, self.model)
                except ClipscribeError as e:
                    raise TranscriptionError(f"Failed to load local model: {e}") from e
                except Exception as e:
                    raise TranscriptionError(
                        f"Failed to load local model '{self.model}': {e}"
                    ) from e
        return self._runtime

    async def transcribe_segments(
        self,
        segments: Sequence[AudioSegment],
        on_progress: ProgressCallback | None = None,
    ) -> list[TranscriptionResult]:
        total = len(segments)
        if total == 0:
            return []

        runtime = await self.get_runtime()
        reporter = ProgressReporter(total, on_progress)
        results: list[TranscriptionResult] = []

        for i, segment in enumerate(segments):
            try:
                text = await asyncio.to_thread(transcribe_buffer, runtime, segment.buffer)
                results.append(
                    TranscriptionResult(transcription=text, segment_index=segment.index)
                )
            except Exception as e:
                logger.error("Failed to transcribe segment %d: %s", segment.index, e)
                results.append(
                    TranscriptionResult(
                        transcription=placeholder_text(segment.index),
                        segment_index=segment.index,
                    )
                )

            reporter.emit(i + 1, current_segment=segment.index)

        return sort_results(results)


def transcribe_buffer(runtime: Runtime, buffer: bytes) -> str:
    """Decode, resample and transcribe one encoded segment buffer."""
    waveform = decode_audio(buffer)
    output = decode_runtime_output(runtime(waveform))
    return output.to_text().strip()
