"""
clipscribe.transcribe - Segmented transcription pipeline.

Pipeline Stage 2: Transcribe each audio segment with either the remote
batch strategy (hosted Whisper through litellm, bounded concurrency) or
the local sequential strategy (on-device Whisper), producing one result
per segment in segment order.
"""

from __future__ import annotations

from clipscribe.transcribe.base import TranscriptionService, create_service

__all__ = ["TranscriptionService", "create_service"]
