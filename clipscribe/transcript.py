"""
clipscribe.transcript - Transcript assembly and output.

Joins per-segment results into the final transcript (one blank line between
segments, in segment order) and writes it as plain text or JSON.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from clipscribe.io import read_json, write_json, write_text
from clipscribe.models import AudioSegment, TranscriptionResult

SEGMENT_SEPARATOR = "\n\n"


def join_transcript(results: Sequence[TranscriptionResult]) -> str:
    """Concatenate result texts, separated by a blank line."""
    return SEGMENT_SEPARATOR.join(r.transcription for r in results)


def apply_results(
    segments: Sequence[AudioSegment], results: Sequence[TranscriptionResult]
) -> int:
    """Store each result's text on the segment with the matching index.

    Returns:
        Number of segments updated
    """
    by_index = {r.segment_index: r.transcription for r in results}
    updated = 0
    for segment in segments:
        if segment.index in by_index:
            segment.transcription = by_index[segment.index]
            updated += 1
    return updated


def existing_transcript(segments: Sequence[AudioSegment]) -> str:
    """Transcript built from segments that already carry a transcription."""
    done = sorted((s for s in segments if s.transcription), key=lambda s: s.index)
    return SEGMENT_SEPARATOR.join(s.transcription for s in done)


def build_transcript_document(
    segments: Sequence[AudioSegment],
    results: Sequence[TranscriptionResult],
    source: str | None = None,
    mode: str | None = None,
) -> dict[str, Any]:
    """Build the JSON transcript structure."""
    texts = {r.segment_index: r.transcription for r in results}
    ordered = sorted(segments, key=lambda s: s.index)
    return {
        "source": source,
        "mode": mode,
        "transcribed_at": datetime.now().isoformat(timespec="seconds"),
        "segment_count": len(ordered),
        "duration_seconds": ordered[-1].end_time if ordered else 0.0,
        "segments": [
            {
                "index": s.index,
                "file_name": s.file_name,
                "start": s.start_time,
                "end": s.end_time,
                "duration": s.duration,
                "text": texts.get(s.index, s.transcription or ""),
            }
            for s in ordered
        ],
        "text": join_transcript(results),
    }


def write_transcript(
    path: Path,
    segments: Sequence[AudioSegment],
    results: Sequence[TranscriptionResult],
    fmt: str = "txt",
    source: str | None = None,
    mode: str | None = None,
) -> None:
    """Write the transcript as ``txt`` or ``json``.

    Raises:
        ValueError: For an unknown format
    """
    if fmt == "txt":
        write_text(path, join_transcript(results) + "\n")
    elif fmt == "json":
        write_json(path, build_transcript_document(segments, results, source=source, mode=mode))
    else:
        raise ValueError(f"Unknown transcript format: {fmt}")


def read_transcript(path: Path) -> str:
    """Load transcript text written by ``write_transcript``.

    JSON documents contribute their ``text`` field; anything else is read
    as plain text.

    Raises:
        ValueError: If a JSON document has no ``text`` field
    """
    if path.suffix.lower() == ".json":
        data = read_json(path)
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ValueError(f"{path.name} is not a clipscribe transcript document")
        return data["text"]
    return path.read_text(encoding="utf-8").strip()
