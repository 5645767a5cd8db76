"""
clipscribe.extract.audio - FFmpeg audio segmentation.

Probes the source recording for its audio track and duration, plans
fixed-length windows (10 seconds by default, the last one truncated to the
remaining length) and trims each window into a 16-bit PCM WAV buffer.
"""

from __future__ import annotations

import json
import logging
import math
import subprocess
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from clipscribe.exceptions import DependencyError, ExtractionError
from clipscribe.models import AudioSegment

logger = logging.getLogger(__name__)

DEFAULT_SLICE_DURATION = 10.0


def probe_audio(path: Path) -> dict[str, Any]:
    """Probe a media file for its primary audio stream using ffprobe.

    Args:
        path: Path to video or audio file

    Returns:
        Dict with 'duration_seconds', 'has_audio', 'sample_rate',
        'channels' and 'audio_codec'

    Raises:
        DependencyError: If ffprobe is not installed
        ExtractionError: If ffprobe cannot read the file
    """
    cmd = [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise DependencyError("ffprobe", "not found on PATH", install_hint="Install FFmpeg") from e
    if result.returncode != 0:
        raise ExtractionError(f"ffprobe failed for {path}: {result.stderr.strip()}")

    data = json.loads(result.stdout or "{}")
    audio_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "audio"),
        None,
    )
    format_info = data.get("format", {})

    duration = float(format_info.get("duration") or 0)
    if audio_stream and audio_stream.get("duration"):
        duration = float(audio_stream["duration"])

    return {
        "duration_seconds": duration,
        "has_audio": audio_stream is not None,
        "sample_rate": int(audio_stream["sample_rate"])
        if audio_stream and audio_stream.get("sample_rate")
        else None,
        "channels": audio_stream.get("channels") if audio_stream else None,
        "audio_codec": audio_stream.get("codec_name") if audio_stream else None,
    }


def plan_windows(
    duration: float, slice_duration: float = DEFAULT_SLICE_DURATION
) -> list[tuple[float, float]]:
    """Split ``[0, duration)`` into consecutive windows.

    Every window is ``slice_duration`` long except the last, which ends at
    ``duration``.

    Raises:
        ValueError: If slice_duration is not positive
    """
    if slice_duration <= 0:
        raise ValueError("slice_duration must be positive")
    if duration <= 0:
        return []
    count = math.ceil(duration / slice_duration)
    windows = []
    for i in range(count):
        start = i * slice_duration
        end = min(start + slice_duration, duration)
        if end > start:
            windows.append((start, end))
    return windows


def segment_file_name(source_path: Path, index: int) -> str:
    """Display name for segment ``index`` (1-based) of ``source_path``."""
    return f"{source_path.stem}_segment_{index:03d}.wav"


def extract_window(source_path: Path, start: float, end: float) -> bytes:
    """Trim ``[start, end)`` seconds of audio into a WAV buffer.

    Raises:
        DependencyError: If ffmpeg is not installed
        ExtractionError: If FFmpeg fails or produces no audio
    """
    with tempfile.TemporaryDirectory(prefix="clipscribe-") as tmp_dir:
        output = Path(tmp_dir) / "segment.wav"
        cmd = [
            "ffmpeg",
            "-y",
            "-v",
            "error",
            "-ss",
            f"{start:.3f}",
            "-to",
            f"{end:.3f}",
            "-i",
            str(source_path),
            "-vn",
            "-acodec",
            "pcm_s16le",
            str(output),
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise DependencyError(
                "ffmpeg", "not found on PATH", install_hint="Install FFmpeg"
            ) from e
        if proc.returncode != 0:
            raise ExtractionError(
                f"FFmpeg failed for window {start:.1f}s-{end:.1f}s: {proc.stderr.strip()}"
            )
        if not output.exists() or output.stat().st_size == 0:
            raise ExtractionError(f"No audio produced for window {start:.1f}s-{end:.1f}s")
        return output.read_bytes()


def segment_recording(
    source_path: Path,
    slice_duration: float = DEFAULT_SLICE_DURATION,
    on_progress: Callable[[int, int], object] | None = None,
    extract: Callable[[Path, float, float], bytes] = extract_window,
    probe: Callable[[Path], dict[str, Any]] = probe_audio,
) -> list[AudioSegment]:
    """Cut a recording's audio into AudioSegments.

    Args:
        source_path: Video or audio file
        slice_duration: Length of each segment in seconds
        on_progress: Called with (segments_done, segments_total)
        extract: Window extractor (defaults to FFmpeg)
        probe: Media prober (defaults to ffprobe)

    Returns:
        Segments indexed from 1 in recording order

    Raises:
        ExtractionError: If the file is missing, has no audio track, has
            zero duration, or a window fails to extract
    """
    if not source_path.exists():
        raise ExtractionError(f"Source file not found: {source_path}")

    metadata = probe(source_path)
    if not metadata.get("has_audio"):
        raise ExtractionError("No audio track found in the file")

    duration = float(metadata.get("duration_seconds") or 0)
    windows = plan_windows(duration, slice_duration)
    if not windows:
        raise ExtractionError(f"No audio segments could be created from {source_path.name}")

    logger.info(
        "Splitting %s (%.1fs) into %d segment(s)", source_path.name, duration, len(windows)
    )

    segments = []
    for i, (start, end) in enumerate(windows):
        index = i + 1
        logger.debug("Creating segment %d/%d: %.1fs - %.1fs", index, len(windows), start, end)
        try:
            buffer = extract(source_path, start, end)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to generate segment {index}: {e}") from e
        if not buffer:
            raise ExtractionError(f"Failed to generate segment {index} - no buffer created")

        segments.append(
            AudioSegment(
                buffer=buffer,
                file_name=segment_file_name(source_path, index),
                start_time=start,
                end_time=end,
                index=index,
            )
        )
        if on_progress:
            on_progress(index, len(windows))

    return segments
