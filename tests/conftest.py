"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import io
import os
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
import yaml

from clipscribe.models import AudioSegment

# Keep litellm offline in tests: its background remote cost-map fetch races
# with the import and can deadlock when there is no network.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")


def wav_bytes(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode a waveform (1-D mono or 2-D frames x channels) as WAV bytes."""
    import soundfile as sf

    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="FLOAT")
    return buf.getvalue()


@pytest.fixture
def make_segments() -> Callable[..., list[AudioSegment]]:
    """Factory for segments with fake buffers tagged by their index."""

    def _make(count: int, slice_duration: float = 10.0, duration: float | None = None):
        total = duration if duration is not None else count * slice_duration
        segments = []
        for i in range(count):
            start = i * slice_duration
            end = min(start + slice_duration, total)
            segments.append(
                AudioSegment(
                    buffer=f"audio-{i + 1}".encode(),
                    file_name=f"talk_segment_{i + 1:03d}.wav",
                    start_time=start,
                    end_time=end,
                    index=i + 1,
                )
            )
        return segments

    return _make


@pytest.fixture
def tone_wav() -> Callable[..., bytes]:
    """Factory for a short sine tone encoded as WAV."""

    def _make(sample_rate: int = 16000, seconds: float = 0.5, channels: int = 1) -> bytes:
        t = np.arange(int(sample_rate * seconds)) / sample_rate
        tone = (0.25 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)
        if channels > 1:
            tone = np.stack([tone] * channels, axis=1)
        return wav_bytes(tone, sample_rate)

    return _make


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Directory containing a clipscribe.yaml for the remote mode."""
    config = {"mode": "remote", "max_concurrent_requests": 3}
    with open(tmp_path / "clipscribe.yaml", "w") as f:
        yaml.dump(config, f)
    return tmp_path
