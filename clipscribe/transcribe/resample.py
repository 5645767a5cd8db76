"""
clipscribe.transcribe.resample - Decode and resample segment audio.

Turns an encoded segment buffer into the mono 16kHz float32 waveform the
local Whisper runtimes expect. Resampling is plain linear interpolation,
which is adequate for speech recognition input but not band-limited.
"""

from __future__ import annotations

import io

import numpy as np

TARGET_SAMPLE_RATE = 16000


def resample_linear(audio: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Resample a 1-D waveform by linear interpolation.

    Each output sample ``t`` maps to the fractional input position
    ``t * from_rate / to_rate`` and blends the floor and ceiling input
    samples by the fractional remainder.

    Args:
        audio: Mono waveform
        from_rate: Source sample rate in Hz
        to_rate: Target sample rate in Hz

    Returns:
        float32 waveform of length ``round(len(audio) * to_rate / from_rate)``

    Raises:
        ValueError: If either rate is not positive
    """
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError(f"Sample rates must be positive, got {from_rate} -> {to_rate}")

    audio = np.asarray(audio, dtype=np.float32)
    if from_rate == to_rate:
        return audio.copy()

    ratio = from_rate / to_rate
    # half-up rounding, not banker's
    new_length = int(np.floor(len(audio) / ratio + 0.5))
    if len(audio) == 0 or new_length == 0:
        return np.zeros(0, dtype=np.float32)

    positions = np.arange(new_length, dtype=np.float64) * ratio
    index_floor = np.minimum(np.floor(positions).astype(np.int64), len(audio) - 1)
    index_ceil = np.minimum(index_floor + 1, len(audio) - 1)
    fraction = (positions - index_floor).astype(np.float32)

    result = audio[index_floor] * (1.0 - fraction) + audio[index_ceil] * fraction
    return result.astype(np.float32)


def decode_audio(buffer: bytes, target_rate: int = TARGET_SAMPLE_RATE) -> np.ndarray:
    """Decode an encoded audio buffer into a mono waveform at ``target_rate``.

    Args:
        buffer: Encoded audio bytes (WAV from the segmentation step)
        target_rate: Sample rate the caller needs

    Returns:
        Mono float32 waveform
    """
    import librosa

    audio, sr = librosa.load(io.BytesIO(buffer), sr=None, mono=True)
    if sr != target_rate:
        audio = resample_linear(audio, int(sr), target_rate)
    return np.asarray(audio, dtype=np.float32)
