"""Tests for clipscribe.transcribe.resample module."""

from __future__ import annotations

import numpy as np
import pytest
import soundfile as sf

from clipscribe.transcribe.resample import TARGET_SAMPLE_RATE, decode_audio, resample_linear


class TestResampleLinear:
    @pytest.mark.parametrize(
        "length,from_rate,to_rate,expected",
        [
            (48000, 48000, 16000, 16000),
            (44100, 44100, 16000, 16000),
            (1000, 8000, 16000, 2000),
            (10, 22050, 16000, 7),
            (3, 16000, 44100, 8),
        ],
    )
    def test_output_length(self, length, from_rate, to_rate, expected) -> None:
        audio = np.zeros(length, dtype=np.float32)
        assert len(resample_linear(audio, from_rate, to_rate)) == expected

    def test_same_rate_is_identity(self) -> None:
        audio = np.array([0.1, -0.5, 0.25, 1.0], dtype=np.float32)
        result = resample_linear(audio, 16000, 16000)
        np.testing.assert_array_equal(result, audio)
        assert result is not audio

    def test_upsample_interpolates_midpoints(self) -> None:
        audio = np.array([0.0, 1.0, 0.0, -1.0], dtype=np.float32)
        result = resample_linear(audio, 8000, 16000)
        np.testing.assert_allclose(
            result, [0.0, 0.5, 1.0, 0.5, 0.0, -0.5, -1.0, -1.0], atol=1e-6
        )

    def test_downsample_picks_every_other_sample(self) -> None:
        audio = np.arange(8, dtype=np.float32)
        result = resample_linear(audio, 32000, 16000)
        np.testing.assert_allclose(result, [0.0, 2.0, 4.0, 6.0])

    def test_fractional_ratio_blends_neighbours(self) -> None:
        audio = np.array([0.0, 10.0, 20.0, 30.0], dtype=np.float32)
        # ratio 1.5: positions 0, 1.5, 3.0
        result = resample_linear(audio, 24000, 16000)
        np.testing.assert_allclose(result, [0.0, 15.0, 30.0])

    def test_empty_input(self) -> None:
        result = resample_linear(np.zeros(0, dtype=np.float32), 44100, 16000)
        assert len(result) == 0

    def test_returns_float32(self) -> None:
        result = resample_linear(np.ones(100, dtype=np.float64), 22050, 16000)
        assert result.dtype == np.float32

    @pytest.mark.parametrize("rates", [(0, 16000), (16000, 0), (-1, 16000)])
    def test_invalid_rates_raise(self, rates) -> None:
        with pytest.raises(ValueError):
            resample_linear(np.zeros(10), *rates)


class TestDecodeAudio:
    def test_decode_at_target_rate(self, tone_wav) -> None:
        audio = decode_audio(tone_wav(sample_rate=TARGET_SAMPLE_RATE, seconds=0.5))
        assert audio.dtype == np.float32
        assert len(audio) == 8000

    def test_decode_resamples(self, tone_wav) -> None:
        audio = decode_audio(tone_wav(sample_rate=48000, seconds=0.5))
        assert len(audio) == 8000

    def test_decode_stereo_to_mono(self, tone_wav) -> None:
        audio = decode_audio(tone_wav(sample_rate=16000, seconds=0.25, channels=2))
        assert audio.ndim == 1
        assert len(audio) == 4000
        assert np.max(np.abs(audio)) == pytest.approx(0.25, abs=0.01)

    def test_invalid_buffer_raises(self) -> None:
        with pytest.raises(sf.SoundFileRuntimeError):
            decode_audio(b"definitely not a wav file")
