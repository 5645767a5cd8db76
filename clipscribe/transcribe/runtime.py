"""
clipscribe.transcribe.runtime - Local Whisper runtimes.

Loads an on-device Whisper model (Hugging Face transformers, faster-whisper
or mlx-whisper) and exposes it as a single synchronous call taking a 16kHz
mono waveform. Whatever the backend returns is decoded once, at this
boundary, into one of three RuntimeOutput variants.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from clipscribe.exceptions import DependencyError
from clipscribe.transcribe.resample import TARGET_SAMPLE_RATE

# Options every backend is driven with: auto-detect language, plain
# transcription, 30s internal chunking, no timestamps.
INFERENCE_OPTIONS: dict[str, Any] = {
    "language": None,
    "task": "transcribe",
    "chunk_length_s": 30,
    "return_timestamps": False,
}


@dataclass(frozen=True)
class PlainText:
    text: str

    def to_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class FlatText:
    """Result object exposing a single ``text`` field."""

    text: str

    def to_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class ChunkedText:
    """Result object exposing a sequence of timed chunks."""

    chunks: tuple[str, ...]

    def to_text(self) -> str:
        return " ".join(self.chunks)


RuntimeOutput = PlainText | FlatText | ChunkedText

# waveform at TARGET_SAMPLE_RATE -> raw backend output
Runtime = Callable[[np.ndarray], Any]
RuntimeLoader = Callable[[str], Runtime]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def decode_runtime_output(raw: Any) -> RuntimeOutput:
    """Classify a backend result into a RuntimeOutput variant.

    A non-empty ``text`` field wins; otherwise a ``chunks`` sequence is
    used; anything else decodes to empty text.
    """
    if isinstance(raw, str):
        return PlainText(raw)
    if raw is None:
        return FlatText("")

    text = _field(raw, "text")
    if isinstance(text, str) and text:
        return FlatText(text)

    chunks = _field(raw, "chunks")
    if isinstance(chunks, (list, tuple)):
        return ChunkedText(tuple((_field(chunk, "text") or "") for chunk in chunks))

    return FlatText("")


def resolve_model_name(backend: str, model: str) -> str:
    """Map a Whisper size (tiny, base, ...) to the backend's model id.

    Fully qualified ids (containing ``/``) are returned unchanged.
    """
    if "/" in model:
        return model
    if backend == "transformers":
        return f"openai/whisper-{model}"
    if backend == "mlx":
        return f"mlx-community/whisper-{model}-mlx"
    return model


def load_transformers(model: str) -> Runtime:
    """Load a transformers automatic-speech-recognition pipeline."""
    try:
        from transformers import pipeline
    except ImportError as e:
        raise DependencyError(
            "transformers",
            "not installed",
            install_hint="pip install transformers torch",
        ) from e

    asr = pipeline("automatic-speech-recognition", model=resolve_model_name("transformers", model))

    generate_kwargs = {"task": INFERENCE_OPTIONS["task"]}
    if INFERENCE_OPTIONS["language"]:
        generate_kwargs["language"] = INFERENCE_OPTIONS["language"]

    def run(waveform: np.ndarray) -> Any:
        return asr(
            {"raw": waveform, "sampling_rate": TARGET_SAMPLE_RATE},
            chunk_length_s=INFERENCE_OPTIONS["chunk_length_s"],
            return_timestamps=INFERENCE_OPTIONS["return_timestamps"],
            generate_kwargs=generate_kwargs,
        )

    return run


def load_faster(model: str) -> Runtime:
    """Load a faster-whisper model."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as e:
        raise DependencyError(
            "faster-whisper",
            "not installed",
            install_hint="pip install faster-whisper",
        ) from e

    model_instance = WhisperModel(
        resolve_model_name("faster", model), device="auto", compute_type="auto"
    )

    def run(waveform: np.ndarray) -> Any:
        segments, _info = model_instance.transcribe(
            waveform,
            language=INFERENCE_OPTIONS["language"],
            task=INFERENCE_OPTIONS["task"],
            without_timestamps=not INFERENCE_OPTIONS["return_timestamps"],
        )
        return {"chunks": [{"text": segment.text.strip()} for segment in segments]}

    return run


def load_mlx(model: str) -> Runtime:
    """Bind mlx-whisper to a model repo; mlx caches weights itself."""
    try:
        import mlx_whisper
    except ImportError as e:
        raise DependencyError(
            "mlx-whisper",
            "not installed",
            install_hint="pip install mlx-whisper",
        ) from e

    repo = resolve_model_name("mlx", model)

    def run(waveform: np.ndarray) -> Any:
        return mlx_whisper.transcribe(
            waveform,
            path_or_hf_repo=repo,
            language=INFERENCE_OPTIONS["language"],
            task=INFERENCE_OPTIONS["task"],
            word_timestamps=INFERENCE_OPTIONS["return_timestamps"],
        )

    return run


LOADERS: dict[str, RuntimeLoader] = {
    "transformers": load_transformers,
    "faster": load_faster,
    "mlx": load_mlx,
}
