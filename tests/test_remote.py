"""Tests for clipscribe.transcribe.remote module."""

from __future__ import annotations

import asyncio

import pytest

from clipscribe.exceptions import ConfigError, RemoteTranscriptionError
from clipscribe.models import TranscriptionProgress
from clipscribe.transcribe.remote import (
    RemoteBatchTranscriber,
    _response_text,
    encode_payload,
)


class FakeBackend:
    """Records calls and tracks how many are in flight at once."""

    def __init__(self, fail: set[int] | None = None, delays: dict[int, float] | None = None):
        self.fail = fail or set()
        self.delays = delays or {}
        self.calls: list[str] = []
        self.events: list[tuple[str, int]] = []
        self.in_flight = 0
        self.peak = 0

    async def __call__(self, payload, model, response_format):
        name, data, content_type = payload
        index = int(name.removeprefix("segment_").removesuffix(".wav"))
        self.calls.append(name)
        self.events.append(("start", index))
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(index, 0))
            if index in self.fail:
                raise RemoteTranscriptionError(500, "server exploded")
            return f"text {index}"
        finally:
            self.in_flight -= 1
            self.events.append(("end", index))


class TestConstruction:
    def test_default_concurrency(self) -> None:
        transcriber = RemoteBatchTranscriber(backend=FakeBackend())
        assert transcriber.max_concurrent_requests == 5
        assert transcriber.model == "whisper-1"

    @pytest.mark.parametrize("value", [0, -3])
    def test_non_positive_concurrency_rejected(self, value: int) -> None:
        with pytest.raises(ConfigError):
            RemoteBatchTranscriber(max_concurrent_requests=value, backend=FakeBackend())


class TestPlanBatches:
    def test_batch_count_and_membership(self, make_segments) -> None:
        segments = make_segments(12)
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=5, backend=FakeBackend())

        batches = transcriber.plan_batches(segments)

        assert len(batches) == 3
        assert [[s.index for s in b] for b in batches] == [
            [1, 2, 3, 4, 5],
            [6, 7, 8, 9, 10],
            [11, 12],
        ]

    @pytest.mark.parametrize("count,k,expected", [(1, 5, 1), (5, 5, 1), (6, 5, 2), (7, 1, 7)])
    def test_batch_count_is_ceiling(self, make_segments, count, k, expected) -> None:
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=k, backend=FakeBackend())
        assert len(transcriber.plan_batches(make_segments(count))) == expected


class TestTranscribeSegments:
    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        progress: list[TranscriptionProgress] = []
        backend = FakeBackend()
        transcriber = RemoteBatchTranscriber(backend=backend)

        results = await transcriber.transcribe_segments([], progress.append)

        assert results == []
        assert progress == []
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_returns_one_result_per_segment_in_order(self, make_segments) -> None:
        segments = make_segments(7)
        # later segments finish first
        delays = {s.index: 0.01 * (8 - s.index) for s in segments}
        transcriber = RemoteBatchTranscriber(
            max_concurrent_requests=4, backend=FakeBackend(delays=delays)
        )

        results = await transcriber.transcribe_segments(segments)

        assert [r.segment_index for r in results] == [1, 2, 3, 4, 5, 6, 7]
        assert [r.transcription for r in results] == [f"text {i}" for i in range(1, 8)]

    @pytest.mark.asyncio
    async def test_progress_reported_per_batch(self, make_segments) -> None:
        progress: list[TranscriptionProgress] = []
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=5, backend=FakeBackend())

        await transcriber.transcribe_segments(make_segments(12), progress.append)

        assert [p.completed for p in progress] == [5, 10, 12]
        assert all(p.total == 12 for p in progress)
        assert [p.current_segment for p in progress] == [5, 10, 12]

    @pytest.mark.asyncio
    async def test_concurrency_never_exceeds_bound(self, make_segments) -> None:
        backend = FakeBackend(delays={i: 0.01 for i in range(1, 11)})
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=3, backend=backend)

        await transcriber.transcribe_segments(make_segments(10))

        assert backend.peak == 3
        assert len(backend.calls) == 10

    @pytest.mark.asyncio
    async def test_batches_do_not_overlap(self, make_segments) -> None:
        backend = FakeBackend(delays={1: 0.05, 2: 0.0})
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=2, backend=backend)

        await transcriber.transcribe_segments(make_segments(3))

        # segment 3 starts only after the slow segment 1 settled
        assert backend.events.index(("end", 1)) < backend.events.index(("start", 3))
        assert backend.peak == 2

    @pytest.mark.asyncio
    async def test_single_failure_gets_placeholder(self, make_segments, caplog) -> None:
        backend = FakeBackend(fail={4})
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=5, backend=backend)

        with caplog.at_level("WARNING", logger="clipscribe"):
            results = await transcriber.transcribe_segments(make_segments(8))

        assert len(results) == 8
        assert results[3].segment_index == 4
        assert results[3].transcription == "[Error transcribing segment 4]"
        for result in results:
            if result.segment_index != 4:
                assert result.transcription == f"text {result.segment_index}"
        assert "1 error(s)" in caplog.text
        assert "segment 4" in caplog.text

    @pytest.mark.asyncio
    async def test_all_failures_still_resolve(self, make_segments) -> None:
        progress: list[TranscriptionProgress] = []
        transcriber = RemoteBatchTranscriber(
            max_concurrent_requests=2, backend=FakeBackend(fail={1, 2, 3})
        )

        results = await transcriber.transcribe_segments(make_segments(3), progress.append)

        assert [r.transcription for r in results] == [
            "[Error transcribing segment 1]",
            "[Error transcribing segment 2]",
            "[Error transcribing segment 3]",
        ]
        assert [p.completed for p in progress] == [2, 3]

    @pytest.mark.asyncio
    async def test_unsorted_input_is_sorted_by_index(self, make_segments) -> None:
        segments = list(reversed(make_segments(4)))
        transcriber = RemoteBatchTranscriber(max_concurrent_requests=2, backend=FakeBackend())

        results = await transcriber.transcribe_segments(segments)

        assert [r.segment_index for r in results] == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_none_text_becomes_empty(self, make_segments) -> None:
        async def silent_backend(payload, model, response_format):
            return None

        transcriber = RemoteBatchTranscriber(backend=silent_backend)

        results = await transcriber.transcribe_segments(make_segments(1))

        assert results[0].transcription == ""

    @pytest.mark.asyncio
    async def test_model_and_format_passed_to_backend(self, make_segments) -> None:
        seen = []

        async def backend(payload, model, response_format):
            seen.append((payload[0], model, response_format))
            return "ok"

        transcriber = RemoteBatchTranscriber(
            model="custom-model", response_format="json", backend=backend
        )
        await transcriber.transcribe_segments(make_segments(1))

        assert seen == [("segment_1.wav", "custom-model", "json")]


class TestPayload:
    def test_encode_payload(self, make_segments) -> None:
        segment = make_segments(2)[1]
        name, data, content_type = encode_payload(segment)
        assert name == "segment_2.wav"
        assert data == b"audio-2"
        assert content_type == "audio/wav"


class TestResponseText:
    def test_plain_string(self) -> None:
        assert _response_text("hello") == "hello"

    def test_object_with_text(self) -> None:
        class Response:
            text = "from object"

        assert _response_text(Response()) == "from object"

    def test_dict_with_text(self) -> None:
        assert _response_text({"text": "from dict"}) == "from dict"

    def test_none(self) -> None:
        assert _response_text(None) == ""


class TestLiteLLMBackend:
    @pytest.mark.asyncio
    async def test_backend_error_becomes_remote_error(self, monkeypatch) -> None:
        litellm = pytest.importorskip("litellm")
        from clipscribe.transcribe.remote import LiteLLMBackend

        class RateLimited(Exception):
            status_code = 429

        async def fake_atranscription(**kwargs):
            raise RateLimited("slow down")

        monkeypatch.setattr(litellm, "atranscription", fake_atranscription)

        with pytest.raises(RemoteTranscriptionError) as exc_info:
            await LiteLLMBackend()(("segment_1.wav", b"x", "audio/wav"), "whisper-1", "text")

        assert exc_info.value.status == 429
        assert "slow down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_backend_passes_request(self, monkeypatch) -> None:
        litellm = pytest.importorskip("litellm")
        from clipscribe.transcribe.remote import LiteLLMBackend

        captured = {}

        async def fake_atranscription(**kwargs):
            captured.update(kwargs)
            return "transcribed"

        monkeypatch.setattr(litellm, "atranscription", fake_atranscription)

        backend = LiteLLMBackend(api_base="http://localhost:9000/v1")
        text = await backend(("segment_1.wav", b"x", "audio/wav"), "whisper-1", "text")

        assert text == "transcribed"
        assert captured["model"] == "whisper-1"
        assert captured["file"] == ("segment_1.wav", b"x", "audio/wav")
        assert captured["response_format"] == "text"
        assert captured["api_base"] == "http://localhost:9000/v1"
