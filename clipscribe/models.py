"""
clipscribe.models - Segment, result and progress types.

AudioSegment is the unit of transcription work. Everything except the
late-bound ``transcription`` field is frozen once the segmentation step has
built it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AudioSegment(BaseModel):
    """A time slice of the source recording plus its encoded audio."""

    model_config = ConfigDict(validate_assignment=True)

    buffer: bytes = Field(frozen=True, repr=False)
    file_name: str = Field(frozen=True)
    start_time: float = Field(frozen=True, ge=0.0)
    end_time: float = Field(frozen=True)
    index: int = Field(frozen=True, ge=1)
    transcription: str | None = None

    @model_validator(mode="after")
    def validate_window(self) -> AudioSegment:
        if self.end_time <= self.start_time:
            raise ValueError(
                f"end_time ({self.end_time}) must be greater than start_time ({self.start_time})"
            )
        return self

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class TranscriptionResult(BaseModel):
    """Transcribed text for one segment, keyed by the segment's index."""

    model_config = ConfigDict(frozen=True)

    transcription: str
    segment_index: int


class TranscriptionProgress(BaseModel):
    """Snapshot pushed to progress callbacks after each unit of work."""

    model_config = ConfigDict(frozen=True)

    completed: int = Field(ge=0)
    total: int = Field(ge=0)
    current_segment: int | None = None
