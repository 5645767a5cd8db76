"""
clipscribe.exceptions - Custom exception classes.

All Clipscribe-specific exceptions inherit from ClipscribeError.
"""


class ClipscribeError(Exception):
    """Base exception for all Clipscribe errors."""

    pass


class ConfigError(ClipscribeError):
    """Configuration loading or validation error."""

    pass


class ExtractionError(ClipscribeError):
    """Audio probing or segmentation error."""

    pass


class TranscriptionError(ClipscribeError):
    """Transcription run error."""

    pass


class RemoteTranscriptionError(TranscriptionError):
    """Remote speech-to-text backend returned a non-success response."""

    def __init__(self, status: int | None, message: str):
        self.status = status
        self.message = message
        prefix = f"API error: {status}" if status is not None else "API error"
        super().__init__(f"{prefix} - {message}")


class DependencyError(ClipscribeError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")


class LLMError(ClipscribeError):
    """Chat-completion backend or prompt error."""

    pass


class LLMResponseError(LLMError):
    """Model returned a malformed or unexpected response."""

    pass
