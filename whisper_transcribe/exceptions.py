"""
whisper_transcribe.exceptions - Custom exception classes.

All whisper-transcribe exceptions inherit from WhisperTranscribeError.
"""


class WhisperTranscribeError(Exception):
    """Base exception for all whisper-transcribe errors."""

    pass


class ConfigError(WhisperTranscribeError):
    """Configuration loading or validation error."""

    pass


class ValidationError(WhisperTranscribeError):
    """Bad or missing input, e.g. an unsupported source format."""

    pass


class ToolInvocationError(WhisperTranscribeError):
    """External tool failed or produced no usable output."""

    pass


class DependencyError(ToolInvocationError):
    """Required external binary missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")


class ModelNotFoundError(WhisperTranscribeError):
    """Whisper model file is not available locally."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"model '{model}' not found locally")


class OutputError(WhisperTranscribeError):
    """Writing the transcript to disk failed."""

    pass


class PipelineCancelled(WhisperTranscribeError):
    """The run was cancelled through its cancel token."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)
