"""
Error types.

Exception hierarchy shared by the API gateway and the montage pipeline.
"""


class PipelineError(Exception):
    """Base error for every failure raised by the montage service."""


class ConfigError(PipelineError):
    """Invalid or missing configuration."""


class ValidationError(PipelineError):
    """Client input problem (missing media, missing audio, too many files)."""


class NoValidMediaError(ValidationError):
    """Every supplied media item had an unsupported MIME type."""

    def __init__(self, message: str = "No valid media (image/video) files to process."):
        super().__init__(message)


class CompositionError(PipelineError):
    """An ffmpeg stage failed or produced no output."""
