"""
Data models for the montage pipeline.

This module exports all Pydantic models used across pipeline modules.
"""

from .media import (
    MediaKind,
    PipelineStage,
    classify_mime_type,
    MediaItem,
    AudioTrack,
    Segment,
    CleanupReport,
    MontageResult,
)

__all__ = [
    "MediaKind",
    "PipelineStage",
    "classify_mime_type",
    "MediaItem",
    "AudioTrack",
    "Segment",
    "CleanupReport",
    "MontageResult",
]
