"""
Media data models.

Defines the uploaded inputs (MediaItem, AudioTrack), the normalized Segment,
and the outcome models of a montage run (MontageResult, CleanupReport).
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class MediaKind(str, Enum):
    """Media kinds the normalizer can turn into a segment."""
    IMAGE = "image"
    VIDEO = "video"


class PipelineStage(str, Enum):
    """Lifecycle of one montage request."""
    RECEIVED = "received"
    NORMALIZING = "normalizing"
    CONCATENATING = "concatenating"
    MUXING = "muxing"
    DELIVERING = "delivering"
    CLEANED_UP = "cleaned_up"
    CLEANUP_PARTIAL_FAILURE = "cleanup_partial_failure"
    FAILED = "failed"


def classify_mime_type(mime_type: Optional[str]) -> Optional[MediaKind]:
    """
    Map a MIME type to a MediaKind.

    Args:
        mime_type: MIME type reported by the client (may be None or empty)

    Returns:
        MediaKind.IMAGE for image/*, MediaKind.VIDEO for video/*, None otherwise
    """
    mime = (mime_type or "").strip().lower()
    if mime.startswith("image/"):
        return MediaKind.IMAGE
    if mime.startswith("video/"):
        return MediaKind.VIDEO
    return None


class MediaItem(BaseModel):
    """One uploaded photo or video, positioned by the user's chosen order."""

    model_config = ConfigDict(frozen=True)

    ordinal: int = Field(..., ge=0, description="Position in the user's order")
    source_path: Path
    mime_type: str = ""
    original_filename: Optional[str] = None

    @property
    def kind(self) -> Optional[MediaKind]:
        """Image, video, or None for unsupported MIME types."""
        return classify_mime_type(self.mime_type)


class AudioTrack(BaseModel):
    """The user's recorded soundtrack (any duration, any codec)."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    mime_type: str = ""
    original_filename: Optional[str] = None


class Segment(BaseModel):
    """A normalized, fixed-format clip derived from one MediaItem."""

    model_config = ConfigDict(frozen=True)

    source_ordinal: int = Field(..., ge=0)
    path: Path
    width: int = 1280
    height: int = 720
    fps: int = 30
    pix_fmt: str = "yuv420p"


class CleanupReport(BaseModel):
    """Outcome of deleting a request's temporary files."""

    removed: List[Path] = Field(default_factory=list)
    failed: List[Path] = Field(default_factory=list)

    @property
    def status(self) -> PipelineStage:
        """Terminal stage reached by the cleanup."""
        if self.failed:
            return PipelineStage.CLEANUP_PARTIAL_FAILURE
        return PipelineStage.CLEANED_UP


class MontageResult(BaseModel):
    """Final artifact produced for a request."""

    job_id: UUID
    output_path: Path
    segment_count: int
    skipped_ordinals: List[int] = Field(default_factory=list)
    merged_duration: Optional[float] = Field(None, description="Concatenated video duration in seconds")
    final_duration: Optional[float] = Field(None, description="Muxed output duration in seconds")
    timings: Dict[str, float] = Field(default_factory=dict)

    @field_serializer("job_id")
    def serialize_uuid(self, value: UUID) -> str:
        """Serialize UUID to string."""
        return str(value)
