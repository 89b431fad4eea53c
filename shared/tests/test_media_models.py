"""
Tests for media models.
"""

from pathlib import Path
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from shared.models import (
    MediaKind,
    PipelineStage,
    classify_mime_type,
    MediaItem,
    Segment,
    CleanupReport,
    MontageResult,
)


@pytest.mark.parametrize("mime_type,expected", [
    ("image/png", MediaKind.IMAGE),
    ("IMAGE/JPEG", MediaKind.IMAGE),
    ("video/webm", MediaKind.VIDEO),
    ("video/quicktime", MediaKind.VIDEO),
    ("audio/webm", None),
    ("text/plain", None),
    ("", None),
    (None, None),
])
def test_classify_mime_type(mime_type, expected):
    """Test only image/* and video/* are supported."""
    assert classify_mime_type(mime_type) == expected


def test_media_item_kind():
    """Test MediaItem.kind follows its MIME type."""
    item = MediaItem(ordinal=0, source_path=Path("/u/a.png"), mime_type="image/png")
    assert item.kind is MediaKind.IMAGE
    assert MediaItem(ordinal=1, source_path=Path("/u/a.txt"), mime_type="text/plain").kind is None


def test_media_item_immutable():
    """Test uploaded items cannot be modified."""
    item = MediaItem(ordinal=0, source_path=Path("/u/a.png"), mime_type="image/png")
    with pytest.raises(PydanticValidationError):
        item.ordinal = 5


def test_media_item_rejects_negative_ordinal():
    """Test ordinals start at zero."""
    with pytest.raises(PydanticValidationError):
        MediaItem(ordinal=-1, source_path=Path("/u/a.png"), mime_type="image/png")


def test_segment_defaults():
    """Test segments default to the common output format."""
    segment = Segment(source_ordinal=2, path=Path("/t/image_002.mp4"))
    assert (segment.width, segment.height, segment.fps, segment.pix_fmt) == (1280, 720, 30, "yuv420p")


def test_cleanup_report_status():
    """Test cleanup status reflects failures."""
    assert CleanupReport().status is PipelineStage.CLEANED_UP
    assert CleanupReport(failed=[Path("/t/x")]).status is PipelineStage.CLEANUP_PARTIAL_FAILURE


def test_montage_result_serializes_job_id():
    """Test job_id is serialized as a string."""
    job_id = uuid4()
    result = MontageResult(job_id=job_id, output_path=Path("/o/final.mp4"), segment_count=3)
    dumped = result.model_dump()
    assert dumped["job_id"] == str(job_id)
    assert dumped["skipped_ordinals"] == []
