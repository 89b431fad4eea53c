"""
Per-item normalization for montage module.

Turns each uploaded photo into a fixed-length silent clip and re-encodes each
uploaded video, so that every segment is 1280x720 @ 30 FPS yuv420p H.264.
"""
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from shared.errors import CompositionError
from shared.logging import get_logger
from shared.models.media import MediaItem, MediaKind, Segment
from .utils import run_ffmpeg_command, ffmpeg_base_command
from .config import (
    OUTPUT_WIDTH,
    OUTPUT_HEIGHT,
    OUTPUT_FPS,
    OUTPUT_PIX_FMT,
    OUTPUT_VIDEO_CODEC,
    OUTPUT_AUDIO_CODEC,
    IMAGE_SEGMENT_SECONDS,
    scale_filter,
)

logger = get_logger("montage.normalizer")


def segment_output_path(temp_dir: Path, kind: MediaKind, ordinal: int) -> Path:
    """Unique segment path, e.g. temp/<job>/image_003_1a2b3c4d.mp4."""
    return temp_dir / f"{kind.value}_{ordinal:03d}_{uuid4().hex[:8]}.mp4"


def build_image_command(input_path: Path, output_path: Path) -> list:
    """FFmpeg command that loops a still image into a silent clip."""
    return ffmpeg_base_command() + [
        "-loop", "1",
        "-i", str(input_path),
        "-t", str(IMAGE_SEGMENT_SECONDS),
        "-r", str(OUTPUT_FPS),
        "-vf", scale_filter(),
        "-c:v", OUTPUT_VIDEO_CODEC,
        str(output_path)
    ]


def build_video_command(input_path: Path, output_path: Path) -> list:
    """FFmpeg command that re-encodes a video to the common format, keeping its length."""
    return ffmpeg_base_command() + [
        "-i", str(input_path),
        "-r", str(OUTPUT_FPS),
        "-vf", scale_filter(),
        "-c:v", OUTPUT_VIDEO_CODEC,
        "-c:a", OUTPUT_AUDIO_CODEC,
        str(output_path)
    ]


async def _encode_segment(item: MediaItem, kind: MediaKind, cmd: list, output_path: Path, job_id: UUID) -> Segment:
    try:
        await run_ffmpeg_command(cmd, job_id=job_id)
    except Exception as e:
        if isinstance(e, CompositionError):
            raise
        raise CompositionError(f"Failed to normalize media item {item.ordinal}: {e}") from e

    if not output_path.exists():
        raise CompositionError(f"Normalized segment not created: {output_path}")

    logger.info(
        f"Normalized {kind.value} item {item.ordinal}",
        extra={"job_id": str(job_id), "ordinal": item.ordinal, "segment_path": str(output_path)}
    )
    return Segment(
        source_ordinal=item.ordinal,
        path=output_path,
        width=OUTPUT_WIDTH,
        height=OUTPUT_HEIGHT,
        fps=OUTPUT_FPS,
        pix_fmt=OUTPUT_PIX_FMT,
    )


async def image_to_segment(item: MediaItem, temp_dir: Path, job_id: UUID) -> Segment:
    """
    Convert a still image into a silent segment of IMAGE_SEGMENT_SECONDS.

    Args:
        item: Image media item
        temp_dir: Request temp directory for output
        job_id: Job ID for logging

    Returns:
        Segment pointing at the encoded clip

    Raises:
        CompositionError: If FFmpeg fails or produces no output
    """
    output_path = segment_output_path(temp_dir, MediaKind.IMAGE, item.ordinal)
    cmd = build_image_command(item.source_path, output_path)
    logger.info(
        f"Converting image {item.ordinal} to {IMAGE_SEGMENT_SECONDS}s clip",
        extra={"job_id": str(job_id), "ordinal": item.ordinal, "mime_type": item.mime_type}
    )
    return await _encode_segment(item, MediaKind.IMAGE, cmd, output_path, job_id)


async def normalize_video(item: MediaItem, temp_dir: Path, job_id: UUID) -> Segment:
    """
    Re-encode a video to OUTPUT_WIDTH x OUTPUT_HEIGHT @ OUTPUT_FPS without trimming.

    Args:
        item: Video media item
        temp_dir: Request temp directory for output
        job_id: Job ID for logging

    Returns:
        Segment pointing at the normalized clip

    Raises:
        CompositionError: If FFmpeg fails or produces no output
    """
    output_path = segment_output_path(temp_dir, MediaKind.VIDEO, item.ordinal)
    cmd = build_video_command(item.source_path, output_path)
    logger.info(
        f"Normalizing video {item.ordinal} to {OUTPUT_WIDTH}x{OUTPUT_HEIGHT} @ {OUTPUT_FPS}fps",
        extra={"job_id": str(job_id), "ordinal": item.ordinal, "mime_type": item.mime_type}
    )
    return await _encode_segment(item, MediaKind.VIDEO, cmd, output_path, job_id)


async def normalize_item(item: MediaItem, temp_dir: Path, job_id: UUID) -> Optional[Segment]:
    """
    Produce exactly one segment for a media item, or skip it.

    Items whose MIME type is neither image/* nor video/* are skipped with a
    warning; that is not an error.

    Returns:
        Segment, or None if the item was skipped
    """
    kind = item.kind
    if kind is MediaKind.IMAGE:
        return await image_to_segment(item, temp_dir, job_id)
    if kind is MediaKind.VIDEO:
        return await normalize_video(item, temp_dir, job_id)

    logger.warning(
        f"Skipping unsupported file type: {item.mime_type or 'unknown'}",
        extra={"job_id": str(job_id), "ordinal": item.ordinal, "mime_type": item.mime_type}
    )
    return None
