"""
Segment concatenation for montage module.

Writes an FFmpeg concat-demuxer list file and joins the segments, in order,
into one video-only track.
"""
from pathlib import Path
from typing import Sequence
from uuid import UUID, uuid4

from shared.errors import CompositionError
from shared.logging import get_logger
from .utils import run_ffmpeg_command, ffmpeg_base_command
from .config import OUTPUT_FPS, OUTPUT_PIX_FMT, OUTPUT_VIDEO_CODEC

logger = get_logger("montage.concatenator")


def quote_concat_path(path: Path) -> str:
    """
    Quote a path for the concat demuxer list syntax.

    Single quotes cannot be escaped inside a quoted string, so each one closes
    the string, emits an escaped quote and reopens it: ' -> '\\''

    Args:
        path: Segment path

    Returns:
        Quoted path, e.g. 'it'\\''s.mp4'
    """
    return "'" + str(path).replace("'", "'\\''") + "'"


def build_concat_manifest(segment_paths: Sequence[Path]) -> str:
    """
    Render the concat list, one `file '<path>'` line per segment, in order.

    Args:
        segment_paths: Segment paths in playback order

    Returns:
        Manifest text (lines joined with newlines)
    """
    return "\n".join(f"file {quote_concat_path(p)}" for p in segment_paths)


def write_concat_manifest(segment_paths: Sequence[Path], manifest_path: Path) -> Path:
    """Write the concat list to manifest_path and return it."""
    manifest_path.write_text(build_concat_manifest(segment_paths), encoding="utf-8")
    return manifest_path


def build_concat_command(manifest_path: Path, output_path: Path) -> list:
    """FFmpeg concat-demuxer command with a forced uniform re-encode."""
    return ffmpeg_base_command() + [
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        "-an",
        "-c:v", OUTPUT_VIDEO_CODEC,
        "-pix_fmt", OUTPUT_PIX_FMT,
        "-r", str(OUTPUT_FPS),
        str(output_path)
    ]


async def concatenate_segments(
    segment_paths: Sequence[Path],
    temp_dir: Path,
    job_id: UUID
) -> Path:
    """
    Concatenate segments into a single video track.

    Re-encodes rather than stream-copying so residual differences between
    segments cannot break the concat.

    Args:
        segment_paths: Normalized segment paths in playback order
        temp_dir: Request temp directory for the manifest and output
        job_id: Job ID for logging

    Returns:
        Path to the merged video (no audio stream)

    Raises:
        CompositionError: If the list is empty or FFmpeg fails
    """
    if not segment_paths:
        raise CompositionError("No segments to concatenate")

    suffix = uuid4().hex[:8]
    manifest_path = write_concat_manifest(
        [Path(p).absolute() for p in segment_paths],
        temp_dir / f"concat_{suffix}.txt"
    )
    output_path = temp_dir / f"merged_{suffix}.mp4"

    logger.info(
        f"Concatenating {len(segment_paths)} segments",
        extra={"job_id": str(job_id), "segment_count": len(segment_paths), "manifest": str(manifest_path)}
    )

    try:
        await run_ffmpeg_command(build_concat_command(manifest_path, output_path), job_id=job_id)
    except Exception as e:
        if isinstance(e, CompositionError):
            raise
        raise CompositionError(f"Failed to concatenate segments: {e}") from e

    if not output_path.exists():
        raise CompositionError(f"Concatenated video not created: {output_path}")

    logger.info(
        "Concatenation finished",
        extra={"job_id": str(job_id), "merged_path": str(output_path)}
    )
    return output_path
