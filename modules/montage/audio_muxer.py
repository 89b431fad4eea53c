"""
Audio muxing for montage module.

Combines the concatenated video with the recorded soundtrack.
"""
from pathlib import Path
from uuid import UUID

from shared.errors import CompositionError
from shared.logging import get_logger
from .utils import run_ffmpeg_command, ffmpeg_base_command
from .config import OUTPUT_AUDIO_CODEC, OUTPUT_AUDIO_BITRATE

logger = get_logger("montage.audio_muxer")


def build_mux_command(video_path: Path, audio_path: Path, output_path: Path) -> list:
    """FFmpeg command: copy video, encode audio to AAC, stop at the shorter stream."""
    return ffmpeg_base_command() + [
        "-i", str(video_path),
        "-i", str(audio_path),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-c:v", "copy",  # Already normalized by the concat stage
        "-c:a", OUTPUT_AUDIO_CODEC,
        "-b:a", OUTPUT_AUDIO_BITRATE,
        "-shortest",
        str(output_path)
    ]


async def mux_audio(
    video_path: Path,
    audio_path: Path,
    output_path: Path,
    job_id: UUID
) -> Path:
    """
    Mux the recorded audio under the merged video.

    The output lasts as long as the shorter of the two inputs: a long video
    is cut to a short recording and a long recording is cut to a short video.

    Args:
        video_path: Merged video track (no audio)
        audio_path: Recorded audio file, any codec FFmpeg can decode
        output_path: Where to write the final artifact
        job_id: Job ID for logging

    Returns:
        output_path

    Raises:
        CompositionError: If FFmpeg fails or produces no output
    """
    logger.info("Muxing audio with video", extra={"job_id": str(job_id), "audio_path": str(audio_path)})

    try:
        await run_ffmpeg_command(build_mux_command(video_path, audio_path, output_path), job_id=job_id)
    except Exception as e:
        if isinstance(e, CompositionError):
            raise
        raise CompositionError(f"Failed to mux audio: {e}") from e

    if not output_path.exists():
        raise CompositionError(f"Final video not created: {output_path}")

    logger.info(
        f"Final merge finished ({output_path.stat().st_size / 1024 / 1024:.2f} MB)",
        extra={"job_id": str(job_id), "output_path": str(output_path)}
    )
    return output_path
