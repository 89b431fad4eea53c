"""
Utility functions for montage module.

FFmpeg command execution, duration extraction, and availability checks.
"""
import asyncio
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from shared.config import settings
from shared.errors import CompositionError
from shared.logging import get_logger

logger = get_logger("montage.utils")


def check_ffmpeg_available() -> bool:
    """
    Check if FFmpeg is installed and available.

    Returns:
        True if the configured ffmpeg binary resolves, False otherwise
    """
    return shutil.which(settings.ffmpeg_path) is not None


def ffmpeg_base_command() -> List[str]:
    """Start of every ffmpeg invocation: binary, overwrite, quiet banner."""
    return [settings.ffmpeg_path, "-hide_banner", "-y"]


async def run_ffmpeg_command(
    cmd: List[str],
    job_id: UUID,
    timeout: Optional[int] = None
) -> None:
    """
    Run an FFmpeg command and wait for it to finish.

    No retry is attempted: the first failure aborts the request.

    Args:
        cmd: FFmpeg command as list of strings
        job_id: Job ID for logging
        timeout: Timeout in seconds (default: settings.ffmpeg_timeout)

    Raises:
        CompositionError: If the command exits non-zero, times out, or cannot start
    """
    timeout = timeout or settings.ffmpeg_timeout
    logger.info(
        f"Running FFmpeg command: {' '.join(cmd)}",
        extra={"job_id": str(job_id), "command": cmd}
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        raise CompositionError(f"Could not start FFmpeg: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.error(
            f"FFmpeg command timed out after {timeout}s",
            extra={"job_id": str(job_id), "command": cmd}
        )
        raise CompositionError(f"FFmpeg command timeout after {timeout}s")

    if process.returncode != 0:
        error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown FFmpeg error"
        logger.error(
            f"FFmpeg command failed: {error_msg}",
            extra={"job_id": str(job_id), "error": error_msg, "returncode": process.returncode}
        )
        raise CompositionError(f"FFmpeg command failed: {error_msg}")


async def get_media_duration(media_path: Path) -> Optional[float]:
    """
    Get container duration using ffprobe.

    Works for video and audio files alike.

    Args:
        media_path: Path to media file

    Returns:
        Duration in seconds, or None if it cannot be determined
    """
    try:
        result = await asyncio.to_thread(
            subprocess.run,
            [
                settings.ffprobe_path,
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(media_path)
            ],
            capture_output=True,
            text=True,
            check=True,
            timeout=10
        )
        return float(result.stdout.strip())
    except (FileNotFoundError, subprocess.CalledProcessError, ValueError, subprocess.TimeoutExpired) as e:
        logger.warning(
            f"Failed to get media duration: {e}",
            extra={"media_path": str(media_path)}
        )
        return None


async def get_video_properties(video_path: Path) -> dict:
    """
    Get video properties (width, height, fps) using ffprobe.

    Args:
        video_path: Path to video file

    Returns:
        Dictionary with width, height, fps, or None values if extraction fails
    """
    try:
        result = await asyncio.to_thread(
            subprocess.run,
            [
                settings.ffprobe_path,
                "-v", "error",
                "-select_streams", "v:0",
                "-show_entries", "stream=width,height,r_frame_rate",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(video_path)
            ],
            capture_output=True,
            text=True,
            check=True,
            timeout=10
        )
        lines = result.stdout.strip().split('\n')
        width = int(lines[0]) if lines[0] else None
        height = int(lines[1]) if len(lines) > 1 and lines[1] else None

        # Parse fps from fraction (e.g., "30/1" -> 30.0)
        fps = None
        if len(lines) > 2 and lines[2]:
            fps_str = lines[2].strip()
            if '/' in fps_str:
                num, den = fps_str.split('/')
                fps = float(num) / float(den) if float(den) != 0 else None
            else:
                fps = float(fps_str)

        return {
            "width": width,
            "height": height,
            "fps": fps
        }
    except (FileNotFoundError, subprocess.CalledProcessError, ValueError, subprocess.TimeoutExpired, IndexError) as e:
        logger.warning(
            f"Failed to get video properties: {e}",
            extra={"video_path": str(video_path)}
        )
        return {"width": None, "height": None, "fps": None}
