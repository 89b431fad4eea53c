"""
Unit tests for montage utils.
"""
import asyncio
import subprocess
import pytest
from unittest.mock import patch, MagicMock, AsyncMock
from pathlib import Path
from uuid import uuid4

from modules.montage.utils import (
    check_ffmpeg_available,
    ffmpeg_base_command,
    run_ffmpeg_command,
    get_media_duration,
    get_video_properties,
)
from shared.errors import CompositionError


class TestCheckFFmpegAvailable:
    """Tests for check_ffmpeg_available function."""

    @patch('modules.montage.utils.shutil.which')
    def test_ffmpeg_available(self, mock_which):
        """Test when FFmpeg is available."""
        mock_which.return_value = "/usr/bin/ffmpeg"
        assert check_ffmpeg_available() is True

    @patch('modules.montage.utils.shutil.which')
    def test_ffmpeg_not_available(self, mock_which):
        """Test when FFmpeg is not available."""
        mock_which.return_value = None
        assert check_ffmpeg_available() is False


def test_base_command_overwrites_outputs():
    """Test every command starts with the binary and -y."""
    cmd = ffmpeg_base_command()
    assert cmd[0] == "ffmpeg"
    assert "-y" in cmd


class TestRunFFmpegCommand:
    """Tests for run_ffmpeg_command function."""

    @pytest.mark.asyncio
    @patch('modules.montage.utils.asyncio.create_subprocess_exec')
    async def test_run_ffmpeg_success(self, mock_subprocess):
        """Test successful FFmpeg command execution."""
        mock_process = MagicMock()
        mock_process.communicate = AsyncMock(return_value=(b"", b""))
        mock_process.returncode = 0
        mock_subprocess.return_value = mock_process

        cmd = ["ffmpeg", "-i", "input.mp4", "output.mp4"]
        await run_ffmpeg_command(cmd, job_id=uuid4(), timeout=300)

        mock_subprocess.assert_called_once()
        assert mock_subprocess.call_args[0] == tuple(cmd)

    @pytest.mark.asyncio
    @patch('modules.montage.utils.asyncio.create_subprocess_exec')
    async def test_run_ffmpeg_failure(self, mock_subprocess):
        """Test non-zero exit raises CompositionError with stderr."""
        mock_process = MagicMock()
        mock_process.communicate = AsyncMock(return_value=(b"", b"Invalid data found"))
        mock_process.returncode = 1
        mock_subprocess.return_value = mock_process

        with pytest.raises(CompositionError, match="Invalid data found"):
            await run_ffmpeg_command(["ffmpeg", "-i", "bad.mp4", "out.mp4"], job_id=uuid4(), timeout=300)

        # No retry
        mock_subprocess.assert_called_once()

    @pytest.mark.asyncio
    @patch('modules.montage.utils.asyncio.create_subprocess_exec')
    async def test_run_ffmpeg_timeout_kills_process(self, mock_subprocess):
        """Test timeout kills FFmpeg and raises CompositionError."""
        mock_process = MagicMock()
        mock_process.communicate = AsyncMock(side_effect=asyncio.TimeoutError())
        mock_process.wait = AsyncMock(return_value=-9)
        mock_subprocess.return_value = mock_process

        with pytest.raises(CompositionError, match="timeout"):
            await run_ffmpeg_command(["ffmpeg", "-i", "in.mp4", "out.mp4"], job_id=uuid4(), timeout=1)

        mock_process.kill.assert_called_once()

    @pytest.mark.asyncio
    @patch('modules.montage.utils.asyncio.create_subprocess_exec')
    async def test_run_ffmpeg_missing_binary(self, mock_subprocess):
        """Test a missing binary is reported as CompositionError."""
        mock_subprocess.side_effect = FileNotFoundError("ffmpeg")

        with pytest.raises(CompositionError, match="Could not start FFmpeg"):
            await run_ffmpeg_command(["ffmpeg", "-version"], job_id=uuid4())


class TestGetMediaDuration:
    """Tests for get_media_duration function."""

    @pytest.mark.asyncio
    @patch('modules.montage.utils.subprocess.run')
    async def test_duration_success(self, mock_run):
        """Test successful duration extraction."""
        mock_result = MagicMock()
        mock_result.stdout = "9.000000\n"
        mock_run.return_value = mock_result

        assert await get_media_duration(Path("/tmp/merged.mp4")) == 9.0
        mock_run.assert_called_once()
        assert mock_run.call_args[0][0][0] == "ffprobe"

    @pytest.mark.asyncio
    @patch('modules.montage.utils.subprocess.run')
    async def test_duration_unavailable(self, mock_run):
        """Test None when ffprobe is missing."""
        mock_run.side_effect = FileNotFoundError("ffprobe not found")

        assert await get_media_duration(Path("/tmp/merged.mp4")) is None

    @pytest.mark.asyncio
    @patch('modules.montage.utils.subprocess.run')
    async def test_duration_unparseable(self, mock_run):
        """Test None when ffprobe prints N/A."""
        mock_result = MagicMock()
        mock_result.stdout = "N/A\n"
        mock_run.return_value = mock_result

        assert await get_media_duration(Path("/tmp/audio.webm")) is None


class TestGetVideoProperties:
    """Tests for get_video_properties function."""

    @pytest.mark.asyncio
    @patch('modules.montage.utils.subprocess.run')
    async def test_properties_parsed(self, mock_run):
        """Test width, height and fractional frame rate are parsed."""
        mock_result = MagicMock()
        mock_result.stdout = "1280\n720\n30/1\n"
        mock_run.return_value = mock_result

        props = await get_video_properties(Path("/tmp/merged.mp4"))

        assert props == {"width": 1280, "height": 720, "fps": 30.0}

    @pytest.mark.asyncio
    @patch('modules.montage.utils.subprocess.run')
    async def test_properties_failure(self, mock_run):
        """Test None values when ffprobe fails."""
        mock_run.side_effect = subprocess.CalledProcessError(1, "ffprobe")

        props = await get_video_properties(Path("/tmp/merged.mp4"))

        assert props == {"width": None, "height": None, "fps": None}
