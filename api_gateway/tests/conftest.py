"""
Pytest fixtures for API gateway tests.
"""
from contextlib import ExitStack
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from shared.config import settings
from shared.errors import CompositionError
from api_gateway.main import app


class RecordingFFmpeg:
    """Writes a placeholder file at each command's output path and records the call.

    The output is written before a configured failure is raised, the way
    FFmpeg leaves a partial file behind when it aborts.
    """

    def __init__(self, fail_on: str = None):
        self.commands = []
        self.fail_on = fail_on

    async def __call__(self, cmd, job_id, timeout=None):
        self.commands.append(list(cmd))
        Path(cmd[-1]).write_bytes(b"MP4" + b"\x00" * 2045)
        if self.fail_on and any(self.fail_on in str(part) for part in cmd):
            raise CompositionError("FFmpeg command failed: simulated failure")


@pytest.fixture
def work_dirs(tmp_path, monkeypatch):
    """Point the service's working directories at tmp_path."""
    dirs = {
        "upload_dir": tmp_path / "uploads",
        "temp_dir": tmp_path / "temp",
        "output_dir": tmp_path / "outputs",
    }
    for name, path in dirs.items():
        monkeypatch.setattr(settings, name, path)
    return dirs


@pytest.fixture
def client(work_dirs):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def pipeline_ffmpeg():
    """Patch FFmpeg/ffprobe in every pipeline stage; yields a factory taking fail_on."""
    with ExitStack() as stack:
        def _install(fail_on: str = None) -> RecordingFFmpeg:
            ffmpeg = RecordingFFmpeg(fail_on=fail_on)
            for module in ("normalizer", "concatenator", "audio_muxer"):
                stack.enter_context(patch(f"modules.montage.{module}.run_ffmpeg_command", new=ffmpeg))
            stack.enter_context(patch("modules.montage.process.check_ffmpeg_available", return_value=True))
            stack.enter_context(patch("modules.montage.process.get_media_duration", new=AsyncMock(return_value=5.0)))
            stack.enter_context(patch(
                "modules.montage.process.get_video_properties",
                new=AsyncMock(return_value={"width": 1280, "height": 720, "fps": 30.0})
            ))
            return ffmpeg
        yield _install
