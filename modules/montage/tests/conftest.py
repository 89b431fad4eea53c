"""
Pytest fixtures for montage tests.
"""
import asyncio
import pytest
from pathlib import Path
from uuid import uuid4

from shared.errors import CompositionError
from shared.models.media import AudioTrack, MediaItem
from modules.montage.workspace import create_workspace


class FakeFFmpeg:
    """
    Stand-in for run_ffmpeg_command.

    Records every command and writes a small file at the output path (the
    last argument) so stages see their output exist. Commands containing
    `fail_on` raise CompositionError instead.
    """

    def __init__(self, fail_on: str = None, delay: float = 0.0):
        self.commands = []
        self.fail_on = fail_on
        self.delay = delay
        self.active = 0
        self.max_active = 0

    async def __call__(self, cmd, job_id, timeout=None):
        self.commands.append(list(cmd))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_on and any(self.fail_on in str(part) for part in cmd):
                raise CompositionError("FFmpeg command failed: simulated failure")
            Path(cmd[-1]).write_bytes(b"\x00" * 2048)
        finally:
            self.active -= 1


@pytest.fixture
def fake_ffmpeg():
    """Factory for FakeFFmpeg instances."""
    return FakeFFmpeg


@pytest.fixture
def sample_job_id():
    """Create a sample job ID."""
    return uuid4()


@pytest.fixture
def workspace(tmp_path):
    """Fresh request workspace under tmp_path."""
    return create_workspace(tmp_path / "uploads", tmp_path / "temp", tmp_path / "outputs")


@pytest.fixture
def make_media_item(workspace):
    """Create a MediaItem backed by a real file in the intake directory."""
    def _create(ordinal: int, mime_type: str = "image/png", name: str = None):
        path = workspace.intake_dir / (name or f"media_{ordinal:03d}.bin")
        path.write_bytes(b"fake media")
        return MediaItem(ordinal=ordinal, source_path=path, mime_type=mime_type)
    return _create


@pytest.fixture
def audio_track(workspace):
    """Recorded audio stored in the intake directory."""
    path = workspace.intake_dir / "audio.webm"
    path.write_bytes(b"fake audio")
    return AudioTrack(source_path=path, mime_type="audio/webm", original_filename="background-audio.webm")
