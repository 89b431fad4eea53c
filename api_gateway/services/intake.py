"""
Upload intake.

Persists multipart uploads into the request's intake directory and turns
them into MediaItem / AudioTrack models.
"""

import re
from pathlib import Path
from typing import List, Sequence
from uuid import uuid4

import aiofiles
from fastapi import UploadFile

from shared.logging import get_logger
from shared.models.media import AudioTrack, MediaItem

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


def safe_suffix(filename: str) -> str:
    """
    Extension to keep on the stored copy.

    Only word characters survive so a client-supplied name can never escape
    the intake directory or confuse FFmpeg's format probing.
    """
    suffix = Path(filename or "").suffix.lower()
    suffix = re.sub(r"[^\w.]", "", suffix)
    return suffix if re.fullmatch(r"\.\w{1,10}", suffix) else ""


async def save_upload(upload: UploadFile, target_dir: Path, stem: str) -> Path:
    """
    Stream an upload to disk under a collision-free name.

    Args:
        upload: Uploaded file
        target_dir: Request intake directory
        stem: Name prefix (e.g. "media_003" or "audio")

    Returns:
        Path of the stored copy
    """
    path = target_dir / f"{stem}_{uuid4().hex[:8]}{safe_suffix(upload.filename)}"
    await upload.seek(0)
    async with aiofiles.open(path, "wb") as out:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            await out.write(chunk)
    return path


async def intake_media(uploads: Sequence[UploadFile], intake_dir: Path) -> List[MediaItem]:
    """
    Store media uploads, keeping the order they arrived in.

    The form field order is the user's chosen order, so the index in the
    upload list becomes the item's ordinal.
    """
    items = []
    for ordinal, upload in enumerate(uploads):
        path = await save_upload(upload, intake_dir, f"media_{ordinal:03d}")
        items.append(
            MediaItem(
                ordinal=ordinal,
                source_path=path,
                mime_type=upload.content_type or "",
                original_filename=upload.filename,
            )
        )
    logger.info(
        f"Stored {len(items)} media uploads",
        extra={"intake_dir": str(intake_dir), "mime_types": [item.mime_type for item in items]}
    )
    return items


async def intake_audio(upload: UploadFile, intake_dir: Path) -> AudioTrack:
    """Store the recorded audio upload."""
    path = await save_upload(upload, intake_dir, "audio")
    logger.info(
        "Stored audio upload",
        extra={"audio_path": str(path), "mime_type": upload.content_type}
    )
    return AudioTrack(
        source_path=path,
        mime_type=upload.content_type or "",
        original_filename=upload.filename,
    )
