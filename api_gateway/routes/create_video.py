"""
Create-video endpoint.

Accepts ordered media uploads plus one audio recording, runs the montage
pipeline and streams the result back as an attachment.
"""

from typing import List, Optional
from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from shared.config import settings
from shared.errors import CompositionError, PipelineError, ValidationError
from shared.logging import get_logger, job_context
from shared.models.media import PipelineStage
from modules.montage import compose_montage, create_workspace, cleanup_workspace, discard_workspace
from modules.montage.config import DOWNLOAD_FILENAME
from api_gateway.services.intake import intake_audio, intake_media

logger = get_logger(__name__)

router = APIRouter()


def check_upload_counts(media: Optional[List[UploadFile]], audio: Optional[UploadFile]) -> None:
    """
    Validate the form before anything touches disk.

    Raises:
        ValidationError: Missing media, missing audio, or too many media files
    """
    if not media:
        raise ValidationError("No media files received.")
    if audio is None:
        raise ValidationError("No audio file received.")
    if len(media) > settings.max_media_items:
        raise ValidationError(f"Too many media files (max {settings.max_media_items}).")


@router.post("/create-video")
async def create_video(
    request: Request,
    media: Optional[List[UploadFile]] = File(None),
    audio: Optional[UploadFile] = File(None)
):
    """
    Build one video from the uploaded media and recorded audio.

    Args:
        media: Photos/videos in playback order (repeatable field, max 50)
        audio: Recorded soundtrack

    Returns:
        MP4 attachment named final-video.mp4; the X-Skipped-Media header lists
        ordinals of items skipped for unsupported MIME types
    """
    check_upload_counts(media, audio)

    workspace = create_workspace(settings.upload_dir, settings.temp_dir, settings.output_dir)
    with job_context(workspace.job_id):
        try:
            media_items = await intake_media(media, workspace.intake_dir)
            audio_track = await intake_audio(audio, workspace.intake_dir)
            result = await compose_montage(
                media_items,
                audio_track,
                workspace,
                job_slots=getattr(request.app.state, "job_slots", None),
            )
        except ValidationError:
            discard_workspace(workspace)
            raise
        except PipelineError as e:
            logger.error(
                f"Montage failed: {e}",
                exc_info=True,
                extra={"job_id": str(workspace.job_id), "stage": PipelineStage.FAILED.value}
            )
            discard_workspace(workspace)
            raise
        except Exception as e:
            logger.error(
                f"Unexpected montage failure: {e}",
                exc_info=True,
                extra={"job_id": str(workspace.job_id), "stage": PipelineStage.FAILED.value}
            )
            discard_workspace(workspace)
            raise CompositionError(f"Unexpected montage failure: {e}") from e

        logger.info(
            f"Montage stage: {PipelineStage.DELIVERING.value}",
            extra={"job_id": str(workspace.job_id), "stage": PipelineStage.DELIVERING.value,
                   "output_path": str(result.output_path)}
        )

    headers = {}
    if result.skipped_ordinals:
        headers["X-Skipped-Media"] = ",".join(str(o) for o in result.skipped_ordinals)

    # Cleanup runs after the body has been streamed
    return FileResponse(
        result.output_path,
        media_type="video/mp4",
        filename=DOWNLOAD_FILENAME,
        headers=headers,
        background=BackgroundTask(cleanup_workspace, workspace),
    )
