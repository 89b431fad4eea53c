"""
Main entry point for montage module.

Orchestrates montage creation: normalizes each uploaded item, concatenates
the segments in the user's order, and muxes the recorded audio on top.
Stages run strictly one after another; each FFmpeg call is awaited before
the next one starts.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

from shared.errors import CompositionError, NoValidMediaError, ValidationError
from shared.logging import get_logger
from shared.models.media import AudioTrack, MediaItem, MontageResult, PipelineStage, Segment

from .config import OUTPUT_WIDTH, OUTPUT_HEIGHT, OUTPUT_FPS
from .utils import check_ffmpeg_available, get_media_duration, get_video_properties
from .normalizer import normalize_item
from .concatenator import concatenate_segments
from .audio_muxer import mux_audio
from .workspace import RequestWorkspace

logger = get_logger("montage.process")


@asynccontextmanager
async def job_slot(job_slots: Optional[asyncio.Semaphore]) -> AsyncIterator[None]:
    """
    Hold one of the shared job slots for the duration of a montage.

    Args:
        job_slots: Semaphore bounding concurrent montages, or None for no bound
    """
    if job_slots is None:
        yield
        return
    async with job_slots:
        yield


def enter_stage(workspace: RequestWorkspace, stage: PipelineStage, **extra) -> None:
    """Log a pipeline state transition."""
    logger.info(
        f"Montage stage: {stage.value}",
        extra={"job_id": str(workspace.job_id), "stage": stage.value, **extra}
    )


def validate_inputs(media_items: Sequence[MediaItem], audio: Optional[AudioTrack]) -> None:
    """
    Reject requests that cannot produce a video before any FFmpeg call.

    Raises:
        ValidationError: If there is no media or no audio
    """
    if not media_items:
        raise ValidationError("No media files received.")
    if audio is None:
        raise ValidationError("No audio file received.")


def check_any_supported(media_items: Sequence[MediaItem], workspace: RequestWorkspace) -> None:
    """
    Reject a request with no image/video item before FFmpeg or a job slot is needed.

    Raises:
        NoValidMediaError: If every item has an unsupported MIME type
    """
    if any(item.kind is not None for item in media_items):
        return
    for item in media_items:
        logger.warning(
            f"Skipping unsupported file type: {item.mime_type or 'unknown'}",
            extra={"job_id": str(workspace.job_id), "ordinal": item.ordinal, "mime_type": item.mime_type}
        )
    raise NoValidMediaError()


async def normalize_all(
    media_items: Sequence[MediaItem],
    workspace: RequestWorkspace
) -> tuple:
    """
    Normalize items one at a time, in the order given.

    Returns:
        Tuple of (segments, skipped_ordinals)

    Raises:
        NoValidMediaError: If every item was skipped
        CompositionError: On the first FFmpeg failure
    """
    segments: List[Segment] = []
    skipped: List[int] = []
    for item in media_items:
        segment = await normalize_item(item, workspace.temp_dir, workspace.job_id)
        if segment is None:
            skipped.append(item.ordinal)
        else:
            segments.append(segment)

    if not segments:
        raise NoValidMediaError()
    return segments, skipped


async def compose_montage(
    media_items: Sequence[MediaItem],
    audio: Optional[AudioTrack],
    workspace: RequestWorkspace,
    job_slots: Optional[asyncio.Semaphore] = None
) -> MontageResult:
    """
    Main composition function.

    The workspace is not cleaned here: the caller removes it once the
    artifact has been delivered, or right away on failure.

    Args:
        media_items: Uploaded photos/videos in the user's order
        audio: Recorded soundtrack
        workspace: Request workspace (intake, temp and output directories)
        job_slots: Optional semaphore bounding concurrent montages

    Returns:
        MontageResult pointing at the final artifact in the output directory

    Raises:
        ValidationError: Missing media or audio (no FFmpeg call is made)
        NoValidMediaError: No image/video items (checked before FFmpeg and the job slot)
        CompositionError: Any FFmpeg stage failure
    """
    job_id = workspace.job_id
    enter_stage(workspace, PipelineStage.RECEIVED, media_count=len(media_items))
    validate_inputs(media_items, audio)
    check_any_supported(media_items, workspace)

    if not check_ffmpeg_available():
        raise CompositionError(
            "FFmpeg not found. Please install FFmpeg:\n"
            "  macOS: brew install ffmpeg\n"
            "  Linux: apt-get install ffmpeg or yum install ffmpeg\n"
            "  Windows: Download from https://ffmpeg.org/"
        )

    timings = {}
    start_time = time.time()

    async with job_slot(job_slots):
        try:
            # Step 1: one segment per supported item
            enter_stage(workspace, PipelineStage.NORMALIZING)
            step_start = time.time()
            segments, skipped = await normalize_all(media_items, workspace)
            timings["normalize"] = time.time() - step_start
            logger.info(
                f"Normalized {len(segments)} items ({len(skipped)} skipped) in {timings['normalize']:.2f}s",
                extra={"job_id": str(job_id), "segment_count": len(segments), "skipped_ordinals": skipped}
            )

            # Step 2: concat list + concatenation
            enter_stage(workspace, PipelineStage.CONCATENATING)
            step_start = time.time()
            merged_path = await concatenate_segments(
                [segment.path for segment in segments], workspace.temp_dir, job_id
            )
            timings["concatenate"] = time.time() - step_start

            merged_duration = await get_media_duration(merged_path)
            props = await get_video_properties(merged_path)
            if props.get("width") is not None and (
                props.get("width") != OUTPUT_WIDTH
                or props.get("height") != OUTPUT_HEIGHT
                or (props.get("fps") is not None and abs(props["fps"] - OUTPUT_FPS) > 0.5)
            ):
                logger.warning(
                    f"Merged track is {props.get('width')}x{props.get('height')} @ {props.get('fps')}fps, "
                    f"expected {OUTPUT_WIDTH}x{OUTPUT_HEIGHT} @ {OUTPUT_FPS}fps",
                    extra={"job_id": str(job_id)}
                )

            # Step 3: audio mux with shortest policy
            enter_stage(workspace, PipelineStage.MUXING, merged_duration=merged_duration)
            step_start = time.time()
            output_path = await mux_audio(merged_path, audio.source_path, workspace.output_path, job_id)
            timings["mux"] = time.time() - step_start

            final_duration = await get_media_duration(output_path)
        except Exception as e:
            enter_stage(workspace, PipelineStage.FAILED, error=str(e))
            raise

    timings["total"] = time.time() - start_time
    logger.info(
        f"Montage completed in {timings['total']:.2f}s",
        extra={"job_id": str(job_id), "timings": timings, "final_duration": final_duration}
    )

    return MontageResult(
        job_id=job_id,
        output_path=output_path,
        segment_count=len(segments),
        skipped_ordinals=skipped,
        merged_duration=merged_duration,
        final_duration=final_duration,
        timings=timings,
    )
