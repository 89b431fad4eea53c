"""
Per-request workspace for montage module.

Each request gets its own intake and temp directories so files from
concurrent requests never share a name, and everything but the final
artifact can be removed once the request is over, whether it succeeded
or failed.
"""
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from shared.logging import get_logger
from shared.models.media import CleanupReport

logger = get_logger("montage.workspace")


@dataclass(frozen=True)
class RequestWorkspace:
    """Directories owned by one request."""

    job_id: UUID
    intake_dir: Path
    temp_dir: Path
    output_dir: Path

    @property
    def output_path(self) -> Path:
        """Final artifact location; survives cleanup."""
        return self.output_dir / f"final-{self.job_id}.mp4"


def create_workspace(
    upload_dir: Path,
    temp_dir: Path,
    output_dir: Path,
    job_id: Optional[UUID] = None
) -> RequestWorkspace:
    """
    Create the intake and temp directories for a request.

    Args:
        upload_dir: Root directory for uploaded originals
        temp_dir: Root directory for segments, manifest and merged track
        output_dir: Directory where final artifacts are retained
        job_id: Request id (generated when omitted)

    Returns:
        RequestWorkspace with freshly created directories
    """
    job_id = job_id or uuid4()
    workspace = RequestWorkspace(
        job_id=job_id,
        intake_dir=Path(upload_dir) / str(job_id),
        temp_dir=Path(temp_dir) / str(job_id),
        output_dir=Path(output_dir),
    )
    workspace.intake_dir.mkdir(parents=True, exist_ok=False)
    workspace.temp_dir.mkdir(parents=True, exist_ok=False)
    workspace.output_dir.mkdir(parents=True, exist_ok=True)

    logger.debug(
        "Created request workspace",
        extra={"job_id": str(job_id), "intake_dir": str(workspace.intake_dir), "temp_dir": str(workspace.temp_dir)}
    )
    return workspace


def _remove_tree(root: Path, report: CleanupReport, job_id: UUID) -> None:
    if not root.exists():
        return

    failures = []

    def record_failure(function, path, exc) -> None:
        logger.warning(
            f"Cleanup error: {exc}",
            extra={"job_id": str(job_id), "path": str(path)}
        )
        failures.append(Path(path))

    if sys.version_info >= (3, 12):
        shutil.rmtree(root, onexc=record_failure)
    else:
        shutil.rmtree(root, onerror=lambda function, path, exc_info: record_failure(function, path, exc_info[1]))

    if failures:
        report.failed.extend(failures)
    else:
        report.removed.append(root)


def cleanup_workspace(workspace: RequestWorkspace) -> CleanupReport:
    """
    Delete the request's intake and temp directories.

    Failures are logged per file and never raised; the final artifact in
    output_dir is left in place.

    Returns:
        CleanupReport listing removed and failed paths
    """
    report = CleanupReport()
    _remove_tree(workspace.intake_dir, report, workspace.job_id)
    _remove_tree(workspace.temp_dir, report, workspace.job_id)

    logger.info(
        f"Workspace cleanup finished: {report.status.value}",
        extra={
            "job_id": str(workspace.job_id),
            "removed_count": len(report.removed),
            "failed_count": len(report.failed),
            "stage": report.status.value,
        }
    )
    return report


def discard_workspace(workspace: RequestWorkspace) -> CleanupReport:
    """
    Clean up after a failed request.

    Same as cleanup_workspace, and also removes whatever FFmpeg managed to
    write at the final output path.
    """
    report = cleanup_workspace(workspace)
    try:
        workspace.output_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(
            f"Cleanup error: {e}",
            extra={"job_id": str(workspace.job_id), "path": str(workspace.output_path)}
        )
        report.failed.append(workspace.output_path)
    return report
