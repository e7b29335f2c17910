"""Functions shared across the blob stage processors."""

import threading
from dataclasses import dataclass
from typing import List

from ..core.error_handling import with_error_handling
from ..core.image_utils import calculate_remote_path
from ..core.logging_config import get_worker_logger
from ..core.models import (
    DeleteItem,
    OutputSettings,
    ResizeOptions,
    TargetBox,
    TreeChange,
    UploadItem,
)
from ..core.observability import ProgressLog
from ..core.protocols import ImageTransformerProtocol, RepositoryClientProtocol


@dataclass(frozen=True)
class UploadJob:
    """One selected upload, with everything needed to turn it into a blob."""

    owner: str
    repo: str
    folder: str
    item: UploadItem
    target: TargetBox
    options: ResizeOptions
    output: OutputSettings


@with_error_handling
def process_upload(
    client: RepositoryClientProtocol,
    transformer: ImageTransformerProtocol,
    job: UploadJob,
    progress: ProgressLog,
) -> TreeChange:
    """Transform → upload blob → tree entry for a single image."""
    logger = get_worker_logger(threading.current_thread().name)
    progress.write(f"Processing {job.item.file_name}...")

    encoded = transformer.transform(
        job.item.content,
        job.item.file_name,
        job.target,
        job.options,
        job.output,
    )
    logger.debug(
        f"[{job.item.file_name}] Encoded {encoded.file_name} "
        f"{encoded.width}x{encoded.height}, {len(encoded.content)} bytes."
    )

    path = calculate_remote_path(encoded.file_name, job.folder)
    sha = client.create_blob(job.owner, job.repo, encoded.content)
    progress.write(f"Created blob {sha} for {path}")
    return TreeChange(path=path, sha=sha)


def create_upload_jobs(
    owner: str,
    repo: str,
    folder: str,
    uploads: List[UploadItem],
    target: TargetBox,
    options: ResizeOptions,
    output: OutputSettings,
) -> List[UploadJob]:
    """Create jobs for the selected uploads, keeping input order."""
    return [
        UploadJob(
            owner=owner,
            repo=repo,
            folder=folder,
            item=item,
            target=target,
            options=options,
            output=output,
        )
        for item in uploads
        if item.selected
    ]


def deletion_changes(deletions: List[DeleteItem]) -> List[TreeChange]:
    """Tree entries removing the selected paths."""
    return [
        TreeChange(path=item.path.strip().lstrip("/"), sha=None)
        for item in deletions
        if item.selected and item.path.strip()
    ]
