"""Service implementations for the publishing pipeline."""

import time
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from .error_handling import BatchStageContext
from .exceptions import (
    BatchError,
    ConflictError,
    ImagesPublisherError,
    RemoteError,
    ValidationError,
)
from .geometry import resolve_geometry
from .image_utils import (
    decode_image,
    encode_image,
    mime_type,
    output_file_name,
    render_image,
)
from .models import (
    BatchResult,
    BatchStage,
    BranchState,
    EncodedImage,
    FolderEntry,
    OutputSettings,
    PublishConfig,
    PublishRequest,
    RepoContext,
    ResizeOptions,
    TargetBox,
    TreeChange,
)
from .observability import LogContext, ProgressLog
from .protocols import (
    ClientFactory,
    ImageTransformerProtocol,
    LoggerProtocol,
    ProgressCallback,
    RepositoryClientProtocol,
)
from ..processors import select_processor
from ..processors.common import create_upload_jobs, deletion_changes, process_upload

DEFAULT_COMMIT_MESSAGE = "Upload images via images-publisher"

STAGE_DESCRIPTIONS = {
    BatchStage.IDLE: "validating the request",
    BatchStage.HEAD_RESOLVED: "resolving the branch head",
    BatchStage.BLOBS_CREATED: "creating blobs",
    BatchStage.TREE_CREATED: "creating the tree",
    BatchStage.COMMIT_CREATED: "creating the commit",
    BatchStage.REF_UPDATED: "updating the branch reference",
}


class ImageTransformService:
    """Pure image transform service with no I/O dependencies."""

    def transform(
        self,
        content: bytes,
        file_name: str,
        target: TargetBox,
        options: ResizeOptions,
        settings: OutputSettings,
    ) -> EncodedImage:
        """Decode, resize and encode one image."""
        source = decode_image(content, file_name)
        geometry = resolve_geometry(source.width, source.height, target, options)
        canvas = render_image(source, geometry)
        data = encode_image(canvas, settings)
        return EncodedImage(
            file_name=output_file_name(file_name, settings.format),
            content=data,
            mime_type=mime_type(settings.format),
            width=geometry.canvas_width,
            height=geometry.canvas_height,
        )


def parse_repository(repository: str) -> Tuple[str, str]:
    """Split ``owner/repo``; both parts must be present."""
    parts = (repository or "").strip().split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ValidationError(
            f"Invalid repository '{repository}': expected the form owner/repo"
        )
    return parts[0].strip(), parts[1].strip()


def validate_context(context: RepoContext) -> Tuple[str, str]:
    owner, repo = parse_repository(context.repository)
    if not context.token.strip():
        raise ValidationError("A GitHub token is required")
    return owner, repo


def validate_request(request: PublishRequest) -> Tuple[str, str]:
    """
    Check a request before any network call.

    Returns:
        (owner, repo)

    Raises:
        ValidationError: On malformed coordinates, missing token or an empty
            request
    """
    owner, repo = validate_context(request.context)
    if not any(item.selected for item in [*request.uploads, *request.deletions]):
        raise ValidationError("Select at least one image to upload or file to delete")
    return owner, repo


def build_commit_message(message: Optional[str], now: datetime) -> str:
    text = (message or "").strip() or DEFAULT_COMMIT_MESSAGE
    return f"{text} ({now.isoformat(timespec='seconds')})"


class CommitOrchestrator:
    """
    Publishes a batch of uploads and deletions as a single commit.

    Stages run strictly in order: resolve the branch head, create one blob per
    selected upload, create one tree on top of the base tree, create one
    commit whose parent is the base commit, then fast-forward the branch. The
    base captured in the first stage is never re-read for the tree or commit,
    and a failure at any stage ends the batch without moving the branch.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        transformer: ImageTransformerProtocol,
        logger: LoggerProtocol,
        config: Optional[PublishConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._client_factory = client_factory
        self._transformer = transformer
        self._logger = logger
        self._config = config or PublishConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def _log_context(operation: str, **metadata: Any) -> LogContext:
        base = LogContext(
            correlation_id=f"batch_{int(time.time() * 1000)}",
            component="commit_orchestrator",
        )
        return base.with_operation(operation).with_metadata(**metadata)

    def list_remote_folder(self, context: RepoContext) -> List[FolderEntry]:
        """List the files under ``context.folder`` on ``context.branch``."""
        owner, repo = validate_context(context)
        log_context = self._log_context(
            "list", repository=context.repository, branch=context.branch
        )
        self._logger.info(f"Listing folder '{context.folder}'", log_context)
        client = self._client_factory(context.token)
        try:
            return client.list_folder(owner, repo, context.branch, context.folder)
        finally:
            client.close()

    def publish(
        self, request: PublishRequest, on_progress: ProgressCallback = None
    ) -> BatchResult:
        """Run one batch and report its outcome. Never raises for stage errors."""
        log_context = self._log_context(
            "publish",
            repository=request.context.repository,
            branch=request.context.branch,
        )
        progress = ProgressLog(self._logger, log_context, on_progress)
        result = BatchResult()

        try:
            owner, repo = validate_request(request)
        except ValidationError as exc:
            return self._fail(result, progress, BatchStage.IDLE, exc)

        client = self._client_factory(request.context.token)
        try:
            self._run(client, owner, repo, request, result, progress)
        except BatchError as exc:
            return self._fail(result, progress, exc.stage, exc.cause)
        finally:
            client.close()

        result.log = progress.lines
        return result

    def _run(
        self,
        client: RepositoryClientProtocol,
        owner: str,
        repo: str,
        request: PublishRequest,
        result: BatchResult,
        progress: ProgressLog,
    ) -> None:
        context = request.context

        result.stage = BatchStage.HEAD_RESOLVED
        with BatchStageContext(BatchStage.HEAD_RESOLVED, self._logger):
            progress.write(f"Fetching current branch info for {owner}/{repo}@{context.branch}...")
            base = client.get_branch_head(owner, repo, context.branch)
            result.base = base
            progress.write(f"Base commit: {base.commit_sha}")
            progress.write(f"Base tree: {base.tree_sha}")

        result.stage = BatchStage.BLOBS_CREATED
        with BatchStageContext(BatchStage.BLOBS_CREATED, self._logger):
            changes = self._create_blobs(client, owner, repo, request, progress)
            result.changes = changes

        result.stage = BatchStage.TREE_CREATED
        if not changes:
            result.nothing_to_commit = True
            result.success = True
            progress.success("Nothing to commit.")
            return

        with BatchStageContext(BatchStage.TREE_CREATED, self._logger):
            progress.write(f"Creating new tree with {len(changes)} change(s)...")
            for change in changes:
                action = "delete" if change.is_deletion else "add"
                progress.write(f"  {action} {change.path}")
            tree_sha = client.create_tree(owner, repo, base.tree_sha, changes)
            result.tree_sha = tree_sha
            progress.write(f"New tree SHA: {tree_sha}")

        result.stage = BatchStage.COMMIT_CREATED
        with BatchStageContext(BatchStage.COMMIT_CREATED, self._logger):
            progress.write("Creating commit...")
            message = build_commit_message(request.message, self._clock())
            commit_sha = client.create_commit(
                owner, repo, tree_sha, base.commit_sha, message
            )
            result.commit_sha = commit_sha
            progress.write(f"New commit SHA: {commit_sha}")

        result.stage = BatchStage.REF_UPDATED
        with BatchStageContext(BatchStage.REF_UPDATED, self._logger):
            if self._config.verify_head:
                self._verify_head(client, owner, repo, context.branch, base, progress)
            progress.write(f"Updating branch {context.branch}...")
            client.update_ref(owner, repo, context.branch, commit_sha)
            progress.write(f"Branch {context.branch} now at {commit_sha}")

        result.success = True
        progress.success(f"Committed {commit_sha} to {owner}/{repo}@{context.branch}.")

    def _create_blobs(
        self,
        client: RepositoryClientProtocol,
        owner: str,
        repo: str,
        request: PublishRequest,
        progress: ProgressLog,
    ) -> List[TreeChange]:
        jobs = create_upload_jobs(
            owner,
            repo,
            request.context.folder,
            request.uploads,
            request.target,
            request.options,
            request.output,
        )
        process_batch = select_processor(self._config.max_workers)
        changes = process_batch(
            jobs,
            lambda job: process_upload(client, self._transformer, job, progress),
            self._config.max_workers,
        )

        removals = deletion_changes(request.deletions)
        for change in removals:
            progress.write(f"Marked {change.path} for deletion")
        return changes + removals

    def _verify_head(
        self,
        client: RepositoryClientProtocol,
        owner: str,
        repo: str,
        branch: str,
        base: BranchState,
        progress: ProgressLog,
    ) -> None:
        progress.write("Re-checking branch head...")
        current = client.get_branch_head(owner, repo, branch)
        if current.commit_sha != base.commit_sha:
            raise ConflictError(
                f"Branch {branch} moved from {base.commit_sha} to {current.commit_sha}"
            )

    def _fail(
        self,
        result: BatchResult,
        progress: ProgressLog,
        stage: BatchStage,
        cause: BaseException,
    ) -> BatchResult:
        result.success = False
        result.stage = BatchStage(stage)
        result.error_type = type(cause).__name__
        result.retryable = isinstance(cause, ConflictError)

        if isinstance(cause, RemoteError) and cause.message:
            message = cause.message
        elif isinstance(cause, ImagesPublisherError) and str(cause):
            message = str(cause)
        else:
            message = f"Failed while {STAGE_DESCRIPTIONS[BatchStage(stage)]}"
            if str(cause):
                message = f"{message}: {cause}"
        result.error = message

        hint = " Re-run the batch to retry." if result.retryable else ""
        progress.failure(f"{message} (stage {result.stage.value}).{hint}")
        result.log = progress.lines
        return result
