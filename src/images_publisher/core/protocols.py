"""Protocol definitions for dependency injection and testability."""

from typing import Any, Callable, List, Optional, Protocol, Sequence

from .models import (
    BranchState,
    EncodedImage,
    FolderEntry,
    OutputSettings,
    ResizeOptions,
    TargetBox,
    TreeChange,
)


class RepositoryClientProtocol(Protocol):
    """Protocol for the hosting API calls used to publish a commit."""

    def get_branch_head(self, owner: str, repo: str, branch: str) -> BranchState:
        """Resolve a branch to its head commit and root tree."""
        ...

    def create_blob(self, owner: str, repo: str, content: bytes) -> str:
        """Upload raw content and return its blob sha."""
        ...

    def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree_sha: str,
        changes: Sequence[TreeChange],
    ) -> str:
        """Layer changes onto a base tree and return the new tree sha."""
        ...

    def create_commit(
        self,
        owner: str,
        repo: str,
        tree_sha: str,
        parent_sha: str,
        message: str,
    ) -> str:
        """Create a single-parent commit and return its sha."""
        ...

    def update_ref(self, owner: str, repo: str, branch: str, commit_sha: str) -> None:
        """Fast-forward a branch to a commit."""
        ...

    def list_folder(
        self, owner: str, repo: str, branch: str, folder: str
    ) -> List[FolderEntry]:
        """List the files directly under a folder."""
        ...

    def close(self) -> None:
        """Release network resources."""
        ...


class ImageTransformerProtocol(Protocol):
    """Protocol for image transform operations."""

    def transform(
        self,
        content: bytes,
        file_name: str,
        target: TargetBox,
        options: ResizeOptions,
        settings: OutputSettings,
    ) -> EncodedImage:
        """Resize and re-encode one image."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


ClientFactory = Callable[[str], RepositoryClientProtocol]
ProgressCallback = Optional[Callable[[str], None]]
