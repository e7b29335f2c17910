"""GitHub REST client for the git data API (blobs, trees, commits, refs)."""

import base64
from typing import Any, Dict, List, Optional, Sequence, Type
from urllib.parse import quote

import httpx

from .exceptions import (
    ConflictError,
    NotFoundError,
    RemoteError,
    TransportError,
    WriteError,
)
from .logging_config import get_logger
from .models import BranchState, FolderEntry, TreeChange

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0

# Fragments of the 422 messages returned by PATCH git/refs
NON_FAST_FORWARD = "not a fast forward"
MISSING_REF = "reference does not exist"


def encode_path(path: str) -> str:
    """Percent-encode each segment of a slash-separated path."""
    segments = [s for s in path.strip("/").split("/") if s]
    return "/".join(quote(segment, safe="") for segment in segments)


def _error_message(response: httpx.Response, default: str) -> str:
    """Message supplied by the API, or ``default``."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or default
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return default


class GitHubClient:
    """
    Stateless wrapper around the GitHub git data API.

    Every request carries the bearer token, the JSON accept header and the
    API version header. Each method is a single round trip (two for
    ``get_branch_head``) and raises a ``RemoteError`` subclass on failure.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._logger = get_logger("github")
        self._http = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        self._logger.debug(f"{method} {url}")
        try:
            return self._http.request(method, url, json=json, params=params)
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timed out: {method} {url}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Network error on {method} {url}: {exc}") from exc

    def _json(
        self,
        response: httpx.Response,
        error_cls: Type[RemoteError],
        default_message: str,
    ) -> Any:
        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise error_cls(
                    f"{default_message}: invalid JSON response", response.status_code
                ) from exc
        if response.status_code == 404 and error_cls is not WriteError:
            raise NotFoundError(
                _error_message(response, default_message), response.status_code
            )
        raise error_cls(_error_message(response, default_message), response.status_code)

    def _sha(self, response: httpx.Response, default_message: str) -> str:
        payload = self._json(response, WriteError, default_message)
        sha = payload.get("sha") if isinstance(payload, dict) else None
        if not isinstance(sha, str) or not sha:
            raise WriteError(
                f"{default_message}: invalid response (no sha)", response.status_code
            )
        return sha

    @staticmethod
    def _repo_url(owner: str, repo: str, suffix: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/{suffix}"

    def get_branch_head(self, owner: str, repo: str, branch: str) -> BranchState:
        """Resolve ``branch`` to its head commit and that commit's tree."""
        ref_url = self._repo_url(owner, repo, f"git/ref/heads/{encode_path(branch)}")
        ref_json = self._json(
            self._request("GET", ref_url), RemoteError, "Fetching branch failed"
        )
        try:
            commit_sha = ref_json["object"]["sha"]
        except (KeyError, TypeError) as exc:
            raise NotFoundError(f"Branch {branch} not found") from exc

        commit_url = self._repo_url(owner, repo, f"git/commits/{commit_sha}")
        commit_json = self._json(
            self._request("GET", commit_url), RemoteError, "Fetching commit failed"
        )
        try:
            tree_sha = commit_json["tree"]["sha"]
        except (KeyError, TypeError) as exc:
            raise NotFoundError(f"Commit {commit_sha} has no tree") from exc
        return BranchState(commit_sha=commit_sha, tree_sha=tree_sha)

    def create_blob(self, owner: str, repo: str, content: bytes) -> str:
        """Upload ``content`` base64-encoded and return the blob sha."""
        payload = {
            "content": base64.b64encode(content).decode("ascii"),
            "encoding": "base64",
        }
        response = self._request(
            "POST", self._repo_url(owner, repo, "git/blobs"), json=payload
        )
        return self._sha(response, "Blob creation failed")

    def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree_sha: str,
        changes: Sequence[TreeChange],
    ) -> str:
        """Create a tree on top of ``base_tree_sha``; ``sha=None`` deletes a path."""
        payload = {
            "base_tree": base_tree_sha,
            "tree": [
                {
                    "path": change.path,
                    "mode": change.mode,
                    "type": change.type,
                    "sha": change.sha,
                }
                for change in changes
            ],
        }
        response = self._request(
            "POST", self._repo_url(owner, repo, "git/trees"), json=payload
        )
        return self._sha(response, "Tree creation failed")

    def create_commit(
        self,
        owner: str,
        repo: str,
        tree_sha: str,
        parent_sha: str,
        message: str,
    ) -> str:
        payload = {"message": message, "tree": tree_sha, "parents": [parent_sha]}
        response = self._request(
            "POST", self._repo_url(owner, repo, "git/commits"), json=payload
        )
        return self._sha(response, "Commit failed")

    def update_ref(self, owner: str, repo: str, branch: str, commit_sha: str) -> None:
        """Fast-forward ``branch`` to ``commit_sha`` (never forced)."""
        url = self._repo_url(owner, repo, f"git/refs/heads/{encode_path(branch)}")
        response = self._request(
            "PATCH", url, json={"sha": commit_sha, "force": False}
        )
        if response.is_success:
            return
        message = _error_message(response, "Updating ref failed")
        status = response.status_code
        # 422 covers both a non-fast-forward and a branch deleted mid-batch
        lowered = message.lower().replace("-", " ")
        if status == 409 or (status == 422 and NON_FAST_FORWARD in lowered):
            raise ConflictError(message, status)
        if status == 404 or (status == 422 and MISSING_REF in lowered):
            raise NotFoundError(message, status)
        raise WriteError(message, status)

    def list_folder(
        self, owner: str, repo: str, branch: str, folder: str
    ) -> List[FolderEntry]:
        """List files directly under ``folder``; a missing folder is empty."""
        path = encode_path(folder or "")
        suffix = f"contents/{path}" if path else "contents"
        response = self._request(
            "GET", self._repo_url(owner, repo, suffix), params={"ref": branch}
        )
        if response.status_code == 404:
            return []
        payload = self._json(response, RemoteError, "Failed to list folder contents")
        if not isinstance(payload, list):
            return []
        return [
            FolderEntry(
                path=item["path"],
                download_url=item.get("download_url"),
                sha=item["sha"],
            )
            for item in payload
            if item.get("type") == "file"
        ]
