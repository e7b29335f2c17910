"""Tests for fake implementations to ensure they work correctly."""

import hashlib
import io

import pytest
from PIL import Image

from images_publisher.core.exceptions import ConflictError, NotFoundError, WriteError
from images_publisher.core.models import BranchState, TreeChange
from images_publisher.testing.fakes import (
    FakeLogger,
    FakeRepositoryClient,
    create_test_image,
    git_blob_sha,
    setup_test_repository,
)


class TestFakeRepository:
    """Tests for the in-memory object store."""

    def test_git_blob_sha_matches_git(self):
        """Test blob shas match `git hash-object`."""
        assert git_blob_sha(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
        assert git_blob_sha(b"hello\n") == hashlib.sha1(b"blob 6\0hello\n").hexdigest()

    def test_seed_branch(self):
        client = FakeRepositoryClient()
        repository = client.create_repository("octo", "site")

        first = repository.seed_branch("main", {"a.txt": b"a"})
        second = repository.seed_branch("main", {"b.txt": b"b"})

        assert repository.refs["main"] == second
        assert repository.commits[second].parents == [first]
        assert repository.files_at("main") == {"b.txt": b"b"}

    def test_get_missing_repository(self):
        with pytest.raises(NotFoundError):
            FakeRepositoryClient().get_repository("octo", "missing")


class TestFakeRepositoryClient:
    """Tests for FakeRepositoryClient to ensure it behaves like the hosting API."""

    def test_get_branch_head(self):
        client = setup_test_repository()
        repository = client.get_repository("octo", "site")
        commit = repository.commits[repository.refs["main"]]

        state = client.get_branch_head("octo", "site", "main")

        assert state == BranchState(commit_sha=commit.sha, tree_sha=commit.tree_sha)

    def test_get_missing_branch(self):
        client = setup_test_repository()

        with pytest.raises(NotFoundError):
            client.get_branch_head("octo", "site", "nope")

    def test_create_blob_is_content_addressed(self):
        client = setup_test_repository()

        first = client.create_blob("octo", "site", b"data")
        second = client.create_blob("octo", "site", b"data")

        assert first == second == git_blob_sha(b"data")

    def test_create_tree_layers_changes(self):
        """Test additions and deletions are applied on top of the base tree."""
        client = setup_test_repository()
        repository = client.get_repository("octo", "site")
        base = client.get_branch_head("octo", "site", "main")
        sha = client.create_blob("octo", "site", b"new")

        tree_sha = client.create_tree(
            "octo",
            "site",
            base.tree_sha,
            [TreeChange(path="images/new.webp", sha=sha), TreeChange(path="images/old.png")],
        )

        entries = repository.trees[tree_sha]
        assert entries["images/new.webp"] == sha
        assert "images/old.png" not in entries
        assert "README.md" in entries

    def test_create_tree_rejects_missing_deletion(self):
        client = setup_test_repository()
        base = client.get_branch_head("octo", "site", "main")

        with pytest.raises(WriteError, match="does not exist"):
            client.create_tree("octo", "site", base.tree_sha, [TreeChange(path="nope.png")])

    def test_create_tree_rejects_unknown_blob(self):
        client = setup_test_repository()
        base = client.get_branch_head("octo", "site", "main")

        with pytest.raises(WriteError, match="Invalid sha"):
            client.create_tree(
                "octo", "site", base.tree_sha, [TreeChange(path="a.png", sha="f" * 40)]
            )

    def test_update_ref_fast_forward(self):
        client = setup_test_repository()
        base = client.get_branch_head("octo", "site", "main")
        commit_sha = client.create_commit("octo", "site", base.tree_sha, base.commit_sha, "msg")

        client.update_ref("octo", "site", "main", commit_sha)

        assert client.get_branch_head("octo", "site", "main").commit_sha == commit_sha

    def test_update_ref_rejects_non_fast_forward(self):
        """Test a commit whose parent is no longer the head is rejected."""
        client = setup_test_repository()
        repository = client.get_repository("octo", "site")
        base = client.get_branch_head("octo", "site", "main")
        stale = client.create_commit("octo", "site", base.tree_sha, base.commit_sha, "stale")
        repository.seed_branch("main", {"other.txt": b"x"})

        with pytest.raises(ConflictError, match="not a fast forward"):
            client.update_ref("octo", "site", "main", stale)

    def test_list_folder_immediate_children(self):
        client = setup_test_repository()

        entries = client.list_folder("octo", "site", "main", "images/")

        assert [entry.path for entry in entries] == ["images/keep.jpg", "images/old.png"]
        assert entries[0].download_url.endswith("/main/images/keep.jpg")

    def test_set_failure(self):
        client = setup_test_repository()
        client.set_failure("create_commit", WriteError("Commit failed", 500))

        with pytest.raises(WriteError, match="Commit failed"):
            client.create_commit("octo", "site", "t", "c", "msg")
        assert client.call_count("create_commit") == 1

    def test_fail_blob_after(self):
        client = setup_test_repository()
        client.fail_blob_after = 1

        client.create_blob("octo", "site", b"one")
        with pytest.raises(WriteError):
            client.create_blob("octo", "site", b"two")

    def test_factory_records_token_and_reopens(self):
        client = FakeRepositoryClient()
        client.close()

        assert client.factory("ghp_abc") is client
        assert client.tokens == ["ghp_abc"]
        assert client.closed is False

    def test_set_delay(self):
        client = setup_test_repository()
        client.set_delay(0.01)
        assert client.delay_seconds == 0.01


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_records_levels(self):
        logger = FakeLogger()
        logger.info("one")
        logger.error("two", step="tree")

        assert [log["message"] for log in logger.get_logs()] == ["one", "two"]
        assert logger.get_logs("ERROR")[0]["step"] == "tree"

    def test_clear_logs(self):
        logger = FakeLogger()
        logger.warning("x")
        logger.clear_logs()
        assert logger.get_logs() == []


class TestCreateTestImage:
    """Tests for create_test_image."""

    def test_size_and_format(self):
        image = Image.open(io.BytesIO(create_test_image(30, 20, image_format="JPEG")))
        assert image.size == (30, 20)
        assert image.format == "JPEG"

    def test_quadrant_marker(self):
        image = Image.open(io.BytesIO(create_test_image(10, 10)))
        assert image.getpixel((1, 1)) == (0, 0, 255)
        assert image.getpixel((8, 8)) == (255, 0, 0)
