"""Testing utilities and fakes for the images publisher."""

from .fakes import (
    FakeLogger,
    FakeRepository,
    FakeRepositoryClient,
    create_test_image,
    git_blob_sha,
    setup_test_repository,
)

__all__ = [
    "FakeLogger",
    "FakeRepository",
    "FakeRepositoryClient",
    "create_test_image",
    "git_blob_sha",
    "setup_test_repository",
]
