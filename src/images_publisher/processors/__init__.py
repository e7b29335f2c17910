"""Blob stage processors with different concurrency strategies."""

from typing import Callable, List, Sequence

from ..core.models import TreeChange
from .common import UploadJob
from .serial import process_batch as serial_process_batch
from .multithread import process_batch as multithread_process_batch

ProcessBatchFunction = Callable[
    [Sequence[UploadJob], Callable[[UploadJob], TreeChange], int], List[TreeChange]
]


def select_processor(max_workers: int) -> ProcessBatchFunction:
    """Serial for a single worker, thread pool otherwise."""
    if max_workers > 1:
        return multithread_process_batch
    return serial_process_batch


__all__ = [
    "ProcessBatchFunction",
    "UploadJob",
    "select_processor",
    "serial_process_batch",
    "multithread_process_batch",
]
