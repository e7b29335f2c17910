"""Multithreaded processor implementation - uses a bounded thread pool."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence

from ..core.models import TreeChange
from .common import UploadJob

DEFAULT_MAX_WORKERS = 4


def process_batch(
    jobs: Sequence[UploadJob],
    run_job: Callable[[UploadJob], TreeChange],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[TreeChange]:
    """
    Run upload jobs on a small thread pool.

    Results are stored by input index, so the returned list follows the order
    of ``jobs`` whatever the completion order. The first failure cancels the
    jobs that have not started yet, waits for running ones and re-raises.

    Args:
        jobs: Upload jobs in caller order
        run_job: Callable turning one job into its tree entry
        max_workers: Upper bound on concurrent uploads

    Returns:
        Tree entries in the same order as ``jobs``
    """
    if not jobs:
        return []

    results: List[Optional[TreeChange]] = [None] * len(jobs)
    workers = max(1, min(max_workers, len(jobs)))

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="blob-upload")
    try:
        future_to_index = {
            executor.submit(run_job, job): index for index, job in enumerate(jobs)
        }

        for future in as_completed(future_to_index):
            results[future_to_index[future]] = future.result()
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    return [result for result in results if result is not None]
