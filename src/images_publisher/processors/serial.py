"""Serial processor implementation - uploads images one by one."""

from typing import Callable, List, Sequence

from ..core.models import TreeChange
from .common import UploadJob


def process_batch(
    jobs: Sequence[UploadJob],
    run_job: Callable[[UploadJob], TreeChange],
    max_workers: int = 1,
) -> List[TreeChange]:
    """
    Runs every upload job in the current thread, in input order.

    The first failing job stops the loop; its exception propagates and the
    remaining jobs are never started.

    Args:
        jobs: Upload jobs in caller order.
        run_job: Callable turning one job into its tree entry.
        max_workers: Ignored; accepted for a uniform processor signature.

    Returns:
        Tree entries in the same order as ``jobs``.
    """
    results = []

    for job in jobs:
        results.append(run_job(job))

    return results
