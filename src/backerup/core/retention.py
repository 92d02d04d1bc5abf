"""Count-based package retention."""

import logging
import shutil
from pathlib import Path

from ..config.schema import JobConfig
from .state import JobState, JobStateStore

logger = logging.getLogger(__name__)


def delete_package(targets: list[str], package: str) -> int:
    """Remove a package directory from every target.

    Returns:
        Number of targets where the directory could not be removed
    """
    failures = 0
    for target in targets:
        package_dir = Path(target) / package
        try:
            if package_dir.exists():
                shutil.rmtree(package_dir)
                logger.info("Deleted package %s", package_dir)
        except OSError as e:
            logger.error("Failed to delete package %s: %s", package_dir, e)
            failures += 1
    return failures


def enforce_retention(
    job: JobConfig, state: JobState, store: JobStateStore
) -> list[str]:
    """Evict the oldest packages beyond the job's keep-count.

    The evicted entries leave the state even when their directories cannot
    be deleted. The state is persisted whenever something was evicted.

    Returns:
        Names of the evicted packages, oldest first
    """
    keep = job.retention.count
    if keep <= 0:
        return []

    removed = state.purge_old_packages(keep)
    if not removed:
        return []

    logger.info(
        "Job %s: keeping %d package(s), evicting %s", job.id, keep, ", ".join(removed)
    )
    for package in removed:
        delete_package(job.targets, package)

    store.save(state)
    return removed
