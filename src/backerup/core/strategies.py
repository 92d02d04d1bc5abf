"""Backup strategies: full, differential and incremental.

A job's packages move through three states, encoded by its JobState:

- no package: the next run of any method writes a full copy
- package open: differential/incremental runs add ``snapshot_<n>`` folders
- package full: the snapshot limit is reached and the next run starts a
  new package with a full copy

Layout on every target::

    <target>/package_<job>_<index>/fullBackup/<source name>/...
    <target>/package_<job>_<index>/snapshot_<n>/<source root name>/...
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .. import path_name
from ..config.schema import BackupMethod, JobConfig
from .changes import ChangedFile, find_changed_files, snapshot_destination
from .copy import copy_file, copy_tree
from .retention import enforce_retention
from .state import JobState, JobStateStore, PackageEntry

logger = logging.getLogger(__name__)

FULL_BACKUP_DIR = "fullBackup"
SNAPSHOT_PREFIX = "snapshot_"


class Outcome(Enum):
    """What a job run ended up doing."""

    FULL = "full"  # new package with a full copy
    SNAPSHOT = "snapshot"  # new snapshot in the current package
    UNCHANGED = "unchanged"  # nothing changed since the baseline
    SKIPPED = "skipped"  # nothing configured to back up
    NOT_DUE = "not_due"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class RunResult:
    """Result of one job run.

    ``files`` counts the changed files of a snapshot, or the sources of a
    full copy.
    """

    job_id: str
    outcome: Outcome
    method: BackupMethod | None = None
    package: str | None = None
    snapshot: str | None = None
    files: int = 0
    targets_ok: int = 0
    targets_failed: int = 0
    evicted: list[str] = field(default_factory=list)
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome is not Outcome.FAILED


def package_name(job_id: str, index: int) -> str:
    return f"package_{job_id}_{index}"


def snapshot_name(index: int) -> str:
    return f"{SNAPSHOT_PREFIX}{index}"


class BackupStrategy:
    """Base strategy; its default behaviour is a full backup.

    ``perform_full`` is shared by every strategy: differential and
    incremental runs fall back to it when there is no package to snapshot
    into or the current package is full.
    """

    method = BackupMethod.FULL

    def __init__(self, store: JobStateStore) -> None:
        self.store = store

    def perform(self, job: JobConfig, state: JobState, now: datetime) -> RunResult:
        """Run the strategy for ``job`` and update ``state`` in place."""
        return self.perform_full(job, state, now)

    def perform_full(
        self, job: JobConfig, state: JobState, now: datetime
    ) -> RunResult:
        """Open a new package and copy every source into it."""
        if job is None:
            return RunResult(job_id="", outcome=Outcome.SKIPPED)

        sources = job.active_sources()
        if not sources or not job.targets:
            logger.info("Job %s has nothing to back up", job.id)
            return RunResult(job_id=job.id, outcome=Outcome.SKIPPED)

        previous_package_timestamp = state.last_package_timestamp
        package = self._create_package(job, state, now)

        ok, failed = 0, 0
        for target in job.targets:
            data_dir = Path(target) / package.name / FULL_BACKUP_DIR
            try:
                data_dir.mkdir(parents=True, exist_ok=True)
                for source in sources:
                    copy_tree(source, data_dir / path_name(source))
                ok += 1
            except OSError as e:
                logger.error(
                    "Error copying data for full package %s into target %s: %s",
                    package.name,
                    target,
                    e,
                )
                failed += 1

        result = RunResult(
            job_id=job.id,
            outcome=Outcome.FULL,
            method=BackupMethod.FULL,
            package=package.name,
            files=len(sources),
            targets_ok=ok,
            targets_failed=failed,
        )

        if ok == 0 and self._nothing_landed(job, package.name):
            # Drop the entry but keep the index advanced so the name is not reused
            state.packages.remove(package)
            state.last_package_timestamp = previous_package_timestamp
            self.store.save(state)
            result.outcome = Outcome.FAILED
            result.message = "no target received the full copy"
            return result

        state.increment_snapshot_count(package.name, now)
        state.last_package_timestamp = now
        state.last_snapshot_timestamp = now
        state.last_method = BackupMethod.FULL
        self.store.save(state)

        result.evicted = enforce_retention(job, state, self.store)
        logger.info(
            "Job %s: full backup written to package %s (%d/%d target(s))",
            job.id,
            package.name,
            ok,
            len(job.targets),
        )
        return result

    def _create_package(
        self, job: JobConfig, state: JobState, now: datetime
    ) -> PackageEntry:
        name = package_name(job.id, state.next_package_index)
        for target in job.targets:
            try:
                (Path(target) / name).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(
                    "Error creating package %s in target %s: %s", name, target, e
                )

        state.next_package_index += 1
        return state.add_package(name, now)

    def _nothing_landed(self, job: JobConfig, what: str) -> bool:
        """Decide what happens when every target failed.

        Returns:
            True if the run must not be recorded
        """
        if job.require_target_success:
            logger.error(
                "Job %s: every target failed for %s, not recording it", job.id, what
            )
            return True
        logger.warning(
            "Job %s: every target failed for %s, recording it anyway", job.id, what
        )
        return False


class FullBackup(BackupStrategy):
    """Every run writes a new package with a full copy."""


class SnapshotBackup(BackupStrategy):
    """Shared logic of differential and incremental snapshots."""

    def baseline(self, state: JobState) -> datetime | None:
        """Reference time changed files are compared against."""
        raise NotImplementedError

    def perform(self, job: JobConfig, state: JobState, now: datetime) -> RunResult:
        if job is None:
            return RunResult(job_id="", outcome=Outcome.SKIPPED)
        if not job.active_sources() or not job.targets:
            logger.info("Job %s has nothing to back up", job.id)
            return RunResult(job_id=job.id, outcome=Outcome.SKIPPED)

        current = state.current_package()
        baseline = self.baseline(state)
        if current is None or baseline is None:
            logger.info("Job %s has no package yet, running a full backup", job.id)
            return self.perform_full(job, state, now)

        changed = find_changed_files(job.active_sources(), baseline)
        if not changed:
            logger.info("Job %s: no changes since %s", job.id, baseline)
            return RunResult(
                job_id=job.id,
                outcome=Outcome.UNCHANGED,
                method=self.method,
                package=current.name,
            )

        limit = job.retention.size
        if limit > 0 and current.snapshot_count >= limit:
            logger.info(
                "Job %s: package %s holds %d snapshot(s), opening a new package",
                job.id,
                current.name,
                current.snapshot_count,
            )
            return self.perform_full(job, state, now)

        return self._write_snapshot(job, state, current, changed, now)

    def _write_snapshot(
        self,
        job: JobConfig,
        state: JobState,
        current: PackageEntry,
        changed: list[ChangedFile],
        now: datetime,
    ) -> RunResult:
        name = snapshot_name(current.snapshot_count)

        ok, failed = 0, 0
        for target in job.targets:
            snapshot_dir = Path(target) / current.name / name
            try:
                snapshot_dir.mkdir(parents=True, exist_ok=True)
                for item in changed:
                    try:
                        copy_file(item.path, snapshot_destination(snapshot_dir, item))
                    except FileNotFoundError:
                        logger.debug("%s vanished before it could be copied", item.path)
                ok += 1
            except OSError as e:
                logger.error(
                    "Error creating snapshot in package %s for target %s: %s",
                    current.name,
                    target,
                    e,
                )
                failed += 1

        result = RunResult(
            job_id=job.id,
            outcome=Outcome.SNAPSHOT,
            method=self.method,
            package=current.name,
            snapshot=name,
            files=len(changed),
            targets_ok=ok,
            targets_failed=failed,
        )

        if ok == 0 and self._nothing_landed(job, f"{current.name}/{name}"):
            result.outcome = Outcome.FAILED
            result.message = "no target received the snapshot"
            return result

        state.increment_snapshot_count(current.name, now)
        state.last_snapshot_timestamp = now
        state.last_method = self.method
        self.store.save(state)

        result.evicted = enforce_retention(job, state, self.store)
        logger.info(
            "Job %s: %s snapshot %s/%s with %d file(s)",
            job.id,
            self.method.value,
            current.name,
            name,
            len(changed),
        )
        return result


class DifferentialBackup(SnapshotBackup):
    """Snapshots hold every change since the package was created."""

    method = BackupMethod.DIFFERENTIAL

    def baseline(self, state: JobState) -> datetime | None:
        return state.last_package_timestamp


class IncrementalBackup(SnapshotBackup):
    """Snapshots hold only the changes since the previous snapshot."""

    method = BackupMethod.INCREMENTAL

    def baseline(self, state: JobState) -> datetime | None:
        return state.last_snapshot_timestamp


STRATEGIES: dict[BackupMethod, type[BackupStrategy]] = {
    BackupMethod.FULL: FullBackup,
    BackupMethod.DIFFERENTIAL: DifferentialBackup,
    BackupMethod.INCREMENTAL: IncrementalBackup,
}


def select_strategy(method: BackupMethod, store: JobStateStore) -> BackupStrategy:
    """Instantiate the strategy for a backup method."""
    return STRATEGIES.get(method, FullBackup)(store)
