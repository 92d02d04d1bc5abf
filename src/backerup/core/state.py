"""Persistent per-job lifecycle state.

Each job owns one :class:`JobState` record that tracks its packages, the
package name counter and the timestamps used as change detection and
scheduling baselines. Records are stored as JSON documents, one per job,
inside the configured state directory.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from filelock import FileLock

from .. import __util__
from ..config.schema import BackupMethod, JobConfig

logger = logging.getLogger(__name__)


@dataclass
class PackageEntry:
    """One package of a job: a full copy plus its snapshots."""

    name: str
    created: datetime
    snapshot_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "created": __util__.date_to_str(self.created),
            "snapshot_count": self.snapshot_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageEntry":
        return cls(
            name=str(data["name"]),
            created=__util__.str_to_date(data["created"]),
            snapshot_count=int(data.get("snapshot_count", 0)),
        )


@dataclass
class JobState:
    """Lifecycle state of a single job.

    Attributes:
        job_id: Identifier of the owning job
        next_package_index: Counter used to derive unique package names
        last_package_timestamp: Creation time of the newest package
        last_snapshot_timestamp: Time of the newest completed snapshot
        last_method: Method used by the most recent run
        packages: Packages ordered oldest first; the last one is current
    """

    job_id: str
    next_package_index: int = 0
    last_package_timestamp: datetime | None = None
    last_snapshot_timestamp: datetime | None = None
    last_method: BackupMethod = BackupMethod.FULL
    packages: list[PackageEntry] = field(default_factory=list)

    def current_package(self) -> PackageEntry | None:
        """Return the package that receives new snapshots, if any."""
        if not self.packages:
            return None
        return self.packages[-1]

    def add_package(self, name: str, created: datetime) -> PackageEntry:
        """Append a new, empty package and make it current."""
        entry = PackageEntry(name=name, created=created, snapshot_count=0)
        self.packages.append(entry)
        self.last_package_timestamp = created
        return entry

    def increment_snapshot_count(self, name: str, when: datetime) -> None:
        """Record a completed snapshot in the named package."""
        entry = next(
            (p for p in reversed(self.packages) if p.name == name),
            self.current_package(),
        )
        if entry is None:
            return
        entry.snapshot_count += 1
        self.last_snapshot_timestamp = when

    def purge_old_packages(self, keep: int) -> list[str]:
        """Drop the oldest packages beyond ``keep`` and return their names."""
        if keep <= 0 or len(self.packages) <= keep:
            return []
        excess = len(self.packages) - keep
        removed = [p.name for p in self.packages[:excess]]
        self.packages = self.packages[excess:]
        return removed

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "next_package_index": self.next_package_index,
            "last_package_timestamp": __util__.date_to_str(
                self.last_package_timestamp
            ),
            "last_snapshot_timestamp": __util__.date_to_str(
                self.last_snapshot_timestamp
            ),
            "last_method": self.last_method.value,
            "packages": [p.to_dict() for p in self.packages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobState":
        return cls(
            job_id=str(data["job_id"]),
            next_package_index=int(data.get("next_package_index", 0)),
            last_package_timestamp=__util__.str_to_date(
                data.get("last_package_timestamp")
            ),
            last_snapshot_timestamp=__util__.str_to_date(
                data.get("last_snapshot_timestamp")
            ),
            last_method=BackupMethod.parse(data.get("last_method", "full")),
            packages=[PackageEntry.from_dict(p) for p in data.get("packages", [])],
        )


class JobStateStore:
    """JSON file store for :class:`JobState` records."""

    def __init__(self, state_dir: str | Path) -> None:
        self.state_dir = Path(state_dir).expanduser()

    def __repr__(self) -> str:
        return f"JobStateStore({str(self.state_dir)!r})"

    def path_for(self, job_id: str) -> Path:
        return self.state_dir / f"job_{job_id}.json"

    def load(self, job_id: str) -> JobState | None:
        """Load the state of a job.

        Returns:
            The stored state, or None if it is missing or unreadable
        """
        path = self.path_for(job_id)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            state = JobState.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable state for job %s: %s", job_id, e)
            return None

        if state.job_id != str(job_id):
            logger.warning(
                "Ignoring state in %s: it belongs to job %s, not %s",
                path,
                state.job_id,
                job_id,
            )
            return None
        return state

    def load_or_create(self, job: JobConfig) -> JobState:
        """Load the state of ``job`` or start a fresh one."""
        state = self.load(job.id)
        if state is not None:
            return state
        logger.debug("No stored state for job %s, starting fresh", job.id)
        return JobState(job_id=job.id, last_method=job.method)

    def save(self, state: JobState) -> bool:
        """Persist a state record atomically.

        Failures are logged and reported through the return value only.
        """
        path = self.path_for(state.job_id)
        tmp_path = path.with_name(path.name + ".tmp")

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
            with FileLock(str(path) + ".lock"):
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(state.to_dict(), f, indent=2)
                os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save state for job %s: %s", state.job_id, e)
            return False

        logger.debug("Saved state for job %s to %s", state.job_id, path)
        return True
