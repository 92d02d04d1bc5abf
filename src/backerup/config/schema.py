"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class BackupMethod(str, Enum):
    """How a job captures data on each run."""

    FULL = "full"
    DIFFERENTIAL = "differential"
    INCREMENTAL = "incremental"

    @classmethod
    def parse(cls, value: "str | BackupMethod") -> "BackupMethod":
        """Parse a method name case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown backup method {value!r} (expected {choices})")


@dataclass
class RetentionConfig:
    """Retention policy configuration.

    Attributes:
        count: Number of packages to keep (<= 0 keeps every package)
        size: Maximum snapshots per package before a new package is opened
            (<= 0 means unlimited)
    """

    count: int = 0
    size: int = 1


@dataclass
class JobConfig:
    """Backup job configuration.

    Attributes:
        id: Unique job identifier, used in package names and state files
        sources: Files or directories to back up
        targets: Target roots; every package is mirrored into each of them
        method: Backup method used on each run
        schedule: Cron expression (blank means the job is always due)
        retention: Package and snapshot retention for this job
        enabled: Whether this job takes part in runs
        require_target_success: Only advance bookkeeping when at least one
            target received the data (None inherits the global setting)
    """

    id: str
    sources: list[str] = field(default_factory=list)
    targets: list[str] = field(default_factory=list)
    method: BackupMethod = BackupMethod.FULL
    schedule: str = ""
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    enabled: bool = True
    require_target_success: Optional[bool] = None

    def __post_init__(self):
        self.id = str(self.id)
        self.method = BackupMethod.parse(self.method)

    def active_sources(self) -> list[str]:
        """Sources with blank entries removed."""
        return [s for s in self.sources if s and s.strip()]


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        state_dir: Directory holding per-job state files
        log_file: Path to log file (None for no file logging)
        parallel_jobs: Max concurrent jobs (0 runs every job at once)
        poll_interval: Seconds between cycles in daemon mode
        require_target_success: Default for jobs that do not set it
    """

    state_dir: str = "~/.local/state/backerup"
    log_file: Optional[str] = None
    parallel_jobs: int = 0
    poll_interval: int = 60
    require_target_success: bool = False


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        global_config: Global settings that apply to all jobs
        jobs: List of job configurations
    """

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    jobs: list[JobConfig] = field(default_factory=list)

    def get_enabled_jobs(self) -> list[JobConfig]:
        """Get list of enabled jobs."""
        return [j for j in self.jobs if j.enabled]

    def get_job(self, job_id: str) -> Optional[JobConfig]:
        """Look up a job by id."""
        for job in self.jobs:
            if job.id == str(job_id):
                return job
        return None
