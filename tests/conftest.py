"""Pytest configuration and shared fixtures."""

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from backerup.config.schema import BackupMethod, JobConfig, RetentionConfig
from backerup.core.state import JobStateStore

# Reference time of the first backup in the strategy tests
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def set_mtime(path: Path, when: datetime) -> None:
    """Set the modification time of a file."""
    ts = when.timestamp()
    os.utime(path, (ts, ts))


def write_file(path: Path, content: str, when: datetime) -> Path:
    """Create a file with the given content and modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    set_mtime(path, when)
    return path


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
state_dir = "/var/lib/backerup"
log_file = "/var/log/backerup.log"
parallel_jobs = 2
poll_interval = 30
require_target_success = true

[[jobs]]
id = "documents"
sources = ["/home/user/Documents", "/home/user/notes.txt"]
targets = ["/mnt/backup", "/mnt/offsite"]
method = "incremental"
schedule = "0 2 * * *"

[jobs.retention]
count = 5
size = 7

[[jobs]]
id = 42
sources = ["/srv/www"]
targets = ["/mnt/backup"]
method = "Differential"
require_target_success = false
enabled = false
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[[jobs]]
id = "home"
sources = ["/home"]
targets = ["/mnt/backup"]
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


@pytest.fixture
def source_dir(tmp_path):
    """Source tree with three files, all older than T0."""
    source = tmp_path / "source"
    old = T0 - timedelta(days=1)
    write_file(source / "file1.txt", "Test content 1", old)
    write_file(source / "file2.txt", "Test content 2", old)
    write_file(source / "subdir" / "file3.txt", "Test content 3", old)
    return source


@pytest.fixture
def target_dir(tmp_path):
    target = tmp_path / "target"
    target.mkdir()
    return target


@pytest.fixture
def store(tmp_path):
    return JobStateStore(tmp_path / "state")


@pytest.fixture
def make_job(source_dir, target_dir):
    """Factory for jobs backing up ``source_dir`` into ``target_dir``."""

    def _make_job(method=BackupMethod.FULL, count=5, size=10, **kwargs):
        kwargs.setdefault("sources", [str(source_dir)])
        kwargs.setdefault("targets", [str(target_dir)])
        kwargs.setdefault("id", "1")
        return JobConfig(
            method=method,
            retention=RetentionConfig(count=count, size=size),
            **kwargs,
        )

    return _make_job


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handler changes made by commands that call create_logger."""
    project_logger = logging.getLogger("backerup")
    root = logging.getLogger()
    saved = (
        list(project_logger.handlers),
        project_logger.propagate,
        project_logger.level,
        list(root.handlers),
        root.level,
    )
    yield
    project_logger.handlers[:] = saved[0]
    project_logger.propagate = saved[1]
    project_logger.setLevel(saved[2])
    root.handlers[:] = saved[3]
    root.setLevel(saved[4])
