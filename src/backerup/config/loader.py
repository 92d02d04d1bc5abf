"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import tomllib
from pathlib import Path
from typing import Any

from .schema import (
    BackupMethod,
    Config,
    GlobalConfig,
    JobConfig,
    RetentionConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "backerup" / "config.toml",
    Path("/etc/backerup/config.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _as_str_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{what}' must be a list of paths")
    return [str(v) for v in value]


_TYPE_NAMES = {str: "a string", bool: "true or false", int: "an integer"}


def _typed(
    data: dict[str, Any], key: str, kind: type, default: Any, where: str = ""
) -> Any:
    """Fetch an optional setting and check its TOML type."""
    value = data.get(key, default)
    if value is None and default is None:
        return None
    # TOML booleans are ints to Python
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(f"{where}'{key}' must be {_TYPE_NAMES[kind]}")
    return value


def _parse_retention(data: dict[str, Any]) -> RetentionConfig:
    """Parse retention configuration from dict."""
    try:
        return RetentionConfig(
            count=int(data.get("count", 0)),
            size=int(data.get("size", 1)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid retention value: {e}")


def _parse_job(data: dict[str, Any], global_config: GlobalConfig) -> JobConfig:
    """Parse job configuration from dict."""
    if "id" not in data:
        raise ConfigError("Job missing required 'id' field")

    try:
        method = BackupMethod.parse(data.get("method", "full"))
    except ValueError as e:
        raise ConfigError(f"Job '{data['id']}': {e}")

    retention = RetentionConfig()
    if "retention" in data:
        retention = _parse_retention(data["retention"])

    where = f"Job '{data['id']}': "
    return JobConfig(
        id=str(data["id"]),
        sources=_as_str_list(data.get("sources"), "sources"),
        targets=_as_str_list(data.get("targets"), "targets"),
        method=method,
        schedule=_typed(data, "schedule", str, "", where),
        retention=retention,
        enabled=_typed(data, "enabled", bool, True, where),
        require_target_success=_typed(
            data,
            "require_target_success",
            bool,
            global_config.require_target_success,
            where,
        ),
    )


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    poll_interval = _typed(data, "poll_interval", int, 60)
    if poll_interval <= 0:
        raise ConfigError("'poll_interval' must be greater than 0")

    return GlobalConfig(
        state_dir=_typed(data, "state_dir", str, "~/.local/state/backerup"),
        log_file=_typed(data, "log_file", str, None),
        parallel_jobs=_typed(data, "parallel_jobs", int, 0),
        poll_interval=poll_interval,
        require_target_success=_typed(data, "require_target_success", bool, False),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    from ..core.scheduler import parse_schedule

    warnings = []

    if not config.jobs:
        warnings.append("No jobs configured")

    for job in config.jobs:
        if not job.active_sources():
            warnings.append(f"Job '{job.id}' has no sources configured")
        if not job.targets:
            warnings.append(f"Job '{job.id}' has no targets configured")

        if len(job.targets) != len(set(job.targets)):
            warnings.append(f"Job '{job.id}' has duplicate target paths")

        if job.schedule.strip():
            try:
                parse_schedule(job.schedule)
            except ValueError as e:
                warnings.append(
                    f"Job '{job.id}' has an invalid schedule and will never run: {e}"
                )

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    global_data = data.get("global", {})
    if not isinstance(global_data, dict):
        raise ConfigError("'global' must be a table")
    global_config = _parse_global(global_data)

    jobs = []
    for job_data in data.get("jobs", []):
        if not isinstance(job_data, dict):
            raise ConfigError("Every entry of 'jobs' must be a table")
        jobs.append(_parse_job(job_data, global_config))

    job_ids = [j.id for j in jobs]
    if len(job_ids) != len(set(job_ids)):
        raise ConfigError("Duplicate job ids detected")

    config = Config(global_config=global_config, jobs=jobs)

    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# backerup configuration
# See documentation for full options

[global]
state_dir = "~/.local/state/backerup"
# log_file = "~/.local/state/backerup/backerup.log"

# 0 runs every due job at once
parallel_jobs = 0
# Seconds between cycles when running with --daemon
poll_interval = 60
# Only record a backup when at least one target received it
require_target_success = false

# Nightly incremental backup of documents
[[jobs]]
id = "documents"
sources = ["/home/user/Documents"]
targets = ["/mnt/backup"]
method = "incremental"     # full | differential | incremental
schedule = "0 2 * * *"     # blank = run on every cycle

[jobs.retention]
count = 5                  # Keep 5 packages (0 = keep all)
size = 7                   # Open a new package after 7 snapshots (0 = never)

# Weekly differential backup of project files, mirrored to two disks
# [[jobs]]
# id = "projects"
# sources = ["/srv/projects", "/etc/hosts"]
# targets = ["/mnt/backup", "/mnt/offsite"]
# method = "differential"
# schedule = "30 3 * * sun"
#
# [jobs.retention]
# count = 4
# size = 6
"""
