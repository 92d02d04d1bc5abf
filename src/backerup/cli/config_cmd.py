"""Config command: validate or generate the job configuration."""

import argparse
import logging
from collections import Counter

from ..__logger__ import create_logger
from ..config import (
    BackupMethod,
    ConfigError,
    JobConfig,
    find_config_file,
    load_config,
)
from ..config.loader import CONFIG_PATHS, generate_example_config
from .common import get_log_level

logger = logging.getLogger(__name__)


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(level=get_log_level(args))

    actions = {"validate": _validate_config, "init": _init_config}
    action = actions.get(getattr(args, "config_action", None))
    if action is None:
        print("Usage: backerup config <validate|init>")
        return 1
    return action(args)


def describe_retention(job: JobConfig) -> str:
    keep = job.retention.count
    size = job.retention.size
    packages = f"keep {keep} package(s)" if keep > 0 else "keep all packages"
    if job.method is BackupMethod.FULL or size <= 0:
        return packages
    return f"{packages}, new package after {size} snapshot(s)"


def describe_job(job: JobConfig) -> str:
    """One line summary of a job for the validate report."""
    schedule = job.schedule.strip() or "every cycle"
    line = (
        f"{job.id}: {job.method.value} at '{schedule}', "
        f"{len(job.active_sources())} source(s) -> {len(job.targets)} target(s), "
        f"{describe_retention(job)}"
    )
    if not job.enabled:
        line += " [disabled]"
    return line


def _validate_config(args: argparse.Namespace) -> int:
    """Load the configuration and summarize the jobs it defines."""
    try:
        config_path = find_config_file(getattr(args, "config", None))
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    if config_path is None:
        print("No configuration file found in:")
        for path in CONFIG_PATHS:
            print(f"  {path}")
        return 1

    print(f"Validating: {config_path}")
    try:
        config, warnings = load_config(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    for warning in warnings:
        print(f"  warning: {warning}")

    enabled = config.get_enabled_jobs()
    methods = Counter(job.method.value for job in enabled)

    print("")
    print("Configuration is valid.")
    print(f"  State directory: {config.global_config.state_dir}")
    print(f"  Jobs: {len(config.jobs)} ({len(enabled)} enabled)")
    if methods:
        print(
            "  Methods: "
            + ", ".join(f"{name} x{count}" for name, count in sorted(methods.items()))
        )
    for job in config.jobs:
        print(f"  - {describe_job(job)}")

    return 0


def _init_config(args: argparse.Namespace) -> int:
    """Print or write an example configuration."""
    content = generate_example_config()

    output = getattr(args, "output", None)
    if not output:
        print(content)
        return 0

    try:
        with open(output, "w") as f:
            f.write(content)
    except OSError as e:
        print(f"Error writing file: {e}")
        return 1

    print(f"Example configuration written to: {output}")
    return 0
