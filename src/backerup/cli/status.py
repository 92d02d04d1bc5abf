"""Status command: Show job status and schedule information."""

import argparse
import logging

from rich.console import Console
from rich.table import Table

from .. import __util__
from ..__logger__ import create_logger
from ..core.scheduler import is_due, next_occurrence
from .common import get_log_level, load_cli_config, state_store

logger = logging.getLogger(__name__)


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Shows every configured job with its package state and schedule.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(level=get_log_level(args))

    loaded = load_cli_config(args)
    if loaded is None:
        return 1
    config, config_path = loaded

    if not config.jobs:
        print("No jobs configured")
        return 1

    store = state_store(config)
    now = __util__.utcnow()

    table = Table(title="backerup status")
    table.add_column("Job")
    table.add_column("Method")
    table.add_column("Packages", justify="right")
    table.add_column("Snapshots", justify="right")
    table.add_column("Last snapshot")
    table.add_column("Due")
    table.add_column("Next run")

    for job in config.jobs:
        state = store.load(job.id)
        current = state.current_package() if state else None
        method = job.method.value if job.enabled else f"{job.method.value} (disabled)"
        table.add_row(
            job.id,
            method,
            str(len(state.packages)) if state else "0",
            str(current.snapshot_count) if current else "-",
            __util__.format_date(state.last_snapshot_timestamp if state else None),
            "yes" if job.enabled and is_due(job, state, now) else "no",
            __util__.format_date(next_occurrence(job, state, now), "-"),
        )

    console = Console()
    console.print(f"Config: {config_path}")
    console.print(f"State: {store.state_dir}")
    console.print(table)
    return 0
