"""List command: Show packages and snapshots per job."""

import argparse
import json
import logging

from .. import __util__
from ..__logger__ import create_logger
from .common import get_log_level, load_cli_config, select_jobs, state_store

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(level=get_log_level(args))

    loaded = load_cli_config(args)
    if loaded is None:
        return 1
    config, _ = loaded

    store = state_store(config)
    jobs = select_jobs(config, getattr(args, "job", None))

    if getattr(args, "json", False):
        listing = {}
        for job in jobs:
            state = store.load(job.id)
            listing[job.id] = state.to_dict() if state else None
        print(json.dumps(listing, indent=2))
        return 0

    for job in jobs:
        state = store.load(job.id)
        print(f"Job: {job.id} ({job.method.value})")
        if state is None or not state.packages:
            print("  No packages")
            print("")
            continue

        for package in state.packages:
            print(
                f"  {package.name}  created {__util__.format_date(package.created)}"
                f"  snapshots: {package.snapshot_count}"
            )
            for target in job.targets:
                print(f"    -> {target}/{package.name}")
        print(f"  Last snapshot: {__util__.format_date(state.last_snapshot_timestamp)}")
        print("")

    return 0
