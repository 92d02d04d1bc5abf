"""Run command: Execute all due backup jobs."""

import argparse
import logging
import signal
import threading
import time

from .. import __util__
from ..__logger__ import create_logger
from ..config import Config, ConfigError, load_config
from ..core.orchestrator import Orchestrator
from ..core.scheduler import is_due, next_occurrence
from ..core.strategies import Outcome, RunResult
from .common import (
    get_log_level,
    load_cli_config,
    select_jobs,
    setup_logging,
    state_store,
)

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    create_logger(level=get_log_level(args))

    loaded = load_cli_config(args)
    if loaded is None:
        return 1
    config, config_path = loaded
    setup_logging(args, config)

    if not config.jobs:
        logger.error("No jobs configured")
        return 1

    job_ids = getattr(args, "job", None)

    if getattr(args, "dry_run", False):
        return _dry_run(config, job_ids)

    parallel_jobs = getattr(args, "parallel_jobs", None)
    if parallel_jobs is None:
        parallel_jobs = config.global_config.parallel_jobs

    orchestrator = Orchestrator(
        state_store(config),
        max_workers=parallel_jobs,
        ignore_schedule=getattr(args, "force", False),
    )

    if getattr(args, "daemon", False):
        interval = getattr(args, "interval", None) or config.global_config.poll_interval
        return _run_daemon(orchestrator, config_path, job_ids, interval)

    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
    jobs = select_jobs(config, job_ids)
    logger.info("Processing %d job(s)", len(jobs))

    results = orchestrator.run_cycle(jobs)

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))
    return _summarize(results)


def _summarize(results: list[RunResult]) -> int:
    """Log a summary of a cycle and return the exit code."""
    failed = [r for r in results if not r.succeeded]
    ran = [r for r in results if r.outcome in (Outcome.FULL, Outcome.SNAPSHOT)]

    for result in results:
        logger.debug("Job %s: %s", result.job_id, result.outcome.value)

    if failed:
        logger.warning(
            "Completed with errors: %d failed (%s)",
            len(failed),
            ", ".join(r.job_id for r in failed),
        )
        return 1

    logger.info("%d job(s) checked, %d backup(s) written", len(results), len(ran))
    return 0


def _run_daemon(
    orchestrator: Orchestrator,
    config_path,
    job_ids: list[str] | None,
    interval: int,
) -> int:
    """Poll the configuration and run due jobs until interrupted."""
    stop_event = threading.Event()

    def _stop(signum, frame):
        logger.info("Received signal %d, stopping after running jobs", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    def _load_jobs():
        try:
            config, _ = load_config(config_path)
        except ConfigError as e:
            logger.error("Configuration error: %s", e)
            return []
        return select_jobs(config, job_ids)

    orchestrator.run_forever(_load_jobs, interval, stop_event, on_cycle=_summarize)
    return 0


def _dry_run(config: Config, job_ids: list[str] | None) -> int:
    """Show which jobs would run without making changes."""
    print("Dry run mode - showing what would be done:")
    print("")

    store = state_store(config)
    now = __util__.utcnow()

    for job in select_jobs(config, job_ids):
        state = store.load(job.id)
        print(f"Job: {job.id}")
        print(f"  Method: {job.method.value}")
        print(f"  Schedule: {job.schedule or '(always)'}")
        print(
            f"  Retention: count={job.retention.count}, size={job.retention.size}"
        )
        print(f"  Due now: {'yes' if is_due(job, state, now) else 'no'}")
        print(
            "  Next occurrence: "
            + __util__.format_date(next_occurrence(job, state, now), "-")
        )
        print(f"  Sources: {', '.join(job.active_sources()) or '(none)'}")
        if job.targets:
            print("  Targets:")
            for target in job.targets:
                print(f"    -> {target}")
        else:
            print("  Targets: (none)")
        print("")

    return 0
