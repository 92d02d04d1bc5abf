"""Concurrent execution of due backup jobs.

Every job of a cycle runs on its own worker thread with its own freshly
loaded state. Failures are contained at the job boundary and reported as
:class:`RunResult` values; nothing a job does can stop the other jobs or
the polling loop.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, Optional

from .. import __util__
from ..config.schema import JobConfig
from .scheduler import is_due
from .state import JobStateStore
from .strategies import Outcome, RunResult, select_strategy

logger = logging.getLogger(__name__)


class Orchestrator:
    """Dispatch due jobs and collect their results.

    Args:
        store: Where job states are loaded from and saved to
        max_workers: Upper bound on concurrent jobs (None, 0 or a negative
            value runs every job of a cycle at once)
        clock: Source of the current UTC time
        ignore_schedule: Treat every job as due
    """

    def __init__(
        self,
        store: JobStateStore,
        max_workers: Optional[int] = None,
        clock: Callable[[], datetime] = __util__.utcnow,
        ignore_schedule: bool = False,
    ) -> None:
        self.store = store
        self.max_workers = max_workers if max_workers and max_workers > 0 else None
        self.clock = clock
        self.ignore_schedule = ignore_schedule

    def run_job(
        self, job: JobConfig, cancel_event: Optional[threading.Event] = None
    ) -> RunResult:
        """Check one job's schedule and run it if due."""
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Job %s skipped: cancelled", job.id)
            return RunResult(job_id=job.id, outcome=Outcome.CANCELLED)

        try:
            state = self.store.load_or_create(job)
            now = self.clock()

            if not self.ignore_schedule and not is_due(job, state, now):
                logger.debug("Job %s is not due yet", job.id)
                return RunResult(job_id=job.id, outcome=Outcome.NOT_DUE)

            logger.info(
                __util__.log_heading(f"Job {job.id} ({job.method.value}) is due")
            )
            strategy = select_strategy(job.method, self.store)
            return strategy.perform(job, state, now)
        except Exception as e:
            logger.error("Error running backup for job %s: %s", job.id, e)
            logger.debug("Traceback for job %s", job.id, exc_info=True)
            return RunResult(job_id=job.id, outcome=Outcome.FAILED, message=str(e))

    def run_cycle(
        self,
        jobs: Iterable[Optional[JobConfig]],
        cancel_event: Optional[threading.Event] = None,
    ) -> list[RunResult]:
        """Run every due job concurrently.

        Absent (None) entries are skipped. Results keep the order of ``jobs``.
        """
        pending = [job for job in jobs if job is not None]
        if not pending:
            return []

        workers = self.max_workers or len(pending)
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="backerup-job"
        ) as executor:
            futures = [
                executor.submit(self.run_job, job, cancel_event) for job in pending
            ]
            results = []
            for job, future in zip(pending, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.error("Job %s failed: %s", job.id, e)
                    results.append(
                        RunResult(job_id=job.id, outcome=Outcome.FAILED, message=str(e))
                    )

        return results

    def run_forever(
        self,
        load_jobs: Callable[[], Iterable[Optional[JobConfig]]],
        interval: float,
        stop_event: threading.Event,
        on_cycle: Optional[Callable[[list[RunResult]], None]] = None,
    ) -> None:
        """Run cycles until ``stop_event`` is set.

        Job definitions are reloaded through ``load_jobs`` before every
        cycle. A setting of ``stop_event`` also cancels jobs of the current
        cycle that have not started yet.
        """
        logger.info("Backup service started, polling every %ss", interval)
        while not stop_event.is_set():
            try:
                results = self.run_cycle(load_jobs(), cancel_event=stop_event)
                if on_cycle is not None:
                    on_cycle(results)
            except Exception as e:
                logger.error("Error: %s", e)
            stop_event.wait(interval)
        logger.info("Backup service stopped")
