"""Cron based due-date scheduling for backup jobs.

Schedules use standard five-field cron syntax, or six fields with a
leading seconds field. Ranges, lists, steps, day-of-week names and ``L``
(last day of the month) are understood. A blank schedule means the job is
due on every cycle; an invalid one means it never is.
"""

import logging
from datetime import datetime, timedelta

from croniter import croniter

from .. import __util__
from ..config.schema import JobConfig
from .state import JobState

logger = logging.getLogger(__name__)

NEVER_RUN_WINDOW = timedelta(days=365)


def parse_schedule(expression: str) -> str:
    """Normalize a schedule for croniter.

    Six-field expressions carry seconds first; croniter expects them last.

    Raises:
        ValueError: If the expression is not a valid cron expression
    """
    fields = expression.split()
    if len(fields) == 6:
        fields = fields[1:] + fields[:1]
    elif len(fields) != 5:
        raise ValueError(
            f"expected 5 or 6 fields, got {len(fields)} in {expression!r}"
        )

    normalized = " ".join(fields)
    try:
        croniter(normalized)
    except (ValueError, KeyError) as e:
        raise ValueError(f"invalid cron expression {expression!r}: {e}")
    return normalized


def first_occurrence(expression: str, baseline: datetime) -> datetime | None:
    """First occurrence of ``expression`` at or after ``baseline`` (UTC).

    Returns None if the expression cannot produce a date.

    Raises:
        ValueError: If the expression is not a valid cron expression
    """
    normalized = parse_schedule(expression)
    baseline = __util__.as_utc(baseline)

    # croniter only returns times strictly after its start, at whole seconds
    start = baseline.replace(microsecond=0)
    if start == baseline:
        start -= timedelta(seconds=1)

    try:
        return __util__.as_utc(croniter(normalized, start).get_next(datetime))
    except (ValueError, KeyError) as e:
        logger.debug("No occurrence of %r after %s: %s", expression, baseline, e)
        return None


def is_due(job: JobConfig | None, state: JobState | None, now: datetime) -> bool:
    """Decide whether a job should run at ``now``.

    The search starts one second after the last snapshot, or one year
    before ``now`` if the job never ran.
    """
    if job is None:
        return False
    if not job.schedule or not job.schedule.strip():
        return True

    now = __util__.as_utc(now)
    last_run = state.last_snapshot_timestamp if state else None
    if last_run is None:
        baseline = now - NEVER_RUN_WINDOW
    else:
        baseline = last_run + timedelta(seconds=1)

    try:
        occurrence = first_occurrence(job.schedule, baseline)
    except ValueError as e:
        logger.warning("Job %s will not run: %s", job.id, e)
        return False

    return occurrence is not None and occurrence <= now


def next_occurrence(
    job: JobConfig | None, state: JobState | None, now: datetime
) -> datetime | None:
    """Next scheduled run of a job after its last snapshot (or ``now``)."""
    if job is None or not job.schedule or not job.schedule.strip():
        return None

    last_run = state.last_snapshot_timestamp if state else None
    reference = last_run if last_run is not None else __util__.as_utc(now)

    try:
        return first_occurrence(job.schedule, reference + timedelta(seconds=1))
    except ValueError:
        return None
