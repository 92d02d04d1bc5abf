"""Core backup engine for backerup.

Job state, change detection, backup strategies, retention, scheduling
and the orchestrator that ties them together.
"""

from .changes import ChangedFile, find_changed_files
from .orchestrator import Orchestrator
from .retention import enforce_retention
from .scheduler import is_due, next_occurrence
from .state import JobState, JobStateStore, PackageEntry
from .strategies import Outcome, RunResult, select_strategy

__all__ = [
    "ChangedFile",
    "find_changed_files",
    "Orchestrator",
    "enforce_retention",
    "is_due",
    "next_occurrence",
    "JobState",
    "JobStateStore",
    "PackageEntry",
    "Outcome",
    "RunResult",
    "select_strategy",
]
