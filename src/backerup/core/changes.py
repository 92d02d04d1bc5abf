"""Change detection for differential and incremental snapshots."""

import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from .. import __util__, path_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangedFile:
    """A modified file and the source root it is stored relative to."""

    root: Path
    path: Path

    def relative_path(self) -> Path:
        try:
            return self.path.relative_to(self.root)
        except ValueError:
            return Path(self.path.name)


def _modified_after(path: Path, since: datetime) -> bool:
    """True if ``path`` is a regular file modified strictly after ``since``."""
    st = os.stat(path)
    if not stat.S_ISREG(st.st_mode):
        return False
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc) > since


def _walk_error(error: OSError) -> None:
    logger.debug("Skipping unreadable directory %s: %s", error.filename, error)


def _scan_directory(root: Path, since: datetime) -> Iterator[ChangedFile]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            try:
                if _modified_after(path, since):
                    yield ChangedFile(root=root, path=path)
            except OSError:
                continue


def find_changed_files(sources: Iterable[str], since: datetime) -> list[ChangedFile]:
    """Find every regular file under ``sources`` modified after ``since``.

    Args:
        sources: Source directories or single files; blank entries are ignored
        since: Reference timestamp, compared strictly

    Returns:
        Changed files in walk order, each paired with its source root
    """
    since = __util__.as_utc(since)
    changed: list[ChangedFile] = []

    for source in sources:
        if not source or not source.strip():
            continue

        path = Path(source)
        if path.is_dir():
            changed.extend(_scan_directory(path, since))
        elif path.is_file():
            try:
                if _modified_after(path, since):
                    changed.append(ChangedFile(root=path.parent, path=path))
            except OSError:
                continue
        else:
            logger.debug("Source %s does not exist, skipping", source)

    logger.debug("Found %d changed file(s) since %s", len(changed), since)
    return changed


def snapshot_destination(snapshot_dir: Path, changed: ChangedFile) -> Path:
    """Where a changed file is stored inside a snapshot folder.

    The file keeps its path relative to its source root, under a top-level
    folder named after that root.
    """
    return Path(snapshot_dir) / path_name(changed.root) / changed.relative_path()
