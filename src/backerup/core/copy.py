"""Recursive file copy used to populate packages and snapshots."""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_file(source: str | Path, destination: str | Path) -> None:
    """Copy one file, creating parent directories and overwriting."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)


def copy_tree(source: str | Path, destination: str | Path) -> bool:
    """Mirror ``source`` at ``destination``.

    Directories are copied with their full structure, files are copied
    directly. Existing files at the destination are overwritten.

    Returns:
        False if the source does not exist, True otherwise
    """
    source = Path(source)
    destination = Path(destination)

    if source.is_dir():
        logger.debug("Copying tree %s -> %s", source, destination)
        shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
        return True
    if source.is_file():
        logger.debug("Copying file %s -> %s", source, destination)
        copy_file(source, destination)
        return True

    logger.warning("Source %s does not exist, nothing copied", source)
    return False
