# pyright: standard

"""backerup: backerup/__logger__.py
A common logger for displaying through rich.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console()
rich_handler = RichHandler(console=cons, show_path=False)
# Create a logger directly
logger = logging.getLogger("backerup")

FILE_FORMAT = "[%(asctime)s] (%(threadName)s) %(levelname)s %(name)s: %(message)s"


def create_logger(
    show_time: bool = True,
    level: str | int = "INFO",
    log_file: str | Path | None = None,
) -> None:
    """Helper function to setup logging depending on display options.

    Args:
        show_time: Prefix console records with the time
        level: Log level name or number for the project logger
        log_file: Optional path of a plain text log file to append to
    """
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = Console()
    rich_handler = RichHandler(console=cons, show_time=show_time, show_path=False)

    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        path = Path(log_file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter(FILE_FORMAT, "%Y-%m-%d %H:%M:%S")
            )
            handlers.append(file_handler)
        except OSError as e:
            logger.warning("Cannot open log file %s: %s", path, e)

    logger.handlers.clear()
    logger.propagate = False
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)

    logging.basicConfig(
        format="(%(threadName)s) %(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=handlers,
        force=True,
    )
