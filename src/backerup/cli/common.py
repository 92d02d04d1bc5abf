"""Shared CLI utilities and argument parsers."""

import argparse
import logging
from pathlib import Path

from ..__logger__ import create_logger
from ..config import Config, ConfigError, JobConfig, find_config_file, load_config
from ..core.state import JobStateStore

logger = logging.getLogger(__name__)


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_job_filter_arg(parser: argparse.ArgumentParser, help_text: str) -> None:
    """Add a repeatable --job option."""
    parser.add_argument(
        "-j",
        "--job",
        metavar="ID",
        action="append",
        help=help_text,
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_cli_config(args: argparse.Namespace) -> tuple[Config, Path] | None:
    """Find and load the configuration for a command.

    Problems are reported to the user; None means the command should exit 1.
    """
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: backerup config init")
            return None

        logger.debug("Loading configuration from: %s", config_path)
        config, warnings = load_config(config_path)

        for warning in warnings:
            logger.warning("Config: %s", warning)

    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    return config, config_path


def setup_logging(args: argparse.Namespace, config: Config | None = None) -> None:
    """Configure logging from CLI flags and the configured log file."""
    log_file = config.global_config.log_file if config else None
    create_logger(level=get_log_level(args), log_file=log_file)


def select_jobs(config: Config, job_ids: list[str] | None) -> list[JobConfig]:
    """Enabled jobs, optionally limited to ``job_ids``."""
    jobs = config.get_enabled_jobs()
    if job_ids:
        wanted = set(job_ids)
        unknown = wanted - {j.id for j in config.jobs}
        for job_id in sorted(unknown):
            logger.warning("Unknown job: %s", job_id)
        jobs = [j for j in jobs if j.id in wanted]
    return jobs


def state_store(config: Config) -> JobStateStore:
    return JobStateStore(config.global_config.state_dir)
