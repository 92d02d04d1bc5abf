"""CLI dispatcher.

Builds the subcommand parser and routes parsed arguments to the
command modules.
"""

import argparse
import sys
from typing import Callable

from .common import add_job_filter_arg, add_verbosity_args

# Known subcommands
SUBCOMMANDS = frozenset(
    {
        "run",
        "list",
        "status",
        "config",
    }
)


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="backerup",
        description="Scheduled file backups into packages of full copies and snapshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run all due backup jobs",
        description="Check every job's schedule and back up the ones that are due",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    run_parser.add_argument(
        "--force",
        action="store_true",
        help="Run jobs regardless of their schedule",
    )
    run_parser.add_argument(
        "--daemon",
        action="store_true",
        help="Keep running and check jobs every polling interval",
    )
    run_parser.add_argument(
        "--interval",
        type=int,
        metavar="SECONDS",
        help="Polling interval in daemon mode (overrides config)",
    )
    run_parser.add_argument(
        "--parallel-jobs",
        type=int,
        metavar="N",
        help="Max concurrent jobs, 0 for no limit (overrides config)",
    )
    add_job_filter_arg(run_parser, "Only run specific job(s)")

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="Show packages and snapshots",
        description="List the packages of every configured job",
    )
    add_job_filter_arg(list_parser, "Only list specific job(s)")
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    # status command
    subparsers.add_parser(
        "status",
        help="Show job status and schedule",
        description="Display package counts, last run times and next due times",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"backerup {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    handlers: dict[str, Callable] = {
        "run": cmd_run,
        "list": cmd_list,
        "status": cmd_status,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    from .list_cmd import execute_list

    return execute_list(args)


def cmd_status(args: argparse.Namespace) -> int:
    """Execute status command."""
    from .status import execute_status

    return execute_status(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the backerup CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
