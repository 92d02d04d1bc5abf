"""Command line interface for backerup."""

from .dispatcher import create_subcommand_parser, main

__all__ = ["create_subcommand_parser", "main"]
