"""Command-line interface for llxt."""

from llxt.cli.main import CliContext, cli


__all__ = ["CliContext", "cli"]
