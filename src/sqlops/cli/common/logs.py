"""Diagnostic logging setup for the CLI."""

import logging

from rich.logging import RichHandler

from sqlops.cli.common.output import console


def setup_logging(verbose: bool = False) -> None:
    """Route `sqlops.*` loggers through Rich on stderr."""
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("sqlops")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
