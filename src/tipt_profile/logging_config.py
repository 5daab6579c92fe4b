"""Logging configuration for the command-line entry points."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from tipt_profile.config import LOG_LEVEL


def setup_logging(level: str | None = None) -> None:
    """Route all package loggers through a Rich handler on stderr."""
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%Y-%m-%d %H:%M:%S]"))

    logging.basicConfig(level=resolved, format="%(message)s", handlers=[handler], force=True)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
