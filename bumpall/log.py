"""Logging setup for the bumpall entry points."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> None:
    """Send bumpall log records to stderr through rich.

    ``--verbose`` forces DEBUG; otherwise BUMPALL_LOG_LEVEL applies (WARNING by default).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(os.getenv("BUMPALL_LOG_LEVEL", "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("bumpall")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
