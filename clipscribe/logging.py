"""
clipscribe.logging - Package logger setup.

Log records go to stderr through rich so they don't interleave badly with
the progress bar and the transcript printed on stdout.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("clipscribe")


def configure_logging(verbose: bool = False) -> None:
    """Attach a stderr RichHandler to the ``clipscribe`` logger.

    Safe to call more than once; the handler is installed only the first
    time and later calls just adjust the level.

    Args:
        verbose: DEBUG when True, WARNING otherwise
    """
    level = logging.DEBUG if verbose else logging.WARNING
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
