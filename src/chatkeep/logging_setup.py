"""Diagnostic logging setup.

Log records go to stderr through Rich so they never interleave with the
streamed answer on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "warning") -> int:
    """Install a Rich handler on the ``chatkeep`` logger.

    Args:
        level: debug, info, warning or error (unknown values mean warning)

    Returns:
        The numeric level applied
    """
    numeric = LOG_LEVELS.get(level.lower(), logging.WARNING)

    logger = logging.getLogger("chatkeep")
    logger.setLevel(numeric)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        log_time_format="%H:%M:%S",
    )
    handler.setLevel(numeric)
    logger.addHandler(handler)
    logger.propagate = False
    return numeric
