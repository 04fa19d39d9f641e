"""
Logging configuration for e5.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", verbose: bool = False,
                  console: Optional[Console] = None) -> logging.Logger:
    """
    Set up logging for the e5 package.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        verbose: Force DEBUG and include logger names/paths in records
        console: Console to render log records on (default: stderr)

    Returns:
        The configured 'e5' logger
    """
    numeric_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger('e5')
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter('%(name)s: %(message)s' if verbose else '%(message)s'))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
