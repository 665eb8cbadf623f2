"""
Logging configuration for nativebuild.

Usage at the entry point (cli.py):

    from nativebuild.log_config import setup_logging
    setup_logging(verbosity)

Library modules log through ``logging.getLogger("nativebuild.<module>")``
and report user-facing progress lines through an optional ``on_log``
callback (see :func:`emit`).
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import SILENT, VERBOSE

LogCallback = Callable[[str], None]

_LEVELS = {
    SILENT: logging.ERROR,
    VERBOSE: logging.DEBUG,
}

_initialized = False


def emit(on_log: Optional[LogCallback], msg: str, logger: Optional[logging.Logger] = None) -> None:
    """Send a progress line to the logger and to *on_log* if given."""
    if logger is not None:
        logger.info(msg)
    if on_log:
        on_log(msg)


def setup_logging(verbosity: int = 1, *, console: Optional[Console] = None) -> None:
    """Attach a rich handler to the ``nativebuild`` logger.

    SILENT shows errors only, VERBOSE shows debug output including every
    external command line; anything else shows warnings.
    """
    global _initialized

    root = logging.getLogger("nativebuild")
    root.setLevel(_LEVELS.get(verbosity, logging.WARNING))
    if _initialized:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbosity >= VERBOSE,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.propagate = False
    _initialized = True
