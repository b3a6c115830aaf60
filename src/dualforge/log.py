"""Logging setup for harness runs.

Modules log through ``logging.getLogger(__name__)``; init_logging()
attaches a single Rich handler to the ``dualforge`` logger the first time
it is called and is a no-op afterwards.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "DUALFORGE_LOG"

_initialized = False


def init_logging(level: str | int | None = None) -> None:
    """Install the Rich handler on the package logger once.

    Args:
        level: Log level name or number. Defaults to $DUALFORGE_LOG,
            then WARNING.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING")
    if isinstance(level, str):
        level = level.upper()

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("dualforge")
    logger.addHandler(handler)
    logger.setLevel(level)
