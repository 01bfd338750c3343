"""Console logging for the flowcanvas CLI and embedding applications.

``configure_logging`` installs one stderr handler on the root logger and
sets the ``flowcanvas`` logger to the configured level. The HTTP stack
used by the flow store stays at WARNING regardless.
"""

import logging
import sys
from typing import Literal

from flowcanvas.settings import get_settings

LOG_FORMAT = "%(levelname)s | %(name)s | %(message)s"

# Held at WARNING whatever level the app runs at
NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "asyncio",
]


def _quiet_noisy_loggers() -> None:
    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.WARNING)
        noisy.handlers.clear()


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
) -> None:
    """Route log records to stderr.

    Safe to call more than once; each call replaces the previous handler.

    Args:
        level: Level for flowcanvas records; ``settings.log_level`` when
            omitted.
    """
    log_level = getattr(logging, level or get_settings().log_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    logging.getLogger("flowcanvas").setLevel(log_level)
    _quiet_noisy_loggers()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
