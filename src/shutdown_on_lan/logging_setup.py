"""Log sink initialization for the shutdown-on-lan process."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(config) -> None:
    """Configure the root logger: console always, plus a file in debug mode."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.DEBUG:
        handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))

    level = logging.DEBUG if config.DEBUG else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    logging.getLogger(__name__).debug("Logging initialized (level=%s)", logging.getLevelName(level))
