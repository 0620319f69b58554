"""
Structured logging configuration.

Console and file output with configurable levels, all under the
``restroom_directory`` logger namespace. Rejected store records are logged
at WARNING by ``data.validation`` and always reach the log file, whatever
the console level.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from restroom_directory.config import settings

PACKAGE_LOGGER = "restroom_directory"

# SQL echo and access logs are only useful when debugging the store
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx", "httpcore")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure application logging.

    Safe to call more than once (uvicorn reload, tests): handlers from an
    earlier call are closed and replaced rather than stacked.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to ``settings.logging.level``.
        log_file: Path to the log file. Defaults to ``settings.logging.file``.
    """
    level = level or settings.logging.level
    log_file = log_file or settings.logging.file
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    ))

    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(file_handler)
    package_logger.addHandler(console_handler)

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    package_logger.info("Logging configured: level=%s, file=%s", level, log_file)


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, e.g. ``get_logger(__name__)`` in ``data/repository.py``.

    Module names already inside the package keep their dotted name; anything
    else is placed under ``restroom_directory.``.
    """
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
