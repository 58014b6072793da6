"""
Log output for the region editor and the WAD tools.

Every module logs through ``logging.getLogger(__name__)`` under the
``mapregions`` namespace; entry points call :func:`setup_logging` once with
the level picked on their command line.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAMESPACE = "mapregions"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def parse_level(level: Union[int, str]) -> int:
    """Accept a numeric level or one of :data:`LOG_LEVELS` in any case."""
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")
    return getattr(logging, name)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Send ``mapregions.*`` records to stdout and, optionally, to ``log_file``.

    Calling it again replaces the handlers, so re-opening a WAD from the
    editor or running several tools in one process never duplicates lines.
    The log file is rewritten on every run.
    """
    numeric_level = parse_level(level)
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging at %s%s", logging.getLevelName(numeric_level), f" to {log_file}" if log_file else "")
    return logger
