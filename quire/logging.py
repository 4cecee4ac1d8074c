"""Logging for Quire.

Modules log under the ``quire`` hierarchy (``quire.content``,
``quire.checks``...). User-facing output goes through ``click.echo``; the
logger carries diagnostics only: stderr shows warnings unless ``--verbose``,
and a ``--log-file`` sink always records the full debug trail.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "quire"

STDERR_FORMAT = "[quire] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the quire hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install the stderr handler and the optional file sink.

    The stderr handler shows DEBUG with ``verbose`` and WARNING otherwise. The
    file sink, when given, records DEBUG regardless of ``verbose``, so the
    logger level is the lowest of the two.

    Calling this again (each CLI invocation does) closes and replaces the
    handlers installed by the previous call.

    Args:
        verbose: Show debug output on stderr.
        log_file: Append the debug trail to this file.

    Returns:
        The ``quire`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False
    _close_handlers(logger)

    stderr_level = logging.DEBUG if verbose else logging.WARNING
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(stderr_level)
    stream_handler.setFormatter(logging.Formatter(STDERR_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is None:
        logger.setLevel(stderr_level)
        return logger

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
    return logger


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()


__all__ = ["configure_logging", "get_logger"]
