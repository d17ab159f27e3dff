"""Console and run-log handlers for the ``ad_join`` loggers."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "ad_join"
LOG_FORMAT = "[%(marker)s] %(asctime)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PLAIN = {"plain": True}


class MarkerFormatter(logging.Formatter):
    """Prefix records with ``*`` for progress and ``!`` for problems.

    Records logged with ``extra=PLAIN`` (banners and summaries) are written
    without the prefix.
    """

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "plain", False):
            return record.getMessage()
        record.marker = "!" if record.levelno >= logging.WARNING else "*"
        return super().format(record)


class _BelowError(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def configure_logging(log_file: Path, *, level: int = logging.INFO) -> logging.Logger:
    """Mirror ``ad_join`` log records to stdout and append them to *log_file*.

    Errors are written to the log file only; the CLI reports them on stderr.
    Calling this again replaces the handlers from the previous call.
    """

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = False

    formatter = MarkerFormatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console.addFilter(_BelowError())
    logger.addHandler(console)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    return logger


__all__ = ["LOGGER_NAME", "PLAIN", "MarkerFormatter", "configure_logging"]
