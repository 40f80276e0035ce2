"""Logging for restgen runs.

Console output uses the one-line ``restgen: warning: ...`` shape that build
tools print, so generator diagnostics read like compiler messages inside a
larger build log. The optional log file appends one block per run and also
receives the machine-readable run summary, which the console never shows.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import RunSummary

_LOGGER_NAME = "restgen"
_SUMMARY_ATTR = "restgen_summary"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(threadName)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the restgen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class BuildMessageFormatter(logging.Formatter):
    """Formats records as ``restgen: message`` or ``restgen: <level>: message``."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if record.levelno >= logging.WARNING:
            return f"{_LOGGER_NAME}: {record.levelname.lower()}: {message}"
        return f"{_LOGGER_NAME}: {message}"


def _is_console_record(record: logging.LogRecord) -> bool:
    return not getattr(record, _SUMMARY_ATTR, False)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route restgen records to stderr and, when given, append them to ``log_file``.

    Worker threads share the handlers, so the file format carries the thread
    name. Calling this again replaces the handlers of the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(BuildMessageFormatter())
    console.addFilter(_is_console_record)
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.debug("restgen run started (verbose=%s)", verbose)

    return logger


def log_run_summary(summary: "RunSummary", logger: logging.Logger | None = None) -> None:
    """Record the counters and collected warnings of a finished run in the log file."""
    logger = logger or get_logger("summary")
    extra = {_SUMMARY_ATTR: True}
    logger.info(
        "run finished state=%s entities=%d written=%d unchanged=%d failed=%d "
        "stale_removed=%d up_to_date=%s warnings=%d",
        summary.state.value,
        summary.entities_found,
        summary.artifacts_written,
        summary.artifacts_unchanged,
        summary.artifacts_failed,
        summary.stale_removed,
        summary.up_to_date,
        len(summary.warnings),
        extra=extra,
    )
    for warning in summary.warnings:
        logger.info("run warning: %s", warning, extra=extra)
    if summary.error:
        logger.info("run error: %s", summary.error, extra=extra)


__all__ = ["BuildMessageFormatter", "configure_logging", "get_logger", "log_run_summary"]
