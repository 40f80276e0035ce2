"""Explicit diagnostics sink handed to each generation component."""

from __future__ import annotations

import logging
import threading
from typing import List

from .logging import get_logger


class Reporter:
    """Forwards diagnostics to a logger and keeps warnings for the run summary."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("run")
        self._warnings: List[str] = []
        self._lock = threading.Lock()

    def info(self, message: str, *args: object) -> None:
        self.logger.info(message, *args)

    def debug(self, message: str, *args: object) -> None:
        self.logger.debug(message, *args)

    def warning(self, message: str, *args: object) -> None:
        self.logger.warning(message, *args)
        with self._lock:
            self._warnings.append(message % args if args else message)

    def error(self, message: str, *args: object) -> None:
        self.logger.error(message, *args)
        with self._lock:
            self._warnings.append(message % args if args else message)

    @property
    def warnings(self) -> List[str]:
        with self._lock:
            return list(self._warnings)


__all__ = ["Reporter"]
