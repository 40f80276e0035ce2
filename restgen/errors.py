"""Error taxonomy shared by the scanner, synthesizer and generation task.

Fatal errors abort a run before or during scanning. Recoverable errors are
raised for a single candidate or artifact; callers log them, count them and
carry on with the rest of the run.
"""

from __future__ import annotations


class RestgenError(Exception):
    """Base class for every error raised by restgen."""


class ConfigError(RestgenError, ValueError):
    """Raised when required configuration is missing or invalid."""


class NameCollisionError(ConfigError):
    """Raised when two entities would produce the same repository artifact."""

    def __init__(self, target: str, entities: list[str]) -> None:
        self.target = target
        self.entities = sorted(entities)
        joined = ", ".join(self.entities)
        super().__init__(f"Entities {joined} all map to repository {target}")


class RestgenIOError(RestgenError, OSError):
    """Base class for filesystem problems encountered during a run."""


class SourceRootError(RestgenIOError):
    """The source tree cannot be scanned; nothing meaningful can be generated."""


class OutputLockedError(RestgenIOError):
    """Another generation run currently owns the output directory."""


class StateStoreError(RestgenIOError):
    """The up-to-date record could not be written."""


class RecoverableIOError(RestgenIOError):
    """A single candidate or artifact failed; the run continues without it."""


class SymbolNotFound(RecoverableIOError):
    """A fully-qualified name could not be matched to a declared type."""

    def __init__(self, name: str, reason: str | None = None) -> None:
        self.name = name
        self.reason = reason
        message = f"Cannot resolve {name}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class WriteError(RecoverableIOError):
    """A generated artifact could not be written to the output directory."""


__all__ = [
    "ConfigError",
    "NameCollisionError",
    "OutputLockedError",
    "RecoverableIOError",
    "RestgenError",
    "RestgenIOError",
    "SourceRootError",
    "StateStoreError",
    "SymbolNotFound",
    "WriteError",
]
