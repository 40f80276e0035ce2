"""Core data models shared across restgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class EntityDescriptor:
    """Declaration-level metadata for one top-level class."""

    qualified_name: str
    simple_name: str
    module: str
    annotations: FrozenSet[str] = frozenset()
    bases: Tuple[str, ...] = ()
    source_path: Optional[Path] = field(default=None, compare=False)
    lineno: int = field(default=0, compare=False)

    def has_annotation(self, name: str) -> bool:
        return name in self.annotations


@dataclass(frozen=True)
class InterfaceSpec:
    """A repository interface to be generated for one entity."""

    name: str
    package: str
    entity: EntityDescriptor
    id_type: str
    base: str
    annotations: Tuple[str, ...]

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}"

    @property
    def relative_path(self) -> Path:
        return Path(*self.package.split(".")) / f"{self.name}.py"


class RunState(str, Enum):
    """Lifecycle states of a generation run."""

    CONFIGURED = "configured"
    SCANNING = "scanning"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunSummary:
    """Outcome of one generation run, reported back to the build step."""

    state: RunState = RunState.CONFIGURED
    entities_found: int = 0
    artifacts_written: int = 0
    artifacts_unchanged: int = 0
    artifacts_failed: int = 0
    stale_removed: int = 0
    up_to_date: bool = False
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.DONE

    def describe(self) -> str:
        if self.state is RunState.FAILED:
            return f"Generation failed: {self.error}"
        if self.up_to_date:
            return "Repositories are up to date"
        return (
            f"Found {self.entities_found} entities: "
            f"{self.artifacts_written} written, "
            f"{self.artifacts_unchanged} unchanged, "
            f"{self.artifacts_failed} failed, "
            f"{self.stale_removed} stale removed"
        )
