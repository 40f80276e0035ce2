"""Discovery of marker-decorated entity classes beneath a base package."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

from .errors import SourceRootError, SymbolNotFound
from .models import EntityDescriptor
from .reporting import Reporter
from .symbols import TypeUniverse

SOURCE_SUFFIX = ".py"

_EXCLUDED_DIRS = {
    "__pycache__",
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "node_modules",
}

_CLASS_STYLE = re.compile(r"^[A-Z][A-Za-z0-9]*$")


def type_name_for_module(stem: str) -> str:
    """Return the class name a module is expected to declare.

    ``Employee`` stays ``Employee``; ``sales_order`` becomes ``SalesOrder``.
    """
    if _CLASS_STYLE.match(stem):
        return stem
    return "".join(part[:1].upper() + part[1:] for part in stem.split("_") if part)


def candidate_name(base_package: str, base_dir: Path, path: Path) -> str:
    """Map a source file beneath ``base_dir`` to the class name it should declare."""
    relative = path.relative_to(base_dir).with_suffix("")
    module = ".".join([base_package, *relative.parts])
    return f"{module}.{type_name_for_module(relative.name)}"


def iter_source_files(base_dir: Path, *, include_dunder: bool = False) -> Iterator[Path]:
    """Yield source files beneath ``base_dir`` in a stable order."""
    for dirpath, dirnames, filenames in os.walk(base_dir):
        dirnames[:] = sorted(
            name for name in dirnames if name not in _EXCLUDED_DIRS and not name.startswith(".")
        )
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if not filename.endswith(SOURCE_SUFFIX) or filename.startswith("."):
                continue
            # Dunder modules declare packages, not types.
            if filename.startswith("__") and not include_dunder:
                continue
            path = current_dir / filename
            if path.is_file():
                yield path


class EntityScanner:
    """Walks a source tree and keeps the classes carrying an entity marker."""

    def __init__(
        self,
        resolver: TypeUniverse,
        source_root: Path,
        base_package: str,
        markers: Iterable[str],
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.resolver = resolver
        self.source_root = Path(source_root)
        self.base_package = base_package
        self.markers = frozenset(markers)
        self.reporter = reporter or Reporter()

    @property
    def base_dir(self) -> Path:
        return self.source_root.joinpath(*self.base_package.split("."))

    def scan(self) -> Set[EntityDescriptor]:
        """Return every descriptor beneath the base package carrying a marker."""
        base_dir = self.base_dir
        if not base_dir.exists():
            raise SourceRootError(f"Base package directory not found: {base_dir}")
        if not base_dir.is_dir():
            raise SourceRootError(f"Base package path is not a directory: {base_dir}")
        if not os.access(base_dir, os.R_OK | os.X_OK):
            raise SourceRootError(f"Base package directory is not readable: {base_dir}")

        entities: Set[EntityDescriptor] = set()
        candidates = 0
        for path in iter_source_files(base_dir):
            candidates += 1
            name = candidate_name(self.base_package, base_dir, path)
            try:
                descriptor = self.resolver.resolve(name)
            except SymbolNotFound as exc:
                self.reporter.warning("Skipping %s: %s", path.relative_to(self.source_root).as_posix(), exc)
                continue
            if self.markers & descriptor.annotations:
                self.reporter.debug("Found entity %s", descriptor.qualified_name)
                entities.add(descriptor)

        self.reporter.debug("Scanned %d candidate modules under %s", candidates, base_dir)
        return entities


__all__ = [
    "EntityScanner",
    "SOURCE_SUFFIX",
    "candidate_name",
    "iter_source_files",
    "type_name_for_module",
]
