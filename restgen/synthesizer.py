"""Repository interface synthesis for discovered entities."""

from __future__ import annotations

import hashlib
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from . import __version__
from .config import DEFAULT_BASE_REPOSITORY, DEFAULT_ID_TYPE, DEFAULT_REPOSITORY_MARKER
from .errors import WriteError
from .models import EntityDescriptor, InterfaceSpec

REPOSITORY_SUFFIX = "Repository"
TEMPLATE_NAME = "repository.py.j2"


@dataclass(frozen=True)
class SynthesisResult:
    """Where an artifact landed and whether its bytes changed."""

    spec: InterfaceSpec
    path: Path
    changed: bool


def repository_name(simple_name: str) -> str:
    return f"{simple_name}{REPOSITORY_SUFFIX}"


class RepositorySynthesizer:
    """Composes repository interfaces and writes them as Python modules."""

    def __init__(
        self,
        output_dir: Path,
        repository_package: str,
        *,
        id_type: str = DEFAULT_ID_TYPE,
        base_repository: str = DEFAULT_BASE_REPOSITORY,
        repository_marker: str = DEFAULT_REPOSITORY_MARKER,
        templates_dir: Path | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.repository_package = repository_package
        self.id_type = id_type
        self.base_repository = base_repository
        self.repository_marker = repository_marker
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def compose(self, entity: EntityDescriptor) -> InterfaceSpec:
        return InterfaceSpec(
            name=repository_name(entity.simple_name),
            package=self.repository_package,
            entity=entity,
            id_type=self.id_type,
            base=self.base_repository,
            annotations=(self.repository_marker,),
        )

    def render(self, spec: InterfaceSpec) -> str:
        """Render the module source for ``spec``; identical specs render identically."""
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(
            spec=spec,
            entity=spec.entity,
            imports=self._imports(spec),
        )

    def target_path(self, spec: InterfaceSpec) -> Path:
        return self.output_dir / spec.relative_path

    def synthesize(self, entity: EntityDescriptor) -> SynthesisResult:
        """Write the repository module for ``entity``, raising WriteError on failure."""
        spec = self.compose(entity)
        content = self.render(spec).encode("utf-8")
        target = self.target_path(spec)

        try:
            if target.is_file() and target.read_bytes() == content:
                return SynthesisResult(spec=spec, path=target, changed=False)
            target.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(target, content)
        except OSError as exc:
            raise WriteError(f"Failed to write {spec.qualified_name} to {target}: {exc}") from exc
        return SynthesisResult(spec=spec, path=target, changed=True)

    def signature(self) -> str:
        """Identity of the generator itself, used by the up-to-date check."""
        digest = hashlib.sha256(__version__.encode("utf-8"))
        template_path = self.templates_dir / TEMPLATE_NAME
        digest.update(template_path.read_bytes())
        return digest.hexdigest()

    def _imports(self, spec: InterfaceSpec) -> Sequence[str]:
        modules = {"typing", _module_of(spec.base)}
        modules.update(_module_of(annotation) for annotation in spec.annotations)
        return sorted(modules)


def _module_of(qualified_name: str) -> str:
    return qualified_name.rpartition(".")[0]


def _atomic_write(target: Path, content: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, target)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise


__all__ = ["RepositorySynthesizer", "SynthesisResult", "repository_name"]
