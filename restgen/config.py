"""Configuration loading for restgen (.restgen.yml or [tool.restgen])."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".restgen.yml"

DEFAULT_SOURCE_ROOT = "src"
DEFAULT_OUTPUT_DIR = "build/generated"
DEFAULT_STATE_DIR = ".restgen"
DEFAULT_ID_TYPE = "int"
DEFAULT_ENTITY_MARKERS: Tuple[str, ...] = (
    "restgen.markers.rest_entity",
    "restgen.rest_entity",
)
DEFAULT_BASE_REPOSITORY = "restgen.repository.CrudRepository"
DEFAULT_REPOSITORY_MARKER = "restgen.markers.repository_rest_resource"

# Only a single 64-bit numeric key type is supported for generated repositories.
SUPPORTED_ID_TYPES = frozenset({DEFAULT_ID_TYPE})

_DOTTED_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable inputs of one generation run."""

    source_root: Path
    base_package: str
    repository_package: str
    output_dir: Path
    id_type: str = DEFAULT_ID_TYPE
    entity_markers: Tuple[str, ...] = DEFAULT_ENTITY_MARKERS
    base_repository: str = DEFAULT_BASE_REPOSITORY
    repository_marker: str = DEFAULT_REPOSITORY_MARKER
    max_workers: int = 1

    def __post_init__(self) -> None:
        _require_dotted("base_package", self.base_package)
        _require_dotted("repository_package", self.repository_package)
        if self.id_type not in SUPPORTED_ID_TYPES:
            supported = ", ".join(sorted(SUPPORTED_ID_TYPES))
            raise ConfigError(f"Unsupported id_type {self.id_type!r}; expected one of: {supported}")
        if not self.entity_markers:
            raise ConfigError("At least one entity marker must be configured")
        for marker in self.entity_markers:
            _require_qualified("entity_markers", marker)
        _require_qualified("base_repository", self.base_repository)
        _require_qualified("repository_marker", self.repository_marker)
        if self.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")

    @property
    def base_dir(self) -> Path:
        return self.source_root.joinpath(*self.base_package.split("."))

    def fingerprint_values(self) -> Dict[str, object]:
        """Configuration values that take part in the up-to-date check."""
        return {
            "source_root": str(self.source_root),
            "base_package": self.base_package,
            "repository_package": self.repository_package,
            "output_dir": str(self.output_dir),
            "id_type": self.id_type,
            "entity_markers": sorted(self.entity_markers),
            "base_repository": self.base_repository,
            "repository_marker": self.repository_marker,
        }


@dataclass
class RestgenConfig:
    """Represents the settings defined in .restgen.yml or pyproject.toml."""

    root: Path
    base_package: Optional[str] = None
    repository_package: Optional[str] = None
    source_root: str = DEFAULT_SOURCE_ROOT
    output_dir: str = DEFAULT_OUTPUT_DIR
    state_dir: str = DEFAULT_STATE_DIR
    id_type: str = DEFAULT_ID_TYPE
    entity_markers: List[str] = field(default_factory=lambda: list(DEFAULT_ENTITY_MARKERS))
    base_repository: str = DEFAULT_BASE_REPOSITORY
    repository_marker: str = DEFAULT_REPOSITORY_MARKER
    max_workers: int = 1

    def with_overrides(self, **overrides: Any) -> "RestgenConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)

    @property
    def state_path(self) -> Path:
        return self._absolute(self.state_dir)

    def to_request(self) -> GenerationRequest:
        if not self.base_package:
            raise ConfigError("base_package is required (set it in .restgen.yml or pass --base-package)")
        repository_package = self.repository_package or f"{self.base_package}.repository"
        return GenerationRequest(
            source_root=self._absolute(self.source_root),
            base_package=self.base_package,
            repository_package=repository_package,
            output_dir=self._absolute(self.output_dir),
            id_type=self.id_type,
            entity_markers=tuple(self.entity_markers),
            base_repository=self.base_repository,
            repository_marker=self.repository_marker,
            max_workers=self.max_workers,
        )

    def _absolute(self, value: str) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path


def load_config(config_path: Path) -> RestgenConfig:
    """Load configuration from disk, returning defaults when nothing is configured."""
    config_path = Path(config_path).expanduser()
    root = (config_path if config_path.is_dir() else config_path.parent).resolve()

    config_file = _resolve_config_path(config_path)
    if config_file.exists():
        data = _read_yaml(config_file)
    else:
        data = _read_pyproject(root / "pyproject.toml")

    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = RestgenConfig(root=root)
    config.base_package = _as_str(data.get("base_package"))
    config.repository_package = _as_str(data.get("repository_package"))
    config.source_root = _as_str(data.get("source_root")) or config.source_root
    config.output_dir = _as_str(data.get("output_dir")) or config.output_dir
    config.state_dir = _as_str(data.get("state_dir")) or config.state_dir
    config.id_type = _as_str(data.get("id_type")) or config.id_type

    markers = _as_str_list(data.get("entity_markers"))
    if markers:
        config.entity_markers = markers
    config.base_repository = _as_str(data.get("base_repository")) or config.base_repository
    config.repository_marker = _as_str(data.get("repository_marker")) or config.repository_marker

    max_workers = data.get("max_workers")
    if max_workers is not None:
        parsed = _as_int(max_workers)
        if parsed is None:
            raise ConfigError(f"max_workers must be an integer, got {max_workers!r}")
        config.max_workers = parsed

    return config


def _resolve_config_path(config_path: Path) -> Path:
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_yaml(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _read_pyproject(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    tool = data.get("tool")
    section = tool.get("restgen") if isinstance(tool, dict) else None
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError("[tool.restgen] must be a table")
    return {key.replace("-", "_"): value for key, value in section.items()}


def _require_dotted(label: str, value: str) -> None:
    if not isinstance(value, str) or not _DOTTED_NAME.match(value):
        raise ConfigError(f"{label} must be a non-empty dotted identifier, got {value!r}")


def _require_qualified(label: str, value: str) -> None:
    _require_dotted(label, value)
    if "." not in value:
        raise ConfigError(f"{label} must be a fully-qualified name, got {value!r}")


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, str)]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "GenerationRequest",
    "RestgenConfig",
    "load_config",
]
