"""Tests for restgen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from restgen.config import (
    DEFAULT_ENTITY_MARKERS,
    GenerationRequest,
    RestgenConfig,
    load_config,
)
from restgen.errors import ConfigError


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, RestgenConfig)
    assert config.root == tmp_path.resolve()
    assert config.base_package is None
    assert config.repository_package is None
    assert config.source_root == "src"
    assert config.output_dir == "build/generated"
    assert config.state_path == tmp_path.resolve() / ".restgen"
    assert config.id_type == "int"
    assert config.entity_markers == list(DEFAULT_ENTITY_MARKERS)
    assert config.max_workers == 1


def test_load_config_parses_yaml(tmp_path: Path) -> None:
    (tmp_path / ".restgen.yml").write_text(
        """
base_package: "app"
repository_package: "app.repos"
source_root: "lib"
output_dir: "out/generated"
state_dir: ".cache/restgen"
entity_markers:
  - "app.tags.exposed"
base_repository: "app.data.BaseRepository"
repository_marker: "app.web.resource"
max_workers: 4
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path / ".restgen.yml")
    request = config.to_request()

    assert request.base_package == "app"
    assert request.repository_package == "app.repos"
    assert request.source_root == tmp_path.resolve() / "lib"
    assert request.output_dir == tmp_path.resolve() / "out" / "generated"
    assert request.entity_markers == ("app.tags.exposed",)
    assert request.base_repository == "app.data.BaseRepository"
    assert request.repository_marker == "app.web.resource"
    assert request.max_workers == 4
    assert config.state_path == tmp_path.resolve() / ".cache" / "restgen"


def test_load_config_falls_back_to_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
[project]
name = "demo"

[tool.restgen]
base-package = "demo"
output-dir = "build/lib"
""",
        encoding="utf-8",
    )

    request = load_config(tmp_path).to_request()

    assert request.base_package == "demo"
    assert request.repository_package == "demo.repository"
    assert request.output_dir == tmp_path.resolve() / "build" / "lib"


def test_yaml_config_takes_precedence_over_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[tool.restgen]\nbase_package = "from_toml"\n', encoding="utf-8")
    (tmp_path / ".restgen.yml").write_text("base_package: from_yaml\n", encoding="utf-8")

    assert load_config(tmp_path).base_package == "from_yaml"


@pytest.mark.parametrize(
    "content",
    [
        "base_package: [unterminated\n",
        "- just\n- a list\n",
        "max_workers: many\n",
    ],
)
def test_load_config_rejects_invalid_files(tmp_path: Path, content: str) -> None:
    (tmp_path / ".restgen.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_with_overrides_ignores_none(tmp_path: Path) -> None:
    config = RestgenConfig(root=tmp_path, base_package="app")

    updated = config.with_overrides(base_package=None, output_dir="dist/gen")

    assert updated.base_package == "app"
    assert updated.output_dir == "dist/gen"
    assert config.output_dir == "build/generated"


def test_to_request_requires_base_package(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="base_package is required"):
        RestgenConfig(root=tmp_path).to_request()


def _request(**overrides: object) -> GenerationRequest:
    values: dict[str, object] = {
        "source_root": Path("src"),
        "base_package": "app",
        "repository_package": "app.repository",
        "output_dir": Path("build/generated"),
    }
    values.update(overrides)
    return GenerationRequest(**values)  # type: ignore[arg-type]


def test_generation_request_accepts_valid_values() -> None:
    request = _request()

    assert request.id_type == "int"
    assert request.base_dir == Path("src") / "app"
    assert request.fingerprint_values()["repository_package"] == "app.repository"


@pytest.mark.parametrize(
    "overrides",
    [
        {"base_package": ""},
        {"base_package": "app..entity"},
        {"repository_package": "app.1repo"},
        {"id_type": "str"},
        {"entity_markers": ()},
        {"entity_markers": ("rest_entity",)},
        {"base_repository": "CrudRepository"},
        {"max_workers": 0},
    ],
)
def test_generation_request_rejects_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        _request(**overrides)
