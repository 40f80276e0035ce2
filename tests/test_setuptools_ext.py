"""Tests for the setuptools build integration."""

from __future__ import annotations

from pathlib import Path

import pytest
from setuptools.dist import Distribution
from setuptools.errors import ExecError, OptionError

from restgen.setuptools_ext import BuildRepositories, build_py


def _command(root: Path, **options: object) -> BuildRepositories:
    dist = Distribution({"name": "demo", "cmdclass": {"build_py": build_py}})
    dist.src_root = str(root)
    command = BuildRepositories(dist)
    for key, value in options.items():
        setattr(command, key, value)
    command.ensure_finalized()
    return command


def test_build_repositories_writes_into_build_lib(source_tree) -> None:
    source_tree.entity("app/entity/employee.py", "Employee")
    build_lib = source_tree.root / "build" / "lib"

    command = _command(source_tree.root, base_package="app", build_lib=str(build_lib))
    command.run()

    artifact = build_lib / "app" / "repository" / "EmployeeRepository.py"
    assert artifact.is_file()
    assert command.get_outputs() == [str(artifact.resolve())]
    assert command.get_source_files() == []


def test_build_repositories_reads_tool_section(source_tree) -> None:
    source_tree.entity("shop/model/order.py", "Order")
    (source_tree.root / "pyproject.toml").write_text(
        '[tool.restgen]\nbase_package = "shop"\nrepository_package = "shop.repos"\n',
        encoding="utf-8",
    )
    output_dir = source_tree.root / "out"

    _command(source_tree.root, output_dir=str(output_dir)).run()

    assert (output_dir / "shop" / "repos" / "OrderRepository.py").is_file()


def test_build_repositories_requires_base_package(source_tree) -> None:
    command = _command(source_tree.root, output_dir=str(source_tree.root / "out"))

    with pytest.raises(OptionError):
        command.run()


def test_build_repositories_raises_on_failed_run(source_tree) -> None:
    command = _command(source_tree.root, base_package="missing", output_dir=str(source_tree.root / "out"))

    with pytest.raises(ExecError, match="repository generation failed"):
        command.run()
