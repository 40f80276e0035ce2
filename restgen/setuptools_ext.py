"""setuptools integration: generate repositories as part of ``build_py``.

``build_repositories`` runs after the package sources are copied into
``build_lib`` and writes the generated modules next to them, so the wheel
assembled afterwards ships them. Enable it with::

    setup(cmdclass={"build_py": restgen.setuptools_ext.build_py})
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from setuptools import Command
from setuptools.command.build_py import build_py as _build_py
from setuptools.errors import ExecError, OptionError

from .config import ConfigError, load_config
from .logging import get_logger, log_run_summary
from .task import GenerationTask

logger = get_logger("setuptools")


class BuildRepositories(Command):
    """Generate repository interfaces into the build directory."""

    description = "generate CRUD repository interfaces for @rest_entity classes"
    user_options = [
        ("base-package=", None, "dotted package scanned for entities"),
        ("repository-package=", None, "dotted package for generated repositories"),
        ("source-root=", None, "directory holding the base package"),
        ("output-dir=", "d", "directory receiving generated modules [default: build_lib]"),
        ("force", "f", "regenerate even when inputs are unchanged"),
    ]
    boolean_options = ["force"]

    def initialize_options(self) -> None:
        self.base_package: Optional[str] = None
        self.repository_package: Optional[str] = None
        self.source_root: Optional[str] = None
        self.output_dir: Optional[str] = None
        self.build_lib: Optional[str] = None
        self.force: Optional[bool] = None
        self._outputs: List[str] = []

    def finalize_options(self) -> None:
        self.set_undefined_options("build", ("build_lib", "build_lib"), ("force", "force"))
        if self.output_dir is None:
            self.output_dir = self.build_lib

    def run(self) -> None:
        root = Path(self.distribution.src_root or os.curdir).resolve()
        try:
            config = load_config(root).with_overrides(
                base_package=self.base_package,
                repository_package=self.repository_package,
                source_root=self.source_root,
                output_dir=str(Path(self.output_dir).resolve()) if self.output_dir else None,
            )
            request = config.to_request()
        except ConfigError as exc:
            raise OptionError(str(exc)) from exc

        summary = GenerationTask(request, state_dir=config.state_path).run(force=bool(self.force))
        log_run_summary(summary)
        if not summary.ok:
            raise ExecError(f"repository generation failed: {summary.error}")
        logger.info(summary.describe())

        package_dir = request.output_dir.joinpath(*request.repository_package.split("."))
        self._outputs = sorted(str(path) for path in package_dir.glob("*Repository.py"))

    def get_outputs(self) -> List[str]:
        return list(self._outputs)

    def get_source_files(self) -> List[str]:
        return []


class build_py(_build_py):
    """``build_py`` that also generates repositories once sources are built."""

    def run(self) -> None:
        super().run()
        self.distribution.cmdclass.setdefault("build_repositories", BuildRepositories)
        self.run_command("build_repositories")

    def get_outputs(self, include_bytecode: bool = True) -> List[str]:
        outputs = list(super().get_outputs(include_bytecode))
        if "build_repositories" in self.distribution.have_run:
            outputs.extend(self.get_finalized_command("build_repositories").get_outputs())
        return outputs


__all__ = ["BuildRepositories", "build_py"]
