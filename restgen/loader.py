"""Loads generated repositories from the conventional output directory."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from typing import Dict

from .logging import get_logger
from .markers import is_repository_resource
from .synthesizer import REPOSITORY_SUFFIX

logger = get_logger("loader")


def load_repositories(output_dir: Path, repository_package: str) -> Dict[str, type]:
    """Import every generated repository module and return the marked classes by name.

    The entity modules the repositories reference must already be importable.
    """
    package_dir = Path(output_dir).joinpath(*repository_package.split("."))
    if not package_dir.is_dir():
        return {}

    repositories: Dict[str, type] = {}
    for path in sorted(package_dir.glob(f"*{REPOSITORY_SUFFIX}.py")):
        module_name = f"{repository_package}.{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            continue
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise
        candidate = getattr(module, path.stem, None)
        if is_repository_resource(candidate):
            repositories[path.stem] = candidate
        else:
            logger.debug("Module %s does not declare a marked repository", module_name)
    return repositories


__all__ = ["load_repositories"]
