"""Static type universe built from Python source trees.

Modules are parsed with the stdlib ``ast`` module and never imported, so
resolving a name has no side effects on the interpreter. Only
declaration-level metadata is extracted: top-level classes, the decorators
applied to them and their base classes, with every name resolved through the
module's imports to a fully-qualified dotted name.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import SymbolNotFound
from .models import EntityDescriptor


@dataclass
class _ModuleSymbols:
    """Parsed declarations of one module, or the reason parsing failed."""

    name: str
    path: Path
    classes: Dict[str, EntityDescriptor] = field(default_factory=dict)
    error: Optional[str] = None


class TypeUniverse:
    """Lazy, cached lookup from fully-qualified class names to descriptors."""

    def __init__(self, roots: Iterable[Path]) -> None:
        self.roots: Tuple[Path, ...] = tuple(Path(root) for root in roots)
        self._modules: Dict[str, Optional[_ModuleSymbols]] = {}

    def resolve(self, qualified_name: str) -> EntityDescriptor:
        """Return the descriptor for ``qualified_name`` or raise SymbolNotFound."""
        module_name, _, class_name = qualified_name.rpartition(".")
        if not module_name or not class_name:
            raise SymbolNotFound(qualified_name, "not a module-qualified class name")

        symbols = self._load(module_name)
        if symbols is None:
            raise SymbolNotFound(qualified_name, f"module {module_name} is not in the type universe")
        if symbols.error is not None:
            raise SymbolNotFound(qualified_name, symbols.error)

        descriptor = symbols.classes.get(class_name)
        if descriptor is None:
            raise SymbolNotFound(
                qualified_name, f"{symbols.path.name} declares no top-level class {class_name}"
            )
        return descriptor

    def find(self, qualified_name: str) -> Optional[EntityDescriptor]:
        try:
            return self.resolve(qualified_name)
        except SymbolNotFound:
            return None

    def classes_in(self, module_name: str) -> List[EntityDescriptor]:
        """Return every top-level class declared by ``module_name``."""
        symbols = self._load(module_name)
        if symbols is None or symbols.error is not None:
            return []
        return list(symbols.classes.values())

    def _load(self, module_name: str) -> Optional[_ModuleSymbols]:
        if module_name in self._modules:
            return self._modules[module_name]
        path = self._locate(module_name)
        symbols = _parse_module(module_name, path) if path is not None else None
        self._modules[module_name] = symbols
        return symbols

    def _locate(self, module_name: str) -> Optional[Path]:
        parts = module_name.split(".")
        for root in self.roots:
            candidate = root.joinpath(*parts).with_suffix(".py")
            if candidate.is_file():
                return candidate
            package_init = root.joinpath(*parts, "__init__.py")
            if package_init.is_file():
                return package_init
        return None


def _parse_module(module_name: str, path: Path) -> _ModuleSymbols:
    symbols = _ModuleSymbols(name=module_name, path=path)
    try:
        source = path.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(path))
    except (OSError, UnicodeDecodeError) as exc:
        symbols.error = f"cannot read {path.name}: {exc}"
        return symbols
    except SyntaxError as exc:
        symbols.error = f"cannot parse {path.name}: {exc.msg} (line {exc.lineno})"
        return symbols

    package = module_name if path.name == "__init__.py" else module_name.rpartition(".")[0]
    scope = _ImportScope(module_name, package)
    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            scope.record(node)
        elif isinstance(node, ast.ClassDef):
            annotations = frozenset(
                name for name in (scope.qualify(_decorator_target(dec)) for dec in node.decorator_list) if name
            )
            bases = tuple(name for name in (scope.qualify(_strip_subscript(base)) for base in node.bases) if name)
            symbols.classes[node.name] = EntityDescriptor(
                qualified_name=f"{module_name}.{node.name}",
                simple_name=node.name,
                module=module_name,
                annotations=annotations,
                bases=bases,
                source_path=path,
                lineno=node.lineno,
            )
            scope.define(node.name)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            scope.define(node.name)
    return symbols


class _ImportScope:
    """Tracks module-level bindings so dotted names can be fully qualified."""

    def __init__(self, module_name: str, package: str) -> None:
        self.module_name = module_name
        self.package = package
        self._bindings: Dict[str, str] = {}

    def record(self, node: ast.Import | ast.ImportFrom) -> None:
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    self._bindings[alias.asname] = alias.name
                else:
                    head = alias.name.split(".", 1)[0]
                    self._bindings[head] = head
            return

        source = self._absolute(node.module, node.level)
        if source is None:
            return
        for alias in node.names:
            if alias.name == "*":
                continue
            self._bindings[alias.asname or alias.name] = f"{source}.{alias.name}" if source else alias.name

    def define(self, name: str) -> None:
        self._bindings[name] = f"{self.module_name}.{name}"

    def qualify(self, dotted: Optional[Sequence[str]]) -> Optional[str]:
        if not dotted:
            return None
        head, rest = dotted[0], list(dotted[1:])
        bound = self._bindings.get(head)
        if bound is None:
            return ".".join(dotted)
        return ".".join([bound, *rest])

    def _absolute(self, module: Optional[str], level: int) -> Optional[str]:
        if level == 0:
            return module or ""
        parts = self.package.split(".") if self.package else []
        if level - 1 > len(parts):
            return None
        base = parts[: len(parts) - (level - 1)]
        if module:
            base.append(module)
        return ".".join(base)


def _decorator_target(node: ast.expr) -> Optional[List[str]]:
    if isinstance(node, ast.Call):
        node = node.func
    return _dotted_parts(node)


def _strip_subscript(node: ast.expr) -> Optional[List[str]]:
    if isinstance(node, ast.Subscript):
        node = node.value
    return _dotted_parts(node)


def _dotted_parts(node: ast.expr) -> Optional[List[str]]:
    parts: List[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    parts.reverse()
    return parts


__all__ = ["TypeUniverse"]
