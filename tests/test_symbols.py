"""Tests for restgen.symbols."""

from __future__ import annotations

import pytest

from restgen.errors import RecoverableIOError, SymbolNotFound
from restgen.symbols import TypeUniverse


def test_resolve_qualifies_decorators_through_imports(source_tree) -> None:
    source_tree.entity("app/entity/employee.py", "Employee")

    descriptor = TypeUniverse([source_tree.src]).resolve("app.entity.employee.Employee")

    assert descriptor.qualified_name == "app.entity.employee.Employee"
    assert descriptor.simple_name == "Employee"
    assert descriptor.module == "app.entity.employee"
    assert descriptor.annotations == frozenset({"restgen.rest_entity"})
    assert descriptor.source_path == source_tree.src / "app" / "entity" / "employee.py"
    assert descriptor.lineno == 5


def test_resolve_handles_aliases_calls_and_relative_imports(source_tree) -> None:
    source_tree.write(
        {
            "app/model/tags.py": "def audited(cls):\n    return cls\n",
            "app/model/order.py": """
                import restgen.markers as m
                from . import tags
                from .tags import audited as audit
                from dataclasses import dataclass


                def local(cls):
                    return cls


                @m.rest_entity()
                @audit
                @tags.audited
                @dataclass(frozen=True)
                @local
                class Order:
                    total: int
            """,
        }
    )

    descriptor = TypeUniverse([source_tree.src]).resolve("app.model.order.Order")

    assert descriptor.annotations == frozenset(
        {
            "restgen.markers.rest_entity",
            "app.model.tags.audited",
            "dataclasses.dataclass",
            "app.model.order.local",
        }
    )
    assert descriptor.has_annotation("restgen.markers.rest_entity")


def test_resolve_records_base_classes_without_type_arguments(source_tree) -> None:
    source_tree.write(
        {
            "app/base.py": """
                import typing
                from app.core import Model


                class Base(Model, typing.Generic[int]):
                    pass
            """,
        }
    )

    descriptor = TypeUniverse([source_tree.src]).resolve("app.base.Base")

    assert descriptor.bases == ("app.core.Model", "typing.Generic")
    assert descriptor.annotations == frozenset()


def test_resolve_reads_package_init_modules(source_tree) -> None:
    source_tree.write({"app/__init__.py": "from .tags import mark\n\n\n@mark\nclass Root:\n    pass\n"})

    descriptor = TypeUniverse([source_tree.src]).resolve("app.Root")

    assert descriptor.annotations == frozenset({"app.tags.mark"})


def test_resolve_searches_roots_in_order(tmp_path) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"
    (first / "pkg").mkdir(parents=True)
    (second / "pkg").mkdir(parents=True)
    (second / "pkg" / "thing.py").write_text("class Thing:\n    pass\n", encoding="utf-8")

    universe = TypeUniverse([first, second])

    assert universe.resolve("pkg.thing.Thing").source_path == second / "pkg" / "thing.py"


@pytest.mark.parametrize(
    ("files", "name", "reason"),
    [
        ({}, "app.missing.Missing", "not in the type universe"),
        ({"app/broken.py": "class Broken(:\n"}, "app.broken.Broken", "cannot parse broken.py"),
        ({"app/helpers.py": "def helper():\n    pass\n"}, "app.helpers.Helpers", "declares no top-level class Helpers"),
        ({}, "Toplevel", "not a module-qualified class name"),
    ],
)
def test_resolve_raises_symbol_not_found(source_tree, files, name, reason) -> None:
    source_tree.write(files)
    universe = TypeUniverse([source_tree.src])

    with pytest.raises(SymbolNotFound) as excinfo:
        universe.resolve(name)

    assert excinfo.value.name == name
    assert reason in str(excinfo.value)
    assert isinstance(excinfo.value, RecoverableIOError)


def test_nested_classes_are_not_top_level(source_tree) -> None:
    source_tree.write({"app/outer.py": "class Outer:\n    class Inner:\n        pass\n"})
    universe = TypeUniverse([source_tree.src])

    assert universe.find("app.outer.Inner") is None
    assert [item.simple_name for item in universe.classes_in("app.outer")] == ["Outer"]


def test_resolution_is_cached_and_idempotent(source_tree) -> None:
    path = source_tree.entity("app/entity/employee.py", "Employee")
    universe = TypeUniverse([source_tree.src])

    first = universe.resolve("app.entity.employee.Employee")
    path.write_text("class Other:\n    pass\n", encoding="utf-8")
    second = universe.resolve("app.entity.employee.Employee")

    assert first == second
    assert universe.find("app.entity.employee.Other") is None
