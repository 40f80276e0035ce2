"""Tests for the runtime markers and the CRUD base protocol."""

from __future__ import annotations

from restgen import CrudRepository, is_repository_resource, is_rest_entity, repository_rest_resource, rest_entity


def test_crud_repository_declares_plain_crud_operations() -> None:
    declared = {
        name for name, value in vars(CrudRepository).items() if callable(value) and not name.startswith("_")
    }

    assert declared == {
        "save",
        "save_all",
        "find_by_id",
        "find_all",
        "exists_by_id",
        "count",
        "delete_by_id",
        "delete",
    }


def test_markers_tag_only_the_decorated_class() -> None:
    @rest_entity
    class Employee:
        pass

    class Manager(Employee):
        pass

    @repository_rest_resource
    class EmployeeRepository:
        pass

    assert is_rest_entity(Employee)
    assert not is_rest_entity(Manager)
    assert is_repository_resource(EmployeeRepository)
    assert not is_repository_resource(Employee)
