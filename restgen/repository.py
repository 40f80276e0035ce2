"""Generic CRUD repository interface extended by every generated repository."""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, TypeVar

EntityT = TypeVar("EntityT")
IdT = TypeVar("IdT")


class CrudRepository(Protocol[EntityT, IdT]):
    """Plain create/read/update/delete access to one entity type."""

    def save(self, entity: EntityT) -> EntityT: ...

    def save_all(self, entities: Iterable[EntityT]) -> List[EntityT]: ...

    def find_by_id(self, entity_id: IdT) -> Optional[EntityT]: ...

    def find_all(self) -> List[EntityT]: ...

    def exists_by_id(self, entity_id: IdT) -> bool: ...

    def count(self) -> int: ...

    def delete_by_id(self, entity_id: IdT) -> None: ...

    def delete(self, entity: EntityT) -> None: ...


__all__ = ["CrudRepository", "EntityT", "IdT"]
