"""Zero-argument class decorators used for discovery and recognition.

``rest_entity`` tags an entity class so the generator emits a repository for
it. ``repository_rest_resource`` is carried by every generated repository so a
host runtime can recognise it. Neither decorator changes class behaviour.
"""

from __future__ import annotations

from typing import TypeVar

T = TypeVar("T", bound=type)

REST_ENTITY_ATTR = "__rest_entity__"
REPOSITORY_RESOURCE_ATTR = "__repository_rest_resource__"


def rest_entity(cls: T) -> T:
    """Mark ``cls`` as an entity that needs a generated repository."""
    setattr(cls, REST_ENTITY_ATTR, True)
    return cls


def repository_rest_resource(cls: T) -> T:
    """Mark ``cls`` as a repository the host runtime should expose."""
    setattr(cls, REPOSITORY_RESOURCE_ATTR, True)
    return cls


def is_rest_entity(obj: object) -> bool:
    return isinstance(obj, type) and REST_ENTITY_ATTR in vars(obj)


def is_repository_resource(obj: object) -> bool:
    return isinstance(obj, type) and REPOSITORY_RESOURCE_ATTR in vars(obj)


__all__ = [
    "is_repository_resource",
    "is_rest_entity",
    "repository_rest_resource",
    "rest_entity",
]
