"""Build-time generator of CRUD repository interfaces for marked entities."""

__version__ = "0.1.0"

from .markers import (  # noqa: E402
    is_repository_resource,
    is_rest_entity,
    repository_rest_resource,
    rest_entity,
)
from .repository import CrudRepository  # noqa: E402

__all__ = [
    "CrudRepository",
    "__version__",
    "is_repository_resource",
    "is_rest_entity",
    "repository_rest_resource",
    "rest_entity",
]
