"""Ports implemented by adapters."""

from __future__ import annotations

from .store import EntityNotFoundError, EntityStore, EntityStoreError
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "EntityNotFoundError",
    "EntityStore",
    "EntityStoreError",
    "RepositoryCollection",
    "UnitOfWork",
]
