"""SQLAlchemy adapter package for varietal."""

from __future__ import annotations

from .mappings import EntityDocumentRow, entity_document_table, mapper_registry, start_mappers
from .store import SqlAlchemyEntityStore
from .unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "EntityDocumentRow",
    "SqlAlchemyCatalogUnitOfWork",
    "SqlAlchemyEntityStore",
    "StartupError",
    "configured_engine",
    "entity_document_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
