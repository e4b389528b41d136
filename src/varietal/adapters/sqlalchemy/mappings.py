"""SQLAlchemy mapping metadata for the entity document store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import cache
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Index,
    String,
    Table,
    TypeDecorator,
    orm,
)

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

entity_document_table = Table(
    "entity_document",
    mapper_registry.metadata,
    Column("collection", String(64), primary_key=True),
    Column("id", String(64), primary_key=True),
    Column("payload", JSON, nullable=False),
    Column("created_date", UTCDateTime, nullable=False),
    Column("updated_date", UTCDateTime, nullable=False),
    Index("ix_entity_document_collection_created_date", "collection", "created_date"),
)


@dataclass(kw_only=True)
class EntityDocumentRow:
    """One stored document; ``payload`` holds every field except the bookkeeping columns."""

    collection: str
    id: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_date: datetime
    updated_date: datetime

    def as_document(self) -> dict[str, Any]:
        return {
            **self.payload,
            "id": self.id,
            "created_date": self.created_date.isoformat(),
            "updated_date": self.updated_date.isoformat(),
        }


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the document row."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(EntityDocumentRow, entity_document_table)
    return mapper_registry

