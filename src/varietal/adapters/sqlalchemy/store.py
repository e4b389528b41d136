"""Entity store backed by a single SQLAlchemy document table."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from varietal.domain.model import parse_timestamp
from varietal.domain.ports import EntityNotFoundError, EntityStoreError

from .mappings import EntityDocumentRow, entity_document_table

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.orm import Session

    from varietal.domain.model import Document

log = logging.getLogger(__name__)

BOOKKEEPING_FIELDS: Final[frozenset[str]] = frozenset({"id", "created_date", "updated_date"})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _payload(data: Mapping[str, object]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key not in BOOKKEEPING_FIELDS}


def _matches(document: Mapping[str, Any], filters: Mapping[str, object]) -> bool:
    return all(document.get(key) == value for key, value in filters.items())


def _sort_key(field_name: str) -> Callable[[Mapping[str, Any]], tuple[bool, Any]]:
    def key(document: Mapping[str, Any]) -> tuple[bool, Any]:
        value = document.get(field_name)
        return (value is None, value if value is not None else "")

    return key


class SqlAlchemyEntityStore:
    """Document store over ``entity_document``.

    Filters are equality matches evaluated in Python over the decoded
    payload, so any document field can be filtered on. Each write commits on
    its own; a failed write is rolled back and surfaced as
    :class:`EntityStoreError`.
    """

    def __init__(
        self,
        session: Session,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.session = session
        self._clock = clock or _utcnow

    def filter(
        self,
        collection: str,
        filters: Mapping[str, object] | None = None,
        *,
        sort: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        stmt = select(EntityDocumentRow).where(entity_document_table.c.collection == collection)
        wanted = dict(filters or {})
        if "id" in wanted:
            stmt = stmt.where(entity_document_table.c.id == str(wanted["id"]))
        stmt = stmt.order_by(entity_document_table.c.created_date, entity_document_table.c.id)
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            raise EntityStoreError(f"Failed to query {collection}: {exc}") from exc

        documents = [row.as_document() for row in rows]
        documents = [document for document in documents if _matches(document, wanted)]
        if sort:
            descending = sort.startswith("-")
            documents.sort(key=_sort_key(sort.lstrip("-")), reverse=descending)
        if limit is not None:
            documents = documents[:limit]
        return documents

    def create(self, collection: str, data: Mapping[str, object]) -> Document:
        row = self._new_row(collection, data)
        self.session.add(row)
        self._commit(f"create {collection}")
        return row.as_document()

    def bulk_create(
        self,
        collection: str,
        items: Sequence[Mapping[str, object]],
    ) -> list[Document]:
        rows = [self._new_row(collection, data) for data in items]
        self.session.add_all(rows)
        self._commit(f"bulk create {len(rows)} {collection}")
        return [row.as_document() for row in rows]

    def update(
        self,
        collection: str,
        entity_id: str,
        patch: Mapping[str, object],
    ) -> Document:
        try:
            row = self.session.get(EntityDocumentRow, (collection, entity_id))
        except SQLAlchemyError as exc:
            raise EntityStoreError(f"Failed to load {collection} {entity_id}: {exc}") from exc
        if row is None:
            raise EntityNotFoundError(f"{collection} {entity_id} does not exist")
        # assign a fresh dict so the JSON column registers the change
        row.payload = {**row.payload, **_payload(patch)}
        row.updated_date = self._clock()
        self._commit(f"update {collection} {entity_id}")
        return row.as_document()

    def _new_row(self, collection: str, data: Mapping[str, object]) -> EntityDocumentRow:
        now = self._clock()
        entity_id = data.get("id")
        return EntityDocumentRow(
            collection=collection,
            id=str(entity_id) if entity_id else uuid.uuid4().hex,
            payload=_payload(data),
            created_date=parse_timestamp(data.get("created_date")) or now,
            updated_date=now,
        )

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log.debug("Rolled back failed %s", action)
            raise EntityStoreError(f"Failed to {action}: {exc}") from exc
