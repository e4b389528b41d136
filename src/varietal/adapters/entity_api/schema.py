"""Wire schema for hosted entity API documents."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

log = logging.getLogger(__name__)


class EntityDocumentPayload(BaseModel):
    """A single document; every field beyond the bookkeeping ones is kept as-is."""

    model_config = ConfigDict(extra="allow")

    id: str
    created_date: str | None = None
    updated_date: str | None = None
    created_by: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # some collections were imported with numeric ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def as_document(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=False)


DOCUMENT_LIST_ADAPTER: TypeAdapter[list[EntityDocumentPayload]] = TypeAdapter(
    list[EntityDocumentPayload]
)
