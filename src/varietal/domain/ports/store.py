"""Entity-store port consumed by the maintenance engines.

The store is document oriented: collections of JSON-like records addressed by
id, queried with equality filters. It offers no multi-record transactions and
no physical deletion; every write is durable on its own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from varietal.domain.model import Document


class EntityStoreError(RuntimeError):
    """Raised when a single store read or write fails."""


class EntityNotFoundError(EntityStoreError):
    """Raised when an update targets an id that does not exist."""


@runtime_checkable
class EntityStore(Protocol):
    def filter(
        self,
        collection: str,
        filters: Mapping[str, object] | None = None,
        *,
        sort: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Return documents whose fields equal every entry of ``filters``.

        ``sort`` names a field; a leading ``-`` sorts descending.
        """
        ...

    def create(self, collection: str, data: Mapping[str, object]) -> Document: ...

    def update(
        self,
        collection: str,
        entity_id: str,
        patch: Mapping[str, object],
    ) -> Document: ...

    def bulk_create(
        self,
        collection: str,
        items: Sequence[Mapping[str, object]],
    ) -> list[Document]: ...
