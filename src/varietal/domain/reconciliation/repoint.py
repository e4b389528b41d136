"""Dependent-reference repointing and loser tombstoning.

Each loser is handled independently: its dependents and any older tombstones
aimed at it are moved to the canonical first, and only then is the loser
tombstoned. A crash in between leaves the loser active, so the next run
re-clusters it and finishes the job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Protocol

from varietal.domain.model import (
    MERGE_POINTER_KEY,
    MERGED_AT_KEY,
    Collection,
    RecordStatus,
    clean_text,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from varietal.domain.model import CatalogRecord, Document
    from varietal.domain.ports import EntityStore

log = logging.getLogger(__name__)


class ReferenceKind(Protocol):
    @property
    def collection(self) -> str: ...

    def repoint(self, store: EntityStore, *, loser_id: str, canonical_id: str) -> int:
        """Move every reference to ``loser_id`` over to ``canonical_id``; return the count."""
        ...


@dataclass(frozen=True, slots=True, kw_only=True)
class DependentKind:
    """A collection whose documents carry a foreign key to a variety."""

    collection: str
    foreign_key: str = "variety_id"

    def repoint(self, store: EntityStore, *, loser_id: str, canonical_id: str) -> int:
        dependents = store.filter(self.collection, {self.foreign_key: loser_id})
        for dependent in dependents:
            store.update(self.collection, str(dependent["id"]), {self.foreign_key: canonical_id})
        return len(dependents)


@dataclass(frozen=True, slots=True, kw_only=True)
class EmbeddedReferenceKind:
    """A collection whose documents embed a list of items that reference varieties."""

    collection: str
    list_field: str = "items"
    foreign_key: str = "variety_id"

    def repoint(self, store: EntityStore, *, loser_id: str, canonical_id: str) -> int:
        updated = 0
        for document in store.filter(self.collection):
            items = document.get(self.list_field)
            if not isinstance(items, list):
                continue
            rewritten, changed = self._rewrite(items, loser_id=loser_id, canonical_id=canonical_id)
            if not changed:
                continue
            store.update(self.collection, str(document["id"]), {self.list_field: rewritten})
            updated += 1
        return updated

    def _rewrite(
        self,
        items: Iterable[Any],
        *,
        loser_id: str,
        canonical_id: str,
    ) -> tuple[list[Any], bool]:
        changed = False
        rewritten: list[Any] = []
        for item in items:
            if isinstance(item, dict) and item.get(self.foreign_key) == loser_id:
                rewritten.append({**item, self.foreign_key: canonical_id})
                changed = True
            else:
                rewritten.append(item)
        return rewritten, changed


GROW_LIST_ITEMS: Final[EmbeddedReferenceKind] = EmbeddedReferenceKind(
    collection=Collection.GROW_LIST
)

DEFAULT_DEPENDENT_KINDS: Final[tuple[ReferenceKind, ...]] = (
    DependentKind(collection=Collection.SEED_LOT),
    DependentKind(collection=Collection.CROP_PLAN),
    DependentKind(collection=Collection.PLANT_INSTANCE),
    DependentKind(collection=Collection.VARIETY_CHANGE_REQUEST),
    GROW_LIST_ITEMS,
)


@dataclass(slots=True)
class ReferenceRepointer:
    kinds: tuple[ReferenceKind, ...] = DEFAULT_DEPENDENT_KINDS

    def __call__(self, store: EntityStore, *, loser_id: str, canonical_id: str) -> int:
        total = 0
        for kind in self.kinds:
            moved = kind.repoint(store, loser_id=loser_id, canonical_id=canonical_id)
            if moved:
                log.debug(
                    "Repointed %s %s record(s) from %s to %s",
                    moved,
                    kind.collection,
                    loser_id,
                    canonical_id,
                )
            total += moved
        return total


def tombstone_patch(
    extended_data: Mapping[str, Any],
    *,
    canonical_id: str,
    merged_at: datetime,
) -> dict[str, Any]:
    return {
        "status": RecordStatus.REMOVED.value,
        "extended_data": {
            **extended_data,
            MERGE_POINTER_KEY: canonical_id,
            MERGED_AT_KEY: merged_at.isoformat(),
        },
    }


@dataclass(slots=True)
class TombstoneWriter:
    """Logically delete losers and keep every tombstone pointing at an active record."""

    collection: str = Collection.VARIETY

    def __call__(
        self,
        store: EntityStore,
        *,
        loser: CatalogRecord,
        canonical_id: str,
        merged_at: datetime,
    ) -> None:
        store.update(
            self.collection,
            loser.id,
            tombstone_patch(loser.extended_data, canonical_id=canonical_id, merged_at=merged_at),
        )

    def forward_tombstones(
        self,
        store: EntityStore,
        tombstones: Iterable[Document],
        *,
        loser_id: str,
        canonical_id: str,
    ) -> list[Document]:
        """Re-aim older tombstones that pointed at ``loser_id``; return the rewritten ones.

        A record that once won a merge and now loses one would otherwise leave
        its earlier tombstones pointing at a removed record.
        """

        forwarded: list[Document] = []
        for tombstone in tombstones:
            extended = tombstone.get("extended_data")
            if not isinstance(extended, dict):
                continue
            if clean_text(extended.get(MERGE_POINTER_KEY)) != loser_id:
                continue
            patch = {"extended_data": {**extended, MERGE_POINTER_KEY: canonical_id}}
            forwarded.append(store.update(self.collection, str(tombstone["id"]), patch))
        return forwarded
