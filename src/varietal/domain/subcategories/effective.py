"""Effective subcategory assignment of a catalog record.

A record stores its subcategory twice: the primary ``plant_subcategory_id``
and the legacy ``plant_subcategory_ids`` list. Older imports left the two out
of sync, stored the list as a JSON string, or point at subcategories that have
since been retired. The effective set reconciles all of that.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from varietal.domain.model import CatalogRecord, Collection, SubCategoryRecord

if TYPE_CHECKING:
    from collections.abc import Collection as CollectionOf
    from collections.abc import Iterable, Mapping

    from varietal.domain.ports import EntityStore


def load_subcategories(store: EntityStore, *, plant_type_id: str) -> list[SubCategoryRecord]:
    return [
        SubCategoryRecord.from_document(document)
        for document in store.filter(
            Collection.PLANT_SUBCATEGORY, {"plant_type_id": plant_type_id}
        )
    ]


def active_subcategory_ids(subcategories: Iterable[SubCategoryRecord]) -> frozenset[str]:
    return frozenset(subcategory.id for subcategory in subcategories if subcategory.is_active)


def effective_subcategory_ids(
    record: CatalogRecord,
    active_ids: CollectionOf[str],
) -> tuple[str, ...]:
    """Union of list and primary, restricted to active subcategories, sorted by id."""

    return tuple(sorted(sid for sid in record.subcategory_union() if sid in active_ids))


def resolve_primary(record: CatalogRecord, effective: tuple[str, ...]) -> str | None:
    if record.subcategory_id is not None and record.subcategory_id in effective:
        return record.subcategory_id
    return effective[0] if effective else None


def repair_patch(
    document: Mapping[str, Any],
    active_ids: CollectionOf[str],
) -> dict[str, Any] | None:
    """Return the patch that makes a record's assignment consistent, or ``None``."""

    record = CatalogRecord.from_document(document)
    effective = effective_subcategory_ids(record, active_ids)
    primary = resolve_primary(record, effective)
    raw_list = document.get("plant_subcategory_ids")

    consistent = (
        record.subcategory_id == primary
        and isinstance(raw_list, list)
        and len(raw_list) == len(effective)
        and set(raw_list) == set(effective)
    )
    # records without any assignment are left to the classification pass
    if consistent or (not effective and not record.has_subcategory and raw_list is None):
        return None
    return {"plant_subcategory_id": primary, "plant_subcategory_ids": list(effective)}
