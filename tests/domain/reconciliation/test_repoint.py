from __future__ import annotations

from datetime import UTC, datetime

from tests.helpers.catalog import InMemoryEntityStore, make_variety
from varietal.domain.model import (
    MERGE_POINTER_KEY,
    MERGED_AT_KEY,
    CatalogRecord,
    Collection,
)
from varietal.domain.reconciliation.repoint import (
    GROW_LIST_ITEMS,
    DependentKind,
    ReferenceRepointer,
    TombstoneWriter,
    tombstone_patch,
)

MERGED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_dependent_kind_moves_only_matching_foreign_keys() -> None:
    store = InMemoryEntityStore()
    store.seed(
        Collection.SEED_LOT,
        {"id": "lot-1", "variety_id": "loser"},
        {"id": "lot-2", "variety_id": "loser"},
        {"id": "lot-3", "variety_id": "other"},
    )

    moved = DependentKind(collection=Collection.SEED_LOT).repoint(
        store, loser_id="loser", canonical_id="keep"
    )

    assert moved == 2
    assert store.get(Collection.SEED_LOT, "lot-1")["variety_id"] == "keep"
    assert store.get(Collection.SEED_LOT, "lot-3")["variety_id"] == "other"


def test_embedded_kind_rewrites_list_items_in_place() -> None:
    store = InMemoryEntityStore()
    store.seed(
        Collection.GROW_LIST,
        {
            "id": "list-1",
            "items": [{"variety_id": "loser", "qty": 2}, {"variety_id": "other"}, "legacy"],
        },
        {"id": "list-2", "items": [{"variety_id": "other"}]},
        {"id": "list-3", "items": None},
    )

    moved = GROW_LIST_ITEMS.repoint(store, loser_id="loser", canonical_id="keep")

    assert moved == 1
    assert store.get(Collection.GROW_LIST, "list-1")["items"] == [
        {"variety_id": "keep", "qty": 2},
        {"variety_id": "other"},
        "legacy",
    ]
    assert store.updates_to(Collection.GROW_LIST) == ["list-1"]


def test_repointer_sums_moves_across_kinds() -> None:
    store = InMemoryEntityStore()
    store.seed(Collection.CROP_PLAN, {"id": "plan-1", "variety_id": "loser"})
    store.seed(Collection.PLANT_INSTANCE, {"id": "plant-1", "variety_id": "loser"})

    moved = ReferenceRepointer()(store, loser_id="loser", canonical_id="keep")

    assert moved == 2
    assert store.get(Collection.PLANT_INSTANCE, "plant-1")["variety_id"] == "keep"


def test_tombstone_patch_keeps_existing_extended_data() -> None:
    patch = tombstone_patch({"origin": "Ohio"}, canonical_id="keep", merged_at=MERGED_AT)

    assert patch == {
        "status": "removed",
        "extended_data": {
            "origin": "Ohio",
            MERGE_POINTER_KEY: "keep",
            MERGED_AT_KEY: "2024-05-01T12:00:00+00:00",
        },
    }


def test_tombstone_writer_marks_loser_removed() -> None:
    store = InMemoryEntityStore()
    store.seed(Collection.VARIETY, make_variety("loser", "Brandywine"))
    loser = CatalogRecord.from_document(store.get(Collection.VARIETY, "loser"))

    TombstoneWriter()(store, loser=loser, canonical_id="keep", merged_at=MERGED_AT)

    stored = store.get(Collection.VARIETY, "loser")
    assert stored["status"] == "removed"
    assert stored["extended_data"][MERGE_POINTER_KEY] == "keep"


def test_forward_tombstones_reaims_records_pointing_at_the_loser() -> None:
    store = InMemoryEntityStore()
    old = make_variety(
        "old",
        "Brandywine",
        status="removed",
        extended_data={MERGE_POINTER_KEY: "loser", MERGED_AT_KEY: "2023-01-01T00:00:00+00:00"},
    )
    unrelated = make_variety(
        "unrelated",
        "Brandywine",
        status="removed",
        extended_data={MERGE_POINTER_KEY: "someone-else"},
    )
    store.seed(Collection.VARIETY, old, unrelated)

    forwarded = TombstoneWriter().forward_tombstones(
        store,
        [old, unrelated, make_variety("bare", "Brandywine", status="removed")],
        loser_id="loser",
        canonical_id="keep",
    )

    assert [document["id"] for document in forwarded] == ["old"]
    extended = store.get(Collection.VARIETY, "old")["extended_data"]
    assert extended[MERGE_POINTER_KEY] == "keep"
    assert extended[MERGED_AT_KEY] == "2023-01-01T00:00:00+00:00"
