from __future__ import annotations

import pytest

from tests.helpers.catalog import (
    TOMATO_ID,
    InMemoryEntityStore,
    make_subcategory,
    make_variety,
    seeded_store,
)
from varietal.domain.model import Collection
from varietal.domain.subcategories import SubcategoryRepairRunner


def _store() -> InMemoryEntityStore:
    return seeded_store(
        [
            make_variety(
                "ok",
                "Brandywine",
                plant_subcategory_id="sc-a",
                plant_subcategory_ids=["sc-a"],
            ),
            make_variety("no-list", "Sun Gold", plant_subcategory_id="sc-a"),
            make_variety("string-list", "Roma", plant_subcategory_ids='["sc-b"]'),
            make_variety("retired", "Old Timer", plant_subcategory_id="sc-old"),
            make_variety("unassigned", "Mystery"),
            make_variety("removed", "Gone", plant_subcategory_id="sc-a", status="removed"),
        ],
        subcategories=[
            make_subcategory("sc-a", "TOM_CHERRY"),
            make_subcategory("sc-b", "TOM_PLUM"),
            make_subcategory("sc-old", "TOM_SALAD", is_active=False),
        ],
    )


class _Sleeps:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_dry_run_lists_repairs_without_writing() -> None:
    store = _store()
    sleeps = _Sleeps()

    result = SubcategoryRepairRunner(sleep=sleeps).run(store, plant_type_id=TOMATO_ID)

    assert store.writes == []
    assert sleeps.calls == []
    assert result.summary.scanned == 5
    assert result.summary.needs_repair == 3
    assert result.summary.repaired == 3
    assert result.message == "Would repair 3 of 3 records. 0 records remaining."
    assert result.as_dict()["samples"][0] == {
        "id": "no-list",
        "name": "Sun Gold",
        "before": {"primary": "sc-a", "ids": []},
        "after": {"primary": "sc-a", "ids": ["sc-a"]},
    }


def test_executing_run_writes_patches_in_paced_batches() -> None:
    store = _store()
    sleeps = _Sleeps()

    result = SubcategoryRepairRunner(batch_size=2, sleep=sleeps).run(
        store, plant_type_id=TOMATO_ID, dry_run=False
    )

    assert sleeps.calls == [0.1]
    assert result.summary.repaired == 3
    assert store.get(Collection.VARIETY, "string-list")["plant_subcategory_ids"] == ["sc-b"]
    assert store.get(Collection.VARIETY, "string-list")["plant_subcategory_id"] == "sc-b"
    assert store.get(Collection.VARIETY, "retired")["plant_subcategory_id"] is None
    assert store.updates_to(Collection.VARIETY) == ["no-list", "string-list", "retired"]


def test_repair_is_idempotent() -> None:
    store = _store()
    runner = SubcategoryRepairRunner(sleep=_Sleeps())

    runner.run(store, plant_type_id=TOMATO_ID, dry_run=False)
    second = runner.run(store, plant_type_id=TOMATO_ID, dry_run=False)

    assert second.summary.needs_repair == 0


def test_failed_records_are_skipped_and_stay_pending() -> None:
    store = _store()
    store.fail_updates.add((Collection.VARIETY, "no-list"))

    result = SubcategoryRepairRunner(sleep=_Sleeps()).run(
        store, plant_type_id=TOMATO_ID, dry_run=False
    )

    assert result.summary.failed == 1
    assert result.summary.repaired == 2
    assert result.summary.remaining == 1
    assert "plant_subcategory_ids" not in store.get(Collection.VARIETY, "no-list")


def test_max_items_caps_the_run() -> None:
    result = SubcategoryRepairRunner(sleep=_Sleeps()).run(
        _store(), plant_type_id=TOMATO_ID, dry_run=False, max_items=1
    )

    assert result.summary.processed == 1
    assert result.summary.remaining == 2
    assert result.message == "Repaired 1 of 3 records. 2 records remaining."


def test_max_items_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_items"):
        SubcategoryRepairRunner().run(_store(), plant_type_id=TOMATO_ID, max_items=0)
