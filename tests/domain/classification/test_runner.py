from __future__ import annotations

import logging

import pytest

from tests.helpers.catalog import (
    TOMATO_ID,
    InMemoryEntityStore,
    make_plant_type,
    make_subcategory,
    make_variety,
    seeded_store,
)
from varietal.domain.classification import ClassificationRunner, load_taxonomy, subcategory_patch
from varietal.domain.model import Collection


def _store(*extra: dict[str, object]) -> InMemoryEntityStore:
    return seeded_store(
        [
            make_variety("black-cherry", "Black Cherry", fruit_shape="cherry"),
            make_variety("sun-gold", "Sun Gold"),
            make_variety("mystery", "Mystery", fruit_shape="lumpy"),
            make_variety(
                "done",
                "Brandywine",
                plant_subcategory_id="sc-beef",
                plant_subcategory_ids=["sc-beef"],
            ),
            make_variety("list-only", "Amish Paste", plant_subcategory_ids=["sc-plum"]),
            make_variety("gone", "Cherry Ghost", status="removed"),
            *extra,
        ],
        subcategories=[
            make_subcategory("sc-cherry", "TOM_CHERRY", name="Cherry"),
            make_subcategory("sc-plum", "TOM_PLUM"),
            make_subcategory("sc-beef", "TOM_BEEFSTEAK"),
        ],
        plant_types=[make_plant_type()],
    )


class _Sleeps:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_subcategory_patch_writes_primary_and_list_together() -> None:
    assert subcategory_patch("sc-1") == {
        "plant_subcategory_id": "sc-1",
        "plant_subcategory_ids": ["sc-1"],
    }


def test_only_records_without_any_assignment_are_candidates() -> None:
    candidates = ClassificationRunner().unclassified(_store(), plant_type_id=TOMATO_ID)

    assert [record.id for record in candidates] == ["black-cherry", "sun-gold", "mystery"]


def test_executing_run_writes_matches_and_paces_writes() -> None:
    store = _store()
    sleeps = _Sleeps()

    result = ClassificationRunner(sleep=sleeps).run(store, plant_type_id=TOMATO_ID, dry_run=False)

    assert result.summary.total_missing == 3
    assert result.summary.processed == 3
    assert result.summary.fixed == 2
    assert result.summary.unmatched == 1
    assert result.summary.failed == 0
    assert result.summary.remaining == 0
    assert sleeps.calls == [0.15, 0.15]
    assert store.get(Collection.VARIETY, "black-cherry")["plant_subcategory_ids"] == ["sc-cherry"]
    assert store.get(Collection.VARIETY, "sun-gold")["plant_subcategory_id"] == "sc-cherry"
    assert store.updates_to(Collection.VARIETY) == ["black-cherry", "sun-gold"]
    assert result.message == "Classified 2 records, 1 unmatched, 0 failed. 0 records remaining."


def test_failed_write_backs_off_and_continues(caplog: pytest.LogCaptureFixture) -> None:
    store = _store()
    store.fail_updates.add((Collection.VARIETY, "black-cherry"))
    sleeps = _Sleeps()

    with caplog.at_level(logging.WARNING):
        result = ClassificationRunner(sleep=sleeps).run(
            store, plant_type_id=TOMATO_ID, dry_run=False
        )

    assert sleeps.calls == [2.0, 0.15]
    assert result.summary.failed == 1
    assert result.summary.fixed == 1
    assert [sample.id for sample in result.samples] == ["sun-gold"]
    assert "black-cherry" in caplog.text
    assert "plant_subcategory_id" not in store.get(Collection.VARIETY, "black-cherry")


def test_dry_run_reports_would_be_fixes_without_writing() -> None:
    store = _store()
    sleeps = _Sleeps()

    result = ClassificationRunner(sleep=sleeps).run(store, plant_type_id=TOMATO_ID)

    assert store.writes == []
    assert sleeps.calls == []
    assert result.summary.fixed == 2
    assert result.message == (
        "Would classify 2 of 3 records; 1 unmatched. Re-run with dry_run disabled to write."
    )
    payload = result.as_dict()
    assert payload["samples"][0] == {
        "id": "black-cherry",
        "name": "Black Cherry",
        "code": None,
        "subcategory_id": "sc-cherry",
        "subcategory_code": "TOM_CHERRY",
        "subcategory_name": "Cherry",
        "strategy": "attribute",
        "reason": "fruit_shape:cherry",
    }
    assert payload["unmatched"] == [
        {
            "id": "mystery",
            "name": "Mystery",
            "code": None,
            "fruit_shape": "lumpy",
            "scoville_max": None,
        }
    ]


def test_max_items_caps_the_writes_and_reports_remaining() -> None:
    store = _store(make_variety("san-marzano", "San Marzano"))

    result = ClassificationRunner(sleep=_Sleeps()).run(
        store, plant_type_id=TOMATO_ID, dry_run=False, max_items=2
    )

    assert result.summary.total_missing == 4
    assert result.summary.fixed == 2
    assert result.summary.unmatched == 1
    assert result.summary.processed == 3
    assert result.summary.remaining == 1
    assert store.updates_to(Collection.VARIETY) == ["black-cherry", "sun-gold"]


def test_unmatched_records_do_not_use_up_the_cap() -> None:
    store = seeded_store(
        [
            make_variety("mystery", "Mystery", fruit_shape="lumpy"),
            make_variety("oddball", "Oddball", fruit_shape="ribbed"),
            make_variety("black-cherry", "Black Cherry", fruit_shape="cherry"),
            make_variety("sun-gold", "Sun Gold"),
        ],
        subcategories=[make_subcategory("sc-cherry", "TOM_CHERRY")],
        plant_types=[make_plant_type()],
    )
    runner = ClassificationRunner(write_delay=0, sleep=_Sleeps())

    first = runner.run(store, plant_type_id=TOMATO_ID, dry_run=False, max_items=1)
    second = runner.run(store, plant_type_id=TOMATO_ID, dry_run=False, max_items=1)
    third = runner.run(store, plant_type_id=TOMATO_ID, dry_run=False, max_items=1)

    assert (first.summary.fixed, first.summary.unmatched, first.summary.remaining) == (1, 2, 1)
    assert (second.summary.fixed, second.summary.remaining) == (1, 0)
    assert (third.summary.fixed, third.summary.unmatched, third.summary.remaining) == (0, 2, 0)
    assert store.get(Collection.VARIETY, "black-cherry")["plant_subcategory_id"] == "sc-cherry"
    assert store.get(Collection.VARIETY, "sun-gold")["plant_subcategory_id"] == "sc-cherry"


def test_unmatched_records_are_not_written_and_come_back_next_run() -> None:
    store = _store()
    runner = ClassificationRunner(sleep=_Sleeps())

    runner.run(store, plant_type_id=TOMATO_ID, dry_run=False)
    second = runner.run(store, plant_type_id=TOMATO_ID, dry_run=False)

    assert second.summary.total_missing == 1
    assert second.summary.unmatched == 1
    assert second.summary.fixed == 0


def test_sample_limits_cap_reported_samples_only() -> None:
    result = ClassificationRunner(sleep=_Sleeps()).run(
        _store(), plant_type_id=TOMATO_ID, sample_limit=1, unmatched_sample_limit=0
    )

    assert result.summary.fixed == 2
    assert len(result.samples) == 1
    assert result.unmatched == ()


def test_zero_write_delay_skips_sleeping() -> None:
    sleeps = _Sleeps()

    ClassificationRunner(write_delay=0, sleep=sleeps).run(
        _store(), plant_type_id=TOMATO_ID, dry_run=False
    )

    assert sleeps.calls == []


def test_missing_plant_type_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    store = _store()
    store.collections[Collection.PLANT_TYPE].clear()

    with caplog.at_level(logging.WARNING):
        taxonomy = load_taxonomy(store, plant_type_id=TOMATO_ID)

    assert taxonomy.plant_type_name is None
    assert len(taxonomy.subcategories) == 3
    assert "not found" in caplog.text


def test_max_items_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_items"):
        ClassificationRunner().run(_store(), plant_type_id=TOMATO_ID, max_items=0)
