from __future__ import annotations

from tests.helpers.catalog import make_variety
from varietal.domain.model import CatalogRecord
from varietal.domain.subcategories import (
    effective_subcategory_ids,
    repair_patch,
    resolve_primary,
)

ACTIVE = frozenset({"sc-a", "sc-b", "sc-c"})


def test_effective_ids_are_sorted_active_union_of_primary_and_list() -> None:
    record = CatalogRecord.from_document(
        make_variety(
            "v-1",
            "Brandywine",
            plant_subcategory_id="sc-b",
            plant_subcategory_ids=["sc-c", "sc-a", "sc-retired", "sc-c"],
        )
    )

    assert effective_subcategory_ids(record, ACTIVE) == ("sc-a", "sc-b", "sc-c")


def test_resolve_primary_keeps_a_still_valid_primary() -> None:
    record = CatalogRecord.from_document(
        make_variety("v-1", "Brandywine", plant_subcategory_id="sc-b")
    )

    assert resolve_primary(record, ("sc-a", "sc-b")) == "sc-b"
    assert resolve_primary(record, ("sc-a", "sc-c")) == "sc-a"
    assert resolve_primary(record, ()) is None


def test_consistent_records_need_no_patch() -> None:
    document = make_variety(
        "v-1",
        "Brandywine",
        plant_subcategory_id="sc-a",
        plant_subcategory_ids=["sc-a"],
    )

    assert repair_patch(document, ACTIVE) is None


def test_unassigned_records_are_left_for_classification() -> None:
    assert repair_patch(make_variety("v-1", "Brandywine"), ACTIVE) is None
    assert repair_patch(make_variety("v-2", "Brandywine", plant_subcategory_ids=[]), ACTIVE) is None


def test_primary_without_list_is_mirrored_into_the_list() -> None:
    document = make_variety("v-1", "Brandywine", plant_subcategory_id="sc-a")

    assert repair_patch(document, ACTIVE) == {
        "plant_subcategory_id": "sc-a",
        "plant_subcategory_ids": ["sc-a"],
    }


def test_primary_missing_from_list_is_added() -> None:
    document = make_variety(
        "v-1",
        "Brandywine",
        plant_subcategory_id="sc-b",
        plant_subcategory_ids=["sc-a"],
    )

    assert repair_patch(document, ACTIVE) == {
        "plant_subcategory_id": "sc-b",
        "plant_subcategory_ids": ["sc-a", "sc-b"],
    }


def test_json_string_list_is_rewritten_as_a_real_list() -> None:
    document = make_variety(
        "v-1",
        "Brandywine",
        plant_subcategory_id="sc-a",
        plant_subcategory_ids='["sc-a"]',
    )

    assert repair_patch(document, ACTIVE) == {
        "plant_subcategory_id": "sc-a",
        "plant_subcategory_ids": ["sc-a"],
    }


def test_list_without_primary_gets_first_id_as_primary() -> None:
    document = make_variety("v-1", "Brandywine", plant_subcategory_ids=["sc-c", "sc-b"])

    assert repair_patch(document, ACTIVE) == {
        "plant_subcategory_id": "sc-b",
        "plant_subcategory_ids": ["sc-b", "sc-c"],
    }


def test_only_retired_links_clear_the_assignment() -> None:
    document = make_variety(
        "v-1",
        "Brandywine",
        plant_subcategory_id="sc-retired",
        plant_subcategory_ids=["sc-retired"],
    )

    assert repair_patch(document, ACTIVE) == {
        "plant_subcategory_id": None,
        "plant_subcategory_ids": [],
    }
