from __future__ import annotations

from tests.helpers.catalog import make_variety
from varietal.domain.model import MERGE_POINTER_KEY, MERGED_AT_KEY, CatalogRecord
from varietal.domain.reconciliation.merge import (
    MergePolicy,
    ScalarPolicy,
    merge_cluster,
    union_values,
)


def _record(entity_id: str, **fields: object) -> CatalogRecord:
    return CatalogRecord.from_document(make_variety(entity_id, "Brandywine", **fields))


def test_scalars_fill_only_empty_fields_in_rank_order() -> None:
    canonical = _record("keep", description="Pink beefsteak", days_to_maturity=0)
    losers = [
        _record("l1", description="A much longer pink beefsteak", fruit_color="pink"),
        _record("l2", fruit_color="red", days_to_maturity=80, species="S. lycopersicum"),
    ]

    patch = merge_cluster(canonical, losers)

    assert patch.canonical_id == "keep"
    assert patch.changes == {"fruit_color": "pink", "species": "S. lycopersicum"}
    assert set(patch.filled_fields) == {"fruit_color", "species"}


def test_prefer_longer_policy_replaces_shorter_text() -> None:
    canonical = _record("keep", description="Pink beefsteak")
    loser = _record("l1", description="A much longer pink beefsteak")

    patch = merge_cluster(
        canonical,
        [loser],
        policy=MergePolicy(scalar=ScalarPolicy.PREFER_LONGER),
    )

    assert patch.changes["description"] == "A much longer pink beefsteak"


def test_arrays_become_a_deduplicated_union() -> None:
    canonical = _record("keep", synonyms=["Brandywine Pink"], sources=[{"vendor": "A"}])
    loser = _record(
        "l1",
        synonyms=["Brandywine Pink", "Sudduth's"],
        sources=[{"vendor": "A"}, {"vendor": "B"}],
        images=["img-1"],
    )

    patch = merge_cluster(canonical, [loser])

    assert patch.changes["synonyms"] == ["Brandywine Pink", "Sudduth's"]
    assert patch.changes["sources"] == [{"vendor": "A"}, {"vendor": "B"}]
    assert patch.changes["images"] == ["img-1"]


def test_maps_merge_with_loser_winning_but_never_copy_merge_bookkeeping() -> None:
    canonical = _record("keep", extended_data={"origin": "Ohio", "note": "keep"})
    loser = _record(
        "l1",
        extended_data={
            "origin": "Tennessee",
            MERGE_POINTER_KEY: "elsewhere",
            MERGED_AT_KEY: "2024-01-01T00:00:00+00:00",
        },
        traits={"indeterminate": True},
    )

    patch = merge_cluster(canonical, [loser])

    assert patch.changes["extended_data"] == {"origin": "Tennessee", "note": "keep"}
    assert patch.changes["traits"] == {"indeterminate": True}


def test_subcategories_become_sorted_union_with_first_as_primary() -> None:
    canonical = _record("keep", plant_subcategory_id="sc-b", plant_subcategory_ids=["sc-b"])
    loser = _record("l1", plant_subcategory_ids='["sc-a", "sc-c"]')

    patch = merge_cluster(canonical, [loser])

    assert patch.changes["plant_subcategory_id"] == "sc-a"
    assert patch.changes["plant_subcategory_ids"] == ["sc-a", "sc-b", "sc-c"]


def test_nothing_to_add_yields_empty_patch() -> None:
    canonical = _record("keep", description="Pink beefsteak", synonyms=["Pink"])
    loser = _record("l1", description="Other text", synonyms=["Pink"])

    patch = merge_cluster(canonical, [loser])

    assert patch.is_empty
    assert patch.filled_fields == ()


def test_union_values_skips_empty_entries() -> None:
    assert union_values(["a", "", None, "a", [], ["x"], ["x"]]) == ["a", ["x"]]
