from __future__ import annotations

from tests.helpers.catalog import PEPPER_ID, TOMATO_ID, make_subcategory
from varietal.domain.classification.lookup import SubCategoryIndex, candidate_codes
from varietal.domain.model import SubCategoryRecord


def _index(*documents: dict[str, object], plant_type_id: str = PEPPER_ID) -> SubCategoryIndex:
    return SubCategoryIndex.build(
        [SubCategoryRecord.from_document(document) for document in documents],
        plant_type_id=plant_type_id,
    )


def test_candidate_codes_cover_prefixed_and_bare_spellings() -> None:
    assert candidate_codes("TOM_CHERRY") == ("TOM_CHERRY", "PSC_TOM_CHERRY")
    assert candidate_codes("PSC_PEP_HOT") == ("PSC_PEP_HOT", "PSC_PSC_PEP_HOT", "PEP_HOT")


def test_resolve_tolerates_missing_psc_prefix() -> None:
    index = _index(make_subcategory("sc-bell", "PEP_BELL", plant_type_id=PEPPER_ID))

    resolved = index.resolve("PSC_PEP_BELL")

    assert resolved is not None
    assert resolved.id == "sc-bell"


def test_resolve_adds_psc_prefix() -> None:
    index = _index(make_subcategory("sc-hot", "PSC_PEP_HOT", plant_type_id=PEPPER_ID))

    resolved = index.resolve("PEP_HOT")

    assert resolved is not None
    assert resolved.id == "sc-hot"


def test_resolve_prefers_subcategory_scoped_to_the_plant_type() -> None:
    unscoped = make_subcategory("sc-shared", "PSC_PEP_HOT")
    unscoped["plant_type_id"] = None
    index = _index(unscoped, make_subcategory("sc-own", "PSC_PEP_HOT", plant_type_id=PEPPER_ID))

    resolved = index.resolve("PSC_PEP_HOT")

    assert resolved is not None
    assert resolved.id == "sc-own"


def test_resolve_ignores_inactive_and_foreign_subcategories() -> None:
    index = _index(
        make_subcategory("sc-retired", "PSC_PEP_HOT", plant_type_id=PEPPER_ID, is_active=False),
        make_subcategory("sc-tomato", "TOM_CHERRY", plant_type_id=TOMATO_ID),
    )

    assert index.resolve("PSC_PEP_HOT") is None
    assert index.resolve("TOM_CHERRY") is None
    assert len(index) == 0
