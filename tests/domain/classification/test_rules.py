from __future__ import annotations

import re

import pytest

from varietal.domain.classification.rules import (
    DEFAULT_RULES,
    AttributeTable,
    CodePrefixRule,
    NamePatternRule,
    NumericBand,
    NumericBandTable,
    scope_applies,
)


def test_code_prefix_matches_exact_or_underscore_extension() -> None:
    rule = CodePrefixRule("TOM_CHERRY", "TOM_CHERRY")

    assert rule.matches("TOM_CHERRY")
    assert rule.matches("TOM_CHERRY_001")
    assert not rule.matches("TOM_CHERRYBOMB")
    assert not rule.matches("XTOM_CHERRY_001")


def test_attribute_table_is_exact_and_case_insensitive() -> None:
    table = AttributeTable(attribute="fruit_shape", values={"cherry": "TOM_CHERRY"})

    assert table.target_for("  Cherry ") == "TOM_CHERRY"
    assert table.target_for("cherry-ish") is None
    assert table.target_for(None) is None
    assert table.target_for(3) is None


def test_name_pattern_rule_searches_anywhere_in_name() -> None:
    rule = NamePatternRule(re.compile(r"habanero", re.IGNORECASE), "PSC_PEP_SUPERHOT")

    assert rule.matches("Chocolate Habanero")
    assert not rule.matches("Jalapeno")


def test_numeric_bands_scan_highest_threshold_first() -> None:
    table = NumericBandTable(
        attributes=("scoville_max",),
        bands=(NumericBand(0, "MILD"), NumericBand(50_000, "HOT"), NumericBand(5_000, "MEDIUM")),
    )

    assert [band.above for band in table.bands] == [50_000, 5_000, 0]
    assert table.target_for(50_001) == "HOT"
    assert table.target_for(50_000) == "MEDIUM"
    assert table.target_for(1) == "MILD"
    assert table.target_for(0) is None


def test_numeric_bands_reject_shared_thresholds() -> None:
    with pytest.raises(ValueError, match="threshold"):
        NumericBandTable(
            attributes=("scoville_max",),
            bands=(NumericBand(100, "A"), NumericBand(100, "B")),
        )


def test_scope_matches_plant_type_common_name() -> None:
    scope = frozenset({"pepper"})

    assert scope_applies(scope, "Hot Pepper")
    assert not scope_applies(scope, "Tomato")
    assert not scope_applies(scope, None)
    assert scope_applies(frozenset(), None)


def test_default_rules_are_versioned_and_read_only() -> None:
    assert DEFAULT_RULES.version
    shapes = DEFAULT_RULES.attribute_tables[0]

    with pytest.raises(TypeError):
        shapes.values["cherry"] = "TOM_GRAPE"  # type: ignore[index]


def test_default_scoville_bands_put_superhot_above_200000() -> None:
    (scoville,) = DEFAULT_RULES.numeric_bands

    assert scoville.attributes == ("scoville_max", "heat_scoville_max")
    assert scoville.target_for(300_000) == "PSC_PEP_SUPERHOT"
    assert scoville.target_for(200_000) == "PSC_PEP_HOT"
    assert scoville.target_for(5_000) == "PSC_PEP_MILD"
