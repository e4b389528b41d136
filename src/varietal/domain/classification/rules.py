"""Versioned rule tables for the subcategory classification cascade.

Rule tables are plain immutable data handed to the cascade, so taxonomy
rules can evolve (and be tested) independently of the matching engine. A
``scope`` restricts a table to plant types whose common name contains one of
the scope labels; an empty scope applies everywhere.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def _scope(labels: Iterable[str]) -> frozenset[str]:
    return frozenset(label.casefold() for label in labels)


def scope_applies(scope: frozenset[str], taxonomy_name: str | None) -> bool:
    if not scope:
        return True
    if not taxonomy_name:
        return False
    name = taxonomy_name.casefold()
    return any(label in name for label in scope)


@dataclass(frozen=True, slots=True)
class CodePrefixRule:
    prefix: str
    target: str

    def matches(self, code: str) -> bool:
        """Match the exact prefix or an underscore-delimited extension of it."""

        return code == self.prefix or code.startswith(f"{self.prefix}_")


@dataclass(frozen=True, slots=True, kw_only=True)
class AttributeTable:
    """Exact, case-insensitive lookup of a descriptive attribute value."""

    attribute: str
    values: Mapping[str, str]
    scope: frozenset[str] = frozenset()

    def target_for(self, value: object) -> str | None:
        if not isinstance(value, str) or not value.strip():
            return None
        return self.values.get(value.strip().casefold())


@dataclass(frozen=True, slots=True)
class NamePatternRule:
    pattern: re.Pattern[str]
    target: str

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None


@dataclass(frozen=True, slots=True, kw_only=True)
class NamePatternTable:
    scope: frozenset[str]
    rules: tuple[NamePatternRule, ...]


@dataclass(frozen=True, slots=True)
class NumericBand:
    """Values strictly greater than ``above`` fall in this band."""

    above: float
    target: str


@dataclass(frozen=True, slots=True, kw_only=True)
class NumericBandTable:
    attributes: tuple[str, ...]
    bands: tuple[NumericBand, ...]
    scope: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        thresholds = [band.above for band in self.bands]
        if len(set(thresholds)) != len(thresholds):
            raise ValueError("Numeric bands must not share a threshold")
        # scanning runs highest threshold first
        object.__setattr__(
            self,
            "bands",
            tuple(sorted(self.bands, key=lambda band: band.above, reverse=True)),
        )

    def target_for(self, value: float) -> str | None:
        for band in self.bands:
            if value > band.above:
                return band.target
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassificationRuleSet:
    version: str
    code_prefixes: tuple[CodePrefixRule, ...] = ()
    attribute_tables: tuple[AttributeTable, ...] = ()
    name_patterns: tuple[NamePatternTable, ...] = ()
    numeric_bands: tuple[NumericBandTable, ...] = ()


def _patterns(*pairs: tuple[str, str]) -> tuple[NamePatternRule, ...]:
    return tuple(
        NamePatternRule(re.compile(pattern, re.IGNORECASE), target) for pattern, target in pairs
    )


_CODE_PREFIXES: Final[tuple[CodePrefixRule, ...]] = tuple(
    CodePrefixRule(prefix, target)
    for prefix, target in (
        ("TOM_CHERRY", "TOM_CHERRY"),
        ("TOM_GRAPE", "TOM_GRAPE"),
        ("TOM_PLUM", "TOM_PLUM"),
        ("TOM_ROMA", "TOM_PLUM"),
        ("TOM_SAUCE", "TOM_PLUM"),
        ("TOM_BEEFSTEAK", "TOM_BEEFSTEAK"),
        ("TOM_OXHEART", "TOM_OXHEART"),
        ("TOM_SLICER", "TOM_SLICER"),
        ("TOM_SMALL", "TOM_CHERRY"),
        ("TOM_MEDIUM", "TOM_SLICER"),
        ("TOM_LARGE", "TOM_BEEFSTEAK"),
        ("TOM_HEIRLOOM", "TOM_SLICER"),
        ("TOM_SALAD", "TOM_CHERRY"),
        ("TOM_CURRANT", "TOM_CURRANT_SPOON"),
        ("PEP_BELL", "PSC_PEP_BELL"),
        ("PEP_SWEET", "PSC_PEP_BELL"),
        ("PEP_MILD", "PSC_PEP_MILD"),
        ("PEP_MEDIUM", "PSC_PEP_MEDIUM_HEAT"),
        ("PEP_HOT", "PSC_PEP_HOT"),
        ("PEP_SUPERHOT", "PSC_PEP_SUPERHOT"),
        ("PEP_ANNUUM", "PSC_PEP_ANNUUM"),
        ("PEP_CHINENSE", "PSC_PEP_CHINENSE"),
        ("PEP_BACCATUM", "PSC_PEP_BACCATUM"),
        ("PEP_FRUTESCENS", "PSC_PEP_HOT"),
        ("ZUC_STANDARD", "PSC_ZUC_STANDARD"),
        ("ZUC_ROUND", "PSC_ZUC_ROUND"),
        ("ZUC_SUMMER", "PSC_ZUC_SUMMER"),
        ("CUC_SLICING", "PSC_CUC_SLICING"),
        ("CUC_PICKLING", "PSC_CUC_PICKLING"),
        ("CUC_BURPLESS", "PSC_CUC_BURPLESS"),
        ("BEAN_BUSH", "PSC_BEAN_BUSH"),
        ("BEAN_POLE", "PSC_BEAN_POLE"),
        ("BEAN_SNAP", "PSC_BEAN_SNAP"),
        ("LET_ROMAINE", "PSC_LET_ROMAINE"),
        ("LET_BUTTERHEAD", "PSC_LET_BUTTERHEAD"),
        ("LET_LOOSE_LEAF", "PSC_LET_LOOSE_LEAF"),
        ("LET_ICEBERG", "PSC_LET_ICEBERG"),
    )
)

_FRUIT_SHAPES: Final[AttributeTable] = AttributeTable(
    attribute="fruit_shape",
    values=MappingProxyType(
        {
            "cherry": "TOM_CHERRY",
            "cherry (round)": "TOM_CHERRY",
            "grape": "TOM_GRAPE",
            "plum": "TOM_PLUM",
            "roma": "TOM_PLUM",
            "paste": "TOM_PLUM",
            "beefsteak": "TOM_BEEFSTEAK",
            "oxheart": "TOM_OXHEART",
            "heart": "TOM_OXHEART",
            "slicer": "TOM_SLICER",
            "slicer (globe/oblate)": "TOM_SLICER",
            "globe": "TOM_SLICER",
            "round": "TOM_SLICER",
        }
    ),
)

_PEPPER_NAMES: Final[NamePatternTable] = NamePatternTable(
    scope=_scope(["pepper"]),
    rules=_patterns(
        (
            r"habanero|scotch bonnet|ghost|reaper|scorpion|7.?pot|bhut jolokia|devil",
            "PSC_PEP_SUPERHOT",
        ),
        (r"cayenne|serrano|thai|tabasco|pequin|chiltep", "PSC_PEP_HOT"),
        (
            r"jalape|banana|cuban|sweet cherry|pimento|pepperoncini|friggitello|jim dandee"
            r"|numex|anaheim|new mexico|ancho|poblano|pasilla|mulato|espanola",
            "PSC_PEP_MILD",
        ),
        (r"bell|sweet pepper|sweet italian|sweet red|marconi|lipstick|carmen", "PSC_PEP_BELL"),
    ),
)

_TOMATO_NAMES: Final[NamePatternTable] = NamePatternTable(
    scope=_scope(["tomato"]),
    rules=_patterns(
        (r"\bgrape\b", "TOM_GRAPE"),
        (r"cherry|currant|tumbler|sweet 100|sun gold|sun sugar|gold nugget|juliet", "TOM_CHERRY"),
        (r"roma|san marzano|amish paste|jersey devil|plum|paste", "TOM_PLUM"),
        (r"beefsteak|brandywine|mortgage lifter|big boy|big girl|crimson cushion", "TOM_BEEFSTEAK"),
        (r"oxheart|pineapple|cossack|hungarian", "TOM_OXHEART"),
    ),
)

_CUCUMBER_NAMES: Final[NamePatternTable] = NamePatternTable(
    scope=_scope(["cucumber"]),
    rules=_patterns(
        (r"pickling|kirby|cornichon|gherkin", "PSC_CUC_PICKLING"),
        (r"burpless|english|european|seedless|thin\s+skin", "PSC_CUC_BURPLESS"),
    ),
)

_BEAN_NAMES: Final[NamePatternTable] = NamePatternTable(
    scope=_scope(["bean"]),
    rules=_patterns(
        (r"pole|runner|climbing|rattlesnake", "PSC_BEAN_POLE"),
        (r"lima|butter", "PSC_BEAN_LIMA"),
        (r"\bsoy\b|soybean|edamame", "PSC_BEAN_SOY"),
    ),
)

_SCOVILLE: Final[NumericBandTable] = NumericBandTable(
    attributes=("scoville_max", "heat_scoville_max"),
    scope=_scope(["pepper"]),
    bands=(
        NumericBand(200_000, "PSC_PEP_SUPERHOT"),
        NumericBand(50_000, "PSC_PEP_HOT"),
        NumericBand(5_000, "PSC_PEP_MEDIUM_HEAT"),
        NumericBand(0, "PSC_PEP_MILD"),
    ),
)

DEFAULT_RULES: Final[ClassificationRuleSet] = ClassificationRuleSet(
    version="2024.3",
    code_prefixes=_CODE_PREFIXES,
    attribute_tables=(_FRUIT_SHAPES,),
    name_patterns=(_PEPPER_NAMES, _TOMATO_NAMES, _CUCUMBER_NAMES, _BEAN_NAMES),
    numeric_bands=(_SCOVILLE,),
)
