"""Cascading subcategory classification for unclassified catalog records."""

from __future__ import annotations

from .cascade import (
    ClassificationCascade,
    ClassificationMatch,
    MatchStrategy,
    TaxonomyContext,
    classify_record,
)
from .contracts import (
    ClassificationRunResult,
    ClassificationSample,
    ClassificationSummary,
    UnmatchedSample,
)
from .lookup import SubCategoryIndex, candidate_codes
from .rules import (
    DEFAULT_RULES,
    AttributeTable,
    ClassificationRuleSet,
    CodePrefixRule,
    NamePatternRule,
    NamePatternTable,
    NumericBand,
    NumericBandTable,
)
from .runner import DEFAULT_MAX_ITEMS, ClassificationRunner, load_taxonomy, subcategory_patch

__all__ = [
    "DEFAULT_MAX_ITEMS",
    "DEFAULT_RULES",
    "AttributeTable",
    "ClassificationCascade",
    "ClassificationMatch",
    "ClassificationRuleSet",
    "ClassificationRunResult",
    "ClassificationRunner",
    "ClassificationSample",
    "ClassificationSummary",
    "CodePrefixRule",
    "MatchStrategy",
    "NamePatternRule",
    "NamePatternTable",
    "NumericBand",
    "NumericBandTable",
    "SubCategoryIndex",
    "TaxonomyContext",
    "UnmatchedSample",
    "candidate_codes",
    "classify_record",
    "load_taxonomy",
    "subcategory_patch",
]
