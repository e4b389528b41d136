"""Ordered classification cascade: first strategy with a resolvable target wins."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from .lookup import SubCategoryIndex
from .rules import DEFAULT_RULES, scope_applies

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from varietal.domain.model import CatalogRecord, PlantTypeRecord, SubCategoryRecord

    from .rules import (
        AttributeTable,
        ClassificationRuleSet,
        CodePrefixRule,
        NamePatternTable,
        NumericBandTable,
    )


class MatchStrategy(StrEnum):
    CODE_PREFIX = "code_prefix"
    ATTRIBUTE = "attribute"
    NAME_PATTERN = "name_pattern"
    NUMERIC_RANGE = "numeric_range"


@dataclass(frozen=True, slots=True, kw_only=True)
class TaxonomyContext:
    """The plant type a batch is scoped to, plus its usable subcategories."""

    plant_type_id: str | None
    plant_type_name: str | None
    subcategories: SubCategoryIndex

    @classmethod
    def build(
        cls,
        *,
        plant_type_id: str | None,
        plant_type: PlantTypeRecord | None,
        subcategories: Iterable[SubCategoryRecord],
    ) -> TaxonomyContext:
        return cls(
            plant_type_id=plant_type_id,
            plant_type_name=plant_type.common_name if plant_type else None,
            subcategories=SubCategoryIndex.build(subcategories, plant_type_id=plant_type_id),
        )

    def name_for(self, record: CatalogRecord) -> str | None:
        if self.plant_type_name:
            return self.plant_type_name
        fallback = record.attributes.get("plant_type_name")
        return fallback if isinstance(fallback, str) else None


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassificationMatch:
    subcategory: SubCategoryRecord
    strategy: MatchStrategy
    reason: str


class ClassificationStrategy(Protocol):
    @property
    def kind(self) -> MatchStrategy: ...

    def candidates(
        self,
        record: CatalogRecord,
        taxonomy: TaxonomyContext,
    ) -> Iterator[tuple[str, str]]:
        """Yield ``(target_code, reason)`` pairs in table order."""
        ...


@dataclass(frozen=True, slots=True)
class CodePrefixStrategy:
    rules: tuple[CodePrefixRule, ...]

    @property
    def kind(self) -> MatchStrategy:
        return MatchStrategy.CODE_PREFIX

    def candidates(
        self,
        record: CatalogRecord,
        taxonomy: TaxonomyContext,  # noqa: ARG002
    ) -> Iterator[tuple[str, str]]:
        if not record.code:
            return
        code = record.code.upper()
        for rule in self.rules:
            if rule.matches(code):
                yield rule.target, f"code_prefix:{rule.prefix}"


@dataclass(frozen=True, slots=True)
class AttributeStrategy:
    tables: tuple[AttributeTable, ...]

    @property
    def kind(self) -> MatchStrategy:
        return MatchStrategy.ATTRIBUTE

    def candidates(
        self,
        record: CatalogRecord,
        taxonomy: TaxonomyContext,
    ) -> Iterator[tuple[str, str]]:
        for table in self.tables:
            if not scope_applies(table.scope, taxonomy.name_for(record)):
                continue
            value = record.attributes.get(table.attribute)
            target = table.target_for(value)
            if target is not None:
                yield target, f"{table.attribute}:{str(value).strip().casefold()}"


@dataclass(frozen=True, slots=True)
class NamePatternStrategy:
    tables: tuple[NamePatternTable, ...]

    @property
    def kind(self) -> MatchStrategy:
        return MatchStrategy.NAME_PATTERN

    def candidates(
        self,
        record: CatalogRecord,
        taxonomy: TaxonomyContext,
    ) -> Iterator[tuple[str, str]]:
        if not record.name:
            return
        for table in self.tables:
            if not scope_applies(table.scope, taxonomy.name_for(record)):
                continue
            for rule in table.rules:
                if rule.matches(record.name):
                    yield rule.target, f"name_pattern:{rule.pattern.pattern}"


def numeric_value(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip().replace(",", ""))
        except ValueError:
            return None
    return None


@dataclass(frozen=True, slots=True)
class NumericRangeStrategy:
    tables: tuple[NumericBandTable, ...]

    @property
    def kind(self) -> MatchStrategy:
        return MatchStrategy.NUMERIC_RANGE

    def candidates(
        self,
        record: CatalogRecord,
        taxonomy: TaxonomyContext,
    ) -> Iterator[tuple[str, str]]:
        for table in self.tables:
            if not scope_applies(table.scope, taxonomy.name_for(record)):
                continue
            for attribute in table.attributes:
                value = numeric_value(record.attributes.get(attribute))
                # zero means "not recorded" in the heat fields, so fall back to the next one
                if not value:
                    continue
                target = table.target_for(value)
                if target is not None:
                    yield target, f"{attribute}:{value:g}"
                break


@dataclass(frozen=True, slots=True)
class ClassificationCascade:
    strategies: tuple[ClassificationStrategy, ...]
    version: str = ""

    @classmethod
    def from_rules(cls, rules: ClassificationRuleSet = DEFAULT_RULES) -> ClassificationCascade:
        return cls(
            strategies=(
                CodePrefixStrategy(rules.code_prefixes),
                AttributeStrategy(rules.attribute_tables),
                NamePatternStrategy(rules.name_patterns),
                NumericRangeStrategy(rules.numeric_bands),
            ),
            version=rules.version,
        )

    def classify(
        self,
        record: CatalogRecord,
        taxonomy: TaxonomyContext,
    ) -> ClassificationMatch | None:
        """Return the first resolvable match, or ``None`` when the record stays unmatched.

        A strategy whose matching entries all name codes missing from this
        taxonomy does not stop the cascade; evaluation moves on to the next
        strategy.
        """

        for strategy in self.strategies:
            for target, reason in strategy.candidates(record, taxonomy):
                subcategory = taxonomy.subcategories.resolve(target)
                if subcategory is not None:
                    return ClassificationMatch(
                        subcategory=subcategory,
                        strategy=strategy.kind,
                        reason=reason,
                    )
        return None


def classify_record(
    record: CatalogRecord,
    taxonomy: TaxonomyContext,
    rules: ClassificationRuleSet = DEFAULT_RULES,
) -> ClassificationMatch | None:
    return ClassificationCascade.from_rules(rules).classify(record, taxonomy)
