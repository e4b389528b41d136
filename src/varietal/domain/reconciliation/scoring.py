"""Completeness heuristic used to rank members of a duplicate cluster."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from varietal.domain.model import COMPLETENESS_FIELDS

if TYPE_CHECKING:
    from varietal.domain.model import CatalogRecord


@dataclass(frozen=True, slots=True, kw_only=True)
class CompletenessWeights:
    image_bonus: int = 2
    source_bonus: int = 2
    synonym_bonus: int = 1
    scored_fields: tuple[str, ...] = COMPLETENESS_FIELDS


DEFAULT_WEIGHTS: Final[CompletenessWeights] = CompletenessWeights()


def is_filled(value: object) -> bool:
    """Return whether a field value counts as populated.

    ``None``, blank strings and empty containers are empty; numeric zero and
    ``False`` are real answers and count as populated.
    """

    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list | tuple | set | frozenset | Mapping):
        return len(value) > 0
    return True


def completeness_score(
    record: CatalogRecord,
    *,
    weights: CompletenessWeights = DEFAULT_WEIGHTS,
) -> int:
    score = sum(1 for name in weights.scored_fields if is_filled(record.attributes.get(name)))
    if record.images:
        score += weights.image_bonus
    if record.sources:
        score += weights.source_bonus
    if record.synonyms:
        score += weights.synonym_bonus
    return score
