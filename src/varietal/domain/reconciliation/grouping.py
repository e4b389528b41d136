"""Duplicate clustering and canonical selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from .normalize import NormalizationStrength, key_function
from .scoring import DEFAULT_WEIGHTS, CompletenessWeights, completeness_score

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from varietal.domain.model import CatalogRecord

    from .normalize import GroupingKeyFunction

log = logging.getLogger(__name__)

_UNDATED: Final[datetime] = datetime.max.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class RankedMember:
    record: CatalogRecord
    score: int


@dataclass(frozen=True, slots=True, kw_only=True)
class DuplicateCluster:
    """One group of duplicates: the surviving canonical plus its losers in rank order."""

    key: str
    canonical: RankedMember
    losers: tuple[RankedMember, ...]

    @property
    def members(self) -> tuple[RankedMember, ...]:
        return (self.canonical, *self.losers)


def group_by_key(
    records: Iterable[CatalogRecord],
    *,
    key_for: GroupingKeyFunction,
) -> dict[str, list[CatalogRecord]]:
    """Partition active records by grouping key, preserving first-seen order."""

    groups: dict[str, list[CatalogRecord]] = {}
    for record in records:
        if not record.is_active:
            continue
        key = key_for(record)
        if key is None:
            log.debug("Variety %s has neither code nor name; not grouped", record.id)
            continue
        groups.setdefault(key, []).append(record)
    return groups


def rank_members(
    records: Sequence[CatalogRecord],
    *,
    weights: CompletenessWeights = DEFAULT_WEIGHTS,
) -> list[RankedMember]:
    """Order cluster members best-first.

    Higher completeness wins; equal scores go to the earliest-created record.
    Records without a creation timestamp rank after dated ones, and remaining
    ties keep their input order.
    """

    ranked = [
        RankedMember(record=record, score=completeness_score(record, weights=weights))
        for record in records
    ]
    ranked.sort(key=lambda member: (-member.score, member.record.created_at or _UNDATED))
    return ranked


def find_duplicate_clusters(
    records: Iterable[CatalogRecord],
    *,
    strength: NormalizationStrength = NormalizationStrength.STRICT,
    weights: CompletenessWeights = DEFAULT_WEIGHTS,
) -> list[DuplicateCluster]:
    clusters: list[DuplicateCluster] = []
    for key, members in group_by_key(records, key_for=key_function(strength)).items():
        if len(members) < 2:  # noqa: PLR2004
            continue
        ranked = rank_members(members, weights=weights)
        clusters.append(DuplicateCluster(key=key, canonical=ranked[0], losers=tuple(ranked[1:])))
    return clusters
