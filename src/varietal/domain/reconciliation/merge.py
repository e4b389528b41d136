"""Fold duplicate losers into their canonical record."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, cast

from varietal.domain.model import (
    ARRAY_FIELDS,
    MAP_FIELDS,
    MERGEABLE_SCALAR_FIELDS,
    TOMBSTONE_KEYS,
)

from .scoring import is_filled

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable, Mapping, Sequence

    from varietal.domain.model import CatalogRecord


class ScalarPolicy(StrEnum):
    """How a loser's scalar value competes with the accumulated value."""

    FILL_EMPTY = "fill_empty"
    PREFER_LONGER = "prefer_longer"


@dataclass(frozen=True, slots=True, kw_only=True)
class MergePolicy:
    scalar: ScalarPolicy = ScalarPolicy.FILL_EMPTY
    scalar_fields: tuple[str, ...] = MERGEABLE_SCALAR_FIELDS
    array_fields: tuple[str, ...] = ARRAY_FIELDS
    map_fields: tuple[str, ...] = MAP_FIELDS


DEFAULT_MERGE_POLICY: Final[MergePolicy] = MergePolicy()


@dataclass(frozen=True, slots=True, kw_only=True)
class MergePatch:
    """Attribute changes to write onto the canonical record."""

    canonical_id: str
    changes: Mapping[str, Any] = field(default_factory=dict)
    filled_fields: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.changes


def _merge_scalar(current: object, incoming: object, policy: ScalarPolicy) -> object:
    if not is_filled(incoming):
        return current
    if not is_filled(current):
        return incoming
    if (
        policy is ScalarPolicy.PREFER_LONGER
        and isinstance(current, str)
        and isinstance(incoming, str)
        and len(incoming.strip()) > len(current.strip())
    ):
        return incoming
    return current


def _identity(value: object) -> Hashable:
    try:
        hash(value)
    except TypeError:
        return json.dumps(value, sort_keys=True, default=str)
    return cast("Hashable", value)


def union_values(values: Iterable[object]) -> list[object]:
    """De-duplicate ``values`` keeping first occurrences; tolerates unhashable items."""

    seen: set[Hashable] = set()
    merged: list[object] = []
    for value in values:
        if not is_filled(value):
            continue
        identity = _identity(value)
        if identity in seen:
            continue
        seen.add(identity)
        merged.append(value)
    return merged


def merge_cluster(
    canonical: CatalogRecord,
    losers: Sequence[CatalogRecord],
    *,
    policy: MergePolicy = DEFAULT_MERGE_POLICY,
) -> MergePatch:
    """Compute the canonical's merged attributes.

    Losers are folded in rank order into an accumulator seeded with the
    canonical's current values:

    * scalars are filled only where the accumulator is empty (or, under
      ``PREFER_LONGER``, replaced by strictly longer text);
    * array fields become a de-duplicated union;
    * map fields are shallow-merged with the loser's keys overwriting, except
      merge bookkeeping keys, which never travel onto a canonical;
    * subcategory links become the sorted union, the first id being primary.

    Only fields whose merged value differs from the canonical's are returned.
    """

    scalars: dict[str, object] = {
        name: canonical.attributes.get(name) for name in policy.scalar_fields
    }
    arrays: dict[str, list[object]] = {
        name: list(canonical.value(name)) for name in policy.array_fields
    }
    maps: dict[str, dict[str, Any]] = {
        name: dict(canonical.value(name)) for name in policy.map_fields
    }
    subcategories = canonical.subcategory_union()

    for loser in losers:
        for name in policy.scalar_fields:
            scalars[name] = _merge_scalar(scalars[name], loser.attributes.get(name), policy.scalar)
        for name in policy.array_fields:
            arrays[name].extend(loser.value(name))
        for name in policy.map_fields:
            incoming = loser.value(name)
            maps[name].update(
                {key: value for key, value in incoming.items() if key not in TOMBSTONE_KEYS}
            )
        subcategories |= loser.subcategory_union()

    changes: dict[str, Any] = {}
    filled: list[str] = []
    for name, value in scalars.items():
        if value != canonical.attributes.get(name):
            changes[name] = value
            filled.append(name)
    for name, values in arrays.items():
        merged = union_values(values)
        if merged != list(canonical.value(name)):
            changes[name] = merged
    for name, mapping in maps.items():
        if mapping != dict(canonical.value(name)):
            changes[name] = mapping

    if subcategories != canonical.subcategory_union():
        ordered = sorted(subcategories)
        changes["plant_subcategory_id"] = ordered[0]
        changes["plant_subcategory_ids"] = ordered

    return MergePatch(canonical_id=canonical.id, changes=changes, filled_fields=tuple(filled))
