"""Resolve rule-table target codes to concrete subcategory records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

    from varietal.domain.model import SubCategoryRecord

SUBCATEGORY_CODE_PREFIX: Final[str] = "PSC_"


def candidate_codes(code: str) -> tuple[str, ...]:
    """Spellings to try for ``code``; historical data mixes ``PSC_``-prefixed and bare codes."""

    candidates = [code, f"{SUBCATEGORY_CODE_PREFIX}{code}"]
    if code.startswith(SUBCATEGORY_CODE_PREFIX):
        candidates.append(code.removeprefix(SUBCATEGORY_CODE_PREFIX))
    return tuple(dict.fromkeys(candidates))


@dataclass(slots=True)
class SubCategoryIndex:
    """Active subcategories usable for one plant type, indexed by code."""

    plant_type_id: str | None
    _by_code: dict[str, list[SubCategoryRecord]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        subcategories: Iterable[SubCategoryRecord],
        *,
        plant_type_id: str | None,
    ) -> SubCategoryIndex:
        index = cls(plant_type_id=plant_type_id)
        for subcategory in subcategories:
            if not subcategory.is_active or subcategory.code is None:
                continue
            if subcategory.plant_type_id not in (None, plant_type_id):
                continue
            index._by_code.setdefault(subcategory.code, []).append(subcategory)
        return index

    def resolve(self, code: str) -> SubCategoryRecord | None:
        """Return the subcategory for ``code`` or ``None``.

        Each spelling from :func:`candidate_codes` is tried in turn; within a
        spelling a subcategory scoped to this plant type beats an unscoped one.
        """

        for candidate in candidate_codes(code):
            matches = self._by_code.get(candidate)
            if not matches:
                continue
            for subcategory in matches:
                if subcategory.plant_type_id == self.plant_type_id:
                    return subcategory
            return matches[0]
        return None

    def __len__(self) -> int:
        return sum(len(matches) for matches in self._by_code.values())
