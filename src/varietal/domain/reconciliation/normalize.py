"""Name normalisation and grouping-key extraction for duplicate detection.

Two strength levels exist because the catalog's merge tooling historically
clustered with two different normalisers. ``LOOSE`` only irons out
formatting noise (case, whitespace, quote glyphs, a trailing period).
``STRICT`` additionally drops bracketed marketing qualifiers such as
"(Organic)" and every punctuation or symbol character, so "Sweet Million" and
"Sweet Million (Organic)" collapse onto one key. Callers pick the level
explicitly; switching levels changes which records cluster together.
"""

from __future__ import annotations

import re
import unicodedata
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable

    from varietal.domain.model import CatalogRecord


class NormalizationStrength(StrEnum):
    LOOSE = "loose"
    STRICT = "strict"


CODE_KEY_PREFIX: Final[str] = "code:"
NAME_KEY_PREFIX: Final[str] = "name:"

DEFAULT_QUALIFIERS: Final[tuple[str, ...]] = (
    "certified organic",
    "organic",
    "heirloom",
    "untreated",
    "pelleted",
)

_QUOTE_TRANSLATION: Final = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "‚": "'",
        "‛": "'",
        "′": "'",
        "`": "'",
        "“": '"',
        "”": '"',
        "„": '"',
        "‟": '"',
    }
)


class GroupingKeyFunction(Protocol):
    def __call__(self, record: CatalogRecord) -> str | None: ...


def _qualifier_pattern(qualifiers: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(q) for q in sorted(qualifiers, key=len, reverse=True))
    return re.compile(rf"[\(\[]\s*(?:{alternatives})\s*[\)\]]")


_DEFAULT_QUALIFIER_PATTERN: Final = _qualifier_pattern(DEFAULT_QUALIFIERS)


def _collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def normalize_name(
    value: str | None,
    *,
    strength: NormalizationStrength = NormalizationStrength.LOOSE,
    qualifiers: Iterable[str] | None = None,
) -> str:
    """Return the comparison form of a display name ("" for blank input)."""

    if not value:
        return ""
    text = unicodedata.normalize("NFKC", value)
    text = text.casefold()
    text = text.translate(_QUOTE_TRANSLATION)
    text = _collapse_whitespace(text)
    text = text.removesuffix(".").rstrip()

    if strength is NormalizationStrength.STRICT:
        pattern = (
            _DEFAULT_QUALIFIER_PATTERN if qualifiers is None else _qualifier_pattern(qualifiers)
        )
        text = pattern.sub(" ", text)
        text = "".join(ch for ch in text if unicodedata.category(ch)[0] not in {"P", "S"})
        text = _collapse_whitespace(text)

    return text


def grouping_key(
    record: CatalogRecord,
    *,
    strength: NormalizationStrength = NormalizationStrength.STRICT,
) -> str | None:
    """Return the duplicate-grouping key for ``record``.

    A structured code is the strongest duplicate signal and is used verbatim.
    Records without a code fall back to their normalised name; records with
    neither cannot be grouped and yield ``None``.
    """

    if record.code:
        return f"{CODE_KEY_PREFIX}{record.code}"
    name = normalize_name(record.name, strength=strength)
    if not name:
        return None
    return f"{NAME_KEY_PREFIX}{name}"


def key_function(strength: NormalizationStrength) -> GroupingKeyFunction:
    def key_for(record: CatalogRecord) -> str | None:
        return grouping_key(record, strength=strength)

    return key_for
