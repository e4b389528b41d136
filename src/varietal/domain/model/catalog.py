"""Catalog record views over raw entity-store documents.

The entity store hands out loosely typed JSON documents. The classes here give
the maintenance engines a stable, immutable view of the fields they care about
while keeping every other attribute available through ``attributes``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Final

from .enums import RecordStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)

type Document = dict[str, Any]

MERGE_POINTER_KEY: Final[str] = "merged_into_variety_id"
MERGED_AT_KEY: Final[str] = "merged_at"
TOMBSTONE_KEYS: Final[frozenset[str]] = frozenset({MERGE_POINTER_KEY, MERGED_AT_KEY})

COMPLETENESS_FIELDS: Final[tuple[str, ...]] = (
    "description",
    "days_to_maturity",
    "spacing_recommended",
    "sun_requirement",
    "water_requirement",
    "growth_habit",
    "species",
    "seed_line_type",
    "flavor_profile",
    "uses",
    "fruit_color",
    "fruit_shape",
    "fruit_size",
    "breeder_or_origin",
    "source_attribution",
    "grower_notes",
)

MERGEABLE_SCALAR_FIELDS: Final[tuple[str, ...]] = (
    *COMPLETENESS_FIELDS,
    "disease_resistance",
    "plant_height_typical",
    "days_to_maturity_min",
    "days_to_maturity_max",
    "scoville_min",
    "scoville_max",
    "heat_scoville_min",
    "heat_scoville_max",
)

ARRAY_FIELDS: Final[tuple[str, ...]] = ("synonyms", "images", "sources")
MAP_FIELDS: Final[tuple[str, ...]] = ("extended_data", "traits")

_STRUCTURAL_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "id",
        "variety_name",
        "variety_code",
        "plant_type_id",
        "plant_subcategory_id",
        "plant_subcategory_ids",
        "status",
        "created_date",
        "updated_date",
        "created_by",
        *ARRAY_FIELDS,
        *MAP_FIELDS,
    }
)


def clean_text(value: object) -> str | None:
    """Return ``value`` stripped, or ``None`` when it is not a non-blank string."""

    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def parse_id_list(value: object) -> tuple[str, ...]:
    """Parse a subcategory id list stored as a list or as a JSON-encoded string."""

    items: Iterable[object]
    if isinstance(value, list | tuple):
        items = value
    elif isinstance(value, str) and value.strip():
        try:
            loaded = json.loads(value)
        except json.JSONDecodeError:
            log.debug("Ignoring unparseable id list %r", value)
            return ()
        if not isinstance(loaded, list):
            return ()
        items = loaded
    else:
        return ()

    ids: list[str] = []
    for item in items:
        text = clean_text(item)
        if text is not None and text not in ids:
            ids.append(text)
    return tuple(ids)


def parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value.strip():
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def _array(value: object) -> tuple[Any, ...]:
    if isinstance(value, list | tuple):
        return tuple(value)
    return ()


def _mapping(value: object) -> dict[str, Any]:
    if isinstance(value, dict):
        return dict(value)
    return {}


def _status(value: object) -> str:
    text = clean_text(value)
    if text is None:
        return RecordStatus.ACTIVE
    try:
        return RecordStatus(text.lower())
    except ValueError:
        # statuses owned by other workflows (drafts, review queues) pass through as-is
        return text


@dataclass(frozen=True, slots=True, kw_only=True)
class CatalogRecord:
    """A variety entry as seen by the reconciliation and classification engines."""

    id: str
    name: str = ""
    code: str | None = None
    plant_type_id: str | None = None
    status: str = RecordStatus.ACTIVE
    subcategory_id: str | None = None
    subcategory_ids: tuple[str, ...] = ()
    attributes: Mapping[str, Any] = field(default_factory=dict)
    synonyms: tuple[Any, ...] = ()
    images: tuple[Any, ...] = ()
    sources: tuple[Any, ...] = ()
    extended_data: Mapping[str, Any] = field(default_factory=dict)
    traits: Mapping[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> CatalogRecord:
        return cls(
            id=str(document["id"]),
            name=str(document.get("variety_name") or ""),
            code=clean_text(document.get("variety_code")),
            plant_type_id=clean_text(document.get("plant_type_id")),
            status=_status(document.get("status")),
            subcategory_id=clean_text(document.get("plant_subcategory_id")),
            subcategory_ids=parse_id_list(document.get("plant_subcategory_ids")),
            attributes={
                key: value for key, value in document.items() if key not in _STRUCTURAL_FIELDS
            },
            synonyms=_array(document.get("synonyms")),
            images=_array(document.get("images")),
            sources=_array(document.get("sources")),
            extended_data=_mapping(document.get("extended_data")),
            traits=_mapping(document.get("traits")),
            created_at=parse_timestamp(document.get("created_date")),
        )

    def value(self, name: str) -> Any:
        """Return a scalar, array, or map field by its store name."""

        if name in ARRAY_FIELDS or name in MAP_FIELDS:
            return getattr(self, name)
        return self.attributes.get(name)

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    @property
    def merged_into(self) -> str | None:
        return clean_text(self.extended_data.get(MERGE_POINTER_KEY))

    @property
    def has_subcategory(self) -> bool:
        return self.subcategory_id is not None or bool(self.subcategory_ids)

    def subcategory_union(self) -> set[str]:
        ids = set(self.subcategory_ids)
        if self.subcategory_id is not None:
            ids.add(self.subcategory_id)
        return ids


@dataclass(frozen=True, slots=True, kw_only=True)
class SubCategoryRecord:
    """Taxonomy bucket below a plant type."""

    id: str
    name: str = ""
    code: str | None = None
    plant_type_id: str | None = None
    is_active: bool = True

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> SubCategoryRecord:
        return cls(
            id=str(document["id"]),
            name=str(document.get("name") or ""),
            code=clean_text(document.get("subcat_code")),
            plant_type_id=clean_text(document.get("plant_type_id")),
            # documents without the flag predate it and are treated as active
            is_active=document.get("is_active") is not False,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class PlantTypeRecord:
    id: str
    common_name: str = ""

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> PlantTypeRecord:
        return cls(id=str(document["id"]), common_name=str(document.get("common_name") or ""))
