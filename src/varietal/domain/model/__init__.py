"""Catalog domain model."""

from __future__ import annotations

from .catalog import (
    ARRAY_FIELDS,
    COMPLETENESS_FIELDS,
    MAP_FIELDS,
    MERGE_POINTER_KEY,
    MERGEABLE_SCALAR_FIELDS,
    MERGED_AT_KEY,
    TOMBSTONE_KEYS,
    CatalogRecord,
    Document,
    PlantTypeRecord,
    SubCategoryRecord,
    clean_text,
    parse_id_list,
    parse_timestamp,
)
from .enums import Collection, RecordStatus

__all__ = [
    "ARRAY_FIELDS",
    "COMPLETENESS_FIELDS",
    "MAP_FIELDS",
    "MERGEABLE_SCALAR_FIELDS",
    "MERGED_AT_KEY",
    "MERGE_POINTER_KEY",
    "TOMBSTONE_KEYS",
    "CatalogRecord",
    "Collection",
    "Document",
    "PlantTypeRecord",
    "RecordStatus",
    "SubCategoryRecord",
    "clean_text",
    "parse_id_list",
    "parse_timestamp",
]
