"""Enumerations shared across the catalog domain."""

from __future__ import annotations

from enum import StrEnum


class RecordStatus(StrEnum):
    ACTIVE = "active"
    REMOVED = "removed"


class Collection(StrEnum):
    """Entity collections the maintenance engines read or write."""

    VARIETY = "Variety"
    PLANT_TYPE = "PlantType"
    PLANT_SUBCATEGORY = "PlantSubCategory"

    # dependent records holding a ``variety_id`` foreign key
    SEED_LOT = "SeedLot"
    CROP_PLAN = "CropPlan"
    PLANT_INSTANCE = "PlantInstance"
    VARIETY_CHANGE_REQUEST = "VarietyChangeRequest"

    # list documents embedding items with a ``variety_id``
    GROW_LIST = "GrowList"
