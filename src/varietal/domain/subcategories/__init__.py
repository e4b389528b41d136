"""Subcategory link maintenance: effective assignment, repair and audit."""

from __future__ import annotations

from .audit import AUDIT_SAMPLE_LIMIT, AuditReport, audit_subcategories
from .effective import (
    active_subcategory_ids,
    effective_subcategory_ids,
    load_subcategories,
    repair_patch,
    resolve_primary,
)
from .repair import RepairRunResult, RepairSample, RepairSummary, SubcategoryRepairRunner

__all__ = [
    "AUDIT_SAMPLE_LIMIT",
    "AuditReport",
    "RepairRunResult",
    "RepairSample",
    "RepairSummary",
    "SubcategoryRepairRunner",
    "active_subcategory_ids",
    "audit_subcategories",
    "effective_subcategory_ids",
    "load_subcategories",
    "repair_patch",
    "resolve_primary",
]
