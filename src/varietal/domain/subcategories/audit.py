"""Read-only consistency report over subcategory links."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from varietal.domain.model import CatalogRecord, Collection, RecordStatus

from .effective import load_subcategories

if TYPE_CHECKING:
    from varietal.domain.ports import EntityStore

log = logging.getLogger(__name__)

AUDIT_SAMPLE_LIMIT: Final[int] = 10


@dataclass(slots=True)
class AuditReport:
    plant_type_id: str
    scanned: int = 0
    with_primary: int = 0
    with_list: int = 0
    list_empty_primary_set: int = 0
    primary_not_in_list: int = 0
    missing_references: int = 0
    inactive_references: int = 0
    samples: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    sample_limit: int = AUDIT_SAMPLE_LIMIT

    def note(self, bucket: str, record: CatalogRecord, **extra: Any) -> None:
        entries = self.samples.setdefault(bucket, [])
        if len(entries) < self.sample_limit:
            entries.append({"id": record.id, "name": record.name, **extra})

    @property
    def is_consistent(self) -> bool:
        return not (
            self.list_empty_primary_set
            or self.primary_not_in_list
            or self.missing_references
            or self.inactive_references
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "plant_type_id": self.plant_type_id,
            "consistent": self.is_consistent,
            "counts": {
                "scanned": self.scanned,
                "with_primary": self.with_primary,
                "with_list": self.with_list,
                "list_empty_primary_set": self.list_empty_primary_set,
                "primary_not_in_list": self.primary_not_in_list,
                "missing_references": self.missing_references,
                "inactive_references": self.inactive_references,
            },
            "samples": {bucket: list(entries) for bucket, entries in self.samples.items()},
        }


def audit_subcategories(
    store: EntityStore,
    *,
    plant_type_id: str,
    sample_limit: int = AUDIT_SAMPLE_LIMIT,
) -> AuditReport:
    subcategories = {
        subcategory.id: subcategory
        for subcategory in load_subcategories(store, plant_type_id=plant_type_id)
    }
    documents = store.filter(
        Collection.VARIETY,
        {"plant_type_id": plant_type_id, "status": RecordStatus.ACTIVE.value},
    )
    report = AuditReport(plant_type_id=plant_type_id, sample_limit=sample_limit)
    for document in documents:
        record = CatalogRecord.from_document(document)
        if not record.is_active:
            continue
        report.scanned += 1
        if record.subcategory_id is not None:
            report.with_primary += 1
        if record.subcategory_ids:
            report.with_list += 1

        primary = record.subcategory_id
        if primary is not None and not record.subcategory_ids:
            report.list_empty_primary_set += 1
            report.note("list_empty_primary_set", record, primary=primary)
        elif primary is not None and primary not in record.subcategory_ids:
            report.primary_not_in_list += 1
            report.note(
                "primary_not_in_list",
                record,
                primary=primary,
                ids=list(record.subcategory_ids),
            )

        for subcategory_id in sorted(record.subcategory_union()):
            subcategory = subcategories.get(subcategory_id)
            if subcategory is None:
                report.missing_references += 1
                report.note("missing_references", record, subcategory_id=subcategory_id)
            elif not subcategory.is_active:
                report.inactive_references += 1
                report.note("inactive_references", record, subcategory_id=subcategory_id)

    log.info(
        "Audited %s records for plant type %s: consistent=%s",
        report.scanned,
        plant_type_id,
        report.is_consistent,
    )
    return report
