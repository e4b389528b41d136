"""Bring primary subcategory and legacy list back in line with each other."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from varietal.domain.model import Collection, RecordStatus, clean_text, parse_id_list
from varietal.domain.ports import EntityStoreError

from .effective import active_subcategory_ids, load_subcategories, repair_patch

if TYPE_CHECKING:
    from collections.abc import Mapping

    from varietal.domain.ports import EntityStore

log = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS: Final[int] = 50
DEFAULT_BATCH_SIZE: Final[int] = 50
DEFAULT_BATCH_DELAY: Final[float] = 0.1
DEFAULT_SAMPLE_LIMIT: Final[int] = 20


@dataclass(frozen=True, slots=True, kw_only=True)
class RepairSample:
    id: str
    name: str
    before_primary: str | None
    before_ids: tuple[str, ...]
    after_primary: str | None
    after_ids: tuple[str, ...]

    @classmethod
    def build(cls, document: Mapping[str, Any], patch: Mapping[str, Any]) -> RepairSample:
        return cls(
            id=str(document["id"]),
            name=str(document.get("variety_name") or ""),
            before_primary=clean_text(document.get("plant_subcategory_id")),
            before_ids=parse_id_list(document.get("plant_subcategory_ids")),
            after_primary=patch["plant_subcategory_id"],
            after_ids=tuple(patch["plant_subcategory_ids"]),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "before": {"primary": self.before_primary, "ids": list(self.before_ids)},
            "after": {"primary": self.after_primary, "ids": list(self.after_ids)},
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class RepairSummary:
    scanned: int
    needs_repair: int
    processed: int = 0
    repaired: int = 0
    failed: int = 0
    remaining: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "scanned": self.scanned,
            "needs_repair": self.needs_repair,
            "processed": self.processed,
            "repaired": self.repaired,
            "failed": self.failed,
            "remaining": self.remaining,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class RepairRunResult:
    plant_type_id: str
    dry_run: bool
    summary: RepairSummary
    message: str
    samples: tuple[RepairSample, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "plant_type_id": self.plant_type_id,
            "dry_run": self.dry_run,
            "summary": self.summary.as_dict(),
            "message": self.message,
            "samples": [sample.as_dict() for sample in self.samples],
        }


@dataclass(slots=True, kw_only=True)
class SubcategoryRepairRunner:
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = DEFAULT_BATCH_DELAY
    sleep: Callable[[float], None] = time.sleep

    def run(
        self,
        store: EntityStore,
        *,
        plant_type_id: str,
        dry_run: bool = True,
        max_items: int = DEFAULT_MAX_ITEMS,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    ) -> RepairRunResult:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")

        log.info(
            "Starting subcategory repair: plant_type_id=%s, dry_run=%s, max_items=%s",
            plant_type_id,
            dry_run,
            max_items,
        )
        active_ids = active_subcategory_ids(
            load_subcategories(store, plant_type_id=plant_type_id)
        )
        documents = store.filter(
            Collection.VARIETY,
            {"plant_type_id": plant_type_id, "status": RecordStatus.ACTIVE.value},
        )
        pending: list[tuple[Mapping[str, Any], dict[str, Any]]] = []
        for document in documents:
            patch = repair_patch(document, active_ids)
            if patch is not None:
                pending.append((document, patch))
        selected = pending[:max_items]
        log.info("Found %s of %s records needing repair", len(pending), len(documents))

        repaired: list[RepairSample] = []
        failed = 0
        for start in range(0, len(selected), self.batch_size):
            if not dry_run and start > 0 and self.batch_delay > 0:
                self.sleep(self.batch_delay)
            for document, patch in selected[start : start + self.batch_size]:
                if not dry_run:
                    try:
                        store.update(Collection.VARIETY, str(document["id"]), patch)
                    except EntityStoreError:
                        log.exception(
                            "Failed to repair subcategories of %s (%s)",
                            document["id"],
                            document.get("variety_name"),
                        )
                        failed += 1
                        continue
                repaired.append(RepairSample.build(document, patch))

        summary = RepairSummary(
            scanned=len(documents),
            needs_repair=len(pending),
            processed=len(selected),
            repaired=len(repaired),
            failed=failed,
            remaining=len(pending) - len(selected) + failed,
        )
        verb = "Would repair" if dry_run else "Repaired"
        message = (
            f"{verb} {summary.repaired} of {summary.needs_repair} records. "
            f"{summary.remaining} records remaining."
        )
        log.info(
            "Finished subcategory repair: repaired=%s, failed=%s, remaining=%s",
            summary.repaired,
            summary.failed,
            summary.remaining,
        )
        return RepairRunResult(
            plant_type_id=plant_type_id,
            dry_run=dry_run,
            summary=summary,
            message=message,
            samples=tuple(repaired[:sample_limit]),
        )
