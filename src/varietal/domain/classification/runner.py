"""Batch pass that assigns a subcategory to unclassified catalog records.

Writes are paced: a short delay follows every write, and a failed write is
logged, followed by a longer backoff, then skipped. Nothing a single record
does can abort the batch.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from varietal.domain.model import (
    CatalogRecord,
    Collection,
    PlantTypeRecord,
    RecordStatus,
    SubCategoryRecord,
)
from varietal.domain.ports import EntityStoreError

from .cascade import ClassificationCascade, TaxonomyContext
from .contracts import (
    ClassificationRunResult,
    ClassificationSample,
    ClassificationSummary,
    UnmatchedSample,
)
from .rules import DEFAULT_RULES

if TYPE_CHECKING:
    from varietal.domain.ports import EntityStore

    from .cascade import ClassificationMatch
    from .rules import ClassificationRuleSet

log = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS: Final[int] = 50
DEFAULT_WRITE_DELAY: Final[float] = 0.15
DEFAULT_FAILURE_BACKOFF: Final[float] = 2.0
DEFAULT_SAMPLE_LIMIT: Final[int] = 50
DEFAULT_UNMATCHED_SAMPLE_LIMIT: Final[int] = 20


def subcategory_patch(subcategory_id: str) -> dict[str, object]:
    """Primary and legacy list are always written together."""

    return {"plant_subcategory_id": subcategory_id, "plant_subcategory_ids": [subcategory_id]}


def load_taxonomy(store: EntityStore, *, plant_type_id: str) -> TaxonomyContext:
    plant_types = store.filter(Collection.PLANT_TYPE, {"id": plant_type_id}, limit=1)
    plant_type = PlantTypeRecord.from_document(plant_types[0]) if plant_types else None
    if plant_type is None:
        log.warning("Plant type %s not found; scoped rules use record data", plant_type_id)
    subcategories = [
        SubCategoryRecord.from_document(document)
        for document in store.filter(
            Collection.PLANT_SUBCATEGORY, {"plant_type_id": plant_type_id}
        )
    ]
    return TaxonomyContext.build(
        plant_type_id=plant_type_id,
        plant_type=plant_type,
        subcategories=subcategories,
    )


@dataclass(slots=True, kw_only=True)
class ClassificationRunner:
    rules: ClassificationRuleSet = DEFAULT_RULES
    write_delay: float = DEFAULT_WRITE_DELAY
    failure_backoff: float = DEFAULT_FAILURE_BACKOFF
    sleep: Callable[[float], None] = time.sleep
    _cascade: ClassificationCascade = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._cascade = ClassificationCascade.from_rules(self.rules)

    def unclassified(self, store: EntityStore, *, plant_type_id: str) -> list[CatalogRecord]:
        documents = store.filter(
            Collection.VARIETY,
            {"plant_type_id": plant_type_id, "status": RecordStatus.ACTIVE.value},
        )
        records = (CatalogRecord.from_document(document) for document in documents)
        return [record for record in records if record.is_active and not record.has_subcategory]

    def run(
        self,
        store: EntityStore,
        *,
        plant_type_id: str,
        dry_run: bool = True,
        max_items: int = DEFAULT_MAX_ITEMS,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
        unmatched_sample_limit: int = DEFAULT_UNMATCHED_SAMPLE_LIMIT,
    ) -> ClassificationRunResult:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")

        log.info(
            "Starting classification run: plant_type_id=%s, dry_run=%s, max_items=%s, rules=%s",
            plant_type_id,
            dry_run,
            max_items,
            self.rules.version,
        )
        taxonomy = load_taxonomy(store, plant_type_id=plant_type_id)
        candidates = self.unclassified(store, plant_type_id=plant_type_id)
        log.info(
            "Found %s unclassified records; %s usable subcategories",
            len(candidates),
            len(taxonomy.subcategories),
        )

        # only matched records count against the cap
        matches: list[tuple[CatalogRecord, ClassificationMatch]] = []
        unmatched: list[UnmatchedSample] = []
        for record in candidates:
            match = self._cascade.classify(record, taxonomy)
            if match is None:
                log.debug("No subcategory for %s (%s)", record.id, record.name)
                unmatched.append(UnmatchedSample.from_record(record))
            else:
                matches.append((record, match))
        batch = matches[:max_items]

        fixed: list[ClassificationSample] = []
        failed = 0
        for record, match in batch:
            if not dry_run and not self._write(store, record, match):
                failed += 1
                continue
            fixed.append(ClassificationSample.from_match(record, match))

        summary = ClassificationSummary(
            total_missing=len(candidates),
            processed=len(batch) + len(unmatched),
            fixed=len(fixed),
            unmatched=len(unmatched),
            failed=failed,
            remaining=len(matches) - len(batch),
        )
        if dry_run:
            message = (
                f"Would classify {summary.fixed} of {summary.processed} records; "
                f"{summary.unmatched} unmatched. Re-run with dry_run disabled to write."
            )
        else:
            message = (
                f"Classified {summary.fixed} records, {summary.unmatched} unmatched, "
                f"{summary.failed} failed. {summary.remaining} records remaining."
            )
        log.info(
            "Finished classification run: fixed=%s, unmatched=%s, failed=%s, remaining=%s",
            summary.fixed,
            summary.unmatched,
            summary.failed,
            summary.remaining,
        )
        return ClassificationRunResult(
            plant_type_id=plant_type_id,
            dry_run=dry_run,
            rules_version=self.rules.version,
            summary=summary,
            message=message,
            samples=tuple(fixed[:sample_limit]),
            unmatched=tuple(unmatched[:unmatched_sample_limit]),
        )

    def _write(
        self,
        store: EntityStore,
        record: CatalogRecord,
        match: ClassificationMatch,
    ) -> bool:
        try:
            store.update(Collection.VARIETY, record.id, subcategory_patch(match.subcategory.id))
        except EntityStoreError as exc:
            log.warning(
                "Failed to classify %s (%s) as %s: %s; backing off %.2fs",
                record.id,
                record.name,
                match.subcategory.code,
                exc,
                self.failure_backoff,
            )
            self.sleep(self.failure_backoff)
            return False
        log.info(
            "Classified %s (%s) as %s via %s",
            record.id,
            record.name,
            match.subcategory.code,
            match.strategy,
        )
        if self.write_delay > 0:
            self.sleep(self.write_delay)
        return True
