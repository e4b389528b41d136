"""Result types returned by a classification run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from varietal.domain.model import CatalogRecord

    from .cascade import ClassificationMatch


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassificationSample:
    id: str
    name: str
    code: str | None
    subcategory_id: str
    subcategory_code: str | None
    subcategory_name: str
    strategy: str
    reason: str

    @classmethod
    def from_match(cls, record: CatalogRecord, match: ClassificationMatch) -> ClassificationSample:
        return cls(
            id=record.id,
            name=record.name,
            code=record.code,
            subcategory_id=match.subcategory.id,
            subcategory_code=match.subcategory.code,
            subcategory_name=match.subcategory.name,
            strategy=match.strategy.value,
            reason=match.reason,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "subcategory_id": self.subcategory_id,
            "subcategory_code": self.subcategory_code,
            "subcategory_name": self.subcategory_name,
            "strategy": self.strategy,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class UnmatchedSample:
    """Identifying fields of a record left for manual follow-up."""

    id: str
    name: str
    code: str | None
    fruit_shape: Any = None
    scoville_max: Any = None

    @classmethod
    def from_record(cls, record: CatalogRecord) -> UnmatchedSample:
        return cls(
            id=record.id,
            name=record.name,
            code=record.code,
            fruit_shape=record.attributes.get("fruit_shape"),
            scoville_max=record.attributes.get("scoville_max"),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "fruit_shape": self.fruit_shape,
            "scoville_max": self.scoville_max,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassificationSummary:
    total_missing: int
    processed: int = 0
    fixed: int = 0
    unmatched: int = 0
    failed: int = 0
    remaining: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total_missing": self.total_missing,
            "processed": self.processed,
            "fixed": self.fixed,
            "unmatched": self.unmatched,
            "failed": self.failed,
            "remaining": self.remaining,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassificationRunResult:
    plant_type_id: str
    dry_run: bool
    rules_version: str
    summary: ClassificationSummary
    message: str
    samples: tuple[ClassificationSample, ...] = ()
    unmatched: tuple[UnmatchedSample, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "plant_type_id": self.plant_type_id,
            "dry_run": self.dry_run,
            "rules_version": self.rules_version,
            "summary": self.summary.as_dict(),
            "message": self.message,
            "samples": [sample.as_dict() for sample in self.samples],
            "unmatched": [sample.as_dict() for sample in self.unmatched],
        }
