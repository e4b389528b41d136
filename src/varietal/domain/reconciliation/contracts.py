"""Result types returned by a merge run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .grouping import DuplicateCluster, RankedMember


@dataclass(frozen=True, slots=True, kw_only=True)
class MemberSummary:
    id: str
    name: str
    code: str | None
    score: int
    created: str | None

    @classmethod
    def from_ranked(cls, member: RankedMember) -> MemberSummary:
        record = member.record
        return cls(
            id=record.id,
            name=record.name,
            code=record.code,
            score=member.score,
            created=record.created_at.isoformat() if record.created_at else None,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "score": self.score,
            "created": self.created,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ClusterPreview:
    key: str
    canonical: MemberSummary
    duplicates: tuple[MemberSummary, ...]

    @classmethod
    def from_cluster(cls, cluster: DuplicateCluster) -> ClusterPreview:
        return cls(
            key=cluster.key,
            canonical=MemberSummary.from_ranked(cluster.canonical),
            duplicates=tuple(MemberSummary.from_ranked(loser) for loser in cluster.losers),
        )

    @property
    def count(self) -> int:
        return 1 + len(self.duplicates)

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "canonical": self.canonical.as_dict(),
            "duplicates": [duplicate.as_dict() for duplicate in self.duplicates],
            "count": self.count,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ClusterOutcome:
    """What happened to one cluster during an executing run."""

    key: str
    canonical_id: str
    canonical_updated: bool = False
    merged_ids: tuple[str, ...] = ()
    failed_ids: tuple[str, ...] = ()
    references_repointed: int = 0
    tombstones_forwarded: int = 0
    error: str | None = None

    @property
    def completed(self) -> bool:
        return self.error is None and not self.failed_ids

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "canonical_id": self.canonical_id,
            "canonical_updated": self.canonical_updated,
            "merged_ids": list(self.merged_ids),
            "failed_ids": list(self.failed_ids),
            "references_repointed": self.references_repointed,
            "tombstones_forwarded": self.tombstones_forwarded,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeRunSummary:
    total_records: int
    duplicate_groups: int
    total_duplicates: int
    groups_merged: int = 0
    records_removed: int = 0
    references_repointed: int = 0
    groups_remaining: int = 0
    failures: int = 0
    already_merged: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total_records": self.total_records,
            "duplicate_groups": self.duplicate_groups,
            "total_duplicates": self.total_duplicates,
            "groups_merged": self.groups_merged,
            "records_removed": self.records_removed,
            "references_repointed": self.references_repointed,
            "groups_remaining": self.groups_remaining,
            "failures": self.failures,
            "already_merged": self.already_merged,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeRunResult:
    plant_type_id: str
    dry_run: bool
    summary: MergeRunSummary
    message: str
    preview: tuple[ClusterPreview, ...] = ()
    outcomes: tuple[ClusterOutcome, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "plant_type_id": self.plant_type_id,
            "dry_run": self.dry_run,
            "summary": self.summary.as_dict(),
            "message": self.message,
        }
        if self.dry_run:
            payload["groups"] = [cluster.as_dict() for cluster in self.preview]
        else:
            payload["outcomes"] = [outcome.as_dict() for outcome in self.outcomes]
        return payload
