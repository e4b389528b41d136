"""Run controller for duplicate reconciliation.

The engine composes the stage objects (grouping, merge, repoint, tombstone)
and drives them one cluster at a time against an ``EntityStore``. A run
completes at most ``max_groups`` clusters; clusters that fail do not count
towards the cap. The summary reports how many clusters are left so callers can
re-invoke until nothing remains.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from varietal.domain.model import CatalogRecord, Collection, RecordStatus
from varietal.domain.ports import EntityStoreError

from .contracts import ClusterOutcome, ClusterPreview, MergeRunResult, MergeRunSummary
from .grouping import find_duplicate_clusters
from .merge import DEFAULT_MERGE_POLICY, MergePolicy, merge_cluster
from .normalize import NormalizationStrength
from .repoint import ReferenceRepointer, TombstoneWriter
from .scoring import DEFAULT_WEIGHTS, CompletenessWeights

if TYPE_CHECKING:
    from varietal.domain.model import Document
    from varietal.domain.ports import EntityStore

    from .grouping import DuplicateCluster

log = logging.getLogger(__name__)

DEFAULT_MAX_GROUPS: Final[int] = 20


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class MergePlan:
    """Clusters found in one scope, before any write."""

    records: tuple[CatalogRecord, ...]
    clusters: tuple[DuplicateCluster, ...]
    already_merged: int = 0

    @property
    def total_duplicates(self) -> int:
        return sum(len(cluster.losers) for cluster in self.clusters)


@dataclass(slots=True, kw_only=True)
class DuplicateMergeEngine:
    strength: NormalizationStrength = NormalizationStrength.STRICT
    weights: CompletenessWeights = DEFAULT_WEIGHTS
    merge_policy: MergePolicy = DEFAULT_MERGE_POLICY
    repointer: ReferenceRepointer = field(default_factory=ReferenceRepointer)
    tombstones: TombstoneWriter = field(default_factory=TombstoneWriter)
    clock: Callable[[], datetime] = _utcnow

    def plan(self, store: EntityStore, *, plant_type_id: str) -> MergePlan:
        documents = store.filter(
            Collection.VARIETY,
            {"plant_type_id": plant_type_id, "status": RecordStatus.ACTIVE.value},
        )
        records: list[CatalogRecord] = []
        already_merged = 0
        for document in documents:
            record = CatalogRecord.from_document(document)
            if not record.is_active:
                continue
            if record.merged_into is not None:
                # pointer set means an earlier run finished this loser
                log.debug("Skipping %s: already merged into %s", record.id, record.merged_into)
                already_merged += 1
                continue
            records.append(record)

        clusters = find_duplicate_clusters(records, strength=self.strength, weights=self.weights)
        return MergePlan(
            records=tuple(records),
            clusters=tuple(clusters),
            already_merged=already_merged,
        )

    def run(
        self,
        store: EntityStore,
        *,
        plant_type_id: str,
        dry_run: bool = True,
        max_groups: int = DEFAULT_MAX_GROUPS,
    ) -> MergeRunResult:
        if max_groups < 1:
            raise ValueError("max_groups must be at least 1")

        log.info(
            "Starting merge run: plant_type_id=%s, dry_run=%s, max_groups=%s",
            plant_type_id,
            dry_run,
            max_groups,
        )
        plan = self.plan(store, plant_type_id=plant_type_id)
        selected = plan.clusters[:max_groups]
        log.info(
            "Found %s duplicate groups (%s duplicates) among %s records",
            len(plan.clusters),
            plan.total_duplicates,
            len(plan.records),
        )

        if dry_run:
            summary = MergeRunSummary(
                total_records=len(plan.records),
                duplicate_groups=len(plan.clusters),
                total_duplicates=plan.total_duplicates,
                groups_remaining=len(plan.clusters),
                already_merged=plan.already_merged,
            )
            return MergeRunResult(
                plant_type_id=plant_type_id,
                dry_run=True,
                summary=summary,
                message=(
                    f"Found {len(plan.clusters)} duplicate groups; "
                    f"previewing {len(selected)}. Re-run with dry_run disabled to merge."
                ),
                preview=tuple(ClusterPreview.from_cluster(cluster) for cluster in selected),
            )

        tombstones = store.filter(
            Collection.VARIETY,
            {"plant_type_id": plant_type_id, "status": RecordStatus.REMOVED.value},
        )
        outcomes = self._merge_clusters(
            store, plan.clusters, tombstones=tombstones, max_groups=max_groups
        )

        groups_merged = sum(1 for outcome in outcomes if outcome.completed)
        records_removed = sum(len(outcome.merged_ids) for outcome in outcomes)
        failures = sum(
            len(outcome.failed_ids) + (1 if outcome.error else 0) for outcome in outcomes
        )
        groups_remaining = len(plan.clusters) - groups_merged
        summary = MergeRunSummary(
            total_records=len(plan.records),
            duplicate_groups=len(plan.clusters),
            total_duplicates=plan.total_duplicates,
            groups_merged=groups_merged,
            records_removed=records_removed,
            references_repointed=sum(outcome.references_repointed for outcome in outcomes),
            groups_remaining=groups_remaining,
            failures=failures,
            already_merged=plan.already_merged,
        )
        log.info(
            "Finished merge run: merged=%s, removed=%s, remaining=%s, failures=%s",
            groups_merged,
            records_removed,
            groups_remaining,
            failures,
        )
        return MergeRunResult(
            plant_type_id=plant_type_id,
            dry_run=False,
            summary=summary,
            message=(
                f"Merged {groups_merged} groups, removed {records_removed} duplicates. "
                f"{groups_remaining} groups remaining."
            ),
            outcomes=outcomes,
        )

    def _merge_clusters(
        self,
        store: EntityStore,
        clusters: tuple[DuplicateCluster, ...],
        *,
        tombstones: list[Document],
        max_groups: int,
    ) -> tuple[ClusterOutcome, ...]:
        # failed clusters do not count against the cap
        outcomes: list[ClusterOutcome] = []
        completed = 0
        for cluster in clusters:
            if completed >= max_groups:
                break
            outcome = self.merge_one(store, cluster, tombstones=tombstones)
            outcomes.append(outcome)
            if outcome.completed:
                completed += 1
        return tuple(outcomes)

    def merge_one(
        self,
        store: EntityStore,
        cluster: DuplicateCluster,
        *,
        tombstones: list[Document],
    ) -> ClusterOutcome:
        """Merge one cluster; failures are contained to the cluster or the loser."""

        canonical = cluster.canonical.record
        losers = [member.record for member in cluster.losers]
        patch = merge_cluster(canonical, losers, policy=self.merge_policy)

        if not patch.is_empty:
            try:
                store.update(Collection.VARIETY, canonical.id, dict(patch.changes))
            except EntityStoreError as exc:
                log.exception(
                    "Failed to update canonical %s (%s); skipping group %s",
                    canonical.id,
                    canonical.name,
                    cluster.key,
                )
                return ClusterOutcome(key=cluster.key, canonical_id=canonical.id, error=str(exc))

        merged_at = self.clock()
        merged: list[str] = []
        failed: list[str] = []
        repointed = 0
        forwarded = 0
        for loser in losers:
            try:
                moved = self.repointer(store, loser_id=loser.id, canonical_id=canonical.id)
                rewritten = self.tombstones.forward_tombstones(
                    store,
                    tombstones,
                    loser_id=loser.id,
                    canonical_id=canonical.id,
                )
                self.tombstones(
                    store,
                    loser=loser,
                    canonical_id=canonical.id,
                    merged_at=merged_at,
                )
            except EntityStoreError:
                log.exception(
                    "Failed to merge %s (%s) into %s; leaving it active for the next run",
                    loser.id,
                    loser.name,
                    canonical.id,
                )
                failed.append(loser.id)
                continue
            merged.append(loser.id)
            repointed += moved
            forwarded += len(rewritten)

        log.info(
            "Merged group %s: kept %s (%s), removed %s, failed %s",
            cluster.key,
            canonical.id,
            canonical.name,
            len(merged),
            len(failed),
        )
        return ClusterOutcome(
            key=cluster.key,
            canonical_id=canonical.id,
            canonical_updated=not patch.is_empty,
            merged_ids=tuple(merged),
            failed_ids=tuple(failed),
            references_repointed=repointed,
            tombstones_forwarded=forwarded,
        )
