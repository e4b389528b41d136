"""Duplicate reconciliation: grouping, canonical selection, merge, repoint, tombstone."""

from __future__ import annotations

from .contracts import (
    ClusterOutcome,
    ClusterPreview,
    MemberSummary,
    MergeRunResult,
    MergeRunSummary,
)
from .engine import DEFAULT_MAX_GROUPS, DuplicateMergeEngine, MergePlan
from .grouping import DuplicateCluster, RankedMember, find_duplicate_clusters, rank_members
from .merge import DEFAULT_MERGE_POLICY, MergePatch, MergePolicy, ScalarPolicy, merge_cluster
from .normalize import NormalizationStrength, grouping_key, normalize_name
from .repoint import (
    DEFAULT_DEPENDENT_KINDS,
    GROW_LIST_ITEMS,
    DependentKind,
    EmbeddedReferenceKind,
    ReferenceRepointer,
    TombstoneWriter,
)
from .scoring import DEFAULT_WEIGHTS, CompletenessWeights, completeness_score, is_filled

__all__ = [
    "DEFAULT_DEPENDENT_KINDS",
    "DEFAULT_MAX_GROUPS",
    "DEFAULT_MERGE_POLICY",
    "DEFAULT_WEIGHTS",
    "GROW_LIST_ITEMS",
    "ClusterOutcome",
    "ClusterPreview",
    "CompletenessWeights",
    "DependentKind",
    "DuplicateCluster",
    "DuplicateMergeEngine",
    "EmbeddedReferenceKind",
    "MemberSummary",
    "MergePatch",
    "MergePlan",
    "MergePolicy",
    "MergeRunResult",
    "MergeRunSummary",
    "NormalizationStrength",
    "RankedMember",
    "ReferenceRepointer",
    "ScalarPolicy",
    "TombstoneWriter",
    "completeness_score",
    "find_duplicate_clusters",
    "grouping_key",
    "is_filled",
    "merge_cluster",
    "normalize_name",
    "rank_members",
]
