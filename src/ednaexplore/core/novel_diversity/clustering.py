"""
Novel diversity clustering for low-confidence classifications.

Classifications the classifier is unsure about are treated as candidate
novel taxa. They are partitioned into groups by a pluggable grouping
strategy and each group's 1-based number is written onto its members as
``cluster_id``. Confident classifications pass through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from ednaexplore.core.exceptions import ClusteringError, InvalidThresholdError
from ednaexplore.core.novel_diversity.models import NovelCluster
from ednaexplore.core.progress import ProgressCallback, report
from ednaexplore.models.records import ClassificationResult, SequenceRecord

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7


class GroupingStrategy(Protocol):
    """
    Partitions low-confidence results into groups.

    Returns a list of groups, each a non-empty list of indices into
    ``results``. Every index must appear in exactly one group, and the
    partition must be deterministic for a given input sequence.
    """

    def __call__(self, results: Sequence[ClassificationResult]) -> list[list[int]]:
        ...


class RoundRobinGrouping:
    """
    Deal results into a fixed number of groups in input order.

    Result ``i`` goes to group ``i % n_groups``. Fewer results than groups
    yields one group per result.
    """

    def __init__(self, n_groups: int = 3) -> None:
        if n_groups < 1:
            msg = f"n_groups must be >= 1, got {n_groups}"
            raise ValueError(msg)
        self.n_groups = n_groups

    def __call__(self, results: Sequence[ClassificationResult]) -> list[list[int]]:
        groups: list[list[int]] = [[] for _ in range(min(self.n_groups, len(results)))]
        for i in range(len(results)):
            groups[i % self.n_groups].append(i)
        return groups


class LineageGrouping:
    """
    Group results sharing a predicted lineage.

    With ``rank`` set, only the lineage prefix down to that rank is compared
    (0 = domain, 1 = phylum, ...). Groups are ordered by first appearance.
    """

    def __init__(self, rank: int | None = None) -> None:
        if rank is not None and rank < 0:
            msg = f"rank must be >= 0, got {rank}"
            raise ValueError(msg)
        self.rank = rank

    def _key(self, result: ClassificationResult) -> str:
        if self.rank is None:
            return result.predicted_taxon
        return ";".join(result.lineage[: self.rank + 1])

    def __call__(self, results: Sequence[ClassificationResult]) -> list[list[int]]:
        groups: dict[str, list[int]] = {}
        for i, result in enumerate(results):
            groups.setdefault(self._key(result), []).append(i)
        return list(groups.values())


def _validate_partition(groups: list[list[int]], size: int) -> None:
    seen: set[int] = set()
    for position, group in enumerate(groups):
        if not group:
            raise ClusteringError(f"group {position + 1} is empty")
        for index in group:
            if not 0 <= index < size:
                raise ClusteringError(f"index {index} is out of range for {size} results")
            if index in seen:
                raise ClusteringError(f"index {index} appears in more than one group")
            seen.add(index)
    if len(seen) != size:
        raise ClusteringError(f"{size - len(seen)} results were not assigned to any group")


class ClusterAssigner:
    """
    Assigns novel-taxon cluster ids to low-confidence classifications.

    Example:
        >>> assigner = ClusterAssigner(grouping=LineageGrouping(rank=1))
        >>> clustered = assigner.assign(results)
        >>> [r.cluster_id for r in clustered if r.confidence < 0.7]
        [1, 1, 2]
    """

    def __init__(
        self,
        grouping: GroupingStrategy | None = None,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        """
        Initialize the assigner.

        Args:
            grouping: Partitioning strategy (default: RoundRobinGrouping(3))
            threshold: Results with confidence strictly below this value are
                clustered

        Raises:
            InvalidThresholdError: If threshold is outside [0, 1].
        """
        if not 0.0 <= threshold <= 1.0:
            raise InvalidThresholdError("confidence_threshold", threshold, 0.0, 1.0)
        self.grouping = grouping or RoundRobinGrouping()
        self.threshold = threshold

    def assign(
        self,
        results: Sequence[ClassificationResult],
        progress: ProgressCallback | None = None,
    ) -> list[ClassificationResult]:
        """
        Return ``results`` with cluster ids set on low-confidence entries.

        Input objects are not modified; clustered entries are replaced by
        copies. Output order matches input order.
        """
        low_indices = [i for i, r in enumerate(results) if r.confidence < self.threshold]
        output = list(results)

        if not low_indices:
            logger.info("No low-confidence classifications to cluster")
            if progress is not None:
                progress(1.0)
            return output

        selected = [results[i] for i in low_indices]
        groups = self.grouping(selected)
        _validate_partition(groups, len(selected))

        done = 0
        for cluster_id, group in enumerate(groups, start=1):
            for j in group:
                target = low_indices[j]
                output[target] = results[target].with_cluster(cluster_id)
                done += 1
                report(progress, done, len(selected))

        logger.info(
            f"Clustered {len(selected):,} low-confidence classifications "
            f"into {len(groups)} clusters"
        )
        return output


def assign_clusters(
    results: Sequence[ClassificationResult],
    grouping: GroupingStrategy | None = None,
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    progress: ProgressCallback | None = None,
) -> list[ClassificationResult]:
    """Cluster low-confidence results; see ClusterAssigner.assign."""
    return ClusterAssigner(grouping=grouping, threshold=threshold).assign(results, progress)


def summarize_clusters(
    records: Sequence[SequenceRecord],
    results: Sequence[ClassificationResult],
) -> list[NovelCluster]:
    """
    Build one NovelCluster per cluster id, ordered by id.

    Members are joined to their records by ``sequence_id``; members without a
    matching record are left out.
    """
    by_id: dict[str, SequenceRecord] = {}
    for record in records:
        by_id.setdefault(record.sequence_id, record)

    members: dict[int, list[tuple[ClassificationResult, SequenceRecord]]] = {}
    for result in results:
        if result.cluster_id is None:
            continue
        record = by_id.get(result.sequence_id)
        if record is not None:
            members.setdefault(result.cluster_id, []).append((result, record))

    clusters = []
    for cluster_id in sorted(members):
        pairs = members[cluster_id]
        locations = list(dict.fromkeys(record.sample_location for _, record in pairs))
        clusters.append(
            NovelCluster(
                cluster_id=cluster_id,
                sequence_count=len(pairs),
                total_reads=sum(record.read_count for _, record in pairs),
                mean_confidence=sum(result.confidence for result, _ in pairs) / len(pairs),
                locations=locations,
                sequence_ids=[result.sequence_id for result, _ in pairs],
            )
        )
    return clusters
