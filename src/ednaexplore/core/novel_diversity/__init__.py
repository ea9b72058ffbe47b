"""
Novel diversity analysis module.

Provides tools for clustering low-confidence classifications into
candidate novel taxa and summarizing the resulting clusters.
"""

from ednaexplore.core.novel_diversity.clustering import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    ClusterAssigner,
    GroupingStrategy,
    LineageGrouping,
    RoundRobinGrouping,
    assign_clusters,
    summarize_clusters,
)
from ednaexplore.core.novel_diversity.models import (
    NovelCluster,
    NovelDiversitySummary,
)

__all__ = [
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "ClusterAssigner",
    "GroupingStrategy",
    "LineageGrouping",
    "NovelCluster",
    "NovelDiversitySummary",
    "RoundRobinGrouping",
    "assign_clusters",
    "summarize_clusters",
]
