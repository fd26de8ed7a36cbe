"""
Clustering Modules

Resource partitioning split into focused modules:
- categories: resource type → semantic category rules
- engine: the semantic, connectivity and hybrid strategies
- optimizer: bounded local-search refinement
- constraints: hard size-cap enforcement

``cluster_resources`` runs all of them in order for one strategy.
"""

from .categories import CATEGORY_RULES, DEFAULT_CATEGORY, categorize_resource
from .constraints import ConstraintEnforcer, enforce_constraints, oversized_components
from .engine import ClusteringEngine, cluster_resources
from .optimizer import ClusterOptimizer, optimize_clusters

__all__ = [
    "CATEGORY_RULES",
    "DEFAULT_CATEGORY",
    "categorize_resource",
    "ClusteringEngine",
    "cluster_resources",
    "ClusterOptimizer",
    "optimize_clusters",
    "ConstraintEnforcer",
    "enforce_constraints",
    "oversized_components",
]
