"""
Stack Splitter Services

Pipeline stages, leaves first:
- graph_builder: template → dependency graph
- connectivity: pairwise connection strength
- components: strongly-connected components
- clustering: partitioning, optimization and size enforcement
- suggestions: strategy ranking and template analysis
- split_generator: child and parent stack templates

The StackSplitterService facade runs them with settings-driven defaults.
"""

from .clustering import cluster_resources, enforce_constraints  # noqa: F401
from .components import detect_strongly_connected_components  # noqa: F401
from .connectivity import analyze_connectivity  # noqa: F401
from .graph_builder import build_graph  # noqa: F401
from .split_generator import generate_split  # noqa: F401
from .splitter import StackSplitterService  # noqa: F401
from .stats import check_thresholds, compute_stats  # noqa: F401
from .suggestions import analyze_and_cluster, build_split_option  # noqa: F401

__all__ = [
    "StackSplitterService",
    "analyze_and_cluster",
    "analyze_connectivity",
    "build_graph",
    "build_split_option",
    "check_thresholds",
    "cluster_resources",
    "compute_stats",
    "detect_strongly_connected_components",
    "enforce_constraints",
    "generate_split",
]
