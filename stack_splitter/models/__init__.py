"""Data models for stack splitter."""

from .analysis import (  # noqa: F401
    ClusterScore,
    ConnectionStrength,
    ResourceCluster,
    StrongComponent,
)
from .enums import ClusterStrategy, EdgeKind, TemplateFormat  # noqa: F401
from .graph import DependencyEdge, DependencyGraph, ResourceNode  # noqa: F401
from .split import (  # noqa: F401
    AnalyzeOptions,
    CrossStackDependency,
    GeneratedStack,
    SplitAnalysis,
    SplitOption,
    SplitOptions,
    SplitResult,
    SplitSuggestion,
)
from .stats import StatsWarning, TemplateStats  # noqa: F401

__all__ = [
    # Enums
    "ClusterStrategy",
    "EdgeKind",
    "TemplateFormat",
    # Graph models
    "DependencyEdge",
    "DependencyGraph",
    "ResourceNode",
    # Analysis models
    "ClusterScore",
    "ConnectionStrength",
    "ResourceCluster",
    "StrongComponent",
    # Split models
    "AnalyzeOptions",
    "CrossStackDependency",
    "GeneratedStack",
    "SplitAnalysis",
    "SplitOption",
    "SplitOptions",
    "SplitResult",
    "SplitSuggestion",
    # Stats models
    "StatsWarning",
    "TemplateStats",
]
