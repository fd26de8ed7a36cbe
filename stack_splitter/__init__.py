"""Dependency-graph analysis and automatic stack splitting for infrastructure templates."""

from .core.exceptions import (  # noqa: F401
    ConfigurationError,
    StackSplitterError,
    TemplateParseError,
    TemplateSectionError,
)
from .services import (  # noqa: F401
    StackSplitterService,
    analyze_and_cluster,
    build_graph,
    check_thresholds,
    cluster_resources,
    compute_stats,
    enforce_constraints,
    generate_split,
)

__version__ = "0.1.0"

__all__ = [
    "StackSplitterService",
    "analyze_and_cluster",
    "build_graph",
    "check_thresholds",
    "cluster_resources",
    "compute_stats",
    "enforce_constraints",
    "generate_split",
    "ConfigurationError",
    "StackSplitterError",
    "TemplateParseError",
    "TemplateSectionError",
]
