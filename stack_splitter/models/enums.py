"""Enum definitions for stack splitter models."""

from enum import Enum
from typing import Literal

# Type aliases
TemplateFormat = Literal["json", "yaml"]


class EdgeKind(str, Enum):
    """How a dependency between two resources was discovered."""

    REFERENCE = "Ref"
    ATTRIBUTE_REFERENCE = "Fn::GetAtt"
    EXPLICIT_ORDERING = "DependsOn"
    CONDITION_SHARE = "Condition"


class ClusterStrategy(str, Enum):
    """Strategies for partitioning resources into stacks."""

    SEMANTIC = "semantic"
    CONNECTIVITY = "connectivity"
    HYBRID = "hybrid"
