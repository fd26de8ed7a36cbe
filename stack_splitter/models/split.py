"""Split option, suggestion and generated stack models."""

from typing import Any

from pydantic import Field

from ..constants import (
    DEFAULT_MAX_CLUSTER_SIZE,
    DEFAULT_MIN_QUALITY,
    DEFAULT_STACK_PREFIX,
)
from .analysis import ResourceCluster
from .base import SplitterModel
from .enums import ClusterStrategy, TemplateFormat
from .graph import DependencyEdge


class AnalyzeOptions(SplitterModel):
    """Options for clustering and ranking."""

    strategy: ClusterStrategy = ClusterStrategy.HYBRID
    max_cluster_size: int = Field(DEFAULT_MAX_CLUSTER_SIZE, ge=1)
    min_quality: float = Field(DEFAULT_MIN_QUALITY, ge=0.0, le=1.0)


class SplitOptions(SplitterModel):
    """Options for generating split stack templates."""

    generate_parent: bool = True
    stack_name_prefix: str = Field(DEFAULT_STACK_PREFIX, min_length=1)
    template_format: TemplateFormat = "json"


class CrossStackDependency(SplitterModel):
    """A dependency edge whose endpoints live in two different stacks."""

    source_stack: str
    target_stack: str
    source_resource: str
    target_resource: str
    edge: DependencyEdge


class SplitOption(SplitterModel):
    """One possible way to split the template."""

    strategy: str
    strategy_kind: ClusterStrategy | None = None
    clusters: list[ResourceCluster] = Field(default_factory=list)
    cross_stack_dependencies: list[CrossStackDependency] = Field(default_factory=list)
    deployment_order: list[str] = Field(default_factory=list)
    unordered_stacks: list[str] = Field(default_factory=list)
    overall_score: float = 0.0
    estimated_deployment_minutes: int = 0


class SplitAnalysis(SplitterModel):
    """Why (and how urgently) the template should be split."""

    exceeds_limits: bool = False
    resource_overage: int = 0
    output_overage: int = 0
    size_overage: int = 0
    anti_patterns: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    low_quality_clusters: list[str] = Field(default_factory=list)


class SplitSuggestion(SplitterModel):
    """A recommended split plus ranked alternatives."""

    recommended: SplitOption
    alternatives: list[SplitOption] = Field(default_factory=list)
    analysis: SplitAnalysis = Field(default_factory=SplitAnalysis)


class GeneratedStack(SplitterModel):
    """A materialized stack template."""

    name: str
    template: dict[str, Any]
    resource_ids: list[str] = Field(default_factory=list)


class SplitResult(SplitterModel):
    """Child stacks, optional parent orchestrator and the suggestion used."""

    child_stacks: list[GeneratedStack] = Field(default_factory=list)
    parent_stack: GeneratedStack | None = None
    suggestion: SplitSuggestion

    @property
    def stacks(self) -> list[GeneratedStack]:
        """All generated stacks, parent last."""
        if self.parent_stack is None:
            return list(self.child_stacks)
        return [*self.child_stacks, self.parent_stack]
