"""Dependency graph data models."""

from collections.abc import Iterator
from itertools import combinations

from pydantic import ConfigDict, Field

from .base import SplitterModel
from .enums import EdgeKind


class DependencyEdge(SplitterModel):
    """A directed dependency: ``source`` needs ``target``."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    kind: EdgeKind
    attribute: str | None = None  # only for attribute references

    def describe(self) -> str:
        """Short label such as ``Fn::GetAtt:Arn``."""
        if self.attribute:
            return f"{self.kind.value}:{self.attribute}"
        return self.kind.value


class ResourceNode(SplitterModel):
    """A single template resource in the dependency graph."""

    logical_id: str
    resource_type: str
    conditions: list[str] = Field(default_factory=list)
    depends_on: set[str] = Field(default_factory=set)
    depended_on_by: set[str] = Field(default_factory=set)

    def neighbors(self) -> list[str]:
        """Resources connected to this one in either direction, sorted."""
        return sorted(self.depends_on | self.depended_on_by)


class DependencyGraph(SplitterModel):
    """The complete dependency graph for one template."""

    nodes: dict[str, ResourceNode] = Field(default_factory=dict)
    edges: list[DependencyEdge] = Field(default_factory=list)
    resource_ids: set[str] = Field(default_factory=set)
    parameter_ids: set[str] = Field(default_factory=set)
    condition_usage: dict[str, set[str]] = Field(default_factory=dict)

    @property
    def resource_count(self) -> int:
        return len(self.resource_ids)

    def edge_density(self) -> float:
        """Average number of edges per resource."""
        return len(self.edges) / max(1, len(self.resource_ids))

    def resource_type(self, logical_id: str) -> str:
        node = self.nodes.get(logical_id)
        return node.resource_type if node else "Unknown"

    def shared_conditions(self, first: str, second: str) -> list[str]:
        """Conditions gating both resources, sorted."""
        first_node = self.nodes.get(first)
        second_node = self.nodes.get(second)
        if not first_node or not second_node:
            return []
        return sorted(set(first_node.conditions) & set(second_node.conditions))

    def condition_share_edges(self) -> Iterator[DependencyEdge]:
        """Yield one virtual edge per unordered resource pair sharing a condition.

        These are never stored in ``edges``: sharing a condition is not an
        ordering constraint, only a reason to keep resources together.
        """
        seen: set[tuple[str, str]] = set()
        for condition in sorted(self.condition_usage):
            for first, second in combinations(sorted(self.condition_usage[condition]), 2):
                if (first, second) in seen:
                    continue
                seen.add((first, second))
                yield DependencyEdge(source=first, target=second, kind=EdgeKind.CONDITION_SHARE)
