"""Connectivity, component and cluster models."""

from pydantic import Field

from .base import SplitterModel


class ConnectionStrength(SplitterModel):
    """How strongly two resources should be kept together (higher = stronger)."""

    source: str
    target: str
    edge_count: int = 0
    is_bidirectional: bool = False
    shared_conditions: list[str] = Field(default_factory=list)
    score: float = Field(0.0, ge=0, le=100)


class StrongComponent(SplitterModel):
    """A maximal set of mutually reachable resources."""

    resource_ids: list[str]
    is_cyclic: bool = False


class ClusterScore(SplitterModel):
    """Quality metrics for one cluster."""

    cluster_id: str = ""
    cohesion: float = 0.0  # intra-cluster connectivity, higher is better
    coupling: float = 0.0  # cross-cluster edges per resource, lower is better
    size: int = 0
    size_percent: float = 0.0
    quality: float = 0.0


class ResourceCluster(SplitterModel):
    """A group of resources proposed to live in one stack."""

    id: str
    name: str
    category: str
    resource_ids: list[str] = Field(default_factory=list)
    resource_types: dict[str, int] = Field(default_factory=dict)
    score: ClusterScore = Field(default_factory=ClusterScore)

    @property
    def size(self) -> int:
        return len(self.resource_ids)
