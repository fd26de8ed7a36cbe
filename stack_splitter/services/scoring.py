"""
Cluster Quality Scoring

Cohesion vs. coupling model shared by the clustering engine, the optimizer
and the suggestion ranker.
"""

from collections.abc import Iterable

from ..constants import COUPLING_PENALTY, EXPECTED_INTERNAL_RATIO, RESOURCE_LIMIT
from ..models.analysis import ClusterScore, ResourceCluster
from ..models.graph import DependencyGraph


def membership(clusters: Iterable[ResourceCluster]) -> dict[str, str]:
    """Map each resource to the ID of the cluster holding it."""
    return {
        logical_id: cluster.id for cluster in clusters for logical_id in cluster.resource_ids
    }


def score_cluster(
    cluster_id: str,
    resource_ids: list[str],
    graph: DependencyGraph,
    assignment: dict[str, str],
) -> ClusterScore:
    """Score one cluster's quality from its internal and external edges.

    Cohesion is normalized against the edge count a cluster of this size
    would be expected to keep internal given the graph's average density,
    not against a complete graph (infrastructure graphs are sparse).

    Args:
        cluster_id: ID of the cluster being scored
        resource_ids: Members of the cluster
        graph: Dependency graph
        assignment: Resource → cluster ID for the whole partition, with the
            cluster's own members mapped to ``cluster_id``

    Returns:
        ClusterScore with cohesion, coupling, size and quality
    """
    internal_edges = 0
    external_edges = 0
    for edge in graph.edges:
        source_inside = assignment.get(edge.source) == cluster_id
        target_inside = assignment.get(edge.target) == cluster_id
        if source_inside and target_inside:
            internal_edges += 1
        elif source_inside or target_inside:
            external_edges += 1

    return score_from_counts(
        cluster_id, len(resource_ids), internal_edges, external_edges, graph.edge_density()
    )


def score_from_counts(
    cluster_id: str, size: int, internal_edges: int, external_edges: int, edge_density: float
) -> ClusterScore:
    """Quality model over precomputed internal/external edge counts."""
    expected_internal = size * edge_density * EXPECTED_INTERNAL_RATIO
    cohesion = (
        min(1.0, internal_edges / expected_internal)
        if size > 1 and expected_internal > 0
        else 0.0
    )
    coupling = external_edges / max(1, size)
    quality = max(0.0, cohesion - coupling * COUPLING_PENALTY)

    return ClusterScore(
        cluster_id=cluster_id,
        cohesion=cohesion,
        coupling=coupling,
        size=size,
        size_percent=size / RESOURCE_LIMIT * 100,
        quality=quality,
    )


def score_clusters(clusters: list[ResourceCluster], graph: DependencyGraph) -> list[ResourceCluster]:
    """Return copies of the clusters with fresh scores for the given partition."""
    assignment = membership(clusters)
    return [
        cluster.model_copy(
            update={"score": score_cluster(cluster.id, cluster.resource_ids, graph, assignment)}
        )
        for cluster in clusters
    ]


def total_quality(clusters: Iterable[ResourceCluster]) -> float:
    """Sum of cluster quality scores."""
    return sum(cluster.score.quality for cluster in clusters)


def count_types(resource_ids: Iterable[str], graph: DependencyGraph) -> dict[str, int]:
    """Per-resource-type histogram for a set of resources."""
    types: dict[str, int] = {}
    for logical_id in resource_ids:
        resource_type = graph.resource_type(logical_id)
        types[resource_type] = types.get(resource_type, 0) + 1
    return types
