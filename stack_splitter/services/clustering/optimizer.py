"""
Cluster Optimizer

Bounded local search that moves single resources between adjacent clusters
when doing so raises the combined quality of the two clusters involved.
"""

from dataclasses import dataclass

import structlog

from ...constants import MAX_OPTIMIZATION_ITERATIONS, MIN_IMPROVEMENT_THRESHOLD
from ...models.analysis import ClusterScore, ResourceCluster, StrongComponent
from ...models.graph import DependencyGraph
from ..components import component_index, detect_strongly_connected_components
from ..connectivity import ConnectivityMap, analyze_connectivity, strength_between
from ..scoring import count_types, score_clusters, score_from_counts


@dataclass
class _Move:
    resource_id: str
    source: int
    target: int
    improvement: float
    source_counts: tuple[int, int]
    target_counts: tuple[int, int]


class ClusterOptimizer:
    """Refines cluster boundaries without changing the number of clusters.

    A move is only accepted when the quality of the source and target
    clusters together improves by more than ``min_improvement``. Moves never
    empty a cluster and never move a member of a cyclic component.
    """

    def __init__(
        self,
        max_iterations: int = MAX_OPTIMIZATION_ITERATIONS,
        min_improvement: float = MIN_IMPROVEMENT_THRESHOLD,
    ):
        self.max_iterations = max_iterations
        self.min_improvement = min_improvement
        self.logger = structlog.get_logger()

    def optimize(
        self,
        clusters: list[ResourceCluster],
        graph: DependencyGraph,
        connectivity: ConnectivityMap | None = None,
        components: list[StrongComponent] | None = None,
    ) -> list[ResourceCluster]:
        """Return an improved copy of the partition.

        Args:
            clusters: Current partition (not modified)
            graph: Dependency graph
            connectivity: Connection strengths, used to try the most strongly
                connected target cluster first
            components: Strongly-connected components (computed if omitted)

        Returns:
            Scored clusters, same count and IDs as the input
        """
        if not clusters:
            return []
        if connectivity is None:
            connectivity = analyze_connectivity(graph)
        if components is None:
            components = detect_strongly_connected_components(graph)

        locked = set(component_index(components))
        members = [set(cluster.resource_ids) for cluster in clusters]
        owner = {
            logical_id: index for index, ids in enumerate(members) for logical_id in ids
        }
        incident = self._incident_endpoints(graph)
        density = graph.edge_density()

        counts = self._edge_counts(graph, owner, len(clusters))
        scores = [
            score_from_counts(cluster.id, len(members[index]), *counts[index], density)
            for index, cluster in enumerate(clusters)
        ]

        iterations = 0
        moves = 0
        moved = True
        while moved and iterations < self.max_iterations:
            moved = False
            iterations += 1

            for index in range(len(clusters)):
                for resource_id in sorted(members[index]):
                    if resource_id in locked or owner[resource_id] != index:
                        continue
                    if len(members[index]) <= 1:
                        break

                    move = self._best_move(
                        resource_id, index, owner, counts, scores, members,
                        incident, connectivity, graph, density,
                    )
                    if move is None or move.improvement <= self.min_improvement:
                        continue

                    members[move.source].discard(resource_id)
                    members[move.target].add(resource_id)
                    owner[resource_id] = move.target
                    counts[move.source] = move.source_counts
                    counts[move.target] = move.target_counts
                    for position in (move.source, move.target):
                        scores[position] = score_from_counts(
                            clusters[position].id, len(members[position]), *counts[position], density
                        )
                    moves += 1
                    moved = True

        self.logger.debug(
            "Optimized clusters",
            iterations=iterations,
            moves=moves,
            converged=not moved,
        )

        optimized = [
            cluster.model_copy(
                update={
                    "resource_ids": sorted(members[index]),
                    "resource_types": count_types(members[index], graph),
                }
            )
            for index, cluster in enumerate(clusters)
        ]
        return score_clusters(optimized, graph)

    def _best_move(
        self,
        resource_id: str,
        source: int,
        owner: dict[str, int],
        counts: list[tuple[int, int]],
        scores: list[ClusterScore],
        members: list[set[str]],
        incident: dict[str, list[str]],
        connectivity: ConnectivityMap,
        graph: DependencyGraph,
        density: float,
    ) -> _Move | None:
        """Find the adjacent cluster whose move gives the largest improvement."""
        pull: dict[int, float] = {}
        for neighbor in graph.nodes[resource_id].neighbors():
            target = owner.get(neighbor)
            if target is None or target == source:
                continue
            strength = strength_between(connectivity, resource_id, neighbor)
            pull[target] = pull.get(target, 0.0) + (strength.score if strength else 0.0)

        best: _Move | None = None
        for target in sorted(pull, key=lambda position: (-pull[position], position)):
            source_counts, target_counts = self._simulate(
                resource_id, source, target, owner, counts, incident
            )
            new_source = score_from_counts(
                "", len(members[source]) - 1, *source_counts, density
            )
            new_target = score_from_counts(
                "", len(members[target]) + 1, *target_counts, density
            )
            improvement = (
                new_source.quality
                + new_target.quality
                - scores[source].quality
                - scores[target].quality
            )
            if improvement > 0 and (best is None or improvement > best.improvement):
                best = _Move(resource_id, source, target, improvement, source_counts, target_counts)
        return best

    def _simulate(
        self,
        resource_id: str,
        source: int,
        target: int,
        owner: dict[str, int],
        counts: list[tuple[int, int]],
        incident: dict[str, list[str]],
    ) -> tuple[tuple[int, int], tuple[int, int]]:
        """(internal, external) counts of source and target after moving one resource.

        Clusters other than the two involved keep their counts: an edge
        touching a third cluster is external to it before and after.
        """
        source_internal, source_external = counts[source]
        target_internal, target_external = counts[target]
        for other in incident.get(resource_id, []):
            if other == resource_id:
                source_internal -= 1
                target_internal += 1
                continue
            other_owner = owner[other]
            if other_owner == source:
                source_internal -= 1
                source_external += 1
                target_external += 1
            elif other_owner == target:
                source_external -= 1
                target_external -= 1
                target_internal += 1
            else:
                source_external -= 1
                target_external += 1
        return (source_internal, source_external), (target_internal, target_external)

    def _incident_endpoints(self, graph: DependencyGraph) -> dict[str, list[str]]:
        """For every resource, the far endpoint of each edge touching it."""
        incident: dict[str, list[str]] = {}
        for edge in graph.edges:
            incident.setdefault(edge.source, []).append(edge.target)
            if edge.target != edge.source:
                incident.setdefault(edge.target, []).append(edge.source)
        return incident

    def _edge_counts(
        self, graph: DependencyGraph, owner: dict[str, int], cluster_count: int
    ) -> list[tuple[int, int]]:
        internal = [0] * cluster_count
        external = [0] * cluster_count
        for edge in graph.edges:
            source_owner = owner.get(edge.source)
            target_owner = owner.get(edge.target)
            if source_owner is not None and source_owner == target_owner:
                internal[source_owner] += 1
                continue
            if source_owner is not None:
                external[source_owner] += 1
            if target_owner is not None:
                external[target_owner] += 1
        return list(zip(internal, external, strict=True))


def optimize_clusters(
    clusters: list[ResourceCluster],
    graph: DependencyGraph,
    connectivity: ConnectivityMap | None = None,
) -> list[ResourceCluster]:
    """Run the local-search optimizer with default bounds."""
    return ClusterOptimizer().optimize(clusters, graph, connectivity)
