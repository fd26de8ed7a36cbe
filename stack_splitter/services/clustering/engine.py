"""
Clustering Engine

Partitions a template's resources into candidate stacks using one of three
strategies:

- semantic: group by resource category
- connectivity: grow groups along strongly connected dependency edges
- hybrid: start semantic, then merge the most connected groups

Every strategy returns a full partition of the resource set, and never
separates the members of a cyclic strongly-connected component.
"""

from collections import deque

import structlog

from ...constants import DEFAULT_MAX_CLUSTER_SIZE, STRONG_CONNECTION_THRESHOLD
from ...models.analysis import ResourceCluster, StrongComponent
from ...models.enums import ClusterStrategy
from ...models.graph import DependencyGraph
from ...models.split import AnalyzeOptions
from ..components import cyclic_components, detect_strongly_connected_components
from ..connectivity import ConnectivityMap, analyze_connectivity, strength_between
from ..scoring import count_types, score_clusters
from .categories import categorize_resource
from .constraints import ConstraintEnforcer
from .optimizer import ClusterOptimizer

MIXED_CATEGORY = "Mixed"


class ClusteringEngine:
    """Builds an initial resource partition for a given strategy."""

    def __init__(self):
        self.logger = structlog.get_logger()

    def cluster(
        self,
        graph: DependencyGraph,
        strategy: ClusterStrategy = ClusterStrategy.HYBRID,
        connectivity: ConnectivityMap | None = None,
        components: list[StrongComponent] | None = None,
        max_cluster_size: int = DEFAULT_MAX_CLUSTER_SIZE,
    ) -> list[ResourceCluster]:
        """Partition resources using the requested strategy.

        Args:
            graph: Dependency graph of the template
            strategy: Clustering strategy
            connectivity: Precomputed connection strengths (computed if omitted)
            components: Precomputed strongly-connected components (computed if omitted)
            max_cluster_size: Size cap respected by hybrid merging

        Returns:
            Scored clusters partitioning every resource exactly once
        """
        if connectivity is None:
            connectivity = analyze_connectivity(graph)
        if components is None:
            components = detect_strongly_connected_components(graph)

        strategy = ClusterStrategy(strategy)
        if strategy == ClusterStrategy.SEMANTIC:
            clusters = self.semantic(graph, components)
        elif strategy == ClusterStrategy.CONNECTIVITY:
            clusters = self.connectivity_based(graph, connectivity, components)
        else:
            clusters = self.hybrid(graph, connectivity, components, max_cluster_size)

        self.logger.debug(
            "Clustered resources",
            strategy=strategy.value,
            clusters=len(clusters),
            resources=graph.resource_count,
        )
        return score_clusters(clusters, graph)

    def semantic(
        self, graph: DependencyGraph, components: list[StrongComponent]
    ) -> list[ResourceCluster]:
        """One cluster per resource category, in first-seen order."""
        members: dict[str, list[str]] = {}
        for logical_id, node in graph.nodes.items():
            members.setdefault(categorize_resource(node.resource_type), []).append(logical_id)

        clusters = [
            self._make_cluster(index, category, category, ids, graph)
            for index, (category, ids) in enumerate(members.items())
        ]
        return self._colocate_components(clusters, components, graph)

    def connectivity_based(
        self,
        graph: DependencyGraph,
        connectivity: ConnectivityMap,
        components: list[StrongComponent],
    ) -> list[ResourceCluster]:
        """Seed clusters from cyclic components, then grow groups breadth-first."""
        assigned: set[str] = set()
        groups: list[tuple[str, str | None, list[str]]] = []

        for number, component in enumerate(cyclic_components(components), start=1):
            groups.append((f"SCC-{number}", MIXED_CATEGORY, list(component.resource_ids)))
            assigned.update(component.resource_ids)

        group_number = 0
        for logical_id in graph.nodes:
            if logical_id in assigned:
                continue

            group = [logical_id]
            assigned.add(logical_id)
            to_explore = deque([logical_id])
            while to_explore:
                current = to_explore.popleft()
                for neighbor in graph.nodes[current].neighbors():
                    if neighbor in assigned:
                        continue
                    strength = strength_between(connectivity, current, neighbor)
                    if strength and strength.score >= STRONG_CONNECTION_THRESHOLD:
                        group.append(neighbor)
                        assigned.add(neighbor)
                        to_explore.append(neighbor)

            group_number += 1
            groups.append((f"ConnectedGroup-{group_number}", None, group))

        return [
            self._make_cluster(
                index, name, category or self._dominant_category(ids, graph), ids, graph
            )
            for index, (name, category, ids) in enumerate(groups)
        ]

    def hybrid(
        self,
        graph: DependencyGraph,
        connectivity: ConnectivityMap,
        components: list[StrongComponent],
        max_cluster_size: int = DEFAULT_MAX_CLUSTER_SIZE,
    ) -> list[ResourceCluster]:
        """Semantic clusters greedily merged by inter-cluster connection strength.

        Each round recomputes the connection totals between clusters and
        merges the strongest permissible pair. A merge is refused when it
        would exceed ``max_cluster_size`` or leave a cyclic component split
        across clusters. Stops when no permissible pair is connected.
        """
        clusters = self.semantic(graph, components)
        cyclic_sets = [set(component.resource_ids) for component in cyclic_components(components)]

        while True:
            totals = self._inter_cluster_totals(clusters, connectivity)
            merge = None
            for (first, second), _total in sorted(
                totals.items(), key=lambda item: (-item[1], item[0])
            ):
                if self._can_merge(clusters[first], clusters[second], cyclic_sets, max_cluster_size):
                    merge = (first, second)
                    break
            if merge is None:
                break

            first, second = merge
            survivor, absorbed = (
                (first, second)
                if clusters[first].size >= clusters[second].size
                else (second, first)
            )
            absorbed_name = clusters[absorbed].name
            clusters[survivor] = self._merge(clusters[survivor], clusters[absorbed], graph)
            self.logger.debug(
                "Merged clusters",
                survivor=clusters[survivor].name,
                absorbed=absorbed_name,
                total=totals[merge],
            )
            del clusters[absorbed]

        return self._renumber(clusters)

    def _inter_cluster_totals(
        self, clusters: list[ResourceCluster], connectivity: ConnectivityMap
    ) -> dict[tuple[int, int], float]:
        """Sum edge-bearing connection scores crossing each pair of clusters."""
        position = {
            logical_id: index
            for index, cluster in enumerate(clusters)
            for logical_id in cluster.resource_ids
        }
        totals: dict[tuple[int, int], float] = {}
        for strength in connectivity.values():
            if strength.edge_count == 0:
                continue
            source_index = position.get(strength.source)
            target_index = position.get(strength.target)
            if source_index is None or target_index is None or source_index == target_index:
                continue
            key = (min(source_index, target_index), max(source_index, target_index))
            totals[key] = totals.get(key, 0.0) + strength.score
        return {key: total for key, total in totals.items() if total > 0}

    def _can_merge(
        self,
        first: ResourceCluster,
        second: ResourceCluster,
        cyclic_sets: list[set[str]],
        max_cluster_size: int,
    ) -> bool:
        if first.size + second.size > max_cluster_size:
            return False
        first_ids = set(first.resource_ids)
        second_ids = set(second.resource_ids)
        for component in cyclic_sets:
            in_first = len(component & first_ids)
            in_second = len(component & second_ids)
            if in_first and in_second and in_first + in_second < len(component):
                return False
        return True

    def _merge(
        self, survivor: ResourceCluster, absorbed: ResourceCluster, graph: DependencyGraph
    ) -> ResourceCluster:
        resource_ids = sorted(survivor.resource_ids + absorbed.resource_ids)
        return survivor.model_copy(
            update={
                "resource_ids": resource_ids,
                "resource_types": count_types(resource_ids, graph),
            }
        )

    def _colocate_components(
        self,
        clusters: list[ResourceCluster],
        components: list[StrongComponent],
        graph: DependencyGraph,
    ) -> list[ResourceCluster]:
        """Move every cyclic component into the cluster holding most of its members."""
        members = [list(cluster.resource_ids) for cluster in clusters]
        for component in cyclic_components(components):
            component_ids = set(component.resource_ids)
            counts = [len(component_ids.intersection(ids)) for ids in members]
            if sum(1 for count in counts if count) <= 1:
                continue
            home = counts.index(max(counts))
            for index, ids in enumerate(members):
                if index == home:
                    continue
                members[index] = [logical_id for logical_id in ids if logical_id not in component_ids]
            members[home] = sorted(set(members[home]) | component_ids)

        rebuilt = [
            cluster.model_copy(
                update={
                    "resource_ids": sorted(ids),
                    "resource_types": count_types(ids, graph),
                }
            )
            for cluster, ids in zip(clusters, members, strict=True)
            if ids
        ]
        return self._renumber(rebuilt)

    def _renumber(self, clusters: list[ResourceCluster]) -> list[ResourceCluster]:
        return [
            cluster.model_copy(update={"id": f"cluster-{index}"})
            for index, cluster in enumerate(clusters)
        ]

    def _make_cluster(
        self,
        index: int,
        name: str,
        category: str,
        resource_ids: list[str],
        graph: DependencyGraph,
    ) -> ResourceCluster:
        return ResourceCluster(
            id=f"cluster-{index}",
            name=name,
            category=category,
            resource_ids=sorted(resource_ids),
            resource_types=count_types(resource_ids, graph),
        )

    def _dominant_category(self, resource_ids: list[str], graph: DependencyGraph) -> str:
        categories = {categorize_resource(graph.resource_type(logical_id)) for logical_id in resource_ids}
        return categories.pop() if len(categories) == 1 else MIXED_CATEGORY


def cluster_resources(
    graph: DependencyGraph,
    options: AnalyzeOptions | None = None,
    connectivity: ConnectivityMap | None = None,
    components: list[StrongComponent] | None = None,
) -> list[ResourceCluster]:
    """Cluster, optimize, enforce size limits and score, for one strategy.

    Args:
        graph: Dependency graph of the template
        options: Strategy and size options (defaults when omitted)
        connectivity: Precomputed connection strengths
        components: Precomputed strongly-connected components

    Returns:
        Final scored clusters ready for stack generation
    """
    options = options or AnalyzeOptions()
    if connectivity is None:
        connectivity = analyze_connectivity(graph)
    if components is None:
        components = detect_strongly_connected_components(graph)

    clusters = ClusteringEngine().cluster(
        graph,
        options.strategy,
        connectivity=connectivity,
        components=components,
        max_cluster_size=options.max_cluster_size,
    )
    clusters = ClusterOptimizer().optimize(clusters, graph, connectivity, components)
    clusters = ConstraintEnforcer().enforce(clusters, graph, options.max_cluster_size, components)
    return score_clusters(clusters, graph)
