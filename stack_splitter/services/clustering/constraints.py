"""
Constraint Enforcer

Splits clusters that exceed the maximum stack size. Cyclic components are
treated as atomic units so a split never separates their members.
"""

import structlog

from ...models.analysis import ResourceCluster, StrongComponent
from ...models.graph import DependencyGraph
from ..components import component_index, detect_strongly_connected_components
from ..scoring import count_types, score_clusters


class ConstraintEnforcer:
    """Enforces the hard size cap on a partition."""

    def __init__(self):
        self.logger = structlog.get_logger()

    def enforce(
        self,
        clusters: list[ResourceCluster],
        graph: DependencyGraph,
        max_size: int,
        components: list[StrongComponent] | None = None,
    ) -> list[ResourceCluster]:
        """Return a partition in which no cluster exceeds ``max_size``.

        A cyclic component larger than ``max_size`` is kept whole in its own
        sub-cluster and logged at warning level.

        Args:
            clusters: Partition to check (not modified)
            graph: Dependency graph
            max_size: Maximum members per cluster
            components: Strongly-connected components (computed if omitted)

        Returns:
            Scored clusters; clusters within the cap pass through unchanged
        """
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        if components is None:
            components = detect_strongly_connected_components(graph)
        cyclic_by_resource = component_index(components)

        result: list[ResourceCluster] = []
        for cluster in clusters:
            if cluster.size <= max_size:
                result.append(cluster)
                continue

            groups = self._split(cluster, graph, max_size, cyclic_by_resource)
            self.logger.info(
                "Split oversized cluster",
                cluster=cluster.name,
                size=cluster.size,
                max_size=max_size,
                parts=len(groups),
            )
            for number, ids in enumerate(groups, start=1):
                result.append(
                    cluster.model_copy(
                        update={
                            "id": f"{cluster.id}-split-{number}",
                            "name": f"{cluster.name}-{number}",
                            "resource_ids": sorted(ids),
                            "resource_types": count_types(ids, graph),
                        }
                    )
                )

        return score_clusters(result, graph)

    def _split(
        self,
        cluster: ResourceCluster,
        graph: DependencyGraph,
        max_size: int,
        cyclic_by_resource: dict[str, StrongComponent],
    ) -> list[list[str]]:
        members = set(cluster.resource_ids)
        units = self._units(cluster, cyclic_by_resource)
        unit_of = {logical_id: unit for unit in units for logical_id in unit}

        for unit in units:
            if len(unit) > max_size:
                self.logger.warning(
                    "Cyclic component exceeds maximum cluster size, keeping it whole",
                    cluster=cluster.name,
                    component_size=len(unit),
                    max_size=max_size,
                    resources=list(unit),
                )

        assigned: set[tuple[str, ...]] = set()
        grown: list[list[str]] = []
        for seed in units:
            if seed in assigned:
                continue
            assigned.add(seed)
            group = list(seed)
            to_visit = list(reversed(seed))
            while to_visit:
                current = to_visit.pop()
                for neighbor in graph.nodes[current].neighbors():
                    if neighbor not in members:
                        continue
                    unit = unit_of[neighbor]
                    if unit in assigned or len(group) + len(unit) > max_size:
                        continue
                    assigned.add(unit)
                    group.extend(unit)
                    to_visit.extend(reversed(unit))
            grown.append(group)

        return self._pack(grown, max_size)

    def _units(
        self, cluster: ResourceCluster, cyclic_by_resource: dict[str, StrongComponent]
    ) -> list[tuple[str, ...]]:
        """Atomic placement units in member order: cyclic components or singletons."""
        members = set(cluster.resource_ids)
        units: list[tuple[str, ...]] = []
        seen: set[str] = set()
        for logical_id in sorted(members):
            if logical_id in seen:
                continue
            component = cyclic_by_resource.get(logical_id)
            if component is None:
                unit: tuple[str, ...] = (logical_id,)
            else:
                unit = tuple(sorted(members.intersection(component.resource_ids)))
            seen.update(unit)
            units.append(unit)
        return units

    def _pack(self, groups: list[list[str]], max_size: int) -> list[list[str]]:
        """First-fit-decreasing consolidation of grown groups."""
        bins: list[list[str]] = []
        for group in sorted(groups, key=len, reverse=True):
            for target in bins:
                if len(target) + len(group) <= max_size:
                    target.extend(group)
                    break
            else:
                bins.append(list(group))
        return bins


def enforce_constraints(
    clusters: list[ResourceCluster],
    graph: DependencyGraph,
    max_size: int,
    components: list[StrongComponent] | None = None,
) -> list[ResourceCluster]:
    """Split clusters larger than ``max_size`` without breaking cyclic components."""
    return ConstraintEnforcer().enforce(clusters, graph, max_size, components)


def oversized_components(
    components: list[StrongComponent], max_size: int
) -> list[StrongComponent]:
    """Cyclic components that cannot fit in a cluster of ``max_size``."""
    return [
        component
        for component in components
        if component.is_cyclic and len(component.resource_ids) > max_size
    ]
