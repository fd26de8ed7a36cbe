"""
Cross-Stack Dependencies and Deployment Order

Derives which dependency edges cross cluster boundaries and orders the
clusters so every stack deploys after the stacks it imports from.
"""

import heapq

from ..models.analysis import ResourceCluster
from ..models.graph import DependencyGraph
from ..models.split import CrossStackDependency


def find_cross_stack_dependencies(
    clusters: list[ResourceCluster], graph: DependencyGraph
) -> list[CrossStackDependency]:
    """Every graph edge whose endpoints sit in different clusters, in edge order."""
    cluster_of = {
        logical_id: cluster.name for cluster in clusters for logical_id in cluster.resource_ids
    }
    dependencies: list[CrossStackDependency] = []
    for edge in graph.edges:
        source_stack = cluster_of.get(edge.source)
        target_stack = cluster_of.get(edge.target)
        if source_stack and target_stack and source_stack != target_stack:
            dependencies.append(
                CrossStackDependency(
                    source_stack=source_stack,
                    target_stack=target_stack,
                    source_resource=edge.source,
                    target_resource=edge.target,
                    edge=edge,
                )
            )
    return dependencies


def stack_dependencies(dependencies: list[CrossStackDependency]) -> dict[str, set[str]]:
    """Stack name → names of the stacks it depends on."""
    depends_on: dict[str, set[str]] = {}
    for dependency in dependencies:
        depends_on.setdefault(dependency.source_stack, set()).add(dependency.target_stack)
    return depends_on


def order_stacks(names: list[str], depends_on: dict[str, set[str]]) -> tuple[list[str], list[str]]:
    """Order stacks so dependencies deploy first (Kahn's algorithm).

    Among stacks that are ready at the same time, the one listed first in
    ``names`` deploys first. Stacks caught in a cycle cannot be ordered;
    they are appended in ``names`` order and also returned separately.

    Args:
        names: Stack names in preferred order
        depends_on: Stack name → names of the stacks it depends on

    Returns:
        Tuple of (deployment order, unorderable stacks)
    """
    position = {name: index for index, name in enumerate(names)}
    in_degree = {name: 0 for name in names}
    dependents: dict[str, set[str]] = {name: set() for name in names}

    for source, targets in depends_on.items():
        if source not in position:
            continue
        for target in targets:
            if target not in position or target == source:
                continue
            dependents[target].add(source)
            in_degree[source] += 1

    ready = [position[name] for name, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order: list[str] = []
    while ready:
        current = names[heapq.heappop(ready)]
        order.append(current)
        for dependent in dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, position[dependent])

    placed = set(order)
    unordered = [name for name in names if name not in placed]
    return order + unordered, unordered


def topological_order(
    names: list[str], dependencies: list[CrossStackDependency]
) -> tuple[list[str], list[str]]:
    """Order stacks by their cross-stack dependencies, breaking ties by name.

    Stacks caught in a cluster-level cycle are appended sorted by name and
    also returned separately.

    Args:
        names: Stack names
        dependencies: Cross-stack dependencies between those stacks

    Returns:
        Tuple of (deployment order, unorderable stacks)
    """
    return order_stacks(sorted(names), stack_dependencies(dependencies))
