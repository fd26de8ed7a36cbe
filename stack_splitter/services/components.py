"""
Cycle Detector

Finds strongly-connected components with Tarjan's algorithm. Members of a
cyclic component must always be deployed in the same stack, otherwise no
deployment order exists.
"""

from ..models.analysis import StrongComponent
from ..models.graph import DependencyGraph


def detect_strongly_connected_components(graph: DependencyGraph) -> list[StrongComponent]:
    """Partition the graph's resources into strongly-connected components.

    Iterative Tarjan: an explicit work stack of ``(node, successor iterator)``
    frames replaces recursion so long dependency chains cannot exhaust the
    interpreter stack. Nodes and successors are visited in sorted order.

    Args:
        graph: Dependency graph (``depends_on`` adjacency is followed)

    Returns:
        Components in completion order; every resource appears exactly once
    """
    index_of: dict[str, int] = {}
    low_link: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[StrongComponent] = []
    next_index = 0

    def successors(logical_id: str) -> list[str]:
        node = graph.nodes.get(logical_id)
        return sorted(node.depends_on) if node else []

    for root in sorted(graph.resource_ids):
        if root in index_of:
            continue

        index_of[root] = low_link[root] = next_index
        next_index += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(successors(root)))]

        while work:
            current, pending = work[-1]
            descended = False
            for successor in pending:
                if successor not in index_of:
                    index_of[successor] = low_link[successor] = next_index
                    next_index += 1
                    stack.append(successor)
                    on_stack.add(successor)
                    work.append((successor, iter(successors(successor))))
                    descended = True
                    break
                if successor in on_stack:
                    low_link[current] = min(low_link[current], index_of[successor])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[current])

            if low_link[current] == index_of[current]:
                members: list[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    members.append(member)
                    if member == current:
                        break
                components.append(
                    StrongComponent(resource_ids=sorted(members), is_cyclic=len(members) > 1)
                )

    return components


def cyclic_components(components: list[StrongComponent]) -> list[StrongComponent]:
    """Only the components that form dependency cycles."""
    return [component for component in components if component.is_cyclic]


def component_index(components: list[StrongComponent]) -> dict[str, StrongComponent]:
    """Map each resource to the cyclic component containing it."""
    index: dict[str, StrongComponent] = {}
    for component in cyclic_components(components):
        for logical_id in component.resource_ids:
            index[logical_id] = component
    return index
