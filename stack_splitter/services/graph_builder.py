"""
Dependency Graph Builder

Scans a resolved template and builds a directed dependency graph by
detecting inter-resource references via Ref, Fn::GetAtt and DependsOn, and
by indexing Condition gating.
"""

from typing import Any

import structlog

from ..constants import (
    CONDITION,
    DEPENDS_ON,
    PARAMETERS,
    PSEUDO_PARAMETERS,
    RESOURCES,
    TEMPLATE_SECTIONS,
    TYPE,
    UNKNOWN_TYPE,
    WALKED_RESOURCE_KEYS,
)
from ..core.exceptions import TemplateSectionError
from ..models.enums import EdgeKind
from ..models.graph import DependencyEdge, DependencyGraph, ResourceNode
from ..utils import as_list, iter_mappings, parse_get_att, parse_ref


def validate_template(template: Any) -> dict[str, dict]:
    """Check the top-level structure of a template.

    Args:
        template: Parsed template document

    Returns:
        The template's resources mapping (empty when absent)

    Raises:
        TemplateSectionError: If the document or one of its sections is not a mapping
    """
    if not isinstance(template, dict):
        raise TemplateSectionError("Template", "Template document must be a mapping")

    for section in TEMPLATE_SECTIONS:
        value = template.get(section)
        if value is not None and not isinstance(value, dict):
            raise TemplateSectionError(
                section,
                f"Template section '{section}' must be a mapping, got {type(value).__name__}",
            )

    resources = template.get(RESOURCES) or {}
    for logical_id, resource in resources.items():
        if not isinstance(resource, dict):
            raise TemplateSectionError(
                f"{RESOURCES}.{logical_id}",
                f"Resource '{logical_id}' must be a mapping, got {type(resource).__name__}",
            )
    return resources


class DependencyGraphBuilder:
    """Builds a DependencyGraph from a resolved template."""

    def __init__(self):
        self.logger = structlog.get_logger()

    def build(self, template: dict[str, Any]) -> DependencyGraph:
        """Build the dependency graph of a template.

        The template is only read, never modified. Dangling references are
        dropped: the graph contains in-template relationships only.

        Args:
            template: A fully resolved template document

        Returns:
            The dependency graph
        """
        resources = validate_template(template)
        resource_ids = set(resources)
        parameter_ids = set(template.get(PARAMETERS) or {})

        nodes: dict[str, ResourceNode] = {}
        condition_usage: dict[str, set[str]] = {}
        raw_edges: list[DependencyEdge] = []

        for logical_id, resource in resources.items():
            resource_type = resource.get(TYPE)
            nodes[logical_id] = ResourceNode(
                logical_id=logical_id,
                resource_type=resource_type if isinstance(resource_type, str) else UNKNOWN_TYPE,
            )

        for logical_id, resource in resources.items():
            node = nodes[logical_id]

            for dependency in as_list(resource.get(DEPENDS_ON)):
                if isinstance(dependency, str) and dependency in resource_ids:
                    raw_edges.append(
                        DependencyEdge(
                            source=logical_id,
                            target=dependency,
                            kind=EdgeKind.EXPLICIT_ORDERING,
                        )
                    )

            condition = resource.get(CONDITION)
            if isinstance(condition, str):
                node.conditions.append(condition)
                condition_usage.setdefault(condition, set()).add(logical_id)

            for key in WALKED_RESOURCE_KEYS:
                if resource.get(key) is not None:
                    raw_edges.extend(
                        self._collect_references(
                            logical_id, resource[key], resource_ids, parameter_ids
                        )
                    )

        edges = self._deduplicate(raw_edges, nodes)

        self.logger.debug(
            "Built dependency graph",
            resources=len(nodes),
            edges=len(edges),
            conditions=len(condition_usage),
        )

        return DependencyGraph(
            nodes=nodes,
            edges=edges,
            resource_ids=resource_ids,
            parameter_ids=parameter_ids,
            condition_usage=condition_usage,
        )

    def _collect_references(
        self,
        source: str,
        value: Any,
        resource_ids: set[str],
        parameter_ids: set[str],
    ) -> list[DependencyEdge]:
        """Deep-walk a value collecting Ref and Fn::GetAtt edges to resources."""
        edges: list[DependencyEdge] = []
        for mapping in iter_mappings(value):
            target = parse_ref(mapping)
            if (
                target is not None
                and target in resource_ids
                and target not in PSEUDO_PARAMETERS
                and target not in parameter_ids
            ):
                edges.append(DependencyEdge(source=source, target=target, kind=EdgeKind.REFERENCE))

            get_att = parse_get_att(mapping)
            if get_att is not None and get_att[0] in resource_ids:
                edges.append(
                    DependencyEdge(
                        source=source,
                        target=get_att[0],
                        kind=EdgeKind.ATTRIBUTE_REFERENCE,
                        attribute=get_att[1],
                    )
                )
        return edges

    def _deduplicate(
        self, raw_edges: list[DependencyEdge], nodes: dict[str, ResourceNode]
    ) -> list[DependencyEdge]:
        """Collapse identical edges and populate both adjacency sets."""
        seen: set[DependencyEdge] = set()
        edges: list[DependencyEdge] = []
        for edge in raw_edges:
            if edge in seen:
                continue
            seen.add(edge)
            edges.append(edge)
            nodes[edge.source].depends_on.add(edge.target)
            nodes[edge.target].depended_on_by.add(edge.source)
        return edges


def build_graph(template: dict[str, Any]) -> DependencyGraph:
    """Build the dependency graph of a resolved template."""
    return DependencyGraphBuilder().build(template)
