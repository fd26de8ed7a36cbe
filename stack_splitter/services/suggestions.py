"""
Split Suggestion Ranker

Runs every clustering strategy end to end, scores the resulting split
options and explains why (and how urgently) the template should be split.
"""

import math
from typing import Any

import structlog

from ..constants import (
    CROSS_STACK_PENALTY,
    CYCLIC_DENSITY_THRESHOLD,
    EST_DEPLOY_MINUTES_PER_DEPENDENCY,
    EST_DEPLOY_MINUTES_PER_STACK,
    HIGH_COUPLING_AVG_DEPENDENCIES,
    MONOLITH_RESOURCE_COUNT,
    OUTPUT_LIMIT,
    RESOURCE_LIMIT,
    REUSABLE_MODULE_MIN_COUNT,
    TEMPLATE_BYTES_LIMIT,
)
from ..models.analysis import ResourceCluster, StrongComponent
from ..models.enums import ClusterStrategy
from ..models.graph import DependencyGraph
from ..models.split import AnalyzeOptions, SplitAnalysis, SplitOption, SplitSuggestion
from .clustering import categorize_resource, cluster_resources, oversized_components
from .components import cyclic_components, detect_strongly_connected_components
from .connectivity import analyze_connectivity
from .ordering import find_cross_stack_dependencies, topological_order
from .scoring import total_quality
from .stats import compute_stats

STRATEGY_LABELS = {
    ClusterStrategy.HYBRID: "Hybrid",
    ClusterStrategy.SEMANTIC: "Semantic Grouping",
    ClusterStrategy.CONNECTIVITY: "Connectivity-Based",
}

# Tie-break order after the caller's preferred strategy
STRATEGY_PREFERENCE = (
    ClusterStrategy.HYBRID,
    ClusterStrategy.SEMANTIC,
    ClusterStrategy.CONNECTIVITY,
)


def build_split_option(
    strategy: str,
    clusters: list[ResourceCluster],
    graph: DependencyGraph,
    strategy_kind: ClusterStrategy | None = None,
) -> SplitOption:
    """Wrap a final partition as a scored split option.

    Args:
        strategy: Human-readable label for the option
        clusters: Final clusters (scored)
        graph: Dependency graph the clusters partition
        strategy_kind: Strategy that produced the clusters, if any

    Returns:
        SplitOption with cross-stack dependencies, deployment order, overall
        score and estimated deployment time
    """
    dependencies = find_cross_stack_dependencies(clusters, graph)
    order, unordered = topological_order([cluster.name for cluster in clusters], dependencies)

    mean_quality = total_quality(clusters) / max(1, len(clusters))
    cross_stack_ratio = len(dependencies) / max(1, len(graph.edges))
    overall_score = max(0.0, mean_quality - cross_stack_ratio * CROSS_STACK_PENALTY)

    minutes = math.ceil(
        len(clusters) * EST_DEPLOY_MINUTES_PER_STACK
        + len(dependencies) * EST_DEPLOY_MINUTES_PER_DEPENDENCY
    )

    return SplitOption(
        strategy=strategy,
        strategy_kind=strategy_kind,
        clusters=clusters,
        cross_stack_dependencies=dependencies,
        deployment_order=order,
        unordered_stacks=unordered,
        overall_score=overall_score,
        estimated_deployment_minutes=minutes,
    )


class SuggestionRanker:
    """Ranks split strategies and analyzes the template being split."""

    def __init__(self):
        self.logger = structlog.get_logger()

    def suggest(
        self,
        template: dict[str, Any],
        graph: DependencyGraph,
        options: AnalyzeOptions | None = None,
    ) -> SplitSuggestion:
        """Run all strategies and recommend the best split.

        Args:
            template: Template document the graph was built from
            graph: Dependency graph of the template
            options: Clustering options; ``strategy`` wins ties

        Returns:
            SplitSuggestion with the recommended option, ranked alternatives
            and the template analysis
        """
        options = options or AnalyzeOptions()
        connectivity = analyze_connectivity(graph)
        components = detect_strongly_connected_components(graph)

        split_options = []
        for kind in STRATEGY_PREFERENCE:
            clusters = cluster_resources(
                graph,
                options.model_copy(update={"strategy": kind}),
                connectivity=connectivity,
                components=components,
            )
            split_options.append(build_split_option(STRATEGY_LABELS[kind], clusters, graph, kind))

        ranked = self.rank(split_options, options.strategy)
        recommended = ranked[0]
        analysis = self.analyze(template, graph, components, recommended, options)

        self.logger.info(
            "Ranked split options",
            recommended=recommended.strategy,
            score=round(recommended.overall_score, 4),
            stacks=len(recommended.clusters),
            cross_stack_dependencies=len(recommended.cross_stack_dependencies),
            exceeds_limits=analysis.exceeds_limits,
        )
        return SplitSuggestion(recommended=recommended, alternatives=ranked[1:], analysis=analysis)

    def rank(
        self, split_options: list[SplitOption], preferred: ClusterStrategy | None = None
    ) -> list[SplitOption]:
        """Sort options by overall score, best first."""
        preference = list(STRATEGY_PREFERENCE)
        if preferred is not None:
            preference.remove(ClusterStrategy(preferred))
            preference.insert(0, ClusterStrategy(preferred))

        def tie_break(option: SplitOption) -> int:
            if option.strategy_kind in preference:
                return preference.index(option.strategy_kind)
            return len(preference)

        return sorted(split_options, key=lambda option: (-option.overall_score, tie_break(option)))

    def analyze(
        self,
        template: dict[str, Any],
        graph: DependencyGraph,
        components: list[StrongComponent],
        recommended: SplitOption,
        options: AnalyzeOptions,
    ) -> SplitAnalysis:
        """Limit overages, anti-patterns, opportunities and warnings."""
        stats = compute_stats(template)
        analysis = SplitAnalysis(
            exceeds_limits=(
                stats.resource_count > RESOURCE_LIMIT
                or stats.output_count > OUTPUT_LIMIT
                or stats.template_bytes > TEMPLATE_BYTES_LIMIT
            ),
            resource_overage=max(0, stats.resource_count - RESOURCE_LIMIT),
            output_overage=max(0, stats.output_count - OUTPUT_LIMIT),
            size_overage=max(0, stats.template_bytes - TEMPLATE_BYTES_LIMIT),
        )

        self._detect_anti_patterns(analysis, graph, components)
        self._detect_opportunities(analysis, graph)
        self._collect_warnings(analysis, components, recommended, options)

        analysis.low_quality_clusters = [
            cluster.name
            for cluster in recommended.clusters
            if cluster.score.quality < options.min_quality
        ]
        return analysis

    def _detect_anti_patterns(
        self,
        analysis: SplitAnalysis,
        graph: DependencyGraph,
        components: list[StrongComponent],
    ) -> None:
        resource_count = graph.resource_count
        if resource_count > MONOLITH_RESOURCE_COUNT:
            analysis.anti_patterns.append(
                f"Monolithic stack: {resource_count} resources in a single template"
            )

        total_dependencies = sum(len(node.depends_on) for node in graph.nodes.values())
        average = total_dependencies / max(1, resource_count)
        if average > HIGH_COUPLING_AVG_DEPENDENCIES:
            analysis.anti_patterns.append(
                f"High coupling: average {average:.1f} dependencies per resource"
            )

        cycles = cyclic_components(components)
        cyclic_members = sum(len(component.resource_ids) for component in cycles)
        if cyclic_members > resource_count * CYCLIC_DENSITY_THRESHOLD:
            analysis.anti_patterns.append(
                f"Circular dependencies: {cyclic_members} resources in {len(cycles)} dependency cycles"
            )

    def _detect_opportunities(self, analysis: SplitAnalysis, graph: DependencyGraph) -> None:
        categories = set()
        type_counts: dict[str, int] = {}
        for node in graph.nodes.values():
            categories.add(categorize_resource(node.resource_type))
            type_counts[node.resource_type] = type_counts.get(node.resource_type, 0) + 1

        if {"Networking", "Compute"} <= categories:
            analysis.opportunities.append("Natural boundary between Networking and Compute layers")
        if "Data" in categories:
            analysis.opportunities.append("Data layer can be independent stack for reusability")
        if "IAM" in categories:
            analysis.opportunities.append("IAM roles can be extracted to separate stack")

        for resource_type, count in sorted(type_counts.items(), key=lambda item: (-item[1], item[0])):
            if count > REUSABLE_MODULE_MIN_COUNT:
                analysis.opportunities.append(
                    f"{count} {resource_type} resources could be a reusable module"
                )

    def _collect_warnings(
        self,
        analysis: SplitAnalysis,
        components: list[StrongComponent],
        recommended: SplitOption,
        options: AnalyzeOptions,
    ) -> None:
        for component in oversized_components(components, options.max_cluster_size):
            analysis.warnings.append(
                f"Cyclic component of {len(component.resource_ids)} resources exceeds the "
                f"maximum stack size of {options.max_cluster_size} and was kept whole: "
                f"{', '.join(component.resource_ids)}"
            )

        if recommended.unordered_stacks:
            self.logger.warning(
                "Stacks could not be topologically ordered",
                stacks=recommended.unordered_stacks,
            )
            analysis.warnings.append(
                "Stacks with circular cross-stack dependencies were appended to the "
                f"deployment order unordered: {', '.join(recommended.unordered_stacks)}"
            )


def analyze_and_cluster(
    template: dict[str, Any],
    graph: DependencyGraph,
    options: AnalyzeOptions | None = None,
) -> SplitSuggestion:
    """Recommend how to split a template, with ranked alternatives."""
    return SuggestionRanker().suggest(template, graph, options)
