"""
Report Formatting

Human-readable text reports for template stats and split suggestions.
"""

from ..models.split import SplitOption, SplitSuggestion
from ..models.stats import TemplateStats
from ..utils import format_size
from .stats import check_thresholds

TOP_TYPES = 5


def format_stats_report(stats: TemplateStats) -> str:
    """Resource, output and size usage against the platform limits."""
    lines = ["Template Stats", "=" * 45, ""]
    lines.append(
        f"Resources: {stats.resource_count} / {stats.resource_limit} ({stats.resource_percent}%)"
    )
    lines.append(f"Outputs:   {stats.output_count} / {stats.output_limit} ({stats.output_percent}%)")
    lines.append(
        f"Size:      {format_size(stats.template_bytes)} / {format_size(stats.template_limit)} "
        f"({stats.template_percent}%)"
    )

    if stats.resource_types:
        lines.append("")
        lines.append("Resource types:")
        for resource_type, count in stats.resource_types.items():
            lines.append(f"  {resource_type}: {count}")

    warnings = check_thresholds(stats)
    if warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in warnings:
            lines.append(f"  ⚠️  {warning.message}")

    return "\n".join(lines)


def format_split_report(option: SplitOption) -> str:
    """Deployment order, per-stack contents and cross-stack dependencies."""
    lines = [f"Suggested split: {option.strategy} ({len(option.clusters)} stacks)", ""]
    lines.append("Deployment order:")
    lines.append(f"  {' → '.join(option.deployment_order)}")
    lines.append("")

    for index, cluster in enumerate(option.clusters, start=1):
        lines.append(f"{index}. {cluster.name} ({cluster.size} resources)")
        for resource_type, count in sorted(
            cluster.resource_types.items(), key=lambda item: (-item[1], item[0])
        ):
            lines.append(f"   {resource_type}: {count}")
        lines.append(f"   Resources: {', '.join(cluster.resource_ids)}")
        lines.append("")

    if not option.cross_stack_dependencies:
        lines.append("No cross-stack dependencies detected.")
        return "\n".join(lines)

    lines.append("Cross-stack dependencies:")
    seen: set[tuple[str, str]] = set()
    for dependency in option.cross_stack_dependencies:
        key = (dependency.source_resource, dependency.target_resource)
        if key in seen:
            continue
        seen.add(key)
        lines.append(
            f"  {dependency.source_stack}::{dependency.source_resource} → "
            f"{dependency.target_stack}::{dependency.target_resource} ({dependency.edge.describe()})"
        )
    return "\n".join(lines)


def format_detailed_report(suggestion: SplitSuggestion) -> str:
    """Full analysis: limits, findings, recommended option and alternatives."""
    analysis = suggestion.analysis
    recommended = suggestion.recommended
    lines = ["Stack Split Analysis", "=" * 45, ""]

    if analysis.exceeds_limits:
        lines.append("⚠️  TEMPLATE EXCEEDS PLATFORM LIMITS")
        if analysis.resource_overage:
            lines.append(f"   Resources: {analysis.resource_overage} over limit")
        if analysis.output_overage:
            lines.append(f"   Outputs: {analysis.output_overage} over limit")
        if analysis.size_overage:
            lines.append(f"   Size: {format_size(analysis.size_overage)} over limit")
    else:
        lines.append("Template is within limits")
    lines.append("")

    for title, entries in (
        ("Anti-patterns detected:", analysis.anti_patterns),
        ("Opportunities:", analysis.opportunities),
        ("Warnings:", analysis.warnings),
    ):
        if entries:
            lines.append(title)
            lines.extend(f"  • {entry}" for entry in entries)
            lines.append("")

    lines.append(f"📦 RECOMMENDED: {recommended.strategy}")
    lines.append(f"   Quality score: {recommended.overall_score * 100:.1f}%")
    lines.append(f"   Stacks: {len(recommended.clusters)}")
    lines.append(f"   Cross-stack references: {len(recommended.cross_stack_dependencies)}")
    lines.append(f"   Est. deployment: {recommended.estimated_deployment_minutes} min")
    lines.append("")
    lines.append("Deployment order:")
    lines.append(f"   {' → '.join(recommended.deployment_order)}")
    lines.append("")

    low_quality = set(analysis.low_quality_clusters)
    for cluster in recommended.clusters:
        marker = " (low quality)" if cluster.name in low_quality else ""
        lines.append(f"Stack: {cluster.name} ({cluster.size} resources){marker}")
        lines.append(f"   Category: {cluster.category}")
        lines.append(
            f"   Cohesion: {cluster.score.cohesion * 100:.0f}%  "
            f"Coupling: {cluster.score.coupling:.2f}"
        )
        lines.append(f"   Size: {cluster.score.size_percent:.1f}% of limit")
        top_types = sorted(cluster.resource_types.items(), key=lambda item: (-item[1], item[0]))
        if top_types:
            lines.append("   Top resources:")
            for resource_type, count in top_types[:TOP_TYPES]:
                lines.append(f"      {resource_type}: {count}")
        lines.append("")

    if suggestion.alternatives:
        lines.append("Alternative strategies:")
        for alternative in suggestion.alternatives:
            lines.append(
                f"   {alternative.strategy} (score: {alternative.overall_score * 100:.1f}%, "
                f"{len(alternative.clusters)} stacks)"
            )
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
