"""
Template Stats Checker

Measures a template against the platform's hard per-stack limits.
"""

import json
from typing import Any

from ..constants import (
    OUTPUT_LIMIT,
    OUTPUTS,
    RESOURCE_LIMIT,
    RESOURCES,
    TEMPLATE_BYTES_LIMIT,
    TYPE,
    UNKNOWN_TYPE,
    WARNING_THRESHOLD,
)
from ..models.stats import StatsWarning, TemplateStats
from ..utils import format_size, percent


def serialized_size(template: dict[str, Any]) -> int:
    """UTF-8 byte length of the template as compact JSON."""
    return len(json.dumps(template, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))


def compute_stats(template: dict[str, Any], serialized: str | None = None) -> TemplateStats:
    """Count resources, outputs and bytes of a template.

    Args:
        template: Template document
        serialized: The template text as it will be uploaded; when omitted the
            size of its compact JSON form is used

    Returns:
        TemplateStats with percentages of each limit rounded to two decimals
    """
    resources = template.get(RESOURCES) or {}
    outputs = template.get(OUTPUTS) or {}

    template_bytes = (
        len(serialized.encode("utf-8")) if serialized is not None else serialized_size(template)
    )

    resource_types: dict[str, int] = {}
    for resource in resources.values():
        resource_type = resource.get(TYPE) if isinstance(resource, dict) else None
        if not isinstance(resource_type, str):
            resource_type = UNKNOWN_TYPE
        resource_types[resource_type] = resource_types.get(resource_type, 0) + 1

    return TemplateStats(
        resource_count=len(resources),
        resource_limit=RESOURCE_LIMIT,
        resource_percent=percent(len(resources), RESOURCE_LIMIT),
        output_count=len(outputs),
        output_limit=OUTPUT_LIMIT,
        output_percent=percent(len(outputs), OUTPUT_LIMIT),
        template_bytes=template_bytes,
        template_limit=TEMPLATE_BYTES_LIMIT,
        template_percent=percent(template_bytes, TEMPLATE_BYTES_LIMIT),
        resource_types=dict(sorted(resource_types.items(), key=lambda item: (-item[1], item[0]))),
    )


def check_thresholds(stats: TemplateStats) -> list[StatsWarning]:
    """One warning per metric at or above the warning threshold of its limit."""
    warnings: list[StatsWarning] = []
    threshold = WARNING_THRESHOLD * 100

    if stats.resource_percent >= threshold:
        warnings.append(
            StatsWarning(
                message=f"Resource count {stats.resource_count} is at "
                f"{stats.resource_percent}% of the {stats.resource_limit} limit",
                current=stats.resource_count,
                limit=stats.resource_limit,
                percent=stats.resource_percent,
            )
        )
    if stats.output_percent >= threshold:
        warnings.append(
            StatsWarning(
                message=f"Output count {stats.output_count} is at "
                f"{stats.output_percent}% of the {stats.output_limit} limit",
                current=stats.output_count,
                limit=stats.output_limit,
                percent=stats.output_percent,
            )
        )
    if stats.template_percent >= threshold:
        warnings.append(
            StatsWarning(
                message=f"Template size {format_size(stats.template_bytes)} is at "
                f"{stats.template_percent}% of the {format_size(stats.template_limit)} limit",
                current=stats.template_bytes,
                limit=stats.template_limit,
                percent=stats.template_percent,
            )
        )
    return warnings
