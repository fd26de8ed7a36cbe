"""
Stack Splitter Service

Thin facade that runs the analysis pipeline with settings-driven defaults.
"""

from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from ..core.exceptions import ConfigurationError
from ..core.settings import SplitterSettings, get_settings
from ..core.template_io import write_split_result
from ..models.analysis import ResourceCluster
from ..models.enums import TemplateFormat
from ..models.graph import DependencyGraph
from ..models.split import AnalyzeOptions, SplitOptions, SplitResult, SplitSuggestion
from ..models.stats import StatsWarning, TemplateStats
from .clustering import cluster_resources
from .graph_builder import build_graph
from .split_generator import generate_split
from .stats import check_thresholds, compute_stats
from .suggestions import analyze_and_cluster


class StackSplitterService:
    """Facade service for template analysis and stack splitting."""

    def __init__(self, settings: SplitterSettings | None = None):
        self.settings = settings or get_settings()
        self.logger = structlog.get_logger()

    def stats(
        self, template: dict[str, Any], serialized: str | None = None
    ) -> tuple[TemplateStats, list[StatsWarning]]:
        """Template stats and the limits it is close to."""
        stats = compute_stats(template, serialized)
        return stats, check_thresholds(stats)

    def build_graph(self, template: dict[str, Any]) -> DependencyGraph:
        return build_graph(template)

    def cluster(
        self,
        template: dict[str, Any],
        graph: DependencyGraph | None = None,
        **overrides: Any,
    ) -> list[ResourceCluster]:
        """Final clusters for the configured (or overridden) strategy."""
        if graph is None:
            graph = build_graph(template)
        return cluster_resources(graph, self._analyze_options(**overrides))

    def suggest(
        self,
        template: dict[str, Any],
        graph: DependencyGraph | None = None,
        **overrides: Any,
    ) -> SplitSuggestion:
        """Rank all strategies and recommend a split.

        Args:
            template: Template document
            graph: Prebuilt dependency graph (built when omitted)
            **overrides: ``strategy``, ``max_cluster_size`` or ``min_quality``
                values replacing the settings for this call

        Returns:
            SplitSuggestion for the template
        """
        if graph is None:
            graph = build_graph(template)
        return analyze_and_cluster(template, graph, self._analyze_options(**overrides))

    def split(
        self,
        template: dict[str, Any],
        generate_parent: bool = True,
        template_format: TemplateFormat = "json",
        **overrides: Any,
    ) -> SplitResult:
        """Suggest a split and generate its child and parent stacks."""
        graph = build_graph(template)
        suggestion = analyze_and_cluster(template, graph, self._analyze_options(**overrides))
        return self.generate(template, graph, suggestion, generate_parent, template_format)

    def generate(
        self,
        template: dict[str, Any],
        graph: DependencyGraph,
        suggestion: SplitSuggestion,
        generate_parent: bool = True,
        template_format: TemplateFormat = "json",
    ) -> SplitResult:
        """Generate the stacks of an existing suggestion."""
        options = self._split_options(generate_parent, template_format)
        result = generate_split(template, graph, suggestion, options)
        self.logger.info(
            "Split template",
            strategy=suggestion.recommended.strategy,
            stacks=len(result.stacks),
        )
        return result

    def write(
        self,
        result: SplitResult,
        directory: str | Path,
        template_format: TemplateFormat = "json",
        line_width: int = 200,
    ) -> list[Path]:
        return write_split_result(result, directory, template_format, line_width)

    def _analyze_options(self, **overrides: Any) -> AnalyzeOptions:
        options = self.settings.analyze_options()
        overrides = {key: value for key, value in overrides.items() if value is not None}
        if not overrides:
            return options
        try:
            return AnalyzeOptions(**{**options.model_dump(), **overrides})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid analysis options: {e}") from e

    def _split_options(self, generate_parent: bool, template_format: TemplateFormat) -> SplitOptions:
        try:
            return self.settings.split_options(generate_parent, template_format)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid split options: {e}") from e
