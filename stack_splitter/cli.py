"""Command line interface for stack splitter."""

import argparse
import json
import sys
from typing import Any

from .core.exceptions import StackSplitterError, TemplateParseError
from .core.logging_config import get_logger, setup_logging
from .core.settings import get_settings
from .core.template_io import load_template, load_template_file
from .models.enums import ClusterStrategy
from .services.reports import format_detailed_report, format_split_report, format_stats_report
from .services.splitter import StackSplitterService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="stack-splitter",
        description="Analyze an infrastructure template and split it into smaller stacks",
    )
    parser.add_argument("path", nargs="?", help="Template file (reads stdin when omitted)")

    actions = parser.add_argument_group("actions")
    actions.add_argument("--stats", action="store_true", help="Report resource, output and size usage")
    actions.add_argument(
        "--suggest-split", action="store_true", help="Report the recommended split (default action)"
    )
    actions.add_argument(
        "--suggest-split-detailed",
        action="store_true",
        help="Report the full split analysis with alternatives",
    )
    actions.add_argument(
        "--auto-split", metavar="DIR", help="Write child and parent stack templates to DIR"
    )
    actions.add_argument(
        "--json-report", action="store_true", help="Print the split suggestion as JSON on stdout"
    )

    tuning = parser.add_argument_group("tuning")
    tuning.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in ClusterStrategy],
        help="Preferred clustering strategy",
    )
    tuning.add_argument("--max-cluster-size", type=int, help="Maximum resources per stack")
    tuning.add_argument("--min-quality", type=float, help="Advisory cluster quality threshold")
    tuning.add_argument("--prefix", help="Export name prefix")
    tuning.add_argument(
        "--no-parent", action="store_true", help="Do not generate the parent orchestrator stack"
    )
    tuning.add_argument("--yaml", action="store_true", help="Write generated stacks as YAML")
    tuning.add_argument("--line-width", type=int, default=200, help="YAML line width")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument("--log-file", help="Write JSON logs to this file")

    return parser.parse_args(argv)


def _read_template(path: str | None) -> tuple[Any, str | None]:
    """Load the template from a file or stdin, returning (document, raw text)."""
    if path:
        return load_template_file(path), None
    text = sys.stdin.read()
    if not text.strip():
        raise TemplateParseError("No template provided: pass a path or pipe a template on stdin")
    return load_template(text), text


def run(args: argparse.Namespace) -> None:
    """Execute the requested actions."""
    settings = get_settings(
        strategy=args.strategy,
        max_cluster_size=args.max_cluster_size,
        min_quality=args.min_quality,
        stack_name_prefix=args.prefix,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    setup_logging(log_level=settings.log_level, log_file=settings.log_file)
    logger = get_logger()

    template, raw_text = _read_template(args.path)
    service = StackSplitterService(settings)

    wants_split = args.suggest_split_detailed or args.auto_split or args.json_report
    if not (args.stats or wants_split):
        args.suggest_split = True

    if args.stats:
        stats, _warnings = service.stats(template, raw_text)
        print(format_stats_report(stats), file=sys.stderr)

    if not (wants_split or args.suggest_split):
        return

    graph = service.build_graph(template)
    suggestion = service.suggest(template, graph)

    if args.suggest_split:
        print(format_split_report(suggestion.recommended), file=sys.stderr)
    if args.suggest_split_detailed:
        print(format_detailed_report(suggestion), file=sys.stderr)
    if args.json_report:
        print(json.dumps(suggestion.model_dump(mode="json"), indent=2))

    if args.auto_split:
        template_format = "yaml" if args.yaml else "json"
        result = service.generate(
            template,
            graph,
            suggestion,
            generate_parent=not args.no_parent,
            template_format=template_format,
        )
        written = service.write(result, args.auto_split, template_format, args.line_width)
        logger.info("Auto-split complete", directory=args.auto_split, files=len(written))
        print(f"Wrote {len(written)} stack templates to {args.auto_split}", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    try:
        run(args)
    except (StackSplitterError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
