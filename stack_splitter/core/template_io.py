"""Template loading and serialization.

Reads templates as YAML (with CloudFormation short-form tags) or JSON with
comments, and writes generated stacks back out as JSON or YAML.
"""

import json
import re
from pathlib import Path
from typing import Any

import structlog
import yaml

from ..models.enums import TemplateFormat
from ..models.split import SplitResult
from .exceptions import TemplateParseError

logger = structlog.get_logger()

# Short-form tags whose long form is ``Fn::<Name>``
_FN_TAGS = (
    "And",
    "Base64",
    "Cidr",
    "Contains",
    "Equals",
    "FindInMap",
    "GetAZs",
    "GetAtt",
    "If",
    "ImportValue",
    "Join",
    "Not",
    "Or",
    "Select",
    "Split",
    "Sub",
    "Transform",
)

_JSON_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


class TemplateLoader(yaml.SafeLoader):
    """SafeLoader that expands CloudFormation short-form intrinsic tags."""


# Keep dates such as AWSTemplateFormatVersion as plain strings
TemplateLoader.yaml_implicit_resolvers = {
    first: [(tag, pattern) for tag, pattern in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_node(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_mapping(node, deep=True)


def _intrinsic_constructor(key: str):
    def construct(loader: yaml.SafeLoader, node: yaml.Node) -> dict[str, Any]:
        value = _construct_node(loader, node)
        if key == "Fn::GetAtt" and isinstance(value, str):
            value = value.split(".", 1)
        return {key: value}

    return construct


TemplateLoader.add_constructor("!Ref", _intrinsic_constructor("Ref"))
TemplateLoader.add_constructor("!Condition", _intrinsic_constructor("Condition"))
for _name in _FN_TAGS:
    TemplateLoader.add_constructor(f"!{_name}", _intrinsic_constructor(f"Fn::{_name}"))


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside of JSON strings.

    Examples:
        >>> strip_json_comments('{"a": "x//y"} // note')
        '{"a": "x//y"} '
    """
    return _JSON_COMMENT.sub(lambda match: match.group(1) or "", text)


def load_template(text: str) -> Any:
    """Parse template text as YAML, falling back to JSON with comments.

    Raises:
        TemplateParseError: If the text parses as neither
    """
    if not text or not text.strip():
        raise TemplateParseError("Template is empty")

    try:
        return yaml.load(text, Loader=TemplateLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as yaml_error:
        try:
            return json.loads(strip_json_comments(text))
        except json.JSONDecodeError as json_error:
            raise TemplateParseError(
                f"Template is neither valid YAML ({yaml_error}) nor valid JSON ({json_error})"
            ) from json_error


def load_template_file(path: str | Path) -> Any:
    """Read and parse a template file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateParseError(f"Cannot read template {path}: {e}") from e
    logger.debug("Loaded template file", path=str(path), bytes=len(text))
    return load_template(text)


def dump_template(
    document: Any,
    template_format: TemplateFormat = "json",
    line_width: int = 200,
    minimize: bool = False,
) -> str:
    """Serialize a template as JSON (2-space indent unless minimized) or YAML (sorted keys)."""
    if template_format == "yaml":
        return yaml.safe_dump(
            document,
            sort_keys=True,
            width=line_width,
            default_flow_style=False,
            allow_unicode=True,
        )
    if minimize:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def write_split_result(
    result: SplitResult,
    directory: str | Path,
    template_format: TemplateFormat = "json",
    line_width: int = 200,
) -> list[Path]:
    """Write one file per generated stack, named ``<stack>.<format>``.

    Returns:
        Paths written, child stacks first and the parent last
    """
    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for stack in result.stacks:
        path = output_dir / f"{stack.name}.{template_format}"
        path.write_text(dump_template(stack.template, template_format, line_width), encoding="utf-8")
        written.append(path)

    logger.info("Wrote split stacks", directory=str(output_dir), files=len(written))
    return written
