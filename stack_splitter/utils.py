"""Utility functions for stack splitter.

Template-walking helpers shared by the graph builder and the split
generator, plus formatting helpers used by the reports.
"""

import re
from collections.abc import Iterator
from typing import Any

from .constants import GET_ATT, REF, SUB

_SUB_VARIABLE = re.compile(r"\$\{([^!}]+)\}")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def iter_mappings(value: Any) -> Iterator[dict]:
    """Yield every mapping in a template value tree, depth-first, pre-order.

    Args:
        value: Any template value (mapping, sequence or scalar)

    Yields:
        Each dict found in the tree, including ``value`` itself
    """
    stack = [value]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            yield current
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))


def parse_ref(node: dict) -> str | None:
    """Return the name a ``{"Ref": name}`` mapping points at."""
    target = node.get(REF)
    return target if isinstance(target, str) else None


def parse_get_att(node: dict) -> tuple[str, str] | None:
    """Parse ``Fn::GetAtt`` in either list or dotted-string form.

    Examples:
        >>> parse_get_att({"Fn::GetAtt": ["Role", "Arn"]})
        ('Role', 'Arn')
        >>> parse_get_att({"Fn::GetAtt": "Bucket.DomainName"})
        ('Bucket', 'DomainName')
        >>> parse_get_att({"Fn::GetAtt": "NoDot"}) is None
        True
    """
    if GET_ATT not in node:
        return None
    get_att = node[GET_ATT]
    if isinstance(get_att, list) and len(get_att) >= 2 and isinstance(get_att[0], str):
        return get_att[0], str(get_att[1])
    if isinstance(get_att, str) and "." in get_att:
        target, attribute = get_att.split(".", 1)
        return target, attribute
    return None


def sub_variables(node: dict) -> list[str]:
    """Names interpolated by a ``Fn::Sub`` string (``${Name}``, ``${Res.Attr}``).

    Handles both the plain string form and the ``[template, variables]`` form.
    ``${!Literal}`` escapes are skipped.
    """
    if SUB not in node:
        return []
    sub = node[SUB]
    if isinstance(sub, list) and sub:
        sub = sub[0]
    if not isinstance(sub, str):
        return []
    return _SUB_VARIABLE.findall(sub)


def as_list(value: Any) -> list:
    """Normalize a singular-or-list template value to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def sanitize_identifier(name: str) -> str:
    """Strip everything but ASCII letters and digits (logical ID safe)."""
    return _NON_ALNUM.sub("", name)


def format_size(size_bytes: int) -> str:
    """Format bytes into human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string with appropriate unit

    Examples:
        >>> format_size(0)
        '0 B'
        >>> format_size(1024)
        '1.0 KB'
        >>> format_size(1536870912)
        '1.4 GB'
    """
    if size_bytes == 0:
        return "0 B"

    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            if unit == "B":
                return f"{int(size_bytes)} {unit}"
            else:
                return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


def percent(part: float, whole: float) -> float:
    """Percentage rounded to two decimals."""
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 2)
