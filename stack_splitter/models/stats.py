"""Template statistics models."""

from pydantic import Field

from .base import SplitterModel


class TemplateStats(SplitterModel):
    """Counts and sizes of one template measured against platform limits."""

    resource_count: int
    resource_limit: int
    resource_percent: float
    output_count: int
    output_limit: int
    output_percent: float
    template_bytes: int
    template_limit: int
    template_percent: float
    resource_types: dict[str, int] = Field(default_factory=dict)


class StatsWarning(SplitterModel):
    """A metric at or above the warning threshold of its limit."""

    message: str
    current: int
    limit: int
    percent: float
