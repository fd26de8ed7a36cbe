"""Analysis settings for stack splitter.

Provides centralized clustering and split configuration using Pydantic
BaseSettings with environment variable support for operational tuning.
"""

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_MAX_CLUSTER_SIZE,
    DEFAULT_MIN_QUALITY,
    DEFAULT_STACK_PREFIX,
    DEFAULT_STRATEGY,
)
from ..models.enums import ClusterStrategy
from ..models.split import AnalyzeOptions, SplitOptions
from .exceptions import ConfigurationError


class SplitterSettings(BaseSettings):
    """Stack splitting configuration."""

    strategy: ClusterStrategy = Field(
        ClusterStrategy(DEFAULT_STRATEGY),
        alias="STACK_SPLIT_STRATEGY",
        description="Clustering strategy preferred when ranking split options",
    )

    max_cluster_size: int = Field(
        DEFAULT_MAX_CLUSTER_SIZE,
        ge=1,
        alias="STACK_SPLIT_MAX_CLUSTER_SIZE",
        description="Hard maximum number of resources per generated stack",
    )

    min_quality: float = Field(
        DEFAULT_MIN_QUALITY,
        ge=0.0,
        le=1.0,
        alias="STACK_SPLIT_MIN_QUALITY",
        description="Advisory cluster quality threshold",
    )

    stack_name_prefix: str = Field(
        DEFAULT_STACK_PREFIX,
        alias="STACK_SPLIT_PREFIX",
        description="Prefix used for cross-stack export names",
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL", description="Log level")

    log_file: str | None = Field(
        None, alias="STACK_SPLIT_LOG_FILE", description="Optional JSON log file path"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    def analyze_options(self) -> AnalyzeOptions:
        """Build clustering options from these settings."""
        return AnalyzeOptions(
            strategy=self.strategy,
            max_cluster_size=self.max_cluster_size,
            min_quality=self.min_quality,
        )

    def split_options(self, generate_parent: bool = True, template_format: str = "json") -> SplitOptions:
        """Build split generation options from these settings."""
        return SplitOptions(
            generate_parent=generate_parent,
            stack_name_prefix=self.stack_name_prefix,
            template_format=template_format,
        )


def get_settings(**overrides) -> SplitterSettings:
    """Load settings from the environment, applying explicit overrides.

    Raises:
        ConfigurationError: If any value fails validation
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        return SplitterSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid stack splitter settings: {e}") from e
