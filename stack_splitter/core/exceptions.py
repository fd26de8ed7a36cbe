"""Core exceptions for stack splitter operations."""


class StackSplitterError(Exception):
    """Base exception for stack splitter operations."""


class TemplateSectionError(StackSplitterError):
    """A top-level template section is structurally invalid."""

    def __init__(self, section: str, message: str | None = None):
        self.section = section
        super().__init__(message or f"Template section '{section}' is invalid")


class TemplateParseError(StackSplitterError):
    """Template text could not be parsed as YAML or JSON."""


class ConfigurationError(StackSplitterError):
    """Configuration validation or loading failed."""
