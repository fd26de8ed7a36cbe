"""Shared base model."""

from typing import Any

from pydantic import BaseModel


class SplitterModel(BaseModel):
    """Base model with common stack splitter settings."""

    def model_dump(self, **kwargs) -> dict[str, Any]:
        """Convert to dict with exclude_none by default."""
        kwargs.setdefault("exclude_none", True)
        return super().model_dump(**kwargs)
