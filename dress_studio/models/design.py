"""Design variation and try-on result models."""

from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field

from .base import CamelModel


DesignSide = Literal["front", "back"]


class DesignVariation(CamelModel):
    """One candidate rendering of the user's sketch."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="e.g., 'front_1', 'back_2'")
    image_url: str = Field(description="Remote URL, data URL or placeholder path")
    type: DesignSide
    description: str = ""

    @property
    def is_placeholder(self) -> bool:
        """True when the provider failed and a placeholder was substituted."""
        return self.image_url.startswith("/placeholder.svg")


class TryOnResult(CamelModel):
    """The current try-on composite for a session."""

    image_url: str
    timestamp: datetime = Field(default_factory=datetime.now)
