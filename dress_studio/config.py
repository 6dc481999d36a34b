"""Configuration management for the Dress Studio service and client."""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class OpenAIConfig(BaseModel):
    """OpenAI model selection."""
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1536"  # portrait, fits a full-length dress
    vision_model: str = "gpt-4o"
    vision_max_tokens: int = 500


class FalConfig(BaseModel):
    """Fal AI try-on settings."""
    tryon_model: str = "fal-ai/fashn/tryon/v1.6"
    category: str = "auto"  # "tops", "bottoms", "one-pieces" or "auto"


class CompressionConfig(BaseModel):
    """Compression budget for uploads and inline provider results."""
    max_width: int = 1024
    max_height: int = 1536
    quality: float = 0.8
    max_bytes: int = 1 * 1024 * 1024


class DesignConfig(BaseModel):
    """Design variation settings."""
    variations_per_side: int = 2


class StudioConfig(BaseSettings):
    """Main studio configuration."""

    # Provider credentials (loaded from .env)
    openai_api_key: str | None = None
    fal_key: str | None = None

    # Request limits
    max_upload_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"

    # Terminal client
    api_base_url: str = "http://127.0.0.1:8000"
    state_file: Path = Path(".dress_studio/state.json")
    storage_quota_bytes: int = 5 * 1024 * 1024  # browsers give local storage ~5MB

    # Sub-configs
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    fal: FalConfig = Field(default_factory=FalConfig)
    compression: CompressionConfig = Field(default_factory=CompressionConfig)
    design: DesignConfig = Field(default_factory=DesignConfig)

    class Config:
        env_file = ".env"
        env_prefix = ""
        extra = "ignore"


def load_config() -> StudioConfig:
    """Load configuration from environment and defaults."""
    return StudioConfig()
