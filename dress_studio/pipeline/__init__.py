"""Orchestration pipelines."""

from .design_pipeline import DesignPipeline, placeholder_url
from .tryon_pipeline import TryOnPipeline, TryOnOutcome, GenerationResult, SUPPORTED_MODELS

__all__ = [
    "DesignPipeline",
    "placeholder_url",
    "TryOnPipeline",
    "TryOnOutcome",
    "GenerationResult",
    "SUPPORTED_MODELS",
]
