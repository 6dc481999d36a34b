"""Prompting and vision-analysis agents."""

from .prompt_builder import build_design_prompt, build_tryon_prompt, style_for, VARIATION_STYLES
from .vision_analyzer import VisionAnalyzer

__all__ = [
    "build_design_prompt",
    "build_tryon_prompt",
    "style_for",
    "VARIATION_STYLES",
    "VisionAnalyzer",
]
