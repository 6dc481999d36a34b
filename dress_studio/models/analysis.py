"""Person and clothing attribute records produced by vision analysis."""

from pydantic import Field

from .base import CamelModel


UNKNOWN = "Unknown"


class Measurements(CamelModel):
    """Estimated body measurements, each like '92cm' or 'Unknown'."""
    chest: str = UNKNOWN
    waist: str = UNKNOWN
    hips: str = UNKNOWN
    shoulders: str = UNKNOWN


class PersonAnalysis(CamelModel):
    """Structured description of the person in a photo."""

    body_type: str = Field(default=UNKNOWN, description="Slim | Athletic | Average | Curvy | Plus size")
    gender: str = UNKNOWN
    age_range: str = Field(default=UNKNOWN, description="e.g., '20-30'")
    height: str = Field(default=UNKNOWN, description="e.g., '170cm'")
    measurements: Measurements = Field(default_factory=Measurements)
    skin_tone: str = UNKNOWN
    pose: str = UNKNOWN
    analysis_confidence: str = Field(default=UNKNOWN, description="e.g., '85%'")


class ClothingAnalysis(CamelModel):
    """Structured description of a garment photo."""

    type: str = UNKNOWN
    primary_color: str = UNKNOWN
    secondary_color: str | None = None
    pattern: str = UNKNOWN
    material: str = UNKNOWN
    style: str = UNKNOWN
    fit: str = UNKNOWN
    sleeves: str = UNKNOWN
    neckline: str = UNKNOWN
    analysis_confidence: str = UNKNOWN
