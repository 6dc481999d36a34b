"""Tailor order and design approval models."""

from pydantic import ConfigDict, Field, field_validator

from .analysis import ClothingAnalysis, PersonAnalysis
from .base import CamelModel


class TailorForm(CamelModel):
    """Customer details and measurements typed into the order step.

    Browsers post measurement inputs as numbers or strings; both are kept as
    text, and ``null`` reads as an empty field.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    full_name: str = ""
    contact: str = ""

    # Body measurements, free text as typed (e.g. "92" or "92cm")
    bust: str = ""
    waist: str = ""
    hips: str = ""
    shoulders: str = ""

    height: str = ""
    weight: str = ""
    additional_notes: str = ""

    @field_validator(
        "full_name", "contact", "bust", "waist", "hips", "shoulders", "height", "weight", "additional_notes",
        mode="before",
    )
    @classmethod
    def _null_is_empty(cls, value):
        return "" if value is None else value

    @property
    def is_complete(self) -> bool:
        """Name and contact are the minimum a tailor needs."""
        return bool(self.full_name.strip() and self.contact.strip())


class OrderRequest(TailorForm):
    """Body of ``POST /api/submit-order``.

    ``design_images`` is either a list of image URLs or the browser's
    ``{"front": ..., "back": ...}`` selection.
    """

    model_config = ConfigDict(extra="allow")

    design_images: list[str] | dict[str, str | None] | None = Field(default_factory=list)
    try_on_image: str | None = None
    timestamp: str | None = None

    @property
    def design_refs(self) -> list[str]:
        """Non-empty design references in front, back order."""
        if not self.design_images:
            return []
        if isinstance(self.design_images, dict):
            return [ref for ref in self.design_images.values() if ref]
        return [ref for ref in self.design_images if ref]


class ApprovalRequest(CamelModel):
    """Body of ``POST /api/approve-design``."""

    model_config = ConfigDict(extra="allow")

    image_url: str | None = None
    # null when the vision analysis failed during try-on
    person_details: PersonAnalysis | None = None
    clothing_details: ClothingAnalysis | None = None
    timestamp: str | None = None


class TrackingInfo(CamelModel):
    status: str = "Processing"
    next_update: str = "24 hours"


class OrderLine(CamelModel):
    """One line of a mocked approval order."""
    type: str
    color: str
    style: str
    size: str = "M"
    price: int
    customization: str = "AI-fitted based on uploaded photos"
