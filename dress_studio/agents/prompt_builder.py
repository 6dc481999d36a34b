"""Prompt templates for design variations and try-on image edits."""

from dataclasses import dataclass

from ..models.design import DesignSide


@dataclass(frozen=True)
class VariationStyle:
    """Styling direction for one variation slot."""
    key: str  # used in ids and placeholder queries
    direction: str  # instruction given to the image model
    front_description: str
    back_description: str

    def description(self, side: DesignSide) -> str:
        return self.front_description if side == "front" else self.back_description


VARIATION_STYLES = [
    VariationStyle(
        key="elegant",
        direction="an elegant interpretation with refined details, clean seams and graceful drape",
        front_description="Elegant variation with refined details",
        back_description="Elegant back design variation",
    ),
    VariationStyle(
        key="modern",
        direction="a modern interpretation with contemporary styling and crisp structure",
        front_description="Modern interpretation with contemporary styling",
        back_description="Modern back design variation",
    ),
]


def style_for(index: int) -> VariationStyle:
    """Style for the zero-based variation slot, cycling if more are requested."""
    return VARIATION_STYLES[index % len(VARIATION_STYLES)]


def _color_text(color: str | None) -> str:
    return color.strip() if color and color.strip() else "the color in the drawing"


def build_design_prompt(
    side: DesignSide,
    description: str | None,
    color: str | None,
    style: VariationStyle | None = None,
) -> str:
    """Prompt turning a dress sketch into a tailor-ready rendering.

    Without ``style`` the prompt asks for distinct variations, which is what
    the batched (n > 1) call uses; with ``style`` it pins a single direction.
    """
    view = "front" if side == "front" else "back"
    details = description.strip() if description and description.strip() else "No extra notes."

    if style:
        direction = f"Render {style.direction}."
    else:
        direction = "Each rendering should be a distinct variation: one elegant with refined details, one modern with contemporary styling."

    return (
        f"Turn this {view} view dress sketch into a realistic, professional fashion design rendering "
        f"that a tailor could sew from. Keep the silhouette, neckline and seam lines of the sketch. "
        f"Primary color: {_color_text(color)}. "
        f"Designer notes: {details} "
        f"{direction} "
        f"Show the full dress on a plain light background with proper proportions and fabric detail."
    )


TRYON_PROMPT = (
    "Create a virtual try-on image by combining the person in the first image with the clothing item "
    "in the other image(s). Keep the exact same person: preserve their face, hair, skin tone, body shape, "
    "pose, and background exactly. Ensure the clothing fits naturally on the person, maintaining realistic "
    "proportions, lighting, and shadows, with proper fit and draping."
)


def build_tryon_prompt(clothing_hint: str | None = None) -> str:
    """Prompt for an image-edit try-on, optionally naming the garment."""
    if clothing_hint:
        return f"{TRYON_PROMPT} The clothing item is {clothing_hint}."
    return TRYON_PROMPT
