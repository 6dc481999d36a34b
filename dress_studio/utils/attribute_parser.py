"""Turn vision-model output into complete person/clothing attribute records.

The model is asked for JSON, but may answer in prose. ``parse_response``
tags the answer as ``Parsed`` or ``Unparsed``; the ``normalize_*`` functions
accept either and always return a fully populated record, using ``Unknown``
(or ``None`` for the secondary colour) wherever nothing can be determined.
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Union

from ..models.analysis import UNKNOWN, ClothingAnalysis, Measurements, PersonAnalysis


@dataclass(frozen=True)
class Parsed:
    """The model returned a JSON object."""
    record: dict[str, Any]


@dataclass(frozen=True)
class Unparsed:
    """The model returned something that is not a JSON object."""
    raw_text: str


AnalysisResponse = Union[Parsed, Unparsed]


# Closed vocabularies for the text fallback; first match wins, so longer or
# more specific terms come before the words they contain.
BODY_TYPES = ["slim", "athletic", "average", "curvy", "plus size"]
GENDERS = ["female", "male", "non-binary"]
SKIN_TONES = ["fair", "medium", "olive", "dark", "tan", "light", "deep"]
POSES = ["standing", "casual", "formal", "sitting", "walking", "running"]

CLOTHING_TYPES = [
    "t-shirt", "tee", "shirt", "dress", "jacket", "sweater", "hoodie", "blouse",
    "pants", "jeans", "trousers", "shorts", "skirt", "coat", "cardigan",
]
PATTERNS = [
    "solid", "striped", "floral", "plaid", "checked", "polka dot", "graphic",
    "printed", "paisley", "animal print",
]
MATERIALS = [
    "cotton", "polyester", "silk", "linen", "wool", "denim", "leather", "rayon",
    "spandex", "nylon", "satin",
]
STYLES = [
    "casual", "formal", "streetwear", "sporty", "business casual", "vintage",
    "boho", "elegant", "minimalist", "smart",
]
FITS = ["tight", "slim fit", "regular", "relaxed", "loose", "oversized", "boxy"]
SLEEVES = ["short", "long", "sleeveless", "3/4", "three-quarter", "cap"]
NECKLINES = [
    "round", "crew", "v-neck", "scoop", "turtleneck", "collared", "button-down", "henley",
]
COLORS = [
    "black", "white", "gray", "grey", "red", "blue", "green", "yellow", "orange",
    "purple", "pink", "brown", "beige", "tan", "navy", "teal", "maroon", "olive",
    "gold", "silver",
]

# (low, high) offsets from the decade in "early/mid/late NNs"
AGE_QUALIFIER_OFFSETS = {
    "early": (0, 3),
    "mid": (7, 12),
    "late": (6, 9),
}
AGE_SINGLE_SPREAD = 2
CM_PER_INCH = 2.54

_AGE_RANGE_RE = re.compile(r"\b(\d{2})\s*(?:-|to)\s*(\d{2})\b")
_AGE_QUALIFIED_RE = re.compile(r"(early|mid|late)[\s-]*(\d)0'?s")
_AGE_SINGLE_RE = re.compile(r"age\s*(\d{2})")
_HEIGHT_CM_RE = re.compile(r"(\d{2,3})\s*cm")
_HEIGHT_LABELED_CM_RE = re.compile(r"height[^\d\n]{0,30}?(\d{2,3})\s*cm|(\d{2,3})\s*cm\s+tall")
_HEIGHT_M_RE = re.compile(r"(\d(?:\.\d{1,2})?)\s*m(?:eters?|etres?)?\b")
_HEIGHT_FT_RE = re.compile(r"(\d)\s*(?:'|ft|feet)\s*(\d{1,2})")
_PERCENT_RE = re.compile(r"(\d{2,3})%")
_CONFIDENCE_RE = re.compile(
    r"confidence[^\d]*(0?\.\d{1,2}|1(?:\.0+)?)|confidence[^\d]*(\d{1,3})",
    re.IGNORECASE,
)


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        # Remove first and last lines (```json and ```)
        text = "\n".join(lines[1:-1])
    return text


def parse_response(text: str | None) -> AnalysisResponse:
    """Tag a model answer as a JSON object or raw text."""
    text = text or ""
    try:
        data = json.loads(_strip_code_fence(text))
    except (json.JSONDecodeError, ValueError):
        return Unparsed(text)

    if isinstance(data, dict):
        return Parsed(data)
    return Unparsed(text)


# ── text heuristics ─────────────────────────────────────────────────────────

def extract_value(text: str, options: list[str]) -> str:
    """First vocabulary term contained in the text, capitalized."""
    lowered = text.lower()
    for option in options:
        if option.lower() in lowered:
            return _capitalize(option)
    return UNKNOWN


def extract_age_range(text: str) -> str:
    """Age range from "25-34", "20 to 30", "mid 20s" or "age 30"."""
    lowered = text.lower()

    match = _AGE_RANGE_RE.search(lowered)
    if match:
        return f"{match.group(1)}-{match.group(2)}"

    match = _AGE_QUALIFIED_RE.search(lowered)
    if match:
        decade = int(match.group(2)) * 10
        low, high = AGE_QUALIFIER_OFFSETS[match.group(1)]
        return f"{decade + low}-{decade + high}"

    match = _AGE_SINGLE_RE.search(lowered)
    if match:
        age = int(match.group(1))
        return f"{age - AGE_SINGLE_SPREAD}-{age + AGE_SINGLE_SPREAD}"

    return UNKNOWN


def extract_height(text: str) -> str:
    """Height in centimetres from "170 cm", "1.75 m" or 5'9"."""
    lowered = text.lower()

    # chest or waist figures in cm often come before the height
    match = _HEIGHT_LABELED_CM_RE.search(lowered) or _HEIGHT_CM_RE.search(lowered)
    if match:
        return f"{match.group(1) or match.group(2)}cm"

    match = _HEIGHT_M_RE.search(lowered)
    if match:
        return f"{_round(float(match.group(1)) * 100)}cm"

    match = _HEIGHT_FT_RE.search(lowered)
    if match:
        inches = int(match.group(1)) * 12 + int(match.group(2))
        return f"{_round(inches * CM_PER_INCH)}cm"

    return UNKNOWN


def extract_measurement(text: str, part: str) -> str:
    """Centimetre value stated next to a body part, e.g. "waist: 72 cm"."""
    pattern = re.compile(
        rf"{re.escape(part)}[^\n\r:]*?:?\s*(\d{{2,3}})\s*(?:cm|centimeters|centimetres)",
        re.IGNORECASE,
    )
    match = pattern.search(text)
    if match:
        return f"{match.group(1)}cm"
    return UNKNOWN


def extract_colors(text: str, limit: int = 2) -> list[str]:
    """Up to ``limit`` colour words, in vocabulary order."""
    lowered = text.lower()
    found = []
    for color in COLORS:
        if color in lowered:
            found.append(_capitalize(color))
        if len(found) == limit:
            break
    return found


def extract_confidence(text: str) -> str:
    """Confidence as a percentage string, clamped to 0-100."""
    match = _PERCENT_RE.search(text)
    if match:
        return f"{min(100, max(0, int(match.group(1))))}%"

    match = _CONFIDENCE_RE.search(text)
    if match:
        if match.group(1):
            value = float(match.group(1)) * 100
        else:
            value = float(match.group(2))
        return f"{min(100, max(0, _round(value)))}%"

    return UNKNOWN


# ── normalization ───────────────────────────────────────────────────────────

def _field(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None or value == "":
        return UNKNOWN
    return str(value)


def normalize_person(response: AnalysisResponse) -> PersonAnalysis:
    """Build a complete PersonAnalysis from a parsed record or raw text."""
    if isinstance(response, Parsed):
        record = response.record
        measurements = record.get("measurements")
        if not isinstance(measurements, dict):
            measurements = {}
        return PersonAnalysis(
            body_type=_field(record, "bodyType"),
            gender=_field(record, "gender"),
            age_range=_field(record, "ageRange"),
            height=_field(record, "height"),
            measurements=Measurements(
                chest=_field(measurements, "chest"),
                waist=_field(measurements, "waist"),
                hips=_field(measurements, "hips"),
                shoulders=_field(measurements, "shoulders"),
            ),
            skin_tone=_field(record, "skinTone"),
            pose=_field(record, "pose"),
            analysis_confidence=_field(record, "analysisConfidence"),
        )

    text = response.raw_text
    return PersonAnalysis(
        body_type=extract_value(text, BODY_TYPES),
        gender=extract_value(text, GENDERS),
        age_range=extract_age_range(text),
        height=extract_height(text),
        measurements=Measurements(
            chest=extract_measurement(text, "chest"),
            waist=extract_measurement(text, "waist"),
            hips=extract_measurement(text, "hips"),
            shoulders=extract_measurement(text, "shoulders"),
        ),
        skin_tone=extract_value(text, SKIN_TONES),
        pose=extract_value(text, POSES),
        analysis_confidence=extract_confidence(text),
    )


def normalize_clothing(response: AnalysisResponse) -> ClothingAnalysis:
    """Build a complete ClothingAnalysis from a parsed record or raw text."""
    if isinstance(response, Parsed):
        record = response.record
        secondary = record.get("secondaryColor")
        return ClothingAnalysis(
            type=_field(record, "type"),
            primary_color=_field(record, "primaryColor"),
            secondary_color=str(secondary) if secondary not in (None, "") else None,
            pattern=_field(record, "pattern"),
            material=_field(record, "material"),
            style=_field(record, "style"),
            fit=_field(record, "fit"),
            sleeves=_field(record, "sleeves"),
            neckline=_field(record, "neckline"),
            analysis_confidence=_field(record, "analysisConfidence"),
        )

    text = response.raw_text
    colors = extract_colors(text)
    return ClothingAnalysis(
        type=extract_value(text, CLOTHING_TYPES),
        primary_color=colors[0] if colors else UNKNOWN,
        secondary_color=colors[1] if len(colors) > 1 else None,
        pattern=extract_value(text, PATTERNS),
        material=extract_value(text, MATERIALS),
        style=extract_value(text, STYLES),
        fit=extract_value(text, FITS),
        sleeves=extract_value(text, SLEEVES),
        neckline=extract_value(text, NECKLINES),
        analysis_confidence=extract_confidence(text),
    )
