"""Vision Analyzer - extracts person and clothing attributes from photos."""

import logging

import openai
from openai import AsyncOpenAI

from ..config import OpenAIConfig
from ..errors import ProviderError
from ..models.analysis import ClothingAnalysis, PersonAnalysis
from ..utils.attribute_parser import Unparsed, normalize_clothing, normalize_person, parse_response
from ..utils.images import ImagePayload


logger = logging.getLogger(__name__)


PERSON_SYSTEM_PROMPT = (
    "You are a vision assistant that MUST return only a single JSON object matching the specified "
    "schema. Never include extra text. If any value cannot be determined, set it to 'Unknown'."
)

PERSON_ANALYSIS_PROMPT = """Analyze this person's image and produce ONLY a JSON object with this exact structure:
{
  "bodyType": "Slim | Athletic | Average | Curvy | Plus Size | Unknown",
  "gender": "Male | Female | Non-binary | Unknown",
  "ageRange": "string (e.g., 20-30 or Unknown)",
  "height": "string (estimated in cm or Unknown)",
  "measurements": {
    "chest": "string (in cm or Unknown)",
    "waist": "string (in cm or Unknown)",
    "hips": "string (in cm or Unknown)",
    "shoulders": "string (in cm or Unknown)"
  },
  "skinTone": "Fair | Medium | Olive | Dark | Tan | Light | Deep | Unknown",
  "pose": "Standing | Casual | Formal | Sitting | Walking | Running | Unknown",
  "analysisConfidence": "string (percentage or Unknown)"
}
Do not add explanations. If unsure, use "Unknown"."""

CLOTHING_SYSTEM_PROMPT = (
    "You are a vision assistant that MUST return only a single JSON object matching the specified "
    "schema. Never include extra text. If any value cannot be determined, set it to 'Unknown' "
    "(or null for secondaryColor)."
)

CLOTHING_ANALYSIS_PROMPT = """Analyze this clothing item and produce ONLY a JSON object with this exact structure:
{
  "type": "string | Unknown",
  "primaryColor": "string | Unknown",
  "secondaryColor": "string or null",
  "pattern": "string | Unknown",
  "material": "string | Unknown",
  "style": "string | Unknown",
  "fit": "string | Unknown",
  "sleeves": "string | Unknown",
  "neckline": "string | Unknown",
  "analysisConfidence": "string (percentage or Unknown)"
}
Do not add explanations. If unsure, use "Unknown" and set secondaryColor to null when absent."""


class VisionAnalyzer:
    """Asks a vision model to describe a photo and normalizes the answer."""

    def __init__(self, client: AsyncOpenAI, config: OpenAIConfig):
        self.client = client
        self.config = config

    async def _ask(self, system_prompt: str, user_prompt: str, image: ImagePayload) -> str:
        """Send one image with the schema prompt and return the raw answer text."""
        response = await self.client.chat.completions.create(
            model=self.config.vision_model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": image.to_data_url(), "detail": "high"},
                        },
                    ],
                },
            ],
            max_tokens=self.config.vision_max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def analyze_person(self, image: ImagePayload) -> PersonAnalysis:
        """Describe the person in a photo.

        Raises:
            ProviderError: if the vision call itself fails
        """
        try:
            text = await self._ask(PERSON_SYSTEM_PROMPT, PERSON_ANALYSIS_PROMPT, image)
        except openai.OpenAIError as e:
            raise ProviderError(f"Failed to analyze person image: {e}", provider="OpenAI") from e

        response = parse_response(text)
        if isinstance(response, Unparsed):
            logger.warning("Person analysis not JSON, normalizing from text")
        return normalize_person(response)

    async def analyze_clothing(self, image: ImagePayload) -> ClothingAnalysis:
        """Describe a garment photo.

        Raises:
            ProviderError: if the vision call itself fails
        """
        try:
            text = await self._ask(CLOTHING_SYSTEM_PROMPT, CLOTHING_ANALYSIS_PROMPT, image)
        except openai.OpenAIError as e:
            raise ProviderError(f"Failed to analyze clothing image: {e}", provider="OpenAI") from e

        response = parse_response(text)
        if isinstance(response, Unparsed):
            logger.warning("Clothing analysis not JSON, normalizing from text")
        return normalize_clothing(response)
