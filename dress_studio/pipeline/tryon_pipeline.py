"""Try-On Pipeline: analyse both photos and compose the try-on in parallel."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..agents.prompt_builder import build_tryon_prompt
from ..agents.vision_analyzer import VisionAnalyzer
from ..config import CompressionConfig
from ..errors import ProviderConfigError, ProviderError
from ..models.analysis import ClothingAnalysis, PersonAnalysis
from ..services.fal_tryon import FalTryOnClient
from ..services.openai_images import OpenAIImageClient
from ..utils.images import ImagePayload
from .design_pipeline import resolve_image_url


logger = logging.getLogger(__name__)

FAL_MODEL = "fal-ai"
OPENAI_MODEL = "openai"
SUPPORTED_MODELS = (FAL_MODEL, OPENAI_MODEL)

T = TypeVar("T")


@dataclass
class GenerationResult:
    image_url: str
    model_used: str
    provider: str
    method: str
    prompt: str | None = None


@dataclass
class TryOnOutcome:
    """Everything the try-on endpoint reports back."""
    generation: GenerationResult
    person_details: PersonAnalysis | None
    clothing_details: ClothingAnalysis | None
    processing_time: str


class TryOnPipeline:
    """Virtual try-on with side-by-side analysis.

    Flow:
    1. Analyse the person photo (vision model)
    2. Analyse the clothing photo (vision model)
    3. Generate the composite (Fal FASHN or OpenAI image edit)

    All three run concurrently; latency is that of the slowest call.
    Analysis failures only drop the details from the result, a generation
    failure fails the run.
    """

    def __init__(
        self,
        analyzer: VisionAnalyzer,
        images: OpenAIImageClient,
        fal: FalTryOnClient | None,
        compression: CompressionConfig,
    ):
        self.analyzer = analyzer
        self.images = images
        self.fal = fal
        self.compression = compression

    async def run(
        self,
        person_images: list[ImagePayload],
        clothing_images: list[ImagePayload],
        selected_model: str = FAL_MODEL,
    ) -> TryOnOutcome:
        """Run the try-on.

        Args:
            person_images: Person photos; only the first is used
            clothing_images: Garment photos; Fal uses the first, OpenAI all
            selected_model: 'fal-ai' or 'openai'

        Raises:
            ValueError: unknown model or missing images
            ProviderConfigError: the selected provider has no credentials
            ProviderError: generation failed
        """
        if selected_model not in SUPPORTED_MODELS:
            raise ValueError(f"Unsupported model '{selected_model}'")
        if not person_images or not clothing_images:
            raise ValueError("Both person and clothing images are required")
        if selected_model == FAL_MODEL and self.fal is None:
            raise ProviderConfigError("FAL_KEY not configured")

        start = time.perf_counter()

        # Model-specific constraints
        people = person_images[:1]
        clothing = clothing_images[:1] if selected_model == FAL_MODEL else clothing_images

        person_details, clothing_details, generation = await asyncio.gather(
            self._optional(self.analyzer.analyze_person, people[0], "person"),
            self._optional(self.analyzer.analyze_clothing, clothing[0], "clothing"),
            self._generate(selected_model, people, clothing),
        )

        elapsed = time.perf_counter() - start
        logger.info("Try-on with %s finished in %.1fs", generation.model_used, elapsed)

        return TryOnOutcome(
            generation=generation,
            person_details=person_details,
            clothing_details=clothing_details,
            processing_time=f"{elapsed:.1f}s",
        )

    async def _optional(
        self,
        analyze: Callable[[ImagePayload], Awaitable[T]],
        image: ImagePayload,
        label: str,
    ) -> T | None:
        try:
            return await analyze(image)
        except ProviderError as e:
            logger.warning("%s analysis failed, continuing without details: %s", label.capitalize(), e)
            return None

    async def _generate(
        self,
        selected_model: str,
        people: list[ImagePayload],
        clothing: list[ImagePayload],
    ) -> GenerationResult:
        if selected_model == FAL_MODEL:
            image_url = await self.fal.generate(people[0], clothing[0])
            return GenerationResult(
                image_url=image_url,
                model_used=self.fal.model,
                provider=self.fal.provider,
                method="virtual-try-on",
            )

        prompt = build_tryon_prompt()
        generated = await self.images.edit([people[0], *clothing], prompt, n=1)
        return GenerationResult(
            image_url=await resolve_image_url(generated[0], self.compression),
            model_used=self.images.config.image_model,
            provider=self.images.provider,
            method="image-edit",
            prompt=prompt,
        )
