"""Design variation pipeline: sketch in, front/back renderings out."""

import asyncio
import base64
import binascii
import logging

from ..agents.prompt_builder import build_design_prompt, style_for
from ..config import CompressionConfig, StudioConfig
from ..errors import ImageDecodeError, ProviderError
from ..models.design import DesignSide, DesignVariation
from ..services.openai_images import GeneratedImage, OpenAIImageClient
from ..utils.image_compressor import compress_image_async
from ..utils.images import ImagePayload, to_data_url


logger = logging.getLogger(__name__)


def placeholder_url(side: DesignSide, index: int, color: str | None) -> str:
    """Deterministic stand-in for a variation the provider could not render."""
    color_key = (color or "").replace("#", "")
    style = style_for(index).key
    return (
        f"/placeholder.svg?height=600&width=400"
        f"&query={style}_{side}_design_variation_{index + 1}_{color_key}"
    )


async def resolve_image_url(image: GeneratedImage, compression: CompressionConfig) -> str:
    """Remote URLs pass through; inline results are compressed into a data URL."""
    if not image.is_inline:
        return image.url

    try:
        raw = base64.b64decode(image.b64_json)
    except binascii.Error as e:
        raise ImageDecodeError(f"Provider returned invalid base64: {e}") from e

    try:
        compressed = await compress_image_async(
            raw,
            "variation.png",
            max_width=compression.max_width,
            max_height=compression.max_height,
            quality=compression.quality,
            max_bytes=compression.max_bytes,
        )
    except ImageDecodeError:
        logger.warning("Could not re-encode provider image, returning it as-is")
        return to_data_url(raw, "image/png")
    return compressed.to_data_url()


class DesignPipeline:
    """Generates design variations from a front (and optional back) sketch.

    Flow per side:
    1. One batched image-edit call asking for N variations
    2. Any variation the batch did not deliver is requested on its own
    3. Any single request that fails becomes a placeholder

    Front and back sides run concurrently.
    """

    def __init__(self, images: OpenAIImageClient, config: StudioConfig):
        self.images = images
        self.config = config

    @property
    def variations_per_side(self) -> int:
        return self.config.design.variations_per_side

    async def generate(
        self,
        front: ImagePayload,
        back: ImagePayload | None = None,
        description: str = "",
        color: str = "",
    ) -> list[DesignVariation]:
        """Render variations for the provided sketches.

        Args:
            front: Front sketch (required)
            back: Optional back sketch
            description: Designer notes
            color: Primary color, e.g. '#aa3355'

        Returns:
            Front variations followed by back variations
        """
        sides = [self._render_side("front", front, description, color)]
        if back is not None:
            sides.append(self._render_side("back", back, description, color))

        rendered = await asyncio.gather(*sides)
        return [variation for side in rendered for variation in side]

    async def _render_side(
        self,
        side: DesignSide,
        drawing: ImagePayload,
        description: str,
        color: str,
    ) -> list[DesignVariation]:
        count = self.variations_per_side
        urls: list[str | None] = [None] * count

        # Step 1: batched call
        try:
            generated = await self.images.edit(
                [drawing],
                build_design_prompt(side, description, color),
                n=count,
            )
            for index, image in enumerate(generated[:count]):
                try:
                    urls[index] = await resolve_image_url(image, self.config.compression)
                except ImageDecodeError as e:
                    logger.warning("Discarding unreadable %s variation %d: %s", side, index + 1, e)
        except ProviderError as e:
            logger.warning("Batched %s variation request failed: %s", side, e)

        # Step 2: fill the gaps one by one, each failure isolated
        missing = [index for index, url in enumerate(urls) if url is None]
        if missing:
            logger.info("Requesting %d %s variation(s) individually", len(missing), side)
            singles = await asyncio.gather(
                *(self._render_single(side, drawing, index, description, color) for index in missing)
            )
            for index, url in zip(missing, singles):
                urls[index] = url

        return [
            DesignVariation(
                id=f"{side}_{index + 1}",
                image_url=url,
                type=side,
                description=style_for(index).description(side),
            )
            for index, url in enumerate(urls)
        ]

    async def _render_single(
        self,
        side: DesignSide,
        drawing: ImagePayload,
        index: int,
        description: str,
        color: str,
    ) -> str:
        """Render one variation slot; never raises for provider failures."""
        prompt = build_design_prompt(side, description, color, style=style_for(index))
        try:
            generated = await self.images.edit([drawing], prompt, n=1)
            return await resolve_image_url(generated[0], self.config.compression)
        except (ProviderError, ImageDecodeError) as e:
            logger.warning("%s variation %d failed, using placeholder: %s", side.capitalize(), index + 1, e)
            return placeholder_url(side, index, color)
