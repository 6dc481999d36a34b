"""OpenAI image-edit client used for design variations and try-on."""

import logging
from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from ..config import OpenAIConfig, StudioConfig
from ..errors import ProviderConfigError, ProviderError, friendly_provider_message
from ..utils.images import ImagePayload


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedImage:
    """One image returned by the provider: a remote URL or inline base64."""
    url: str | None = None
    b64_json: str | None = None

    @property
    def is_inline(self) -> bool:
        return self.b64_json is not None


def build_openai_client(config: StudioConfig) -> AsyncOpenAI:
    """Create the SDK client, failing fast when no key is configured.

    Raises:
        ProviderConfigError: if OPENAI_API_KEY is not set
    """
    if not config.openai_api_key:
        raise ProviderConfigError("OPENAI_API_KEY not configured")
    return AsyncOpenAI(api_key=config.openai_api_key)


class OpenAIImageClient:
    """Thin wrapper over ``images.edit`` that speaks in ImagePayloads."""

    provider = "OpenAI"

    def __init__(self, client: AsyncOpenAI, config: OpenAIConfig):
        self.client = client
        self.config = config

    async def edit(self, images: list[ImagePayload], prompt: str, n: int = 1) -> list[GeneratedImage]:
        """Edit one or more reference images into ``n`` new images.

        Args:
            images: Reference images; the first is the one being edited
            prompt: Edit instruction
            n: Number of images to request in this call

        Returns:
            The images the provider returned (may be fewer than ``n``)

        Raises:
            ProviderError: if the call fails or returns nothing usable
        """
        if not images:
            raise ValueError("At least one reference image is required")

        image_arg = images[0].as_upload() if len(images) == 1 else [img.as_upload() for img in images]

        try:
            response = await self.client.images.edit(
                model=self.config.image_model,
                image=image_arg,
                prompt=prompt,
                n=n,
                size=self.config.image_size,
            )
        except openai.OpenAIError as e:
            logger.warning("OpenAI image edit failed: %s", e)
            raise ProviderError(friendly_provider_message(e, self.provider), provider=self.provider) from e

        results = [
            GeneratedImage(url=item.url, b64_json=item.b64_json)
            for item in (response.data or [])
            if item.url or item.b64_json
        ]
        if not results:
            raise ProviderError("No images returned from OpenAI edit", provider=self.provider)
        return results
