"""Fal AI client for FASHN virtual try-on."""

import asyncio
import logging
from typing import Any

import fal_client

from ..config import FalConfig, StudioConfig
from ..errors import ProviderConfigError, ProviderError, friendly_provider_message
from ..utils.images import ImagePayload


logger = logging.getLogger(__name__)


def find_image_url(obj: Any) -> str | None:
    """Find the first http(s) image URL in a Fal response of unknown shape."""
    if isinstance(obj, dict):
        for key, value in obj.items():
            if key in ("url", "image_url", "output_url") and isinstance(value, str) and value.startswith("http"):
                return value
            found = find_image_url(value)
            if found:
                return found
    if isinstance(obj, list):
        for item in obj:
            found = find_image_url(item)
            if found:
                return found
    return None


class FalTryOnClient:
    """Uploads the person and garment photos to Fal and runs the try-on model."""

    provider = "Fal AI"

    def __init__(self, config: FalConfig, api_key: str):
        self.config = config
        self._api_key = api_key
        self._client: fal_client.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: StudioConfig) -> "FalTryOnClient":
        """Build from studio config.

        Raises:
            ProviderConfigError: if FAL_KEY is not set
        """
        if not config.fal_key:
            raise ProviderConfigError("FAL_KEY not configured")
        return cls(config.fal, config.fal_key)

    @property
    def client(self) -> fal_client.AsyncClient:
        """Get or create the Fal client."""
        if self._client is None:
            self._client = fal_client.AsyncClient(key=self._api_key)
        return self._client

    @property
    def model(self) -> str:
        return self.config.tryon_model

    async def generate(self, person: ImagePayload, garment: ImagePayload) -> str:
        """Run a try-on and return the URL of the composite image.

        Raises:
            ProviderError: if upload or generation fails
        """
        try:
            # Uploads are independent; run them side by side
            person_url, garment_url = await asyncio.gather(
                self.client.upload(person.data, person.content_type, file_name=person.filename),
                self.client.upload(garment.data, garment.content_type, file_name=garment.filename),
            )

            result = await self.client.subscribe(
                self.config.tryon_model,
                arguments={
                    "model_image": person_url,
                    "garment_image": garment_url,
                    "category": self.config.category,
                },
            )
        except Exception as e:
            logger.warning("Fal try-on failed: %s", e)
            raise ProviderError(friendly_provider_message(e, self.provider), provider=self.provider) from e

        image_url = find_image_url(result)
        if not image_url:
            raise ProviderError("No image URL in Fal AI response", provider=self.provider)
        return image_url
