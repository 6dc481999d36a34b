"""HTTP client for the Dress Studio API."""

import logging
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from ..config import StudioConfig
from ..errors import StudioError
from ..models import (
    ApprovalRequest,
    ApprovalResponse,
    DesignResponse,
    DesignVariation,
    OrderRequest,
    OrderResponse,
    TryOnResponse,
)
from ..utils.image_compressor import compress_payload
from ..utils.images import ImagePayload, decode_data_url, is_data_url, sniff_mime_type


logger = logging.getLogger(__name__)


class StudioClient:
    """Talks to the studio server the way the browser screens would.

    Uploads are compressed to the configured budget before they are sent.
    """

    def __init__(self, config: StudioConfig, http: httpx.AsyncClient | None = None):
        self.config = config
        self._client = http

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.api_base_url,
                timeout=300.0,  # generation can take minutes
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "StudioClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _prepare(self, payload: ImagePayload) -> tuple[str, bytes, str]:
        compressed = await compress_payload(payload, self.config.compression)
        logger.debug("Compressed %s: %d -> %d bytes", payload.filename, payload.size, compressed.size)
        return compressed.as_upload()

    async def _post(self, path: str, **kwargs) -> dict:
        response = await self.client.post(path, **kwargs)
        try:
            body = response.json()
        except ValueError:
            raise StudioError(f"{path} answered {response.status_code} without JSON") from None

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            raise StudioError(message or f"{path} failed with status {response.status_code}")
        return body

    @staticmethod
    def _parse(model, body: dict):
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise StudioError(f"Unexpected response shape: {e.error_count()} invalid fields") from e

    async def generate_designs(
        self,
        front: ImagePayload,
        back: ImagePayload | None = None,
        description: str = "",
        color: str = "#000000",
    ) -> list[DesignVariation]:
        files = {"frontDrawing": await self._prepare(front)}
        if back is not None:
            files["backDrawing"] = await self._prepare(back)

        body = await self._post(
            "/api/generate-design",
            files=files,
            data={"description": description, "color": color},
        )
        return self._parse(DesignResponse, body).variations

    async def try_on(
        self,
        person: ImagePayload,
        clothing: ImagePayload,
        model: str = "fal-ai",
    ) -> TryOnResponse:
        files = [
            ("personImage_0", await self._prepare(person)),
            ("clothingImage_0", await self._prepare(clothing)),
        ]
        body = await self._post("/api/try-on", files=files, data={"selectedModel": model})
        return self._parse(TryOnResponse, body)

    async def submit_order(self, order: OrderRequest) -> OrderResponse:
        body = await self._post("/api/submit-order", json=order.to_json_dict())
        return self._parse(OrderResponse, body)

    async def approve_design(self, approval: ApprovalRequest) -> ApprovalResponse:
        body = await self._post("/api/approve-design", json=approval.to_json_dict())
        return self._parse(ApprovalResponse, body)

    async def fetch_image(self, reference: str, filename: str = "design") -> ImagePayload:
        """Load a design or try-on image from its data URL or remote URL.

        Raises:
            StudioError: for placeholders and relative paths, which have no
                image behind them
        """
        if is_data_url(reference):
            try:
                data, content_type = decode_data_url(reference)
            except ValueError as e:
                raise StudioError(str(e)) from e
            content_type = content_type or sniff_mime_type(data)
            return ImagePayload(filename=f"{filename}{_suffix(content_type)}", content_type=content_type, data=data)

        parsed = urlparse(reference)
        if parsed.scheme not in ("http", "https"):
            raise StudioError(f"No image available for {reference}")

        response = await self.client.get(reference)
        response.raise_for_status()
        name = PurePosixPath(parsed.path).name or filename
        data = response.content
        content_type = response.headers.get("content-type", "").split(";")[0] or sniff_mime_type(data, name)
        return ImagePayload(filename=name, content_type=content_type, data=data)


def _suffix(content_type: str) -> str:
    return {"image/jpeg": ".jpg", "image/webp": ".webp", "image/gif": ".gif"}.get(content_type, ".png")
