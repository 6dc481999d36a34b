"""Adaptive JPEG compression to fit images into a byte and dimension budget.

Used on the client before uploads and on the server for inline provider
results. The search lowers JPEG quality first, then shrinks dimensions and
gives back a little quality, and always remembers the smallest encoding seen
so a run that cannot reach the budget still returns its best effort.
"""

import asyncio
import io
import math
import re
import threading
from dataclasses import dataclass, field

from PIL import Image, ImageFile, ImageOps

from ..config import CompressionConfig
from ..errors import ImageDecodeError
from .images import ImagePayload, decode_data_url, to_data_url


OUTPUT_FORMAT = "JPEG"
OUTPUT_MIME_TYPE = "image/jpeg"
OUTPUT_EXTENSION = ".jpg"

DEFAULT_MAX_BYTES = 1 * 1024 * 1024
MAX_ATTEMPTS = 15
QUALITY_FLOOR = 0.2
QUALITY_CEILING_AFTER_SCALE = 0.9

# LOAD_TRUNCATED_IMAGES is module-global in Pillow
_truncated_decode_lock = threading.Lock()


@dataclass
class CompressedImage:
    """Result of :func:`compress_image`."""
    data: bytes
    filename: str
    width: int
    height: int
    quality: float
    attempts: int
    history: list[int] = field(default_factory=list)  # encoded size of every attempt
    content_type: str = OUTPUT_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    def to_data_url(self) -> str:
        return to_data_url(self.data, self.content_type)

    def to_payload(self) -> ImagePayload:
        return ImagePayload(filename=self.filename, content_type=self.content_type, data=self.data)


def _round(value: float) -> int:
    """Round half up, like canvas pixel math."""
    return int(math.floor(value + 0.5))


def output_filename(name: str) -> str:
    """Swap (or add) the extension for the fixed output format."""
    renamed, count = re.subn(r"\.[^./\\]+$", OUTPUT_EXTENSION, name)
    return renamed if count else f"{name}{OUTPUT_EXTENSION}"


def _decode(raw: bytes) -> Image.Image:
    """Decode image bytes, trying Pillow's normal path then a truncation-tolerant reopen."""
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
        return image
    except (OSError, ValueError):
        pass

    # Fallback: tolerate truncated streams, padding the missing rows
    with _truncated_decode_lock:
        previous = ImageFile.LOAD_TRUNCATED_IMAGES
        ImageFile.LOAD_TRUNCATED_IMAGES = True
        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
            return image
        except (OSError, ValueError) as e:
            raise ImageDecodeError(f"Failed to load image: {e}") from e
        finally:
            ImageFile.LOAD_TRUNCATED_IMAGES = previous


def _to_rgb(image: Image.Image) -> Image.Image:
    """Flatten transparency onto white; JPEG has no alpha channel."""
    image = ImageOps.exif_transpose(image)
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def _encode(image: Image.Image, width: int, height: int, quality: float) -> bytes:
    width = max(1, _round(width))
    height = max(1, _round(height))
    frame = image if image.size == (width, height) else image.resize((width, height), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    frame.save(buffer, format=OUTPUT_FORMAT, quality=max(1, min(95, _round(quality * 100))), optimize=True)
    return buffer.getvalue()


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Initial target size: fit inside the bounds, keep the aspect ratio, never upscale."""
    aspect = width / max(1, height)
    target_width = min(max_width, width)
    target_height = _round(target_width / aspect)
    if target_height > max_height:
        target_height = min(max_height, height)
        target_width = _round(target_height * aspect)
    return max(1, target_width), max(1, target_height)


def compress_image(
    source: bytes | str,
    filename: str = "image",
    *,
    max_width: int = 1024,
    max_height: int = 1536,
    quality: float = 0.8,
    max_bytes: int = DEFAULT_MAX_BYTES,
    min_quality: float = 0.5,
    quality_step: float = 0.1,
    scale_step: float = 0.85,
    min_width: int = 256,
    min_height: int = 256,
) -> CompressedImage:
    """Re-encode an image as JPEG so it fits ``max_bytes`` with the best fidelity found.

    Args:
        source: Raw image bytes or a ``data:`` URL
        filename: Original file name; the output keeps it with a .jpg extension
        max_width, max_height: Bounding box for the initial fit
        quality: Starting JPEG quality in 0-1
        max_bytes: Byte budget
        min_quality: Lowest quality tried before shrinking (never below 0.2)
        quality_step: Quality decrement per attempt
        scale_step: Multiplicative shrink once the quality floor is reached
        min_width, min_height: Dimensions are never shrunk below these

    Returns:
        CompressedImage - within budget, or the smallest attempt if the floors
        were reached first

    Raises:
        ImageDecodeError: if the source cannot be decoded
    """
    if isinstance(source, str):
        try:
            raw, _ = decode_data_url(source)
        except ValueError as e:
            raise ImageDecodeError(str(e)) from e
    else:
        raw = source

    min_quality = max(QUALITY_FLOOR, min_quality)
    quality = min(0.95, max(0.1, quality))

    decoded = _decode(raw)
    try:
        image = _to_rgb(decoded)
        target_width, target_height = fit_within(image.width, image.height, max_width, max_height)

        output = _encode(image, target_width, target_height, quality)
        history = [len(output)]
        best = (output, target_width, target_height, quality)
        attempts = 0

        while len(output) > max_bytes and attempts < MAX_ATTEMPTS:
            if round(quality - quality_step, 4) >= min_quality:
                quality = max(min_quality, round(quality - quality_step, 4))
            elif target_width > min_width and target_height > min_height:
                # one factor for both sides keeps the aspect ratio at the floor
                factor = max(scale_step, min_width / target_width, min_height / target_height)
                target_width = max(min_width, _round(target_width * factor))
                target_height = max(min_height, _round(target_height * factor))
                quality = min(QUALITY_CEILING_AFTER_SCALE, max(min_quality, round(quality + quality_step / 2, 4)))
            else:
                break  # hard floor on both quality and dimensions

            attempts += 1
            output = _encode(image, target_width, target_height, quality)
            history.append(len(output))
            if len(output) < len(best[0]):
                best = (output, target_width, target_height, quality)
    finally:
        decoded.close()

    if len(output) <= max_bytes:
        final = (output, target_width, target_height, quality)
    else:
        final = best

    data, width, height, final_quality = final
    return CompressedImage(
        data=data,
        filename=output_filename(filename),
        width=width,
        height=height,
        quality=final_quality,
        attempts=attempts,
        history=history,
    )


async def compress_image_async(source: bytes | str, filename: str = "image", **options) -> CompressedImage:
    """Run :func:`compress_image` in a worker thread so the event loop keeps serving."""
    return await asyncio.to_thread(compress_image, source, filename, **options)


async def compress_payload(payload: ImagePayload, config: CompressionConfig) -> ImagePayload:
    """Compress an upload according to the configured budget."""
    result = await compress_image_async(
        payload.data,
        payload.filename,
        max_width=config.max_width,
        max_height=config.max_height,
        quality=config.quality,
        max_bytes=config.max_bytes,
    )
    return result.to_payload()
