"""Helpers for moving image bytes between uploads, data URLs and providers."""

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path


_SUFFIX_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


@dataclass(frozen=True)
class ImagePayload:
    """An image as received from a form upload or read from disk."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def to_data_url(self) -> str:
        return to_data_url(self.data, self.content_type)

    def as_upload(self) -> tuple[str, bytes, str]:
        """(filename, bytes, mime) tuple accepted by the OpenAI and httpx clients."""
        return (self.filename, self.data, self.content_type)

    @classmethod
    def from_path(cls, path: Path) -> "ImagePayload":
        data = path.read_bytes()
        return cls(filename=path.name, content_type=sniff_mime_type(data, path.name), data=data)


def sniff_mime_type(data: bytes, filename: str | None = None) -> str:
    """Detect image format from magic bytes, falling back to the file extension."""
    if data[:3] == b'\xff\xd8\xff':
        return "image/jpeg"
    if data[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"
    if data[:4] == b'RIFF' and data[8:12] == b'WEBP':
        return "image/webp"
    if data[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"

    suffix = Path(filename).suffix.lower() if filename else ""
    return _SUFFIX_MIME_TYPES.get(suffix, "image/png")


def to_data_url(data: bytes, content_type: str = "image/png") -> str:
    """Encode bytes as a ``data:`` URL."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def is_data_url(value: str) -> bool:
    return value.startswith("data:")


def decode_data_url(value: str) -> tuple[bytes, str | None]:
    """Decode a data URL (or bare base64) into bytes and its declared MIME type.

    Raises:
        ValueError: if the payload is not valid base64
    """
    content_type = None
    encoded = value
    if value.startswith("data:"):
        header, _, encoded = value.partition(",")
        content_type = header[5:].split(";", 1)[0] or None

    try:
        return base64.b64decode(encoded, validate=True), content_type
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image payload: {e}") from e
