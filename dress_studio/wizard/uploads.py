"""User-selected images and their preview handles."""

import base64
import logging
import os
import tempfile
import uuid
from pathlib import Path

from ..models import CamelModel
from ..utils.images import ImagePayload, sniff_mime_type


logger = logging.getLogger(__name__)

PREVIEW_PREFIX = "dress_studio_preview_"


class StoredImage(CamelModel):
    """Persisted form of an :class:`UploadedImage` (base64 payload)."""
    id: str
    filename: str
    content_type: str
    data: str


class UploadedImage:
    """An image picked by the user, plus a preview file on disk.

    The preview is a temporary file that viewers can open while the image is
    part of the wizard. It is an OS resource, so the owner must call
    :meth:`release` when the image is replaced, removed or reset. The bytes
    themselves stay in memory after release, only the preview goes away.
    """

    def __init__(self, payload: ImagePayload, image_id: str | None = None):
        self.payload = payload
        self.id = image_id or uuid.uuid4().hex[:9]

        suffix = Path(payload.filename).suffix or ".img"
        fd, path = tempfile.mkstemp(prefix=PREVIEW_PREFIX, suffix=suffix)
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload.data)
        self._preview: Path | None = Path(path)

    def __repr__(self) -> str:
        state = "released" if self.released else str(self._preview)
        return f"UploadedImage(id={self.id!r}, filename={self.filename!r}, preview={state})"

    @property
    def filename(self) -> str:
        return self.payload.filename

    @property
    def data(self) -> bytes:
        return self.payload.data

    @property
    def preview(self) -> Path | None:
        """Path of the preview file, or None once released."""
        return self._preview

    @property
    def released(self) -> bool:
        return self._preview is None

    def release(self) -> bool:
        """Delete the preview file.

        Returns:
            True on the call that actually released it, False on repeats
        """
        if self._preview is None:
            return False
        preview, self._preview = self._preview, None
        try:
            preview.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove preview %s: %s", preview, e)
        return True

    @classmethod
    def from_bytes(cls, data: bytes, filename: str, content_type: str | None = None) -> "UploadedImage":
        if not data:
            raise ValueError(f"{filename} is empty")
        content_type = content_type or sniff_mime_type(data, filename)
        if not content_type.startswith("image/"):
            raise ValueError(f"{filename} is not an image ({content_type})")
        return cls(ImagePayload(filename=filename, content_type=content_type, data=data))

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedImage":
        path = Path(path)
        return cls.from_bytes(path.read_bytes(), path.name)

    def to_stored(self) -> StoredImage:
        return StoredImage(
            id=self.id,
            filename=self.payload.filename,
            content_type=self.payload.content_type,
            data=base64.b64encode(self.payload.data).decode("ascii"),
        )

    @classmethod
    def from_stored(cls, stored: StoredImage) -> "UploadedImage":
        payload = ImagePayload(
            filename=stored.filename,
            content_type=stored.content_type,
            data=base64.b64decode(stored.data),
        )
        return cls(payload, image_id=stored.id)
