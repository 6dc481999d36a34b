# Test fixtures and configuration
import io
import random
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dress_studio.config import StudioConfig  # noqa: E402
from dress_studio.utils.images import ImagePayload  # noqa: E402


def encode_image(image: Image.Image, fmt: str = "PNG", **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def noise_image(width: int, height: int, seed: int = 0, mode: str = "RGB") -> Image.Image:
    """Random pixels; compresses badly, which is what budget tests need."""
    rng = random.Random(seed)
    return Image.frombytes(mode, (width, height), rng.randbytes(width * height * len(mode)))


@pytest.fixture
def make_image():
    """Factory for encoded test images."""
    def _make(width: int = 64, height: int = 96, fmt: str = "PNG", seed: int = 0, mode: str = "RGB", **params) -> bytes:
        return encode_image(noise_image(width, height, seed=seed, mode=mode), fmt, **params)
    return _make


@pytest.fixture
def png_bytes(make_image):
    """Small valid PNG."""
    return make_image(32, 48)


@pytest.fixture
def png_payload(png_bytes):
    return ImagePayload(filename="sketch.png", content_type="image/png", data=png_bytes)


@pytest.fixture
def temp_image_file(tmp_path, png_bytes):
    """Create a temporary PNG file."""
    img_path = tmp_path / "test_image.png"
    img_path.write_bytes(png_bytes)
    return img_path


@pytest.fixture
def settings(tmp_path):
    """Config isolated from the developer's .env and environment keys."""
    return StudioConfig(
        _env_file=None,
        openai_api_key="test-openai-key",
        fal_key="test-fal-key",
        state_file=tmp_path / "state" / "state.json",
    )
