"""External service adapters."""

from .openai_images import OpenAIImageClient, GeneratedImage, build_openai_client
from .fal_tryon import FalTryOnClient
from .order_desk import OrderDesk, ApprovalOutcome

__all__ = [
    "OpenAIImageClient",
    "GeneratedImage",
    "build_openai_client",
    "FalTryOnClient",
    "OrderDesk",
    "ApprovalOutcome",
]
