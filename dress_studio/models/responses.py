"""JSON envelopes returned by the HTTP API."""

from datetime import date

from .analysis import ClothingAnalysis, PersonAnalysis
from .base import CamelModel
from .design import DesignVariation
from .order import TrackingInfo


class ErrorResponse(CamelModel):
    success: bool = False
    error: str


class DesignResponse(CamelModel):
    success: bool = True
    variations: list[DesignVariation]


class TryOnResponse(CamelModel):
    success: bool = True
    image_url: str
    person_details: PersonAnalysis | None = None
    clothing_details: ClothingAnalysis | None = None
    processing_time: str
    model_used: str
    provider: str
    prompt: str | None = None
    method: str


class OrderResponse(CamelModel):
    success: bool = True
    order_id: str
    message: str


class ApprovalResponse(CamelModel):
    success: bool = True
    order_id: str
    message: str
    estimated_delivery: date
    tracking_info: TrackingInfo
