"""Data models for the Dress Studio."""

from .base import CamelModel
from .design import DesignSide, DesignVariation, TryOnResult
from .analysis import UNKNOWN, Measurements, PersonAnalysis, ClothingAnalysis
from .order import TailorForm, OrderRequest, ApprovalRequest, TrackingInfo, OrderLine
from .responses import ErrorResponse, DesignResponse, TryOnResponse, OrderResponse, ApprovalResponse

__all__ = [
    "CamelModel",
    "DesignSide",
    "DesignVariation",
    "TryOnResult",
    "UNKNOWN",
    "Measurements",
    "PersonAnalysis",
    "ClothingAnalysis",
    "TailorForm",
    "OrderRequest",
    "ApprovalRequest",
    "TrackingInfo",
    "OrderLine",
    "ErrorResponse",
    "DesignResponse",
    "TryOnResponse",
    "OrderResponse",
    "ApprovalResponse",
]
