"""Mock order desk: issues order ids for tailor orders and design approvals.

No order is stored. A real deployment would hand the order to a database and
notify the tailor; here the order is logged and an identifier returned.
"""

import logging
import random
import secrets
import string
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from ..models.analysis import ClothingAnalysis, PersonAnalysis
from ..models.order import ApprovalRequest, OrderLine, OrderRequest, TrackingInfo


logger = logging.getLogger(__name__)

ORDER_PREFIX = "ORD"
APPROVAL_PREFIX = "TRY"
DELIVERY_DAYS = 7

_ID_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class ApprovalOutcome:
    order_id: str
    estimated_delivery: date
    tracking_info: TrackingInfo
    items: list[OrderLine]
    total_amount: int
    currency: str = "USD"


def new_order_id(prefix: str, now: float | None = None) -> str:
    """``PREFIX-<epoch ms>-<6 random uppercase alphanumerics>``."""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{prefix}-{millis}-{suffix}"


class OrderDesk:
    """Accepts orders and approvals and hands back identifiers."""

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def submit(self, order: OrderRequest) -> str:
        """Record a tailor order and return its id."""
        order_id = new_order_id(ORDER_PREFIX)

        logger.info(
            "New order received: %s",
            {
                "orderId": order_id,
                "customer": order.full_name,
                "contact": order.contact,
                "measurements": {
                    "bust": order.bust,
                    "waist": order.waist,
                    "hips": order.hips,
                    "shoulders": order.shoulders,
                    "height": order.height,
                    "weight": order.weight,
                },
                "designImages": order.design_refs,
                "tryOnImage": bool(order.try_on_image),
                "notes": order.additional_notes,
                "timestamp": order.timestamp or datetime.now().isoformat(),
            },
        )
        return order_id

    def approve(self, request: ApprovalRequest) -> ApprovalOutcome:
        """Turn an approved try-on into a confirmed (mock) order."""
        clothing = request.clothing_details or ClothingAnalysis()
        person = request.person_details or PersonAnalysis()
        price = random.randint(50, 149)

        outcome = ApprovalOutcome(
            order_id=new_order_id(APPROVAL_PREFIX),
            estimated_delivery=self._today() + timedelta(days=DELIVERY_DAYS),
            tracking_info=TrackingInfo(),
            items=[
                OrderLine(
                    type=clothing.type,
                    color=clothing.primary_color,
                    style=clothing.style,
                    price=price,
                )
            ],
            total_amount=price,
        )

        logger.info(
            "Mock order processed: %s",
            {
                "orderId": outcome.order_id,
                "tryOnImage": request.image_url,
                "customerDetails": person.to_json_dict(),
                "items": [item.to_json_dict() for item in outcome.items],
                "totalAmount": outcome.total_amount,
                "currency": outcome.currency,
                "estimatedDelivery": outcome.estimated_delivery.isoformat(),
            },
        )
        return outcome
