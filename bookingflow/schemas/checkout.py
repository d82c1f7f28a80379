"""
Checkout schemas
"""

from pydantic import Field
from typing import Optional
from decimal import Decimal

from bookingflow.schemas.base import BaseSchema, Identifier


class CheckoutSessionRequest(BaseSchema):
    """Hosted checkout session request for a pending booking"""
    booking_id: Identifier
    event_id: Identifier
    quantity: int = Field(..., ge=1)
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1)


class CheckoutSession(BaseSchema):
    """Hosted checkout session handle"""
    session_id: str
    url: Optional[str] = None
    processing_fee: Optional[Decimal] = None
