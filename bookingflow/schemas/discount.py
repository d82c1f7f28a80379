"""
Discount schemas
"""

from pydantic import Field
from typing import List, Optional
from decimal import Decimal

from bookingflow.schemas.base import BaseSchema, Identifier
from bookingflow.schemas.booking import ParticipantData


class DiscountRequest(BaseSchema):
    """Automatic discount calculation request"""
    participants: List[ParticipantData]
    base_amount: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class AppliedDiscount(BaseSchema):
    """One automatic discount that applies to the booking"""
    discount_id: Identifier
    name: str
    amount_off: Decimal
    rule_type: str
    eligible_participants: Optional[int] = None
    previous_event: bool = False


class DiscountCalculation(BaseSchema):
    """Result of automatic discount evaluation"""
    total_discount: Decimal = Decimal("0")
    applied_discounts: List[AppliedDiscount] = Field(default_factory=list)
    final_amount: Decimal = Decimal("0")


class DiscountCodeRequest(BaseSchema):
    """Discount code lookup request"""
    code: str = Field(..., min_length=1)
    base_amount: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class CodeDiscount(BaseSchema):
    """Accepted discount code and what it takes off"""
    discount_id: Identifier
    name: str
    description: Optional[str] = None
    value_type: str
    value: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    message: Optional[str] = None
