"""
Event pricing and discount endpoints
"""

from typing import Any, List, Optional
import logging
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.config import settings
from bookingflow.core.database import get_session
from bookingflow.schemas.discount import (
    CodeDiscount,
    DiscountCalculation,
    DiscountCodeRequest,
    DiscountRequest,
)
from bookingflow.schemas.event import PricingTier
from bookingflow.services.discount_service import DiscountService
from bookingflow.services.pricing_service import PricingService

router = APIRouter()
logger = logging.getLogger(__name__)

# Tiers change with booking windows, so pricing is only cached briefly
PRICING_CACHE_CONTROL = "public, max-age=30, stale-while-revalidate=60"


@router.get("/{event_id}/pricing", response_model=List[PricingTier])
async def get_event_pricing(
    event_id: str,
    response: Response,
    membership_type: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Current pricing tiers for a buyer class
    """
    tiers = await PricingService.get_current_pricing(
        db, event_id, membership_type or settings.DEFAULT_MEMBERSHIP_TYPE
    )
    response.headers["Cache-Control"] = PRICING_CACHE_CONTROL
    return tiers


@router.post("/{event_id}/calculate-discounts", response_model=DiscountCalculation)
async def calculate_discounts(
    event_id: str,
    request: DiscountRequest,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Evaluate automatic discounts for a participant list
    """
    return await DiscountService.calculate_discounts(db, event_id, request)


@router.post("/{event_id}/apply-discount-code", response_model=CodeDiscount)
async def apply_discount_code(
    event_id: str,
    request: DiscountCodeRequest,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Look up a discount code
    """
    return await DiscountService.apply_code(db, event_id, request)
