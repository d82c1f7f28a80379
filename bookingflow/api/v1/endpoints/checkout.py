"""
Hosted checkout endpoints
"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.core.database import get_session
from bookingflow.schemas.checkout import CheckoutSession, CheckoutSessionRequest
from bookingflow.services.payment_service import PaymentService

router = APIRouter()


@router.post("/sessions", response_model=CheckoutSession)
async def create_checkout_session(
    request: CheckoutSessionRequest,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Create a Stripe checkout session for a pending booking
    """
    return await PaymentService.create_checkout_session(db, request)
