"""
Booking notification endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.core.database import get_session
from bookingflow.schemas.notification import NotificationRequest, NotificationResult
from bookingflow.services.email_service import EmailService, email_service

router = APIRouter()
logger = logging.getLogger(__name__)


def get_email_service() -> EmailService:
    return email_service


@router.post("/whitelisted-booking", response_model=NotificationResult)
async def send_whitelisted_booking(
    request: NotificationRequest,
    db: AsyncSession = Depends(get_session),
    emails: EmailService = Depends(get_email_service)
) -> Any:
    """
    Email the booker that their booking is on the whitelist
    """
    sent = await emails.send_whitelisted_booking(db, request.booking_id)
    return NotificationResult(success=sent)


@router.post("/conditional-free-request", response_model=NotificationResult)
async def send_conditional_free_request(
    request: NotificationRequest,
    db: AsyncSession = Depends(get_session),
    emails: EmailService = Depends(get_email_service)
) -> Any:
    """
    Email the organizer a conditional free entry approval request
    """
    sent = await emails.send_conditional_free_request(db, request.booking_id)
    return NotificationResult(success=sent)
