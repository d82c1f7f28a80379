"""
Booking validation and resume endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.core.database import get_session
from bookingflow.schemas.booking import (
    ParticipantValidationRequest,
    ParticipantValidationResult,
    ResumeState,
)
from bookingflow.services.booking_store import SqlAlchemyBookingStore
from bookingflow.services.participant_validation_service import ParticipantValidationService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/validate-participants", response_model=ParticipantValidationResult)
async def validate_participants(
    request: ParticipantValidationRequest,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Ban-list and duplicate registration check
    """
    return await ParticipantValidationService.validate(db, request)


@router.get("/{booking_id}/resume", response_model=ResumeState)
async def get_resume_state(
    booking_id: str,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Booking state for resuming an unfinished booking
    """
    return await SqlAlchemyBookingStore(db).fetch_resume_state(booking_id)
