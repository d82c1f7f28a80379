"""
Participant Validation Service
Ban-list and duplicate registration checks
"""

from typing import List, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.core.exceptions import NotFoundError
from bookingflow.models.audience import BannedParticipant
from bookingflow.models.booking import ACTIVE_BOOKING_STATUSES, Booking, Participant
from bookingflow.models.event import Event
from bookingflow.schemas.booking import (
    ParticipantData,
    ParticipantValidationIssue,
    ParticipantValidationRequest,
    ParticipantValidationResult,
)
from bookingflow.schemas.event import EventSettings
from bookingflow.services.booking_store import to_uuid

logger = logging.getLogger(__name__)

BANNED_MESSAGE = "Sorry, we cannot process your entry right now. Please contact the event organizer."


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip()


def same_person(existing: Participant, candidate: ParticipantData) -> bool:
    """Names trimmed, middle names compared with null == empty, exact date of birth"""
    return (
        _normalize(existing.first_name) == _normalize(candidate.first_name)
        and _normalize(existing.last_name) == _normalize(candidate.last_name)
        and _normalize(existing.middle_name) == _normalize(candidate.middle_name)
        and existing.date_of_birth == candidate.date_of_birth
    )


class ParticipantValidationService:
    """Service for rejecting banned and already registered participants"""

    @staticmethod
    async def is_banned(db: AsyncSession, participant: ParticipantData) -> bool:
        result = await db.execute(
            select(BannedParticipant.id).where(
                func.lower(BannedParticipant.first_name) == _normalize(participant.first_name).lower(),
                func.lower(BannedParticipant.last_name) == _normalize(participant.last_name).lower(),
                BannedParticipant.date_of_birth == participant.date_of_birth,
            )
        )
        return result.first() is not None

    @staticmethod
    async def registered_participants(
        db: AsyncSession,
        event_id: str,
        exclude_booking_id: Optional[str] = None
    ) -> List[Participant]:
        query = (
            select(Participant)
            .join(Booking, Participant.booking_id == Booking.id)
            .where(
                Booking.event_id == to_uuid(event_id, "Event"),
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
        )
        if exclude_booking_id:
            query = query.where(Booking.id != to_uuid(exclude_booking_id, "Booking"))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def validate(
        db: AsyncSession,
        request: ParticipantValidationRequest
    ) -> ParticipantValidationResult:
        """Check every complete participant; those missing names or date of birth are skipped"""
        event = await db.get(Event, to_uuid(request.event_id, "Event"))
        if event is None:
            raise NotFoundError("Event", request.event_id)
        prevent_duplicates = EventSettings.model_validate(event.settings or {}).prevent_duplicates

        existing: Optional[List[Participant]] = None
        errors: List[ParticipantValidationIssue] = []

        for index, participant in enumerate(request.participants):
            if not (participant.first_name and participant.last_name and participant.date_of_birth):
                continue

            if await ParticipantValidationService.is_banned(db, participant):
                logger.warning(f"Banned participant rejected for event {request.event_id}")
                errors.append(ParticipantValidationIssue(participant_index=index, error=BANNED_MESSAGE))
                continue

            if not prevent_duplicates:
                continue
            if existing is None:
                existing = await ParticipantValidationService.registered_participants(
                    db, request.event_id, request.exclude_booking_id
                )
            if any(same_person(e, participant) for e in existing):
                errors.append(ParticipantValidationIssue(
                    participant_index=index,
                    error=(
                        f"{participant.first_name} {participant.last_name} is already registered "
                        "for this event. Each person can only register once."
                    ),
                ))

        return ParticipantValidationResult(valid=not errors, errors=errors)
