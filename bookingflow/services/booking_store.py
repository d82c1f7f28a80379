"""
SQLAlchemy implementation of the booking persistence boundary
"""

import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookingflow.config import settings
from bookingflow.core.database import transaction
from bookingflow.core.exceptions import NotFoundError, PersistenceError
from bookingflow.booking.gateways import BookingStore
from bookingflow.models.audience import MailingListSubscriber
from bookingflow.models.booking import (
    Booking,
    BookingStatus,
    DiscountApplication,
    Participant,
    SectionBooking,
)
from bookingflow.models.event import Event, EventSection, SectionStatus
from bookingflow.schemas.booking import (
    BookingRecord,
    BookingUpdate,
    DiscountApplicationData,
    ParticipantData,
    ResumeState,
    SectionSelectionData,
)
from bookingflow.schemas.event import EventRead

logger = logging.getLogger(__name__)


def to_uuid(value: Any, resource: str = "Record") -> Optional[uuid.UUID]:
    """Parse an id string; a malformed id can never match a row"""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError(resource, value)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite returns naive datetimes; stored timestamps are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def translate_integrity_error(error: IntegrityError) -> PersistenceError:
    """Map recognised constraint violations to friendlier messages"""
    text = str(error.orig).lower() if error.orig is not None else str(error).lower()
    if "title" in text and ("unique" in text or "duplicate" in text):
        return PersistenceError("An event with this title already exists", constraint="duplicate_title")
    if "check" in text or "not null" in text or "invalid input" in text:
        return PersistenceError("Some booking details are malformed, please review them", constraint="malformed_data")
    if "foreign key" in text:
        return PersistenceError("The booking references data that no longer exists", constraint="foreign_key")
    return PersistenceError()


def is_resumable(status: BookingStatus, created_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Pending bookings can still be paid within the resume window"""
    if status != BookingStatus.PENDING or created_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return as_utc(created_at) >= now - timedelta(days=settings.RESUME_WINDOW_DAYS)


class SqlAlchemyBookingStore(BookingStore):
    """BookingStore backed by one AsyncSession"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _write(self, description: str, work) -> Any:
        try:
            async with transaction(self.session):
                return await work()
        except IntegrityError as e:
            logger.error(f"Constraint violation while {description}: {e.orig}")
            raise translate_integrity_error(e)
        except SQLAlchemyError as e:
            logger.error(f"Database error while {description}: {e}")
            raise PersistenceError()

    async def fetch_event(self, event_id: str) -> EventRead:
        result = await self.session.execute(
            select(Event)
            .options(
                selectinload(Event.sections.and_(EventSection.status == SectionStatus.PUBLISHED))
                .selectinload(EventSection.pricing),
                selectinload(Event.form_fields),
            )
            .where(Event.id == to_uuid(event_id, "Event"))
            .execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError("Event", event_id)
        return EventRead.model_validate(event)

    async def create_booking(self, booking: BookingRecord) -> str:
        row = Booking(
            id=uuid.uuid4(),
            event_id=to_uuid(booking.event_id, "Event"),
            user_id=to_uuid(booking.user_id, "User"),
            pricing_id=to_uuid(booking.pricing_id, "Pricing"),
            **booking.model_dump(exclude={"event_id", "user_id", "pricing_id"}),
        )

        async def work():
            self.session.add(row)
            await self.session.flush()
            return str(row.id)

        booking_id = await self._write("creating booking", work)
        logger.info(f"Created {booking.status.value} booking {booking_id} for event {booking.event_id}")
        return booking_id

    async def update_booking(self, booking_id: str, changes: BookingUpdate) -> None:
        row = await self.session.get(Booking, to_uuid(booking_id, "Booking"))
        if row is None:
            raise NotFoundError("Booking", booking_id)

        values = changes.model_dump(exclude_unset=True)
        if "pricing_id" in values:
            values["pricing_id"] = to_uuid(values["pricing_id"], "Pricing")

        async def work():
            for key, value in values.items():
                setattr(row, key, value)

        await self._write(f"updating booking {booking_id}", work)

    async def fetch_participants(self, booking_id: str) -> List[ParticipantData]:
        result = await self.session.execute(
            select(Participant)
            .where(Participant.booking_id == to_uuid(booking_id, "Booking"))
            .order_by(Participant.position)
        )
        return [ParticipantData.model_validate(p) for p in result.scalars().all()]

    async def replace_participants(self, booking_id: str, participants: List[ParticipantData]) -> None:
        booking_uuid = to_uuid(booking_id, "Booking")

        async def work():
            await self.session.execute(delete(Participant).where(Participant.booking_id == booking_uuid))
            for position, participant in enumerate(participants):
                self.session.add(Participant(
                    booking_id=booking_uuid,
                    position=position,
                    **participant.model_dump(),
                ))

        await self._write(f"replacing participants of booking {booking_id}", work)

    async def replace_section_bookings(
        self, booking_id: str, selections: List[SectionSelectionData]
    ) -> None:
        booking_uuid = to_uuid(booking_id, "Booking")

        async def work():
            await self.session.execute(delete(SectionBooking).where(SectionBooking.booking_id == booking_uuid))
            for selection in selections:
                self.session.add(SectionBooking(
                    booking_id=booking_uuid,
                    section_id=to_uuid(selection.section_id, "Section"),
                    pricing_id=to_uuid(selection.pricing_id, "Pricing"),
                    quantity=selection.quantity,
                    price=selection.price,
                ))

        await self._write(f"replacing section bookings of booking {booking_id}", work)

    async def replace_discount_applications(
        self, booking_id: str, applications: List[DiscountApplicationData]
    ) -> None:
        booking_uuid = to_uuid(booking_id, "Booking")

        async def work():
            await self.session.execute(
                delete(DiscountApplication).where(DiscountApplication.booking_id == booking_uuid)
            )
            for application in applications:
                self.session.add(DiscountApplication(
                    booking_id=booking_uuid,
                    discount_id=to_uuid(application.discount_id, "Discount"),
                    discount_amount=application.discount_amount,
                ))

        await self._write(f"recording discounts of booking {booking_id}", work)

    async def fetch_resume_state(self, booking_id: str) -> ResumeState:
        result = await self.session.execute(
            select(Booking)
            .options(selectinload(Booking.section_bookings), selectinload(Booking.participants))
            .where(Booking.id == to_uuid(booking_id, "Booking"))
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError("Booking", booking_id)

        return ResumeState(
            booking_id=booking.id,
            event_id=booking.event_id,
            status=booking.status,
            quantity=booking.quantity,
            total_amount=booking.total_amount,
            pricing_id=booking.pricing_id,
            created_at=as_utc(booking.created_at),
            can_resume=is_resumable(booking.status, booking.created_at),
            contact_first_name=booking.contact_first_name,
            contact_middle_name=booking.contact_middle_name,
            contact_last_name=booking.contact_last_name,
            contact_email=booking.contact_email,
            contact_phone=booking.contact_phone,
            section_selections=[
                SectionSelectionData.model_validate(s) for s in booking.section_bookings
            ],
            participants=[ParticipantData.model_validate(p) for p in booking.participants],
        )

    async def is_subscribed(self, email: str) -> bool:
        result = await self.session.execute(
            select(MailingListSubscriber.id).where(MailingListSubscriber.email == email.strip().lower())
        )
        return result.scalar_one_or_none() is not None

    async def subscribe(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        source_event_id: Optional[str] = None
    ) -> None:
        subscriber = MailingListSubscriber(
            email=email.strip().lower(),
            first_name=first_name,
            last_name=last_name,
            source_event_id=to_uuid(source_event_id, "Event"),
        )

        async def work():
            self.session.add(subscriber)

        await self._write(f"subscribing {email}", work)
