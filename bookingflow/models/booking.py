"""
Booking, section booking, participant and discount application models
"""

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, JSON, Numeric, String, Uuid
)
from sqlalchemy.orm import relationship
import enum

from bookingflow.models.base import BaseModel


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    VERIFIED = "verified"
    WHITELISTED = "whitelisted"
    PENDING_APPROVAL = "pending_approval"
    CANCELLED = "cancelled"


# Statuses that hold a place at the event (used by the duplicate check)
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.VERIFIED,
    BookingStatus.PENDING,
    BookingStatus.WHITELISTED,
    BookingStatus.PENDING_APPROVAL,
)


class Booking(BaseModel):
    """
    Booking made by one buyer for one or more participants
    """
    __tablename__ = "bookings"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), index=True)
    # NULL when the synthetic default tier was booked
    pricing_id = Column(Uuid(as_uuid=True), ForeignKey("event_pricing.id"))
    quantity = Column(Integer, nullable=False, default=1)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(
        Enum(BookingStatus),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True
    )
    contact_first_name = Column(String(100))
    contact_middle_name = Column(String(100))
    contact_last_name = Column(String(100))
    contact_email = Column(String(255))
    contact_phone = Column(String(50))
    agreed_to_terms = Column(Boolean, nullable=False, default=False)
    stripe_session_id = Column(String(255))
    confirmed_at = Column(DateTime(timezone=True))

    # Relationships
    event = relationship("Event", back_populates="bookings")
    section_bookings = relationship("SectionBooking", back_populates="booking", cascade="all, delete-orphan")
    participants = relationship(
        "Participant", back_populates="booking", cascade="all, delete-orphan",
        order_by="Participant.position"
    )
    discount_applications = relationship(
        "DiscountApplication", back_populates="booking", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, status={self.status}, amount={self.total_amount})>"


class SectionBooking(BaseModel):
    """
    Seats booked in one section/tier of a multi-section event
    """
    __tablename__ = "section_bookings"

    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=False, index=True)
    section_id = Column(Uuid(as_uuid=True), ForeignKey("event_sections.id"), nullable=False)
    pricing_id = Column(Uuid(as_uuid=True), ForeignKey("section_pricing.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    booking = relationship("Booking", back_populates="section_bookings")


class Participant(BaseModel):
    """
    Person attending under a booking
    """
    __tablename__ = "participants"

    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100))
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date)
    email = Column(String(255))
    phone = Column(String(50))
    custom_data = Column(JSON, nullable=False, default=dict)

    booking = relationship("Booking", back_populates="participants")

    def __repr__(self):
        return f"<Participant(id={self.id}, name={self.first_name} {self.last_name})>"


class DiscountApplication(BaseModel):
    """
    Record of a discount applied to a booking
    """
    __tablename__ = "discount_applications"

    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=False, index=True)
    discount_id = Column(Uuid(as_uuid=True), ForeignKey("event_discounts.id"), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)

    booking = relationship("Booking", back_populates="discount_applications")
