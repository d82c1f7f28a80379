"""
Event, section, pricing and form field models
"""

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, Numeric, String, Text, Uuid
)
from sqlalchemy.orm import relationship
import enum

from bookingflow.models.base import BaseModel


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ENTRY_CLOSED = "entry_closed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class SectionStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class PricingType(str, enum.Enum):
    EARLY_BIRD = "early_bird"
    REGULAR = "regular"
    LATE_BIRD = "late_bird"
    SPECIAL = "special"
    CONDITIONAL_FREE = "conditional_free"


class MembershipType(str, enum.Enum):
    MEMBER = "member"
    NON_MEMBER = "non_member"
    ALL = "all"


class Event(BaseModel):
    """
    Bookable event. Events with sections are booked per section and their
    own price/attendee counters are ignored.
    """
    __tablename__ = "events"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True))
    entry_close_date = Column(DateTime(timezone=True))
    status = Column(
        Enum(EventStatus),
        default=EventStatus.DRAFT,
        nullable=False,
        index=True
    )
    price = Column(Numeric(10, 2), nullable=False, default=0)
    max_attendees = Column(Integer)  # NULL means unlimited
    current_attendees = Column(Integer, nullable=False, default=0)
    settings = Column(JSON, nullable=False, default=dict)
    organizer_id = Column(Uuid(as_uuid=True), index=True)
    organizer_email = Column(String(255))

    # Relationships
    sections = relationship(
        "EventSection", back_populates="event", cascade="all, delete-orphan",
        order_by="EventSection.start_date"
    )
    pricing = relationship("EventPricing", back_populates="event", cascade="all, delete-orphan")
    form_fields = relationship(
        "EventFormField", back_populates="event", cascade="all, delete-orphan",
        order_by="EventFormField.position"
    )
    bookings = relationship("Booking", back_populates="event", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, status={self.status})>"


class EventSection(BaseModel):
    """
    Independently capacitated sub-event
    """
    __tablename__ = "event_sections"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    status = Column(Enum(SectionStatus), nullable=False, default=SectionStatus.PUBLISHED)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    max_seats = Column(Integer)
    # Maintained by the booking writers; may go negative under concurrent overbooking
    available_seats = Column(Integer, nullable=False, default=0)
    whitelist_enabled = Column(Boolean, nullable=False, default=False)

    event = relationship("Event", back_populates="sections")
    pricing = relationship(
        "SectionPricing", back_populates="section", cascade="all, delete-orphan",
        order_by="SectionPricing.price"
    )

    def __repr__(self):
        return f"<EventSection(id={self.id}, title={self.title}, available={self.available_seats})>"


class SectionPricing(BaseModel):
    """
    Price tier scoped to one section
    """
    __tablename__ = "section_pricing"

    section_id = Column(Uuid(as_uuid=True), ForeignKey("event_sections.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    pricing_type = Column(Enum(PricingType), nullable=False, default=PricingType.REGULAR)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    available_tickets = Column(Integer)

    section = relationship("EventSection", back_populates="pricing")


class EventPricing(BaseModel):
    """
    Price tier scoped to a whole (single-section) event
    """
    __tablename__ = "event_pricing"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    pricing_type = Column(Enum(PricingType), nullable=False, default=PricingType.REGULAR)
    membership_type = Column(Enum(MembershipType), nullable=False, default=MembershipType.ALL)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    max_tickets = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)

    event = relationship("Event", back_populates="pricing")


class EventFormField(BaseModel):
    """
    Organizer-defined registration field collected per participant
    """
    __tablename__ = "event_form_fields"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    label = Column(String(255), nullable=False)
    field_type = Column(String(50), nullable=False, default="text")
    required = Column(Boolean, nullable=False, default=False)
    # Each option is stored either as a plain string or {"value": ..., "label": ...}
    options = Column(JSON)
    position = Column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="form_fields")
