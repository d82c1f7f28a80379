"""
Database models
"""

from bookingflow.models.event import (
    Event,
    EventSection,
    SectionPricing,
    EventPricing,
    EventFormField,
)
from bookingflow.models.booking import Booking, SectionBooking, Participant, DiscountApplication
from bookingflow.models.discount import EventDiscount, ParticipantDiscountRule
from bookingflow.models.audience import BannedParticipant, MailingListSubscriber

__all__ = [
    "Event",
    "EventSection",
    "SectionPricing",
    "EventPricing",
    "EventFormField",
    "Booking",
    "SectionBooking",
    "Participant",
    "DiscountApplication",
    "EventDiscount",
    "ParticipantDiscountRule",
    "BannedParticipant",
    "MailingListSubscriber",
]
