"""
BookingDraft: the in-memory aggregate a journey builds step by step
"""

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from bookingflow.core.exceptions import JourneyStateError, ValidationError
from bookingflow.booking.discounts import DiscountSummary
from bookingflow.booking.forms import FormField, missing_required_fields
from bookingflow.models.booking import BookingStatus
from bookingflow.schemas.booking import ParticipantData, SectionSelectionData
from bookingflow.schemas.event import PricingTier, SectionRead

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^[0-9+\-() ]+$")
MIN_PHONE_DIGITS = 6


class Classification(str, Enum):
    """Terminal routing of a completed journey"""
    CONFIRMED = "confirmed"
    PENDING_PAYMENT = "pending"
    WHITELISTED = "whitelisted"
    PENDING_APPROVAL = "pending_approval"

    @property
    def booking_status(self) -> BookingStatus:
        return BookingStatus(self.value)


@dataclass
class TierSelection:
    """Single-event selection"""
    tier: PricingTier
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.tier.price * self.quantity

    def describe(self) -> str:
        return f"{self.tier.name} x {self.quantity}"


@dataclass
class SectionSelection:
    """One section/tier line of a multi-section selection"""
    section: SectionRead
    pricing: PricingTier
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.pricing.price * self.quantity

    def describe(self) -> str:
        return f"{self.section.title} - {self.pricing.name} x {self.quantity}"

    def to_data(self) -> SectionSelectionData:
        return SectionSelectionData(
            section_id=self.section.id,
            pricing_id=self.pricing.id,
            quantity=self.quantity,
            price=self.pricing.price,
        )


@dataclass
class ContactInfo:
    """The booker"""
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None


@dataclass
class ParticipantRecord:
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    custom_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_contact(cls, contact: ContactInfo) -> "ParticipantRecord":
        return cls(
            first_name=contact.first_name,
            middle_name=contact.middle_name,
            last_name=contact.last_name,
            email=contact.email or None,
            phone=contact.phone,
        )

    @classmethod
    def from_data(cls, data: ParticipantData) -> "ParticipantRecord":
        return cls(
            first_name=data.first_name,
            middle_name=data.middle_name,
            last_name=data.last_name,
            date_of_birth=data.date_of_birth,
            email=data.email,
            phone=data.phone,
            custom_data=dict(data.custom_data),
        )

    def to_data(self) -> ParticipantData:
        return ParticipantData(
            first_name=self.first_name.strip(),
            middle_name=(self.middle_name or "").strip() or None,
            last_name=self.last_name.strip(),
            date_of_birth=self.date_of_birth,
            email=self.email or None,
            phone=self.phone or None,
            custom_data=dict(self.custom_data),
        )

    @property
    def is_blank(self) -> bool:
        return not (self.first_name or self.last_name or self.email or self.custom_data)


def validate_email(value: Optional[str], field_name: str = "email") -> None:
    if value and not EMAIL_PATTERN.match(value.strip()):
        raise ValidationError("Please enter a valid email address", field=field_name)


def validate_phone(value: Optional[str], field_name: str = "phone") -> None:
    if not value:
        return
    digits = sum(1 for c in value if c.isdigit())
    if not PHONE_PATTERN.match(value) or digits < MIN_PHONE_DIGITS:
        raise ValidationError("Please enter a valid phone number", field=field_name)


def validate_contact(contact: ContactInfo) -> None:
    """Raise ValidationError for the first problem in the booker's details"""
    if not contact.first_name.strip():
        raise ValidationError("First name is required", field="contact.first_name")
    if not contact.last_name.strip():
        raise ValidationError("Last name is required", field="contact.last_name")
    if not contact.email.strip():
        raise ValidationError("Email is required", field="contact.email")
    validate_email(contact.email, "contact.email")
    validate_phone(contact.phone, "contact.phone")


def validate_participant(
    index: int,
    participant: ParticipantRecord,
    form_fields: List[FormField],
    today: Optional[date] = None
) -> None:
    prefix = f"participants[{index}]"
    label = f"Participant {index + 1}"
    if not participant.first_name.strip():
        raise ValidationError(f"{label}: first name is required", field=f"{prefix}.first_name")
    if not participant.last_name.strip():
        raise ValidationError(f"{label}: last name is required", field=f"{prefix}.last_name")
    validate_email(participant.email, f"{prefix}.email")
    validate_phone(participant.phone, f"{prefix}.phone")
    if participant.date_of_birth and participant.date_of_birth > (today or date.today()):
        raise ValidationError(
            f"{label}: date of birth cannot be in the future", field=f"{prefix}.date_of_birth"
        )
    missing = missing_required_fields(form_fields, participant.custom_data)
    if missing:
        raise ValidationError(
            f"{label}: {missing[0].label} is required",
            field=f"{prefix}.custom_data.{missing[0].name}"
        )


@dataclass
class BookingDraft:
    """Selections, contact and participants collected by a journey.

    Exactly one of `tier_selection` (single event) and `section_selections`
    (multi-section) is used, decided by the event shape.
    """
    tier_selection: Optional[TierSelection] = None
    section_selections: List[SectionSelection] = field(default_factory=list)
    contact: ContactInfo = field(default_factory=ContactInfo)
    participants: List[ParticipantRecord] = field(default_factory=list)
    discounts: DiscountSummary = field(default_factory=DiscountSummary)
    agreed_to_terms: bool = False
    opt_in_marketing: bool = False
    resume_booking_id: Optional[str] = None
    booking_id: Optional[str] = None
    display_total: Optional[Decimal] = None
    _classification: Optional[Classification] = field(default=None, repr=False)

    @property
    def classification(self) -> Optional[Classification]:
        return self._classification

    def set_classification(self, classification: Classification) -> None:
        """A confirmed draft is never re-derived as anything else"""
        if self._classification == Classification.CONFIRMED and classification != Classification.CONFIRMED:
            raise JourneyStateError(
                f"Booking already classified as {self._classification.value}"
            )
        self._classification = classification

    @property
    def is_resuming(self) -> bool:
        return self.resume_booking_id is not None

    @property
    def total_quantity(self) -> int:
        if self.section_selections:
            return sum(s.quantity for s in self.section_selections)
        if self.tier_selection is not None:
            return self.tier_selection.quantity
        return 0

    @property
    def base_amount(self) -> Decimal:
        if self.section_selections:
            return sum((s.subtotal for s in self.section_selections), Decimal("0"))
        if self.tier_selection is not None:
            return self.tier_selection.subtotal
        return Decimal("0")

    @property
    def selected_tiers(self) -> List[PricingTier]:
        if self.section_selections:
            return [s.pricing for s in self.section_selections]
        if self.tier_selection is not None:
            return [self.tier_selection.tier]
        return []

    @property
    def selected_section_ids(self) -> List[str]:
        return [s.section.id for s in self.section_selections]

    def describe_selection(self) -> str:
        if self.section_selections:
            return ", ".join(s.describe() for s in self.section_selections)
        if self.tier_selection is not None:
            return self.tier_selection.describe()
        return ""

    def seed_first_participant(self) -> None:
        """Copy the booker into participant 0 unless it already holds data"""
        if not self.participants:
            self.participants.append(ParticipantRecord.from_contact(self.contact))
            return
        if self.participants[0].is_blank:
            first = ParticipantRecord.from_contact(self.contact)
            first.custom_data = self.participants[0].custom_data
            self.participants[0] = first

    def reconcile_participants(self) -> None:
        """Grow or shrink the participant list to the selected quantity"""
        target = self.total_quantity
        if len(self.participants) > target:
            del self.participants[target:]
        while len(self.participants) < target:
            self.participants.append(ParticipantRecord())
        if target > 0:
            self.seed_first_participant()

    def participant_data(self) -> List[ParticipantData]:
        return [p.to_data() for p in self.participants]
