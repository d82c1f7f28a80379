"""
Booking schemas
"""

from pydantic import Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from bookingflow.schemas.base import BaseSchema, Identifier
from bookingflow.models.booking import BookingStatus
from bookingflow.config import settings


class ParticipantData(BaseSchema):
    """Participant as sent to the validation/discount boundaries and stored"""
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    custom_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("custom_data", mode="before")
    @classmethod
    def default_custom_data(cls, v):
        return v if v is not None else {}


class SectionSelectionData(BaseSchema):
    """One section/tier line of a multi-section booking"""
    section_id: Identifier
    pricing_id: Identifier
    quantity: int = Field(..., ge=1, le=settings.MAX_TICKETS_PER_BOOKING)
    price: Decimal = Decimal("0")


class BookingRecord(BaseSchema):
    """Booking row as handed to the persistence boundary on creation"""
    event_id: Identifier
    user_id: Optional[Identifier] = None
    pricing_id: Optional[Identifier] = None
    quantity: int = Field(..., ge=1)
    total_amount: Decimal
    discount_amount: Decimal = Decimal("0")
    status: BookingStatus
    contact_first_name: Optional[str] = None
    contact_middle_name: Optional[str] = None
    contact_last_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    agreed_to_terms: bool = False


class BookingUpdate(BaseSchema):
    """Partial booking update; only explicitly set fields are written"""
    pricing_id: Optional[Identifier] = None
    quantity: Optional[int] = Field(None, ge=1)
    total_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    status: Optional[BookingStatus] = None
    contact_first_name: Optional[str] = None
    contact_middle_name: Optional[str] = None
    contact_last_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    agreed_to_terms: Optional[bool] = None
    stripe_session_id: Optional[str] = None
    confirmed_at: Optional[datetime] = None


class DiscountApplicationData(BaseSchema):
    """Discount recorded against a booking"""
    discount_id: Identifier
    discount_amount: Decimal


class ResumeState(BaseSchema):
    """Everything needed to rebuild an in-flight booking"""
    booking_id: Identifier
    event_id: Identifier
    status: BookingStatus
    quantity: int = 1
    total_amount: Optional[Decimal] = None
    pricing_id: Optional[Identifier] = None
    created_at: Optional[datetime] = None
    can_resume: bool = False
    contact_first_name: Optional[str] = None
    contact_middle_name: Optional[str] = None
    contact_last_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    section_selections: List[SectionSelectionData] = Field(default_factory=list)
    participants: List[ParticipantData] = Field(default_factory=list)


class ParticipantValidationRequest(BaseSchema):
    """Ban-list and duplicate check request"""
    event_id: Identifier
    participants: List[ParticipantData]
    exclude_booking_id: Optional[Identifier] = None


class ParticipantValidationIssue(BaseSchema):
    """Rejection of one participant"""
    participant_index: int
    error: str


class ParticipantValidationResult(BaseSchema):
    """Ban-list and duplicate check outcome"""
    valid: bool
    errors: List[ParticipantValidationIssue] = Field(default_factory=list)
