"""
Event schemas
"""

from pydantic import Field, field_validator
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from decimal import Decimal

from bookingflow.schemas.base import BaseSchema, Identifier
from bookingflow.models.event import EventStatus, MembershipType, PricingType


class PricingTier(BaseSchema):
    """Purchasable price tier, event-wide or scoped to a section"""
    id: Identifier
    name: str
    description: Optional[str] = None
    price: Decimal = Decimal("0")
    pricing_type: PricingType = PricingType.REGULAR
    membership_type: MembershipType = MembershipType.ALL
    available_tickets: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @property
    def is_conditional_free(self) -> bool:
        return self.pricing_type == PricingType.CONDITIONAL_FREE


class SectionRead(BaseSchema):
    """Section of a multi-section event"""
    id: Identifier
    event_id: Optional[Identifier] = None
    title: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_seats: Optional[int] = None
    available_seats: Optional[int] = 0
    whitelist_enabled: bool = False
    pricing: List[PricingTier] = Field(default_factory=list)


class EventSettings(BaseSchema):
    """Organizer toggles stored on the event"""
    whitelist_enabled: bool = False
    prevent_duplicates: bool = True


class FormFieldSchema(BaseSchema):
    """Organizer-defined registration field in its storage shape"""
    name: str
    label: str
    field_type: str = "text"
    required: bool = False
    options: Optional[List[Union[str, Dict[str, Any]]]] = None


class EventRead(BaseSchema):
    """Event as consumed by the booking journey"""
    id: Identifier
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    entry_close_date: Optional[datetime] = None
    status: EventStatus = EventStatus.DRAFT
    price: Decimal = Decimal("0")
    max_attendees: Optional[int] = None
    current_attendees: int = 0
    settings: EventSettings = Field(default_factory=EventSettings)
    sections: List[SectionRead] = Field(default_factory=list)
    form_fields: List[FormFieldSchema] = Field(default_factory=list)

    @field_validator("settings", mode="before")
    @classmethod
    def default_settings(cls, v):
        return v if v is not None else {}

    @property
    def is_multi_section(self) -> bool:
        return len(self.sections) > 0

    def find_section(self, section_id: str) -> Optional[SectionRead]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None
