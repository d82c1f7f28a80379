"""
Discount models
"""

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, Uuid
)
from sqlalchemy.orm import relationship
import enum

from bookingflow.models.base import BaseModel


class DiscountType(str, enum.Enum):
    CODE = "code"
    PARTICIPANT_BASED = "participant_based"
    SEAT_BASED = "seat_based"


class ValueType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class RuleType(str, enum.Enum):
    NAME_MATCH = "name_match"
    DOB_MATCH = "dob_match"
    CUSTOM = "custom"
    PREVIOUS_EVENT = "previous_event"


class EventDiscount(BaseModel):
    """
    Discount configured by an organizer for one event
    """
    __tablename__ = "event_discounts"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    code = Column(String(50), index=True)  # only for DiscountType.CODE
    discount_type = Column(Enum(DiscountType), nullable=False)
    value_type = Column(Enum(ValueType), nullable=False, default=ValueType.FIXED)
    value = Column(Numeric(10, 2), nullable=False)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    min_quantity = Column(Integer)
    max_quantity = Column(Integer)
    max_uses = Column(Integer)
    current_uses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    rules = relationship("ParticipantDiscountRule", back_populates="discount", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<EventDiscount(id={self.id}, name={self.name}, type={self.discount_type})>"


class ParticipantDiscountRule(BaseModel):
    """
    Eligibility rule of a participant-based discount; all rules must match
    """
    __tablename__ = "participant_discount_rules"

    discount_id = Column(Uuid(as_uuid=True), ForeignKey("event_discounts.id"), nullable=False, index=True)
    rule_type = Column(Enum(RuleType), nullable=False)
    field_name = Column(String(255))  # comma separated list for PREVIOUS_EVENT
    field_value = Column(String(255))
    operator = Column(String(20))
    related_event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"))

    discount = relationship("EventDiscount", back_populates="rules")
