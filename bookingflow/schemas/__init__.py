"""
Pydantic schemas for request and response validation
"""

from bookingflow.schemas.event import (
    PricingTier,
    SectionRead,
    EventSettings,
    FormFieldSchema,
    EventRead
)
from bookingflow.schemas.booking import (
    ParticipantData,
    SectionSelectionData,
    BookingRecord,
    BookingUpdate,
    DiscountApplicationData,
    ResumeState,
    ParticipantValidationRequest,
    ParticipantValidationIssue,
    ParticipantValidationResult
)
from bookingflow.schemas.discount import (
    DiscountRequest,
    AppliedDiscount,
    DiscountCalculation,
    DiscountCodeRequest,
    CodeDiscount
)
from bookingflow.schemas.checkout import CheckoutSessionRequest, CheckoutSession
from bookingflow.schemas.notification import NotificationRequest, NotificationResult
from bookingflow.schemas.response import ErrorResponse, ErrorDetail

__all__ = [
    "PricingTier",
    "SectionRead",
    "EventSettings",
    "FormFieldSchema",
    "EventRead",
    "ParticipantData",
    "SectionSelectionData",
    "BookingRecord",
    "BookingUpdate",
    "DiscountApplicationData",
    "ResumeState",
    "ParticipantValidationRequest",
    "ParticipantValidationIssue",
    "ParticipantValidationResult",
    "DiscountRequest",
    "AppliedDiscount",
    "DiscountCalculation",
    "DiscountCodeRequest",
    "CodeDiscount",
    "CheckoutSessionRequest",
    "CheckoutSession",
    "NotificationRequest",
    "NotificationResult",
    "ErrorResponse",
    "ErrorDetail"
]
