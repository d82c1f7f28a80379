"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class BookingflowException(Exception):
    """Base exception for Bookingflow application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BookingflowException):
    """Client-local validation errors, attached to a single field"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        self.field = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class NotFoundError(BookingflowException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class GateError(BookingflowException):
    """Event cannot accept bookings (sold out, not published, entries closed)"""

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(
            message=message,
            code="BOOKING_GATE_CLOSED",
            status_code=409,
            details={"reason": reason}
        )


class AuthenticationRequiredError(BookingflowException):
    """Journey halted until the buyer signs in"""

    def __init__(self, return_to: Optional[str] = None):
        self.return_to = return_to
        super().__init__(
            message="Please sign in to continue your booking",
            code="AUTH_REQUIRED",
            status_code=401,
            details={"return_to": return_to} if return_to else {}
        )


class MixedSelectionError(BookingflowException):
    """Whitelist and open sections cannot be combined in one booking"""

    def __init__(self, section_id: str):
        super().__init__(
            message=(
                "You cannot mix whitelist sections with available sections in the same booking"
            ),
            code="MIXED_SELECTION",
            status_code=400,
            details={"section_id": section_id}
        )


class ParticipantRejectedError(BookingflowException):
    """A participant was rejected by the ban-list or duplicate check"""

    def __init__(self, participant_index: int, reason: str):
        self.participant_index = participant_index
        super().__init__(
            message=reason,
            code="PARTICIPANT_REJECTED",
            status_code=400,
            details={"participant_index": participant_index}
        )


class DiscountCodeError(BookingflowException):
    """Discount code rejected (unknown, expired, usage limit reached...)"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(
            message=message,
            code="DISCOUNT_CODE_REJECTED",
            status_code=status_code
        )


class PaymentError(BookingflowException):
    """Payment related errors"""

    def __init__(self, message: str = "Payment processing failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="PAYMENT_FAILED",
            status_code=402,
            details=details
        )


class PersistenceError(BookingflowException):
    """Storage write or read failure"""

    def __init__(self, message: str = "Failed to save booking", constraint: Optional[str] = None):
        self.constraint = constraint
        super().__init__(
            message=message,
            code="PERSISTENCE_ERROR",
            status_code=500,
            details={"constraint": constraint} if constraint else {}
        )


class JourneyStateError(BookingflowException):
    """Operation is not allowed in the journey's current step"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_JOURNEY_STATE",
            status_code=409
        )


class ExternalServiceError(BookingflowException):
    """External service error"""

    def __init__(self, service: str, message: str = None):
        self.service = service
        super().__init__(
            message=message or f"External service {service} is unavailable",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=503,
            details={"service": service}
        )


class PricingTimeoutError(ExternalServiceError):
    """Pricing fetch exceeded its time bound"""

    def __init__(self, timeout: float):
        super().__init__(
            service="pricing",
            message="Loading pricing timed out. Please try again."
        )
        self.code = "PRICING_TIMEOUT"
        self.status_code = 504
        self.details["timeout_seconds"] = timeout
