"""
Notification schemas
"""

from bookingflow.schemas.base import BaseSchema, Identifier


class NotificationRequest(BaseSchema):
    """Fire-and-forget notification keyed by booking"""
    booking_id: Identifier


class NotificationResult(BaseSchema):
    """Delivery outcome of a notification"""
    success: bool
