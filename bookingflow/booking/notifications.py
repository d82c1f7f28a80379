"""
Notification dispatch for finalized booking classifications
"""

import logging
from enum import Enum
from typing import Optional

from bookingflow.core.metrics import metrics_collector
from bookingflow.booking.draft import Classification
from bookingflow.booking.gateways import NotificationGateway

logger = logging.getLogger(__name__)


class NotificationTemplate(str, Enum):
    WHITELISTED_BOOKING = "whitelisted_booking"
    CONDITIONAL_FREE_REQUEST = "conditional_free_request"


TEMPLATES_BY_CLASSIFICATION = {
    Classification.WHITELISTED: NotificationTemplate.WHITELISTED_BOOKING,
    Classification.PENDING_APPROVAL: NotificationTemplate.CONDITIONAL_FREE_REQUEST,
}


def template_for(classification: Classification) -> Optional[NotificationTemplate]:
    """Notification variant for a classification; None when nothing is sent"""
    return TEMPLATES_BY_CLASSIFICATION.get(classification)


class NotificationDispatcher:
    """Sends the notification variant matching a classification.

    Delivery failures are logged and reported through the return value;
    they never propagate into the journey.
    """

    def __init__(self, gateway: NotificationGateway):
        self._gateway = gateway

    async def dispatch(self, classification: Classification, booking_id: str) -> bool:
        template = template_for(classification)
        if template is None:
            logger.debug(f"No notification for {classification.value} booking {booking_id}")
            return False

        try:
            async with metrics_collector.track_gateway_call("notifications"):
                sent = await self._gateway.send(template.value, booking_id)
        except Exception as e:
            logger.error(f"Failed to send {template.value} notification for booking {booking_id}: {e}")
            return False

        if sent:
            logger.info(f"Sent {template.value} notification for booking {booking_id}")
        else:
            logger.warning(f"{template.value} notification for booking {booking_id} was not accepted")
        return sent
