"""
Purchasable price tiers for single-section events
"""

import asyncio
import logging
from decimal import Decimal
from typing import List, Optional

from bookingflow.config import settings
from bookingflow.core.exceptions import PricingTimeoutError
from bookingflow.core.metrics import metrics_collector
from bookingflow.booking.gateways import PricingGateway
from bookingflow.models.event import MembershipType, PricingType
from bookingflow.schemas.event import EventRead, PricingTier

logger = logging.getLogger(__name__)

# Id of the tier fabricated when an organizer configured none; never stored as a foreign key
DEFAULT_TIER_ID = "default"


def build_default_tier(event: EventRead) -> PricingTier:
    """Tier synthesized from the event's base price"""
    price = event.price or Decimal("0")
    return PricingTier(
        id=DEFAULT_TIER_ID,
        name="Free Event" if price == 0 else "General Admission",
        price=price,
        pricing_type=PricingType.REGULAR,
        membership_type=MembershipType.ALL,
        available_tickets=event.max_attendees or settings.UNLIMITED_TICKETS_SENTINEL,
    )


def is_synthetic_tier(tier: Optional[PricingTier]) -> bool:
    return tier is not None and tier.id == DEFAULT_TIER_ID


class PricingCatalog:
    """Resolves the ordered tier list a buyer can choose from.

    The catalog never selects a tier on the caller's behalf, even when only
    one tier exists.
    """

    def __init__(self, gateway: PricingGateway, timeout: Optional[float] = None):
        self._gateway = gateway
        self.timeout = timeout if timeout is not None else settings.PRICING_FETCH_TIMEOUT_SECONDS

    async def resolve(
        self,
        event: EventRead,
        membership_type: Optional[str] = None
    ) -> List[PricingTier]:
        """
        Fetch tiers filtered by membership, falling back to a synthetic default tier.

        Raises:
            PricingTimeoutError: If the fetch exceeds the configured bound.
            ExternalServiceError: If the fetch fails for any other reason.
        """
        membership = membership_type or settings.DEFAULT_MEMBERSHIP_TYPE
        async with metrics_collector.track_gateway_call("pricing"):
            try:
                tiers = await asyncio.wait_for(
                    self._gateway.fetch_pricing_tiers(event.id, membership),
                    timeout=self.timeout
                )
            except asyncio.TimeoutError:
                logger.warning(f"Pricing fetch for event {event.id} timed out after {self.timeout}s")
                raise PricingTimeoutError(self.timeout)

        if not tiers:
            logger.info(f"No pricing tiers configured for event {event.id}, using default tier")
            return [build_default_tier(event)]
        return list(tiers)

    @staticmethod
    def find_tier(tiers: List[PricingTier], tier_id: str) -> Optional[PricingTier]:
        for tier in tiers:
            if tier.id == tier_id:
                return tier
        return None
