"""
Pricing Service
Current single-event pricing tiers for a buyer class
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.core.exceptions import NotFoundError
from bookingflow.models.event import Event, EventPricing, MembershipType
from bookingflow.schemas.event import PricingTier
from bookingflow.services.booking_store import as_utc, to_uuid

logger = logging.getLogger(__name__)


def in_window(start: Optional[datetime], end: Optional[datetime], now: datetime) -> bool:
    start, end = as_utc(start), as_utc(end)
    if start is not None and start > now:
        return False
    if end is not None and end < now:
        return False
    return True


class PricingService:
    """Service for resolving purchasable tiers"""

    @staticmethod
    async def get_current_pricing(
        db: AsyncSession,
        event_id: str,
        membership_type: str,
        now: Optional[datetime] = None
    ) -> List[PricingTier]:
        """Active tiers for the buyer's membership type plus tiers open to all, cheapest first"""
        event_uuid = to_uuid(event_id, "Event")
        event = await db.get(Event, event_uuid)
        if event is None:
            raise NotFoundError("Event", event_id)

        try:
            membership = MembershipType(membership_type)
        except ValueError:
            membership = MembershipType.ALL

        result = await db.execute(
            select(EventPricing)
            .where(
                EventPricing.event_id == event_uuid,
                EventPricing.is_active.is_(True),
                or_(
                    EventPricing.membership_type == membership,
                    EventPricing.membership_type == MembershipType.ALL,
                ),
            )
            .order_by(EventPricing.price, EventPricing.name)
        )

        now = now or datetime.now(timezone.utc)
        tiers = [
            PricingTier(
                id=row.id,
                name=row.name,
                description=row.description,
                price=row.price,
                pricing_type=row.pricing_type,
                membership_type=row.membership_type,
                available_tickets=row.max_tickets,
                start_date=row.start_date,
                end_date=row.end_date,
            )
            for row in result.scalars().all()
            if in_window(row.start_date, row.end_date, now)
        ]
        logger.debug(f"Resolved {len(tiers)} pricing tiers for event {event_id} ({membership.value})")
        return tiers
