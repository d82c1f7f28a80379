"""
Rebuilding a journey from a previously persisted, unfinished booking
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from bookingflow.booking.discounts import quantize_money
from bookingflow.booking.draft import (
    BookingDraft,
    ContactInfo,
    ParticipantRecord,
    SectionSelection,
    TierSelection,
)
from bookingflow.booking.forms import FormField
from bookingflow.booking.gateways import BookingStore
from bookingflow.booking.pricing_catalog import DEFAULT_TIER_ID, PricingCatalog
from bookingflow.schemas.booking import ResumeState
from bookingflow.schemas.event import EventRead, PricingTier

logger = logging.getLogger(__name__)

STORED_TIER_NAME = "Booked ticket"


@dataclass
class ResumeResult:
    """Hydrated draft plus whether it may still be paid"""
    draft: BookingDraft
    can_resume: bool
    state: ResumeState
    form_fields: List[FormField] = field(default_factory=list)
    step: Optional[int] = None

    @property
    def display_total(self) -> Optional[Decimal]:
        return self.draft.display_total


class ResumeLoader:
    """Loads a booking by id and hydrates a BookingDraft from it.

    Selections and participants are always hydrated so the buyer can see what
    they had. Only a resumable booking also sets the resume identity, the
    booker's contact details and the organizer form fields.
    """

    def __init__(self, store: BookingStore):
        self._store = store

    async def load(
        self,
        event: EventRead,
        booking_id: str,
        step: Optional[int] = None,
        tiers: Optional[List[PricingTier]] = None
    ) -> ResumeResult:
        state = await self._store.fetch_resume_state(booking_id)
        draft = BookingDraft()
        can_resume = state.can_resume

        if event.is_multi_section:
            sections = self._hydrate_sections(event, state)
            if sections is None:
                can_resume = False
            else:
                draft.section_selections = sections
        else:
            draft.tier_selection = self._hydrate_tier(state, tiers or [])

        if can_resume and draft.total_quantity < 1:
            logger.warning(f"Resumed booking {booking_id} has no tickets selected")
            can_resume = False

        for participant in state.participants:
            record = ParticipantRecord.from_data(participant)
            if not can_resume:
                record.custom_data = {}
            draft.participants.append(record)

        result = ResumeResult(draft=draft, can_resume=can_resume, state=state, step=step)

        if can_resume:
            draft.resume_booking_id = state.booking_id
            draft.booking_id = state.booking_id
            draft.contact = ContactInfo(
                first_name=state.contact_first_name or "",
                middle_name=state.contact_middle_name,
                last_name=state.contact_last_name or "",
                email=state.contact_email or "",
                phone=state.contact_phone,
            )
            result.form_fields = [FormField.from_schema(f) for f in event.form_fields]
            logger.info(f"Resuming booking {booking_id} for event {event.id}")
        else:
            draft.display_total = state.total_amount
            logger.info(
                f"Booking {booking_id} ({state.status.value}) can no longer be resumed, loaded for display only"
            )

        return result

    def _hydrate_sections(self, event: EventRead, state: ResumeState) -> Optional[List[SectionSelection]]:
        """Section lines of the stored booking, or None when a booked section is gone"""
        selections = []
        for line in state.section_selections:
            section = event.find_section(line.section_id)
            if section is None:
                logger.warning(f"Resumed booking {state.booking_id} references unknown section {line.section_id}")
                return None
            pricing = PricingCatalog.find_tier(section.pricing, line.pricing_id)
            if pricing is None:
                logger.warning(
                    f"Resumed booking {state.booking_id} references unlisted pricing {line.pricing_id}, "
                    f"using the booked price"
                )
                pricing = stored_tier(line.pricing_id, line.price)
            selections.append(SectionSelection(section=section, pricing=pricing, quantity=line.quantity))
        return selections

    def _hydrate_tier(self, state: ResumeState, tiers: List[PricingTier]) -> TierSelection:
        tier_id = state.pricing_id or DEFAULT_TIER_ID
        tier = PricingCatalog.find_tier(tiers, tier_id)
        if tier is None:
            logger.warning(
                f"Resumed booking {state.booking_id} references unlisted tier {tier_id}, using the booked price"
            )
            tier = stored_tier(tier_id, booked_unit_price(state))
        return TierSelection(tier=tier, quantity=state.quantity)


def booked_unit_price(state: ResumeState) -> Decimal:
    if not state.total_amount or state.quantity < 1:
        return Decimal("0")
    return quantize_money(state.total_amount / state.quantity)


def stored_tier(tier_id: str, price: Decimal) -> PricingTier:
    """Tier rebuilt from a booking row when the catalog no longer lists it"""
    return PricingTier(id=tier_id, name=STORED_TIER_NAME, price=price)
