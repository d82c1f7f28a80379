"""
Seat availability per event and per section

Seat counters are read-only inputs here. They can arrive negative when
concurrent writers overbook a section, so "full" is always `<= 0`.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

from bookingflow.config import settings
from bookingflow.core.exceptions import MixedSelectionError, NotFoundError
from bookingflow.schemas.event import EventRead, PricingTier, SectionRead

logger = logging.getLogger(__name__)


class AvailabilityState(str, Enum):
    """Booking state of an event or section"""
    OPEN = "open"
    FULL_WHITELIST = "full_whitelist"
    FULL_CLOSED = "full_closed"


def classify_seats(available_seats: Optional[int], whitelist_enabled: bool) -> AvailabilityState:
    seats = available_seats if available_seats is not None else 0
    if seats > 0:
        return AvailabilityState.OPEN
    if whitelist_enabled:
        return AvailabilityState.FULL_WHITELIST
    return AvailabilityState.FULL_CLOSED


@dataclass(frozen=True)
class SectionOption:
    """A section/tier pair offered to the buyer"""
    section: SectionRead
    pricing: PricingTier
    state: AvailabilityState
    max_quantity: int

    @property
    def is_whitelist(self) -> bool:
        return self.state == AvailabilityState.FULL_WHITELIST


class AvailabilityOracle:
    """Answers availability questions for one event snapshot"""

    def __init__(self, event: EventRead, max_per_booking: Optional[int] = None):
        self.event = event
        self.max_per_booking = max_per_booking or settings.MAX_TICKETS_PER_BOOKING

    def _section(self, section: Union[str, SectionRead]) -> SectionRead:
        if isinstance(section, SectionRead):
            return section
        found = self.event.find_section(section)
        if found is None:
            raise NotFoundError("Section", section)
        return found

    def section_state(self, section: Union[str, SectionRead]) -> AvailabilityState:
        section = self._section(section)
        return classify_seats(section.available_seats, section.whitelist_enabled)

    def event_state(self) -> AvailabilityState:
        """Overall state; for multi-section events the best state of any section"""
        if self.event.is_multi_section:
            states = {self.section_state(s) for s in self.event.sections}
            if AvailabilityState.OPEN in states:
                return AvailabilityState.OPEN
            if AvailabilityState.FULL_WHITELIST in states:
                return AvailabilityState.FULL_WHITELIST
            return AvailabilityState.FULL_CLOSED

        if self.event.max_attendees is None:
            return AvailabilityState.OPEN
        return classify_seats(
            self.event.max_attendees - self.event.current_attendees,
            self.event.settings.whitelist_enabled
        )

    def is_sold_out(self) -> bool:
        return self.event_state() == AvailabilityState.FULL_CLOSED

    def remaining_capacity(self, section_id: Optional[str] = None) -> Optional[int]:
        """Seats left, clamped at zero; None means unlimited"""
        if section_id is not None:
            return max(0, self._section(section_id).available_seats or 0)
        if self.event.is_multi_section:
            return sum(max(0, s.available_seats or 0) for s in self.event.sections)
        if self.event.max_attendees is None:
            return None
        return max(0, self.event.max_attendees - self.event.current_attendees)

    def option_max_quantity(self, section: Union[str, SectionRead], pricing: PricingTier) -> int:
        section = self._section(section)
        state = self.section_state(section)
        tickets = pricing.available_tickets
        if state == AvailabilityState.FULL_WHITELIST:
            return min(self.max_per_booking, tickets or self.max_per_booking)
        if state == AvailabilityState.FULL_CLOSED:
            return 0
        limit = section.available_seats or 0
        if tickets is not None:
            limit = min(limit, tickets)
        return max(0, min(self.max_per_booking, limit))

    def bookable_options(self) -> List[SectionOption]:
        """Section/tier pairs that can be selected: seats and tickets left, or whitelisting"""
        options = []
        for section in self.event.sections:
            state = self.section_state(section)
            for pricing in section.pricing:
                tickets = pricing.available_tickets
                has_tickets = tickets is None or tickets > 0
                if (state == AvailabilityState.OPEN and has_tickets) or state == AvailabilityState.FULL_WHITELIST:
                    options.append(SectionOption(
                        section=section,
                        pricing=pricing,
                        state=state,
                        max_quantity=self.option_max_quantity(section, pricing)
                    ))
        return options

    def find_option(self, section_id: str, pricing_id: str) -> Optional[SectionOption]:
        for option in self.bookable_options():
            if option.section.id == section_id and option.pricing.id == pricing_id:
                return option
        return None

    def is_compatible(self, selected_section_ids: Iterable[str], candidate_section_id: str) -> bool:
        """Whether adding the candidate keeps the selection homogeneous"""
        states = {self.section_state(sid) for sid in selected_section_ids}
        candidate = self.section_state(candidate_section_id)
        if candidate == AvailabilityState.FULL_WHITELIST and AvailabilityState.OPEN in states:
            return False
        if candidate == AvailabilityState.OPEN and AvailabilityState.FULL_WHITELIST in states:
            return False
        return True

    def check_homogeneous(self, section_ids: Iterable[str]) -> None:
        """Raise MixedSelectionError if open and whitelist sections are combined"""
        seen: List[str] = []
        for section_id in section_ids:
            if not self.is_compatible(seen, section_id):
                raise MixedSelectionError(section_id)
            seen.append(section_id)

    def should_whitelist(
        self,
        section_ids: Optional[Iterable[str]] = None,
        bypass: bool = False
    ) -> bool:
        """True when the concrete selection can only be admitted to the whitelist"""
        if bypass:
            return False
        if self.event.is_multi_section:
            ids = list(section_ids or [])
            return bool(ids) and all(
                self.section_state(sid) == AvailabilityState.FULL_WHITELIST for sid in ids
            )
        return self.event_state() == AvailabilityState.FULL_WHITELIST

    def max_quantity(self, section_ids: Optional[Iterable[str]] = None) -> int:
        """Largest total ticket count the selection allows"""
        if self.event.is_multi_section:
            ids = set(section_ids or [])
            if not ids:
                return 0
            if any(self.section_state(sid) == AvailabilityState.FULL_WHITELIST for sid in ids):
                return self.max_per_booking
            capacity = sum(max(0, self._section(sid).available_seats or 0) for sid in ids)
            return min(self.max_per_booking, capacity)

        if self.event.max_attendees is None:
            return self.max_per_booking
        if self.event_state() == AvailabilityState.FULL_WHITELIST:
            return self.max_per_booking
        remaining = self.event.max_attendees - self.event.current_attendees
        return max(0, min(self.max_per_booking, remaining))
