"""
Boundary interfaces consumed by the booking journey

Every collaborator the journey talks to over the network sits behind one of
these interfaces so the journey can run against HTTP clients, the database
directly, or test doubles.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from bookingflow.schemas.booking import (
    BookingRecord,
    BookingUpdate,
    DiscountApplicationData,
    ParticipantData,
    ParticipantValidationResult,
    ResumeState,
    SectionSelectionData,
)
from bookingflow.schemas.checkout import CheckoutSession
from bookingflow.schemas.discount import CodeDiscount, DiscountCalculation
from bookingflow.schemas.event import EventRead, PricingTier


class BookingStore(ABC):
    """Row-level persistence for events, bookings and their children"""

    @abstractmethod
    async def fetch_event(self, event_id: str) -> EventRead:
        """Return the event with its sections, section pricing and form fields.

        Raises:
            NotFoundError: If the event does not exist.
        """
        ...

    @abstractmethod
    async def create_booking(self, booking: BookingRecord) -> str:
        """Insert a booking row and return its id."""
        ...

    @abstractmethod
    async def update_booking(self, booking_id: str, changes: BookingUpdate) -> None:
        """Write the explicitly set fields of `changes` to an existing booking."""
        ...

    @abstractmethod
    async def fetch_participants(self, booking_id: str) -> List[ParticipantData]:
        """Return the participants of a booking in their stored order."""
        ...

    @abstractmethod
    async def replace_participants(self, booking_id: str, participants: List[ParticipantData]) -> None:
        """Delete every participant of the booking and insert `participants`."""
        ...

    @abstractmethod
    async def replace_section_bookings(
        self, booking_id: str, selections: List[SectionSelectionData]
    ) -> None:
        """Delete every section-booking row of the booking and insert `selections`."""
        ...

    @abstractmethod
    async def replace_discount_applications(
        self, booking_id: str, applications: List[DiscountApplicationData]
    ) -> None:
        """Delete every discount-application row of the booking and insert `applications`."""
        ...

    @abstractmethod
    async def fetch_resume_state(self, booking_id: str) -> ResumeState:
        """Return the booking's current state, including whether it can still be paid.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        ...

    @abstractmethod
    async def is_subscribed(self, email: str) -> bool:
        """Check whether an email is already on the mailing list."""
        ...

    @abstractmethod
    async def subscribe(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        source_event_id: Optional[str] = None
    ) -> None:
        """Add an email to the mailing list."""
        ...


class PricingGateway(ABC):
    """Source of purchasable tiers for single-section events"""

    @abstractmethod
    async def fetch_pricing_tiers(self, event_id: str, membership_type: str) -> List[PricingTier]:
        """Return tiers available now to the given buyer class, possibly empty."""
        ...


class DiscountGateway(ABC):
    """Automatic and code-based discount evaluation"""

    @abstractmethod
    async def calculate_discounts(
        self,
        event_id: str,
        participants: List[ParticipantData],
        base_amount: Decimal,
        quantity: int
    ) -> DiscountCalculation:
        """Evaluate every automatic discount rule for the participants."""
        ...

    @abstractmethod
    async def apply_code(
        self,
        event_id: str,
        code: str,
        base_amount: Decimal,
        quantity: int
    ) -> CodeDiscount:
        """Look up a discount code.

        Raises:
            DiscountCodeError: With a human-readable reason if the code is rejected.
        """
        ...


class ParticipantValidationGateway(ABC):
    """Ban-list and duplicate-registration check"""

    @abstractmethod
    async def validate_participants(
        self,
        event_id: str,
        participants: List[ParticipantData],
        exclude_booking_id: Optional[str] = None
    ) -> ParticipantValidationResult:
        """Return per-participant rejections, if any.

        Participants of `exclude_booking_id` are not counted as duplicates,
        so a resumed booking is not rejected for its own participants.
        """
        ...


class PaymentGateway(ABC):
    """Hosted checkout"""

    @abstractmethod
    async def create_checkout_session(
        self,
        booking_id: str,
        event_id: str,
        quantity: int,
        amount: Decimal,
        description: str
    ) -> CheckoutSession:
        """Create a checkout session for a pending booking.

        Raises:
            PaymentError: If the session cannot be created.
        """
        ...


class NotificationGateway(ABC):
    """Transactional email sink keyed by template name"""

    @abstractmethod
    async def send(self, template: str, booking_id: str) -> bool:
        """Send the notification; return whether delivery was accepted."""
        ...
