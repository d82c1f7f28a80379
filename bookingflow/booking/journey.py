"""
BookingJourney: the multi-step booking state machine

The step index is shared with the page layout, but its meaning depends on the
event shape. Single events use steps 1-4 (pricing, contact, participants,
review); multi-section events use steps 0-3 (sections, contact, participants,
review). Both reach the terminal step at 5. The variant is chosen once, by
`create_journey`, and never changes for the lifetime of a journey.
"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from bookingflow.config import settings
from bookingflow.core.exceptions import (
    AuthenticationRequiredError,
    BookingflowException,
    ExternalServiceError,
    GateError,
    JourneyStateError,
    MixedSelectionError,
    ParticipantRejectedError,
    ValidationError,
)
from bookingflow.core.logging import BookingLoggerAdapter
from bookingflow.core.metrics import metrics_collector
from bookingflow.core.tasks import TaskHandle
from bookingflow.booking.availability import AvailabilityOracle, SectionOption
from bookingflow.booking.discounts import DiscountEngine
from bookingflow.booking.draft import (
    BookingDraft,
    Classification,
    SectionSelection,
    TierSelection,
    validate_contact,
    validate_participant,
)
from bookingflow.booking.forms import FormField
from bookingflow.booking.gateways import (
    BookingStore,
    DiscountGateway,
    NotificationGateway,
    ParticipantValidationGateway,
    PaymentGateway,
    PricingGateway,
)
from bookingflow.booking.notifications import NotificationDispatcher
from bookingflow.booking.pricing_catalog import PricingCatalog, is_synthetic_tier
from bookingflow.booking.resume import ResumeLoader, ResumeResult
from bookingflow.models.event import EventStatus
from bookingflow.schemas.booking import BookingRecord, BookingUpdate, DiscountApplicationData
from bookingflow.schemas.event import EventRead, PricingTier

logger = logging.getLogger(__name__)

TERMINAL_STEP = 5


class StepKind(str, Enum):
    SECTIONS = "sections"
    PRICING = "pricing"
    CONTACT = "contact"
    PARTICIPANTS = "participants"
    REVIEW = "review"
    TERMINAL = "terminal"


SINGLE_EVENT_STEPS = {
    1: StepKind.PRICING,
    2: StepKind.CONTACT,
    3: StepKind.PARTICIPANTS,
    4: StepKind.REVIEW,
    TERMINAL_STEP: StepKind.TERMINAL,
}

MULTI_SECTION_STEPS = {
    0: StepKind.SECTIONS,
    1: StepKind.CONTACT,
    2: StepKind.PARTICIPANTS,
    3: StepKind.REVIEW,
    TERMINAL_STEP: StepKind.TERMINAL,
}

SINGLE_EVENT_LABELS = ["Pricing", "Contact", "Participants", "Review"]
MULTI_SECTION_LABELS = ["Sections", "Contact", "Participants", "Review"]

# Leaving this step requires a signed-in buyer, in both variants
AUTH_REQUIRED_STEP = 1

CONTACT_FIELDS = ("first_name", "middle_name", "last_name", "email", "phone")
OPTIONAL_CONTACT_FIELDS = ("middle_name", "phone")
PARTICIPANT_FIELDS = ("first_name", "middle_name", "last_name", "date_of_birth", "email", "phone")


@dataclass
class JourneyContext:
    """Step state shared with the surrounding page layout.

    The layout may drive the step only until a journey takes control; after
    that the journey is the single writer and external writes are ignored.
    """
    step: int = 0
    on_step_change: Optional[Callable[[int], Any]] = None
    has_interacted: bool = False
    owned_by_journey: bool = False

    def take_control(self) -> None:
        self.owned_by_journey = True

    def external_set_step(self, step: int) -> bool:
        if self.owned_by_journey:
            logger.debug(f"Ignoring external step change to {step}, journey owns the step")
            return False
        self.step = step
        return True

    def set_step(self, step: int) -> None:
        self.step = step
        if self.on_step_change is not None:
            self.on_step_change(step)


class BookingJourney:
    """Shared state machine for both event shapes.

    Every public action returns True when it succeeded. On failure the error
    is kept in `error` (one slot, cleared by the next action) and the journey
    stays where it was.
    """

    STEPS: Dict[int, StepKind] = {}
    LABELS: List[str] = []
    FIRST_STEP = 0

    def __init__(
        self,
        event: EventRead,
        *,
        store: BookingStore,
        pricing: PricingGateway,
        discounts: DiscountGateway,
        participant_validation: ParticipantValidationGateway,
        payment: PaymentGateway,
        notifications: NotificationGateway,
        context: Optional[JourneyContext] = None,
        user_id: Optional[str] = None,
        membership_type: Optional[str] = None,
        current_path: Optional[str] = None,
        navigate: Optional[Callable[[str], Any]] = None,
        redirect_delay: Optional[float] = None,
    ):
        self.event = event
        self.context = context or JourneyContext()
        self.user_id = user_id
        self.membership_type = membership_type or settings.DEFAULT_MEMBERSHIP_TYPE
        self.current_path = current_path or f"/events/{event.id}"
        self.redirect_delay = (
            redirect_delay if redirect_delay is not None else settings.SUCCESS_REDIRECT_DELAY_SECONDS
        )

        self.oracle = AvailabilityOracle(event)
        self.catalog = PricingCatalog(pricing)
        self.discount_engine = DiscountEngine(discounts)
        self.dispatcher = NotificationDispatcher(notifications)
        self.resume_loader = ResumeLoader(store)
        self._store = store
        self._participant_validation = participant_validation
        self._payment = payment
        self._navigate = navigate

        self.draft = BookingDraft()
        self.tiers: List[PricingTier] = []
        self.form_fields: List[FormField] = [FormField.from_schema(f) for f in event.form_fields]
        self.participant_index = 0
        self.error: Optional[BookingflowException] = None
        self.started = False
        self.blocked = False
        self.resume_result: Optional[ResumeResult] = None
        self.redirect_url: Optional[str] = None

        self._pricing_task = TaskHandle("pricing")
        self._redirect_task = TaskHandle("success-redirect")
        self.log = BookingLoggerAdapter(logger, {"event_id": event.id})

    # -- state ------------------------------------------------------------

    @property
    def step(self) -> int:
        return self.context.step

    @property
    def step_kind(self) -> Optional[StepKind]:
        return self.STEPS.get(self.step)

    @property
    def step_label(self) -> Optional[str]:
        if self.step_kind == StepKind.TERMINAL:
            return None
        index = self.step - self.FIRST_STEP
        if 0 <= index < len(self.LABELS):
            return self.LABELS[index]
        return None

    @property
    def is_terminal(self) -> bool:
        return self.step_kind == StepKind.TERMINAL

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def classification(self) -> Optional[Classification]:
        return self.draft.classification

    @property
    def can_go_back(self) -> bool:
        if not self.started or self.is_terminal:
            return False
        if self.step_kind == StepKind.PARTICIPANTS and self.participant_index > 0:
            return True
        return self.step > self.FIRST_STEP

    def should_whitelist(self) -> bool:
        return self.oracle.should_whitelist(
            self.draft.selected_section_ids, bypass=self.draft.is_resuming
        )

    def max_quantity(self) -> int:
        raise NotImplementedError

    # -- error slot -------------------------------------------------------

    @contextmanager
    def _user_action(self, name: str):
        self.error = None
        self.context.has_interacted = True
        try:
            yield
        except BookingflowException as e:
            self.error = e
            self.log.info(f"{name} failed at step {self.step}: {e.code} {e.message}")

    def _ensure_active(self) -> None:
        if not self.started:
            raise JourneyStateError("Booking has not started")
        if self.blocked:
            raise JourneyStateError("This event is not accepting bookings")
        if self.is_terminal:
            raise JourneyStateError("Booking is already complete")

    def _ensure_step(self, *kinds: StepKind) -> None:
        self._ensure_active()
        if self.step_kind not in kinds:
            raise JourneyStateError(
                f"Not allowed during the {self.step_kind.value if self.step_kind else self.step} step"
            )

    def _go_to(self, step: int) -> None:
        previous = self.step
        self.context.set_step(step)
        self.log.info(f"Booking step {previous} -> {step}", extra={"step": step})

    # -- lifecycle --------------------------------------------------------

    async def start(
        self,
        resume_booking_id: Optional[str] = None,
        resume_step: Optional[int] = None
    ) -> bool:
        """Take over the step, load pricing, hydrate a resumed booking and check the gates"""
        with self._user_action("start"):
            if self.started:
                raise JourneyStateError("Booking has already started")
            self.context.take_control()

            if not self.event.is_multi_section and not await self._load_pricing():
                return False

            target = self.FIRST_STEP
            if resume_booking_id:
                target = await self._resume(resume_booking_id, resume_step)

            if not self.draft.is_resuming:
                try:
                    self.check_gates()
                except GateError:
                    self.blocked = True
                    raise

            self.started = True
            self._go_to(target)
            if self.step_kind in (StepKind.PARTICIPANTS, StepKind.REVIEW):
                self.draft.reconcile_participants()
            if self.step_kind == StepKind.REVIEW:
                self.participant_index = max(0, len(self.draft.participants) - 1)
                await self._recalculate_discounts()
            return True
        return False

    def check_gates(self) -> None:
        """Raise GateError when the event cannot take new bookings"""
        status = self.event.status
        if status == EventStatus.CANCELLED:
            raise GateError("cancelled", "This event has been cancelled")
        if status == EventStatus.ENTRY_CLOSED:
            raise GateError("entries_closed", "Entries for this event are closed")
        if status != EventStatus.PUBLISHED:
            raise GateError("not_published", "This event is not open for bookings")

        close_date = self.event.entry_close_date
        if close_date is not None:
            if close_date.tzinfo is None:
                close_date = close_date.replace(tzinfo=timezone.utc)
            if close_date <= datetime.now(timezone.utc):
                raise GateError("entries_closed", "Entries for this event are closed")

        if self.oracle.is_sold_out():
            raise GateError("sold_out", "This event is sold out")

    def close(self) -> None:
        """Cancel any pending pricing fetch or success redirect"""
        self._pricing_task.cancel()
        self._redirect_task.cancel()

    async def _load_pricing(self) -> bool:
        self._pricing_task.start(self.catalog.resolve(self.event, self.membership_type))
        tiers = await self._pricing_task.wait()
        if tiers is None:
            self.log.info("Pricing fetch cancelled")
            return False
        self.tiers = tiers
        return True

    async def _resume(self, booking_id: str, step: Optional[int]) -> int:
        self.resume_result = await self.resume_loader.load(self.event, booking_id, step, self.tiers)
        self.draft = self.resume_result.draft
        self.log.extra["booking_id"] = booking_id
        if not self.resume_result.can_resume:
            return self.FIRST_STEP
        if self.resume_result.form_fields:
            self.form_fields = self.resume_result.form_fields
        if step in self.STEPS and self.STEPS[step] != StepKind.TERMINAL:
            return step
        return self.FIRST_STEP

    # -- navigation -------------------------------------------------------

    async def next(self) -> bool:
        """Validate the current step and move forward"""
        if self.step_kind == StepKind.REVIEW:
            return await self.complete()

        with self._user_action("next"):
            self._ensure_active()
            kind = self.step_kind

            if kind in (StepKind.PRICING, StepKind.SECTIONS):
                self._validate_selection()
            if self.step == AUTH_REQUIRED_STEP and not self.is_authenticated:
                raise AuthenticationRequiredError(return_to=self.current_path)

            if kind == StepKind.CONTACT:
                validate_contact(self.draft.contact)
                self.draft.reconcile_participants()
                self.participant_index = 0
            elif kind == StepKind.PARTICIPANTS:
                if not await self._advance_participant():
                    return True
                await self._recalculate_discounts()

            self._go_to(self.step + 1)
            return True
        return False

    def back(self) -> bool:
        with self._user_action("back"):
            if self.is_terminal:
                raise JourneyStateError("A completed booking cannot go back")
            self._ensure_active()
            if self.step_kind == StepKind.PARTICIPANTS and self.participant_index > 0:
                self.participant_index -= 1
                return True
            if self.step <= self.FIRST_STEP:
                raise JourneyStateError("Already at the first step")
            if self.step_kind == StepKind.REVIEW:
                self.participant_index = max(0, len(self.draft.participants) - 1)
            self._go_to(self.step - 1)
            return True
        return False

    async def _advance_participant(self) -> bool:
        """Validate the participant under the cursor; True once the last one passes"""
        participants = self.draft.participants
        if len(participants) != self.draft.total_quantity:
            raise ValidationError(
                f"Expected {self.draft.total_quantity} participants, found {len(participants)}",
                field="participants"
            )
        validate_participant(self.participant_index, participants[self.participant_index], self.form_fields)
        if self.participant_index < len(participants) - 1:
            self.participant_index += 1
            return False

        self._validate_all_participants()
        await self._validate_participants_remotely()
        return True

    def _validate_all_participants(self) -> None:
        if len(self.draft.participants) != self.draft.total_quantity:
            raise ValidationError(
                f"Expected {self.draft.total_quantity} participants, found {len(self.draft.participants)}",
                field="participants"
            )
        for index, participant in enumerate(self.draft.participants):
            validate_participant(index, participant, self.form_fields)

    async def _validate_participants_remotely(self) -> None:
        """Ban-list and duplicate check; an unreachable service does not block"""
        try:
            async with metrics_collector.track_gateway_call("participant_validation"):
                result = await self._participant_validation.validate_participants(
                    self.event.id,
                    self.draft.participant_data(),
                    exclude_booking_id=self.draft.resume_booking_id or self.draft.booking_id,
                )
        except ExternalServiceError as e:
            self.log.warning(f"Participant validation unavailable, continuing: {e.message}")
            return

        if not result.valid and result.errors:
            first = result.errors[0]
            if 0 <= first.participant_index < len(self.draft.participants):
                self.participant_index = first.participant_index
            raise ParticipantRejectedError(first.participant_index, first.error)

    # -- contact, participants, discounts ----------------------------------

    def update_contact(self, **changes) -> bool:
        with self._user_action("update_contact"):
            self._ensure_active()
            for name, value in changes.items():
                if name not in CONTACT_FIELDS:
                    raise ValidationError(f"Unknown contact field {name}", field=name)
                if value is None and name not in OPTIONAL_CONTACT_FIELDS:
                    value = ""
                setattr(self.draft.contact, name, value)
            return True
        return False

    def update_participant(self, index: int, custom_data: Optional[Dict[str, Any]] = None, **changes) -> bool:
        with self._user_action("update_participant"):
            self._ensure_active()
            if not 0 <= index < len(self.draft.participants):
                raise ValidationError(f"No participant at position {index + 1}", field="participants")
            participant = self.draft.participants[index]
            for name, value in changes.items():
                if name not in PARTICIPANT_FIELDS:
                    raise ValidationError(f"Unknown participant field {name}", field=name)
                setattr(participant, name, value)
            if custom_data:
                participant.custom_data.update(custom_data)
            return True
        return False

    async def apply_discount_code(self, code: str) -> bool:
        with self._user_action("apply_discount_code"):
            self._ensure_active()
            if self.draft.base_amount <= 0:
                raise ValidationError("Discount codes only apply to paid bookings", field="discount_code")
            self.draft.discounts = await self.discount_engine.apply_code(
                self.event.id, code, self.draft.base_amount, self.draft.total_quantity
            )
            return True
        return False

    def remove_discount_code(self) -> bool:
        with self._user_action("remove_discount_code"):
            self._ensure_active()
            self.draft.discounts = self.discount_engine.remove_code()
            return True
        return False

    def set_agreed_to_terms(self, agreed: bool) -> bool:
        with self._user_action("set_agreed_to_terms"):
            self._ensure_active()
            self.draft.agreed_to_terms = agreed
            return True
        return False

    def set_opt_in_marketing(self, opt_in: bool) -> bool:
        with self._user_action("set_opt_in_marketing"):
            self._ensure_active()
            self.draft.opt_in_marketing = opt_in
            return True
        return False

    async def _recalculate_discounts(self) -> None:
        try:
            self.draft.discounts = await self.discount_engine.recalculate(
                self.event.id,
                self.draft.participant_data(),
                self.draft.base_amount,
                self.draft.total_quantity,
            )
        finally:
            self.draft.discounts = self.discount_engine.summary

    # -- completion -------------------------------------------------------

    def classify(self, final_amount: Decimal) -> Classification:
        """Route a completed booking"""
        if self.draft.is_resuming:
            return Classification.CONFIRMED if final_amount == 0 else Classification.PENDING_PAYMENT
        if self.should_whitelist():
            return Classification.WHITELISTED
        if any(tier.is_conditional_free for tier in self.draft.selected_tiers):
            return Classification.PENDING_APPROVAL
        if final_amount == 0:
            return Classification.CONFIRMED
        return Classification.PENDING_PAYMENT

    async def complete(self) -> bool:
        """Persist the booking, then confirm, notify or hand off to payment"""
        with self._user_action("complete"):
            self._ensure_step(StepKind.REVIEW)
            if self.draft.total_quantity < 1:
                raise ValidationError("Please select at least one ticket", field="quantity")
            self._validate_all_participants()
            if not self.draft.agreed_to_terms:
                raise ValidationError("Please agree to the terms and conditions", field="agreed_to_terms")
            await self._validate_participants_remotely()

            summary = self.draft.discounts
            if summary.base_amount != self.draft.base_amount or summary.quantity != self.draft.total_quantity:
                await self._recalculate_discounts()

            final_amount = self.draft.discounts.final_amount
            classification = self.classify(final_amount)
            booking_id = await self._persist(classification, final_amount)
            self.draft.set_classification(classification)
            self.log.extra["booking_id"] = booking_id
            self.log.info(f"Booking {booking_id} classified as {classification.value}")
            metrics_collector.record_classification(classification.value)

            if self.draft.opt_in_marketing:
                await self._subscribe_marketing()

            if classification == Classification.PENDING_PAYMENT:
                await self._hand_off_to_payment(booking_id, final_amount)
            elif classification == Classification.CONFIRMED:
                self._schedule_success_redirect(booking_id)
            else:
                await self.dispatcher.dispatch(classification, booking_id)

            self._go_to(TERMINAL_STEP)
            return True
        return False

    def _booking_fields(self, classification: Classification, final_amount: Decimal) -> Dict[str, Any]:
        contact = self.draft.contact
        tier = self.draft.tier_selection.tier if self.draft.tier_selection else None
        return dict(
            pricing_id=tier.id if tier is not None and not is_synthetic_tier(tier) else None,
            quantity=self.draft.total_quantity,
            total_amount=final_amount,
            discount_amount=self.draft.discounts.discount_amount,
            status=classification.booking_status,
            contact_first_name=contact.first_name.strip(),
            contact_middle_name=(contact.middle_name or "").strip() or None,
            contact_last_name=contact.last_name.strip(),
            contact_email=contact.email.strip(),
            contact_phone=contact.phone or None,
            agreed_to_terms=self.draft.agreed_to_terms,
        )

    async def _persist(self, classification: Classification, final_amount: Decimal) -> str:
        """Insert a new booking, or rewrite an existing one with replace semantics"""
        fields = self._booking_fields(classification, final_amount)
        booking_id = self.draft.resume_booking_id or self.draft.booking_id

        if booking_id is None:
            booking_id = await self._store.create_booking(
                BookingRecord(event_id=self.event.id, user_id=self.user_id, **fields)
            )
            self.draft.booking_id = booking_id
        else:
            if classification == Classification.CONFIRMED:
                fields["confirmed_at"] = datetime.now(timezone.utc)
            await self._store.update_booking(booking_id, BookingUpdate(**fields))

        await self._store.replace_participants(booking_id, self.draft.participant_data())
        if self.draft.section_selections:
            await self._store.replace_section_bookings(
                booking_id, [s.to_data() for s in self.draft.section_selections]
            )
        await self._store.replace_discount_applications(booking_id, self._discount_applications())
        return booking_id

    def _discount_applications(self) -> List[DiscountApplicationData]:
        summary = self.draft.discounts
        applications = [
            DiscountApplicationData(discount_id=d.discount_id, discount_amount=d.amount_off)
            for d in summary.automatic_discounts
        ]
        if summary.code_discount is not None:
            applications.append(DiscountApplicationData(
                discount_id=summary.code_discount.discount_id,
                discount_amount=summary.code_discount.discount_amount,
            ))
        return applications

    async def _hand_off_to_payment(self, booking_id: str, amount: Decimal) -> None:
        async with metrics_collector.track_gateway_call("payment"):
            session = await self._payment.create_checkout_session(
                booking_id,
                self.event.id,
                self.draft.total_quantity,
                amount,
                self.draft.describe_selection(),
            )
        self.redirect_url = session.url
        self.log.info(f"Checkout session {session.session_id} created for booking {booking_id}")
        if session.url and self._navigate is not None:
            self._navigate(session.url)

    def _schedule_success_redirect(self, booking_id: str) -> None:
        self.redirect_url = settings.success_url_template.format(booking_id=booking_id)
        self._redirect_task.start(self._redirect_after_delay(self.redirect_url), key=booking_id)

    async def _redirect_after_delay(self, url: str) -> None:
        await asyncio.sleep(self.redirect_delay)
        if self._navigate is not None:
            self._navigate(url)

    async def wait_for_redirect(self) -> None:
        await self._redirect_task.wait()

    async def _subscribe_marketing(self) -> None:
        contact = self.draft.contact
        email = contact.email.strip().lower()
        try:
            if await self._store.is_subscribed(email):
                return
            await self._store.subscribe(email, contact.first_name, contact.last_name, self.event.id)
            self.log.info(f"Subscribed {email} to the mailing list")
        except Exception as e:
            self.log.warning(f"Mailing list subscription failed for {email}: {e}")

    def _validate_selection(self) -> None:
        raise NotImplementedError


class SingleEventJourney(BookingJourney):
    """Journey for events without sections: one tier, one quantity"""

    STEPS = SINGLE_EVENT_STEPS
    LABELS = SINGLE_EVENT_LABELS
    FIRST_STEP = 1

    def tier_max_quantity(self, tier: PricingTier) -> int:
        limit = self.oracle.max_quantity()
        if self.should_whitelist() or tier.available_tickets is None:
            return limit
        return max(0, min(limit, tier.available_tickets))

    def max_quantity(self) -> int:
        if self.draft.tier_selection is None:
            return self.oracle.max_quantity()
        return self.tier_max_quantity(self.draft.tier_selection.tier)

    def select_tier(self, tier_id: str, quantity: int = 1) -> bool:
        with self._user_action("select_tier"):
            self._ensure_step(StepKind.PRICING)
            tier = self.catalog.find_tier(self.tiers, tier_id)
            if tier is None:
                raise ValidationError("Please select a valid pricing option", field="pricing")
            self._check_quantity(tier, quantity)
            self.draft.tier_selection = TierSelection(tier=tier, quantity=quantity)
            return True
        return False

    def set_quantity(self, quantity: int) -> bool:
        with self._user_action("set_quantity"):
            self._ensure_step(StepKind.PRICING)
            if self.draft.tier_selection is None:
                raise ValidationError("Please select a pricing option first", field="pricing")
            self._check_quantity(self.draft.tier_selection.tier, quantity)
            self.draft.tier_selection.quantity = quantity
            return True
        return False

    async def reload_pricing(self) -> bool:
        """Retry a failed or timed out pricing fetch"""
        with self._user_action("reload_pricing"):
            if self.started:
                self._ensure_step(StepKind.PRICING)
            if not await self._load_pricing():
                return False
            if self.draft.tier_selection is not None:
                tier = self.catalog.find_tier(self.tiers, self.draft.tier_selection.tier.id)
                self.draft.tier_selection = (
                    TierSelection(tier=tier, quantity=self.draft.tier_selection.quantity) if tier else None
                )
            return True
        return False

    def _check_quantity(self, tier: PricingTier, quantity: int) -> None:
        limit = self.tier_max_quantity(tier)
        if limit < 1:
            raise ValidationError(f"{tier.name} is sold out", field="pricing")
        if quantity < 1 or quantity > limit:
            raise ValidationError(f"Please choose between 1 and {limit} tickets", field="quantity")

    def _validate_selection(self) -> None:
        if self.draft.tier_selection is None:
            raise ValidationError("Please select a pricing option", field="pricing")
        self._check_quantity(self.draft.tier_selection.tier, self.draft.tier_selection.quantity)


class MultiSectionJourney(BookingJourney):
    """Journey for events split into independently capacitated sections"""

    STEPS = MULTI_SECTION_STEPS
    LABELS = MULTI_SECTION_LABELS
    FIRST_STEP = 0

    def max_quantity(self) -> int:
        return self.oracle.max_quantity(self.draft.selected_section_ids)

    def selectable_options(self) -> List[SectionOption]:
        """Bookable options that keep the current selection homogeneous"""
        selected = self.draft.selected_section_ids
        return [
            option for option in self.oracle.bookable_options()
            if self.oracle.is_compatible(selected, option.section.id)
        ]

    def select_section(self, section_id: str, pricing_id: str, quantity: int = 1) -> bool:
        with self._user_action("select_section"):
            self._ensure_step(StepKind.SECTIONS)
            option = self.oracle.find_option(section_id, pricing_id)
            if option is None:
                raise ValidationError("This section is not available", field="sections")
            others = [s for s in self.draft.section_selections if s.section.id != section_id]
            if not self.oracle.is_compatible([s.section.id for s in others], section_id):
                raise MixedSelectionError(section_id)
            if quantity < 1 or quantity > option.max_quantity:
                raise ValidationError(
                    f"Please choose between 1 and {option.max_quantity} tickets", field="quantity"
                )

            selection = SectionSelection(section=option.section, pricing=option.pricing, quantity=quantity)
            candidate = others + [selection]
            self._check_total([s.section.id for s in candidate], sum(s.quantity for s in candidate))
            self.draft.section_selections = candidate
            return True
        return False

    def set_section_quantity(self, section_id: str, quantity: int) -> bool:
        with self._user_action("set_section_quantity"):
            self._ensure_step(StepKind.SECTIONS)
            selection = self._find_selection(section_id)
            if quantity < 1:
                raise ValidationError("Quantity must be at least 1", field="quantity")
            limit = self.oracle.option_max_quantity(selection.section, selection.pricing)
            if quantity > limit:
                raise ValidationError(f"Please choose between 1 and {limit} tickets", field="quantity")
            total = self.draft.total_quantity - selection.quantity + quantity
            self._check_total(self.draft.selected_section_ids, total)
            selection.quantity = quantity
            return True
        return False

    def remove_section(self, section_id: str) -> bool:
        with self._user_action("remove_section"):
            self._ensure_step(StepKind.SECTIONS)
            selection = self._find_selection(section_id)
            self.draft.section_selections.remove(selection)
            return True
        return False

    def _find_selection(self, section_id: str) -> SectionSelection:
        for selection in self.draft.section_selections:
            if selection.section.id == section_id:
                return selection
        raise ValidationError("This section is not part of your selection", field="sections")

    def _check_total(self, section_ids: List[str], total: int) -> None:
        limit = self.oracle.max_quantity(section_ids)
        if total > limit:
            raise ValidationError(f"You can book at most {limit} tickets", field="quantity")

    def _validate_selection(self) -> None:
        selections = self.draft.section_selections
        if not selections or self.draft.total_quantity < 1:
            raise ValidationError("Please select at least one section", field="sections")
        self.oracle.check_homogeneous(s.section.id for s in selections)
        self._check_total(self.draft.selected_section_ids, self.draft.total_quantity)


def create_journey(event: EventRead, **kwargs) -> BookingJourney:
    """Pick the journey variant for the event's shape"""
    if event.is_multi_section:
        return MultiSectionJourney(event, **kwargs)
    return SingleEventJourney(event, **kwargs)
