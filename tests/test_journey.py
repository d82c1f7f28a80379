"""
Tests for the booking journey state machine
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from bookingflow.config import settings
from bookingflow.booking.draft import Classification
from bookingflow.booking.journey import (
    JourneyContext,
    MultiSectionJourney,
    SingleEventJourney,
    StepKind,
    TERMINAL_STEP,
)
from bookingflow.core.exceptions import (
    AuthenticationRequiredError,
    DiscountCodeError,
    ExternalServiceError,
    GateError,
    JourneyStateError,
    MixedSelectionError,
    ParticipantRejectedError,
    PaymentError,
    PricingTimeoutError,
    ValidationError,
)
from bookingflow.models.event import EventStatus, PricingType
from bookingflow.schemas.booking import (
    BookingRecord,
    BookingUpdate,
    ParticipantValidationIssue,
    ParticipantValidationResult,
)
from bookingflow.schemas.discount import AppliedDiscount, CodeDiscount, DiscountCalculation


def fill_contact(journey):
    assert journey.update_contact(
        first_name="Ada", last_name="Lovelace", email="ada@example.com", phone="0400 000 000"
    )


async def fill_participants(journey, count):
    for index in range(1, count):
        assert journey.update_participant(
            index, first_name=f"Guest{index}", last_name="Byron", date_of_birth=date(1990, 5, index)
        )
    for _ in range(count):
        assert await journey.next(), journey.error


async def single_to_review(journey, tier_id, quantity=1):
    assert await journey.start(), journey.error
    assert journey.select_tier(tier_id, quantity), journey.error
    assert await journey.next(), journey.error
    fill_contact(journey)
    assert await journey.next(), journey.error
    await fill_participants(journey, quantity)
    assert journey.step_kind == StepKind.REVIEW


async def sections_to_review(journey, selections):
    assert await journey.start(), journey.error
    for section_id, pricing_id, quantity in selections:
        assert journey.select_section(section_id, pricing_id, quantity), journey.error
    assert await journey.next(), journey.error
    fill_contact(journey)
    assert await journey.next(), journey.error
    await fill_participants(journey, journey.draft.total_quantity)
    assert journey.step_kind == StepKind.REVIEW


class TestJourneyVariant:

    def test_single_event_variant(self, make_event, make_journey):
        journey = make_journey(make_event())
        assert isinstance(journey, SingleEventJourney)
        assert journey.FIRST_STEP == 1

    def test_multi_section_variant(self, make_event, make_section, make_journey):
        journey = make_journey(make_event(sections=[make_section()]))
        assert isinstance(journey, MultiSectionJourney)
        assert journey.FIRST_STEP == 0

    @pytest.mark.asyncio
    async def test_step_labels(self, make_event, make_section, make_journey):
        single = make_journey(make_event())
        await single.start()
        assert (single.step, single.step_label) == (1, "Pricing")

        multi = make_journey(make_event(sections=[make_section()]))
        await multi.start()
        assert (multi.step, multi.step_label) == (0, "Sections")


class TestSingleFreeEvent:

    @pytest.mark.asyncio
    async def test_free_event_is_confirmed_without_payment(self, make_event, make_journey, gateways):
        navigate = MagicMock()
        journey = make_journey(make_event(price=0, max_attendees=None), navigate=navigate)

        await single_to_review(journey, "default")
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert journey.classification == Classification.CONFIRMED
        assert journey.step == TERMINAL_STEP
        gateways.payment.create_checkout_session.assert_not_awaited()
        gateways.notifications.send.assert_not_awaited()
        gateways.discounts.calculate_discounts.assert_not_awaited()

        record = gateways.store.create_booking.await_args.args[0]
        assert isinstance(record, BookingRecord)
        assert record.pricing_id is None
        assert record.total_amount == Decimal("0")
        assert record.status.value == "confirmed"

        await journey.wait_for_redirect()
        navigate.assert_called_once_with(settings.success_url_template.format(booking_id="booking-1"))

    @pytest.mark.asyncio
    async def test_success_redirect_cancelled_on_close(self, make_event, make_journey):
        navigate = MagicMock()
        journey = make_journey(make_event(price=0), navigate=navigate, redirect_delay=10)

        await single_to_review(journey, "default")
        journey.set_agreed_to_terms(True)
        assert await journey.next()
        assert journey.redirect_url.endswith("booking_id=booking-1")

        journey.close()
        await journey.wait_for_redirect()
        navigate.assert_not_called()


class TestSinglePaidEvent:

    @pytest.fixture
    def tier(self, make_tier, gateways):
        tier = make_tier(name="Regular", price="50.00")
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        return tier

    @pytest.mark.asyncio
    async def test_paid_booking_hands_off_to_payment(self, make_event, make_journey, gateways, tier):
        navigate = MagicMock()
        event = make_event(max_attendees=100, current_attendees=10)
        journey = make_journey(event, navigate=navigate)

        await single_to_review(journey, tier.id, quantity=2)
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert journey.classification == Classification.PENDING_PAYMENT
        gateways.payment.create_checkout_session.assert_awaited_once_with(
            "booking-1", event.id, 2, Decimal("100.00"), "Regular x 2"
        )
        navigate.assert_called_once_with("https://checkout.stripe.com/c/pay/cs_test_123")
        assert journey.step == TERMINAL_STEP

        record = gateways.store.create_booking.await_args.args[0]
        assert record.pricing_id == tier.id
        assert record.quantity == 2
        assert record.contact_email == "ada@example.com"
        participants = gateways.store.replace_participants.await_args.args[1]
        assert [p.first_name for p in participants] == ["Ada", "Guest1"]

    @pytest.mark.asyncio
    async def test_payment_failure_keeps_booking_for_retry(self, make_event, make_journey, gateways, tier):
        journey = make_journey(make_event())
        gateways.payment.create_checkout_session.side_effect = [
            PaymentError("Payment service is unavailable, please try again"),
            gateways.payment.create_checkout_session.return_value,
        ]

        await single_to_review(journey, tier.id)
        journey.set_agreed_to_terms(True)

        assert not await journey.next()
        assert isinstance(journey.error, PaymentError)
        assert journey.step_kind == StepKind.REVIEW
        assert journey.draft.booking_id == "booking-1"

        assert await journey.next(), journey.error
        assert journey.error is None
        assert journey.step == TERMINAL_STEP
        gateways.store.create_booking.assert_awaited_once()
        booking_id, update = gateways.store.update_booking.await_args.args
        assert booking_id == "booking-1"
        assert isinstance(update, BookingUpdate)
        assert update.status.value == "pending"
        exclude = gateways.participant_validation.validate_participants.await_args.kwargs["exclude_booking_id"]
        assert exclude == "booking-1"

    @pytest.mark.asyncio
    async def test_terms_required(self, make_event, make_journey, gateways, tier):
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)

        assert not await journey.next()
        assert isinstance(journey.error, ValidationError)
        assert journey.error.field == "agreed_to_terms"
        gateways.store.create_booking.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_code_discount_stacking(self, make_event, make_journey, gateways, make_tier):
        tier = make_tier(name="Regular", price="100.00")
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        gateways.discounts.calculate_discounts.return_value = DiscountCalculation(
            total_discount=Decimal("10"),
            applied_discounts=[AppliedDiscount(
                discount_id="auto-1", name="Returning member", amount_off=Decimal("10"), rule_type="seat_based"
            )],
            final_amount=Decimal("90"),
        )
        gateways.discounts.apply_code.return_value = CodeDiscount(
            discount_id="code-1", name="Friends", value_type="fixed", value=Decimal("20"),
            discount_amount=Decimal("20"), final_amount=Decimal("80"),
        )
        journey = make_journey(make_event())

        await single_to_review(journey, tier.id)
        assert journey.draft.discounts.final_amount == Decimal("90")

        assert await journey.apply_discount_code("friends"), journey.error
        assert journey.draft.discounts.final_amount == Decimal("70")

        assert journey.remove_discount_code()
        assert journey.draft.discounts.final_amount == Decimal("90")

        assert await journey.apply_discount_code("friends")
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error
        applications = gateways.store.replace_discount_applications.await_args.args[1]
        assert {(a.discount_id, a.discount_amount) for a in applications} == {
            ("auto-1", Decimal("10")), ("code-1", Decimal("20"))
        }
        assert gateways.payment.create_checkout_session.await_args.args[3] == Decimal("70")

    @pytest.mark.asyncio
    async def test_rejected_code_sets_error(self, make_event, make_journey, gateways, tier):
        gateways.discounts.apply_code.side_effect = DiscountCodeError("Invalid or expired discount code", 404)
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)

        assert not await journey.apply_discount_code("NOPE")
        assert isinstance(journey.error, DiscountCodeError)
        assert journey.draft.discounts.code_discount is None

    @pytest.mark.asyncio
    async def test_marketing_opt_in(self, make_event, make_journey, gateways, tier):
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)
        journey.set_agreed_to_terms(True)
        journey.set_opt_in_marketing(True)

        assert await journey.next()
        gateways.store.subscribe.assert_awaited_once_with("ada@example.com", "Ada", "Lovelace", journey.event.id)

    @pytest.mark.asyncio
    async def test_marketing_failure_does_not_block(self, make_event, make_journey, gateways, tier):
        gateways.store.subscribe.side_effect = RuntimeError("mailing list down")
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)
        journey.set_agreed_to_terms(True)
        journey.set_opt_in_marketing(True)

        assert await journey.next()
        assert journey.step == TERMINAL_STEP

    @pytest.mark.asyncio
    async def test_checkboxes_locked_after_completion(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)
        assert journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert not journey.set_opt_in_marketing(True)
        assert isinstance(journey.error, JourneyStateError)
        assert not journey.draft.opt_in_marketing
        assert not journey.set_agreed_to_terms(False)
        assert journey.draft.agreed_to_terms

    @pytest.mark.asyncio
    async def test_checkboxes_need_a_started_journey(self, make_event, make_journey):
        journey = make_journey(make_event())

        assert not journey.set_agreed_to_terms(True)
        assert isinstance(journey.error, JourneyStateError)
        assert not journey.draft.agreed_to_terms

    @pytest.mark.asyncio
    async def test_ticking_terms_clears_stale_error(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)

        assert not await journey.next()
        assert isinstance(journey.error, ValidationError)
        assert journey.set_agreed_to_terms(True)
        assert journey.error is None


class TestClassification:

    @pytest.mark.asyncio
    async def test_free_selection_is_confirmed(self, make_event, make_journey, make_tier, gateways):
        tier = make_tier(name="Community", price="0")
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        journey = make_journey(make_event())
        await journey.start()
        journey.select_tier(tier.id)

        assert journey.classify(Decimal("0")) == Classification.CONFIRMED
        assert journey.classify(Decimal("10")) == Classification.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_whitelist_wins_regardless_of_amount(self, make_event, make_journey, make_tier, gateways):
        tier = make_tier(name="Regular", price="0", pricing_type=PricingType.CONDITIONAL_FREE)
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        journey = make_journey(make_event(max_attendees=5, current_attendees=5, whitelist_enabled=True))
        await journey.start()
        journey.select_tier(tier.id)

        assert journey.classify(Decimal("0")) == Classification.WHITELISTED
        assert journey.classify(Decimal("80")) == Classification.WHITELISTED

    @pytest.mark.asyncio
    async def test_conditional_free_needs_approval(self, make_event, make_journey, make_tier, gateways):
        tier = make_tier(name="Volunteer", price="0", pricing_type=PricingType.CONDITIONAL_FREE)
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        journey = make_journey(make_event())

        await single_to_review(journey, tier.id)
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert journey.classification == Classification.PENDING_APPROVAL
        gateways.notifications.send.assert_awaited_once_with("conditional_free_request", "booking-1")
        gateways.payment.create_checkout_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sold_out_event_with_whitelist(self, make_event, make_journey, make_tier, gateways):
        tier = make_tier(name="Regular", price="45.00")
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        journey = make_journey(make_event(max_attendees=10, current_attendees=10, whitelist_enabled=True))

        await single_to_review(journey, tier.id)
        assert journey.should_whitelist()
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert journey.classification == Classification.WHITELISTED
        gateways.payment.create_checkout_session.assert_not_awaited()
        gateways.notifications.send.assert_awaited_once_with("whitelisted_booking", "booking-1")

    @pytest.mark.asyncio
    async def test_notification_failure_still_completes(self, make_event, make_journey, make_tier, gateways):
        tier = make_tier(name="Regular", price="45.00")
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        gateways.notifications.send.side_effect = ExternalServiceError("notifications")
        journey = make_journey(make_event(max_attendees=10, current_attendees=10, whitelist_enabled=True))

        await single_to_review(journey, tier.id)
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error
        assert journey.step == TERMINAL_STEP

    def test_confirmed_is_never_downgraded(self, make_event, make_journey):
        journey = make_journey(make_event())
        journey.draft.set_classification(Classification.CONFIRMED)
        with pytest.raises(JourneyStateError):
            journey.draft.set_classification(Classification.PENDING_PAYMENT)

    def test_pending_may_be_upgraded(self, make_event, make_journey):
        journey = make_journey(make_event())
        journey.draft.set_classification(Classification.PENDING_PAYMENT)
        journey.draft.set_classification(Classification.CONFIRMED)
        assert journey.classification == Classification.CONFIRMED


class TestGates:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides,reason", [
        ({"status": EventStatus.CANCELLED}, "cancelled"),
        ({"status": EventStatus.ENTRY_CLOSED}, "entries_closed"),
        ({"status": EventStatus.DRAFT}, "not_published"),
        ({"entry_close_date": datetime.now(timezone.utc) - timedelta(hours=1)}, "entries_closed"),
        ({"entry_close_date": datetime.utcnow() - timedelta(hours=1)}, "entries_closed"),
        ({"max_attendees": 10, "current_attendees": 10}, "sold_out"),
        ({"max_attendees": 10, "current_attendees": 12}, "sold_out"),
    ])
    async def test_blocked_event(self, make_event, make_journey, overrides, reason):
        journey = make_journey(make_event(**overrides))

        assert not await journey.start()
        assert journey.blocked
        assert isinstance(journey.error, GateError)
        assert journey.error.reason == reason
        assert not journey.select_tier("default")
        assert isinstance(journey.error, JourneyStateError)

    @pytest.mark.asyncio
    async def test_future_close_date_is_open(self, make_event, make_journey):
        journey = make_journey(make_event(entry_close_date=datetime.now(timezone.utc) + timedelta(days=1)))
        assert await journey.start()
        assert not journey.blocked

    @pytest.mark.asyncio
    async def test_pricing_timeout(self, make_event, make_journey, make_tier, gateways):
        tier = make_tier()
        gateways.pricing.fetch_pricing_tiers.side_effect = [PricingTimeoutError(10), [tier]]
        journey = make_journey(make_event())

        assert not await journey.start()
        assert isinstance(journey.error, PricingTimeoutError)
        assert journey.tiers == []

        assert await journey.reload_pricing(), journey.error
        assert journey.tiers == [tier]


class TestNavigation:

    @pytest.fixture
    def tier(self, make_tier, gateways):
        tier = make_tier(name="Regular", price="20.00")
        gateways.pricing.fetch_pricing_tiers.return_value = [tier]
        return tier

    @pytest.mark.asyncio
    async def test_auth_required_to_leave_first_step(self, make_event, make_journey, tier):
        journey = make_journey(make_event(), user_id=None, current_path="/events/summer")
        await journey.start()
        assert journey.select_tier(tier.id)

        assert not await journey.next()
        assert isinstance(journey.error, AuthenticationRequiredError)
        assert journey.error.return_to == "/events/summer"
        assert journey.step == 1

    @pytest.mark.asyncio
    async def test_selection_required(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await journey.start()

        assert not await journey.next()
        assert journey.error.field == "pricing"

    @pytest.mark.asyncio
    async def test_quantity_bounded_by_capacity(self, make_event, make_journey, tier):
        journey = make_journey(make_event(max_attendees=10, current_attendees=7))
        await journey.start()

        assert journey.max_quantity() == 3
        assert not journey.select_tier(tier.id, 4)
        assert journey.error.field == "quantity"
        assert journey.select_tier(tier.id, 3)

    @pytest.mark.asyncio
    async def test_error_slot_cleared_by_next_action(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await journey.start()

        assert not journey.select_tier("missing")
        assert journey.error is not None
        assert journey.select_tier(tier.id)
        assert journey.error is None
        assert journey.context.has_interacted

    @pytest.mark.asyncio
    async def test_participant_count_matches_quantity(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await journey.start()
        journey.select_tier(tier.id, 3)
        await journey.next()
        fill_contact(journey)
        await journey.next()

        participants = journey.draft.participants
        assert len(participants) == 3
        assert (participants[0].first_name, participants[0].email) == ("Ada", "ada@example.com")

        assert journey.back() and journey.back()
        assert journey.set_quantity(1)
        await journey.next()
        await journey.next()
        assert len(journey.draft.participants) == 1

    @pytest.mark.asyncio
    async def test_participant_cursor(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await journey.start()
        journey.select_tier(tier.id, 2)
        await journey.next()
        fill_contact(journey)
        await journey.next()

        assert await journey.next()
        assert (journey.step_kind, journey.participant_index) == (StepKind.PARTICIPANTS, 1)

        assert not await journey.next()
        assert journey.error.field == "participants[1].first_name"

        assert journey.back()
        assert (journey.step_kind, journey.participant_index) == (StepKind.PARTICIPANTS, 0)
        assert journey.back()
        assert journey.step_kind == StepKind.CONTACT

    @pytest.mark.asyncio
    async def test_back_from_first_step(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await journey.start()

        assert not journey.can_go_back
        assert not journey.back()
        assert isinstance(journey.error, JourneyStateError)

    @pytest.mark.asyncio
    async def test_rejected_participant_moves_cursor(self, make_event, make_journey, gateways, tier):
        gateways.participant_validation.validate_participants.return_value = ParticipantValidationResult(
            valid=False,
            errors=[ParticipantValidationIssue(
                participant_index=1,
                error="Guest1 Byron is already registered for this event. Each person can only register once.",
            )],
        )
        journey = make_journey(make_event())
        await journey.start()
        journey.select_tier(tier.id, 2)
        await journey.next()
        fill_contact(journey)
        await journey.next()
        journey.update_participant(1, first_name="Guest1", last_name="Byron")

        assert await journey.next()
        assert not await journey.next()
        assert isinstance(journey.error, ParticipantRejectedError)
        assert journey.participant_index == 1
        assert journey.step_kind == StepKind.PARTICIPANTS

    @pytest.mark.asyncio
    async def test_unreachable_validation_service_does_not_block(self, make_event, make_journey, gateways, tier):
        gateways.participant_validation.validate_participants.side_effect = ExternalServiceError(
            "participant_validation"
        )
        journey = make_journey(make_event())

        await single_to_review(journey, tier.id)
        assert journey.error is None

    @pytest.mark.asyncio
    async def test_completed_journey_cannot_go_back(self, make_event, make_journey, tier):
        journey = make_journey(make_event())
        await single_to_review(journey, tier.id)
        journey.set_agreed_to_terms(True)
        await journey.next()

        assert not journey.back()
        assert isinstance(journey.error, JourneyStateError)
        assert journey.step == TERMINAL_STEP


class TestJourneyContext:

    @pytest.mark.asyncio
    async def test_journey_takes_ownership_of_step(self, make_event, make_journey):
        changes = []
        context = JourneyContext(step=0, on_step_change=changes.append)
        journey = make_journey(make_event(), context=context)

        assert context.external_set_step(0)
        await journey.start()

        assert context.owned_by_journey
        assert not context.external_set_step(0)
        assert journey.step == 1
        assert changes == [1]

    @pytest.mark.asyncio
    async def test_start_twice(self, make_event, make_journey):
        journey = make_journey(make_event())
        assert await journey.start()
        assert not await journey.start()
        assert isinstance(journey.error, JourneyStateError)


class TestMultiSection:

    @pytest.fixture
    def sections(self, make_section):
        return {
            "a": make_section(title="Heat A", available_seats=0, whitelist_enabled=True),
            "b": make_section(title="Heat B", available_seats=5),
            "c": make_section(title="Heat C", available_seats=3),
        }

    @pytest.fixture
    def event(self, make_event, sections):
        return make_event(sections=list(sections.values()))

    @pytest.mark.asyncio
    async def test_mixed_selection_rejected(self, event, sections, make_journey):
        journey = make_journey(event)
        await journey.start()
        a, b = sections["a"], sections["b"]

        assert journey.select_section(a.id, a.pricing[0].id)
        assert not journey.select_section(b.id, b.pricing[0].id)
        assert isinstance(journey.error, MixedSelectionError)
        assert journey.draft.selected_section_ids == [a.id]
        assert {o.section.id for o in journey.selectable_options()} == {a.id}

    @pytest.mark.asyncio
    async def test_whitelist_only_selection(self, event, sections, make_journey, gateways):
        journey = make_journey(event)
        a = sections["a"]

        await sections_to_review(journey, [(a.id, a.pricing[0].id, 2)])
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert journey.classification == Classification.WHITELISTED
        gateways.notifications.send.assert_awaited_once_with("whitelisted_booking", "booking-1")
        lines = gateways.store.replace_section_bookings.await_args.args[1]
        assert [(line.section_id, line.quantity) for line in lines] == [(a.id, 2)]

    @pytest.mark.asyncio
    async def test_open_sections_pay(self, event, sections, make_journey, gateways):
        journey = make_journey(event)
        b, c = sections["b"], sections["c"]

        await sections_to_review(journey, [(b.id, b.pricing[0].id, 1), (c.id, c.pricing[0].id, 2)])
        assert journey.draft.base_amount == Decimal("90.00")
        journey.set_agreed_to_terms(True)
        assert await journey.next(), journey.error

        assert journey.classification == Classification.PENDING_PAYMENT
        description = gateways.payment.create_checkout_session.await_args.args[4]
        assert description == "Heat B - Heat B Entry x 1, Heat C - Heat C Entry x 2"

    @pytest.mark.asyncio
    async def test_section_quantity_bounded(self, event, sections, make_journey):
        journey = make_journey(event)
        await journey.start()
        c = sections["c"]

        assert not journey.select_section(c.id, c.pricing[0].id, 4)
        assert journey.select_section(c.id, c.pricing[0].id, 3)
        assert not journey.set_section_quantity(c.id, 4)
        assert journey.remove_section(c.id)
        assert journey.draft.section_selections == []

    @pytest.mark.asyncio
    async def test_empty_selection(self, event, make_journey):
        journey = make_journey(event)
        await journey.start()

        assert not await journey.next()
        assert journey.error.field == "sections"

    @pytest.mark.asyncio
    async def test_contact_step_requires_auth(self, event, sections, make_journey):
        journey = make_journey(event, user_id=None)
        await journey.start()
        b = sections["b"]
        journey.select_section(b.id, b.pricing[0].id)

        assert await journey.next()
        assert journey.step_kind == StepKind.CONTACT
        assert not await journey.next()
        assert isinstance(journey.error, AuthenticationRequiredError)
