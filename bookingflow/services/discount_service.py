"""
Discount Service
Automatic (rule-based) discounts and discount code lookups
"""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookingflow.core.exceptions import DiscountCodeError
from bookingflow.models.booking import Booking, BookingStatus, Participant
from bookingflow.models.discount import (
    DiscountType,
    EventDiscount,
    ParticipantDiscountRule,
    RuleType,
    ValueType,
)
from bookingflow.schemas.booking import ParticipantData
from bookingflow.schemas.discount import (
    AppliedDiscount,
    CodeDiscount,
    DiscountCalculation,
    DiscountCodeRequest,
    DiscountRequest,
)
from bookingflow.services.booking_store import as_utc, to_uuid

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_MATCH_FIELDS = ("first_name", "last_name")

# Booking statuses counted as "attended" per participation requirement
PARTICIPATION_STATUSES = {
    "any": (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.VERIFIED),
    "confirmed": (BookingStatus.CONFIRMED, BookingStatus.VERIFIED),
    "verified": (BookingStatus.VERIFIED,),
}


def discount_amount_for(discount: EventDiscount, base_amount: Decimal, eligible: int) -> Decimal:
    """Percentage of the base, or a fixed value per eligible participant/seat; never above the base"""
    if discount.value_type == ValueType.PERCENTAGE:
        amount = base_amount * Decimal(discount.value) / Decimal(100)
    else:
        amount = Decimal(discount.value) * eligible
    return min(amount, base_amount).quantize(CENT, rounding=ROUND_HALF_UP)


def within_limits(discount: EventDiscount, quantity: int, now: datetime) -> Optional[str]:
    """Return the reason a discount cannot be used now, or None"""
    start, end = as_utc(discount.start_date), as_utc(discount.end_date)
    if start is not None and start > now:
        return "Discount code is not yet active"
    if end is not None and end < now:
        return "Discount code has expired"
    if discount.min_quantity and quantity < discount.min_quantity:
        return f"Minimum quantity of {discount.min_quantity} required for this discount code"
    if discount.max_quantity and quantity > discount.max_quantity:
        return f"Maximum quantity of {discount.max_quantity} allowed for this discount code"
    if discount.max_uses and discount.current_uses >= discount.max_uses:
        return "Discount code usage limit has been reached"
    return None


def _field_value(participant, field: str):
    value = getattr(participant, field, None)
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    if isinstance(value, str):
        return value.strip()
    return value


def matches_rule(rule: ParticipantDiscountRule, participant: ParticipantData) -> bool:
    """Evaluate name, date of birth and custom-field rules"""
    if rule.rule_type == RuleType.NAME_MATCH:
        if rule.field_name in ("first_name", "last_name"):
            return _field_value(participant, rule.field_name) == rule.field_value
        return False

    if rule.rule_type == RuleType.DOB_MATCH:
        return participant.date_of_birth is not None and participant.date_of_birth.isoformat() == rule.field_value

    if rule.rule_type == RuleType.CUSTOM:
        if not rule.field_name or rule.field_name not in participant.custom_data:
            return False
        value = str(participant.custom_data[rule.field_name])
        expected = rule.field_value or ""
        operator = rule.operator or "equals"
        if operator == "equals":
            return value == expected
        if operator == "contains":
            return expected in value
        if operator == "starts_with":
            return value.startswith(expected)
        if operator == "ends_with":
            return value.endswith(expected)
        return False

    return False


class DiscountService:
    """Service for evaluating event discounts"""

    @staticmethod
    async def _previous_participants(
        db: AsyncSession,
        rule: ParticipantDiscountRule
    ) -> List[Participant]:
        statuses = PARTICIPATION_STATUSES.get(rule.field_value or "any", PARTICIPATION_STATUSES["any"])
        result = await db.execute(
            select(Participant)
            .join(Booking, Participant.booking_id == Booking.id)
            .where(Booking.event_id == rule.related_event_id, Booking.status.in_(statuses))
        )
        return list(result.scalars().all())

    @staticmethod
    async def _matches_previous_event(
        db: AsyncSession,
        rule: ParticipantDiscountRule,
        participant: ParticipantData,
        cache: Dict[str, List[Participant]]
    ) -> bool:
        if rule.related_event_id is None:
            return False
        key = str(rule.id)
        if key not in cache:
            cache[key] = await DiscountService._previous_participants(db, rule)

        fields = [f.strip() for f in (rule.field_name or "").split(",") if f.strip()]
        fields = fields or list(DEFAULT_MATCH_FIELDS)

        for previous in cache[key]:
            if all(_field_value(participant, f) == _field_value(previous, f) for f in fields):
                return True
        return False

    @staticmethod
    async def _eligible_participants(
        db: AsyncSession,
        discount: EventDiscount,
        participants: List[ParticipantData],
        cache: Dict[str, List[Participant]]
    ) -> Tuple[int, bool]:
        """Count participants satisfying every rule of the discount"""
        if not discount.rules:
            return 0, False
        uses_previous = any(r.rule_type == RuleType.PREVIOUS_EVENT for r in discount.rules)
        eligible = 0
        for participant in participants:
            for rule in discount.rules:
                if rule.rule_type == RuleType.PREVIOUS_EVENT:
                    ok = await DiscountService._matches_previous_event(db, rule, participant, cache)
                else:
                    ok = matches_rule(rule, participant)
                if not ok:
                    break
            else:
                eligible += 1
        return eligible, uses_previous

    @staticmethod
    async def calculate_discounts(
        db: AsyncSession,
        event_id: str,
        request: DiscountRequest,
        now: Optional[datetime] = None
    ) -> DiscountCalculation:
        """Evaluate every active automatic discount of the event"""
        now = now or datetime.now(timezone.utc)
        result = await db.execute(
            select(EventDiscount)
            .options(selectinload(EventDiscount.rules))
            .where(
                EventDiscount.event_id == to_uuid(event_id, "Event"),
                EventDiscount.is_active.is_(True),
                EventDiscount.discount_type != DiscountType.CODE,
            )
            .order_by(EventDiscount.created_at)
        )

        base_amount = request.base_amount
        applied: List[AppliedDiscount] = []
        seen = set()
        cache: Dict[str, List[Participant]] = {}

        for discount in result.scalars().all():
            if discount.id in seen or within_limits(discount, request.quantity, now) is not None:
                continue

            if discount.discount_type == DiscountType.PARTICIPANT_BASED:
                eligible, uses_previous = await DiscountService._eligible_participants(
                    db, discount, request.participants, cache
                )
                if eligible == 0:
                    continue
                amount = discount_amount_for(discount, base_amount, eligible)
                rule_type = discount.rules[0].rule_type.value
            else:
                eligible, uses_previous = None, False
                amount = discount_amount_for(discount, base_amount, request.quantity)
                rule_type = DiscountType.SEAT_BASED.value

            if amount <= 0:
                continue
            seen.add(discount.id)
            applied.append(AppliedDiscount(
                discount_id=discount.id,
                name=discount.name,
                amount_off=amount,
                rule_type=rule_type,
                eligible_participants=eligible,
                previous_event=uses_previous,
            ))

        total = min(sum((d.amount_off for d in applied), Decimal("0")), base_amount)
        logger.info(f"Event {event_id}: {len(applied)} automatic discounts, total {total}")
        return DiscountCalculation(
            total_discount=total,
            applied_discounts=applied,
            final_amount=max(Decimal("0"), base_amount - total),
        )

    @staticmethod
    async def apply_code(
        db: AsyncSession,
        event_id: str,
        request: DiscountCodeRequest,
        now: Optional[datetime] = None
    ) -> CodeDiscount:
        """Look up a discount code and compute what it takes off"""
        code = request.code.strip().upper()
        result = await db.execute(
            select(EventDiscount).where(
                EventDiscount.event_id == to_uuid(event_id, "Event"),
                EventDiscount.code == code,
                EventDiscount.discount_type == DiscountType.CODE,
                EventDiscount.is_active.is_(True),
            )
        )
        discount = result.scalars().first()
        if discount is None:
            raise DiscountCodeError("Invalid or expired discount code", status_code=404)

        reason = within_limits(discount, request.quantity, now or datetime.now(timezone.utc))
        if reason is not None:
            raise DiscountCodeError(reason)

        if discount.value_type == ValueType.PERCENTAGE:
            amount = discount_amount_for(discount, request.base_amount, 1)
        else:
            amount = min(Decimal(discount.value), request.base_amount)

        return CodeDiscount(
            discount_id=discount.id,
            name=discount.name,
            description=discount.description,
            value_type=discount.value_type.value,
            value=discount.value,
            discount_amount=amount,
            final_amount=max(Decimal("0"), request.base_amount - amount),
            message=f"Discount applied: {discount.name}",
        )
