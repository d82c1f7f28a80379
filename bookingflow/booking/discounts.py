"""
Discount reconciliation for the booking journey

Automatic (rule-based) discounts and a single code discount are tracked
independently. Both may be active at once; each automatic discount id counts
only once, and their sum never exceeds the base amount.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from bookingflow.config import settings
from bookingflow.core.exceptions import DiscountCodeError, ValidationError
from bookingflow.core.metrics import metrics_collector
from bookingflow.booking.gateways import DiscountGateway
from bookingflow.schemas.booking import ParticipantData
from bookingflow.schemas.discount import AppliedDiscount, CodeDiscount

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_final_amount(
    base_amount: Decimal,
    total_discount: Decimal,
    code_discount_amount: Decimal = ZERO
) -> Decimal:
    """max(0, base - automatic - code)"""
    return max(ZERO, Decimal(base_amount) - Decimal(total_discount) - Decimal(code_discount_amount))


def estimate_processing_fee(amount: Decimal) -> Decimal:
    """Displayed estimate only; the payment boundary computes the real fee"""
    if amount <= 0:
        return ZERO
    fee = Decimal(amount) * settings.PROCESSING_FEE_PERCENTAGE + settings.PROCESSING_FEE_FIXED
    return quantize_money(fee)


def unique_discounts(discounts: List[AppliedDiscount]) -> Tuple[AppliedDiscount, ...]:
    """Drop repeated discount ids, keeping the first occurrence"""
    seen = set()
    result = []
    for discount in discounts:
        if discount.discount_id in seen:
            logger.warning(f"Ignoring duplicate automatic discount {discount.discount_id}")
            continue
        seen.add(discount.discount_id)
        result.append(discount)
    return tuple(result)


@dataclass(frozen=True)
class DiscountSummary:
    """Snapshot of the discount state for one base amount"""
    base_amount: Decimal = ZERO
    quantity: int = 0
    automatic_discounts: Tuple[AppliedDiscount, ...] = field(default_factory=tuple)
    code_discount: Optional[CodeDiscount] = None

    @property
    def total_discount(self) -> Decimal:
        total = sum((d.amount_off for d in self.automatic_discounts), ZERO)
        return min(total, self.base_amount)

    @property
    def code_discount_amount(self) -> Decimal:
        if self.code_discount is None:
            return ZERO
        return self.code_discount.discount_amount

    @property
    def final_amount(self) -> Decimal:
        return compute_final_amount(self.base_amount, self.total_discount, self.code_discount_amount)

    @property
    def discount_amount(self) -> Decimal:
        """Everything taken off the base amount, as actually applied"""
        return self.base_amount - self.final_amount

    @property
    def processing_fee_estimate(self) -> Decimal:
        return estimate_processing_fee(self.final_amount)

    @property
    def is_free(self) -> bool:
        return self.final_amount == 0


class DiscountEngine:
    """Keeps the automatic and code discount results for one journey"""

    def __init__(self, gateway: DiscountGateway):
        self._gateway = gateway
        self._summary = DiscountSummary()
        self._code: Optional[str] = None

    @property
    def summary(self) -> DiscountSummary:
        return self._summary

    @property
    def code(self) -> Optional[str]:
        return self._code

    def reset(self, base_amount: Decimal = ZERO, quantity: int = 0) -> DiscountSummary:
        self._summary = DiscountSummary(base_amount=base_amount, quantity=quantity)
        self._code = None
        return self._summary

    async def recalculate(
        self,
        event_id: str,
        participants: List[ParticipantData],
        base_amount: Decimal,
        quantity: int
    ) -> DiscountSummary:
        """
        Re-evaluate automatic discounts, and re-check an entered code when the
        amount or quantity changed.

        Raises:
            ExternalServiceError: If the discount service cannot be reached.
            DiscountCodeError: If a previously accepted code no longer applies;
                the code is removed before raising.
        """
        if base_amount <= 0 or quantity < 1:
            self._code = None
            self._summary = replace(
                self._summary,
                base_amount=max(ZERO, base_amount),
                quantity=quantity,
                automatic_discounts=(),
                code_discount=None
            )
            return self._summary

        async with metrics_collector.track_gateway_call("discounts"):
            calculation = await self._gateway.calculate_discounts(
                event_id, participants, base_amount, quantity
            )
        automatic = unique_discounts(calculation.applied_discounts)

        previous = self._summary
        self._summary = DiscountSummary(
            base_amount=base_amount,
            quantity=quantity,
            automatic_discounts=automatic,
            code_discount=previous.code_discount
        )

        if self._code and (previous.base_amount != base_amount or previous.quantity != quantity):
            code = self._code
            try:
                await self.apply_code(event_id, code, base_amount, quantity)
            except DiscountCodeError:
                logger.info(f"Discount code {code} no longer applies to event {event_id}, removing it")
                self.remove_code()
                raise
        elif self._summary.code_discount and self._is_automatic(self._summary.code_discount.discount_id):
            self.remove_code()

        return self._summary

    async def apply_code(
        self,
        event_id: str,
        code: str,
        base_amount: Decimal,
        quantity: int
    ) -> DiscountSummary:
        """
        Look up a discount code and add it on top of the automatic discounts.

        Raises:
            ValidationError: If the code is blank.
            DiscountCodeError: If the code is rejected or already applied automatically.
        """
        normalized = (code or "").strip().upper()
        if not normalized:
            raise ValidationError("Please enter a discount code", field="discount_code")

        async with metrics_collector.track_gateway_call("discount_code"):
            result = await self._gateway.apply_code(event_id, normalized, base_amount, quantity)

        if self._is_automatic(result.discount_id):
            logger.warning(
                f"Discount code {normalized} maps to automatic discount {result.discount_id}; not stacking"
            )
            raise DiscountCodeError("This discount has already been applied to your booking")

        self._code = normalized
        self._summary = replace(
            self._summary,
            base_amount=base_amount,
            quantity=quantity,
            code_discount=result
        )
        logger.info(f"Applied discount code {normalized} to event {event_id}: -{result.discount_amount}")
        return self._summary

    def remove_code(self) -> DiscountSummary:
        """Drop the code discount; the final amount falls back to automatic discounts only"""
        self._code = None
        self._summary = replace(self._summary, code_discount=None)
        return self._summary

    def _is_automatic(self, discount_id: str) -> bool:
        return any(d.discount_id == discount_id for d in self._summary.automatic_discounts)
