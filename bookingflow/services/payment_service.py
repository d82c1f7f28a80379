"""
Payment Service with Stripe Integration
Creates hosted checkout sessions for pending bookings
"""

import stripe
from decimal import Decimal, ROUND_HALF_UP
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bookingflow.config import settings
from bookingflow.core.database import transaction
from bookingflow.core.exceptions import NotFoundError, PaymentError, ValidationError
from bookingflow.models.booking import Booking, BookingStatus
from bookingflow.schemas.checkout import CheckoutSession, CheckoutSessionRequest
from bookingflow.services.booking_store import to_uuid

logger = logging.getLogger(__name__)

# Initialize Stripe
stripe.api_key = settings.STRIPE_SECRET_KEY

CENT = Decimal("0.01")


def processing_fee(amount: Decimal) -> Decimal:
    """Fee passed on to the buyer as its own line item"""
    fee = amount * settings.PROCESSING_FEE_PERCENTAGE + settings.PROCESSING_FEE_FIXED
    return fee.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Service for handling payment operations"""

    @staticmethod
    def build_line_items(request: CheckoutSessionRequest, fee: Decimal) -> list:
        return [
            {
                "price_data": {
                    "currency": settings.PAYMENT_CURRENCY,
                    "product_data": {
                        "name": request.description,
                        "description": f"{request.quantity} ticket{'s' if request.quantity > 1 else ''}",
                    },
                    "unit_amount": to_cents(request.amount),
                },
                "quantity": 1,
            },
            {
                "price_data": {
                    "currency": settings.PAYMENT_CURRENCY,
                    "product_data": {"name": "Processing fee"},
                    "unit_amount": to_cents(fee),
                },
                "quantity": 1,
            },
        ]

    @staticmethod
    async def create_checkout_session(
        db: AsyncSession,
        request: CheckoutSessionRequest
    ) -> CheckoutSession:
        """Create a Stripe checkout session and remember its id on the booking"""
        booking = await db.get(Booking, to_uuid(request.booking_id, "Booking"))
        if booking is None:
            raise NotFoundError("Booking", request.booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ValidationError("Only pending bookings can be paid", field="booking_id")

        fee = processing_fee(request.amount)
        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                line_items=PaymentService.build_line_items(request, fee),
                mode="payment",
                success_url=f"{settings.FRONTEND_URL}/booking/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{settings.FRONTEND_URL}/events/{request.event_id}",
                metadata={
                    "booking_id": request.booking_id,
                    "event_id": request.event_id,
                },
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error: {str(e)}")
            raise PaymentError(f"Payment processing error: {str(e)}")

        async with transaction(db):
            booking.stripe_session_id = session.id

        logger.info(f"Checkout session {session.id} created for booking {request.booking_id}")
        return CheckoutSession(session_id=session.id, url=session.url, processing_fee=fee)
