"""
httpx implementations of the booking gateways, talking to the bookingflow API
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from bookingflow.config import settings
from bookingflow.core.exceptions import (
    DiscountCodeError,
    ExternalServiceError,
    NotFoundError,
    PaymentError,
    PricingTimeoutError,
)
from bookingflow.booking.gateways import (
    DiscountGateway,
    NotificationGateway,
    ParticipantValidationGateway,
    PaymentGateway,
    PricingGateway,
)
from bookingflow.schemas.booking import (
    ParticipantData,
    ParticipantValidationRequest,
    ParticipantValidationResult,
)
from bookingflow.schemas.checkout import CheckoutSession, CheckoutSessionRequest
from bookingflow.schemas.discount import (
    CodeDiscount,
    DiscountCalculation,
    DiscountCodeRequest,
    DiscountRequest,
)
from bookingflow.schemas.event import PricingTier

logger = logging.getLogger(__name__)


def create_api_client(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None
) -> httpx.AsyncClient:
    """AsyncClient rooted at the versioned API"""
    root = (base_url or settings.API_BASE_URL).rstrip("/")
    return httpx.AsyncClient(
        base_url=f"{root}{settings.API_PREFIX}",
        transport=transport,
        timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
    )


def error_message(response: httpx.Response) -> Optional[str]:
    """Pull the human-readable message out of an error envelope"""
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return error
        detail = payload.get("detail")
        if isinstance(detail, str):
            return detail
    return None


class HttpGateway:
    """Shared request handling: transport errors become ExternalServiceError"""

    service = "api"

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{self.service} request to {url} timed out: {e}")
            raise ExternalServiceError(self.service, f"{self.service} request timed out")
        except httpx.HTTPError as e:
            logger.error(f"{self.service} request to {url} failed: {e}")
            raise ExternalServiceError(self.service)

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = error_message(response)
        logger.error(f"{self.service} returned {response.status_code}: {message}")
        raise ExternalServiceError(self.service, message)

    @staticmethod
    def _json(model) -> Dict[str, Any]:
        return model.model_dump(mode="json")


class HttpPricingGateway(HttpGateway, PricingGateway):
    service = "pricing"

    async def fetch_pricing_tiers(self, event_id: str, membership_type: str) -> List[PricingTier]:
        try:
            response = await self.client.get(
                f"/events/{event_id}/pricing",
                params={"membership_type": membership_type},
            )
        except httpx.TimeoutException:
            raise PricingTimeoutError(self.client.timeout.read or settings.PRICING_FETCH_TIMEOUT_SECONDS)
        except httpx.HTTPError as e:
            logger.error(f"Pricing request for event {event_id} failed: {e}")
            raise ExternalServiceError(self.service, "Failed to load pricing")
        if response.status_code == 404:
            raise NotFoundError("Event", event_id)
        self._raise_for_status(response)
        return [PricingTier.model_validate(item) for item in response.json()]


class HttpDiscountGateway(HttpGateway, DiscountGateway):
    service = "discounts"

    async def calculate_discounts(
        self,
        event_id: str,
        participants: List[ParticipantData],
        base_amount: Decimal,
        quantity: int
    ) -> DiscountCalculation:
        request = DiscountRequest(participants=participants, base_amount=base_amount, quantity=quantity)
        response = await self._request(
            "POST", f"/events/{event_id}/calculate-discounts", json=self._json(request)
        )
        self._raise_for_status(response)
        return DiscountCalculation.model_validate(response.json())

    async def apply_code(
        self,
        event_id: str,
        code: str,
        base_amount: Decimal,
        quantity: int
    ) -> CodeDiscount:
        request = DiscountCodeRequest(code=code, base_amount=base_amount, quantity=quantity)
        response = await self._request(
            "POST", f"/events/{event_id}/apply-discount-code", json=self._json(request)
        )
        if response.status_code in (400, 404):
            raise DiscountCodeError(
                error_message(response) or "This discount code is not valid",
                status_code=response.status_code
            )
        self._raise_for_status(response)
        return CodeDiscount.model_validate(response.json())


class HttpParticipantValidationGateway(HttpGateway, ParticipantValidationGateway):
    service = "participant_validation"

    async def validate_participants(
        self,
        event_id: str,
        participants: List[ParticipantData],
        exclude_booking_id: Optional[str] = None
    ) -> ParticipantValidationResult:
        request = ParticipantValidationRequest(
            event_id=event_id, participants=participants, exclude_booking_id=exclude_booking_id
        )
        response = await self._request(
            "POST", "/bookings/validate-participants", json=self._json(request)
        )
        self._raise_for_status(response)
        return ParticipantValidationResult.model_validate(response.json())


class HttpPaymentGateway(HttpGateway, PaymentGateway):
    service = "payment"

    async def create_checkout_session(
        self,
        booking_id: str,
        event_id: str,
        quantity: int,
        amount: Decimal,
        description: str
    ) -> CheckoutSession:
        request = CheckoutSessionRequest(
            booking_id=booking_id,
            event_id=event_id,
            quantity=quantity,
            amount=amount,
            description=description,
        )
        try:
            response = await self.client.post("/checkout/sessions", json=self._json(request))
        except httpx.HTTPError as e:
            logger.error(f"Checkout session request for booking {booking_id} failed: {e}")
            raise PaymentError("Payment service is unavailable, please try again")
        if not response.is_success:
            raise PaymentError(error_message(response) or "Failed to create checkout session")
        return CheckoutSession.model_validate(response.json())


class HttpNotificationGateway(HttpGateway, NotificationGateway):
    service = "notifications"

    async def send(self, template: str, booking_id: str) -> bool:
        response = await self._request(
            "POST",
            f"/notifications/{template.replace('_', '-')}",
            json={"booking_id": booking_id},
        )
        if not response.is_success:
            logger.warning(f"Notification {template} for booking {booking_id} returned {response.status_code}")
            return False
        return bool(response.json().get("success"))
