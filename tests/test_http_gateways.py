"""
Tests for the httpx gateway implementations
"""

import json
from decimal import Decimal

import httpx
import pytest

from bookingflow.booking.http_gateways import (
    HttpDiscountGateway,
    HttpNotificationGateway,
    HttpParticipantValidationGateway,
    HttpPaymentGateway,
    HttpPricingGateway,
    create_api_client,
    error_message,
)
from bookingflow.core.exceptions import (
    DiscountCodeError,
    ExternalServiceError,
    NotFoundError,
    PaymentError,
    PricingTimeoutError,
)
from bookingflow.schemas.booking import ParticipantData


def api_client(handler) -> httpx.AsyncClient:
    return create_api_client(base_url="http://api.test", transport=httpx.MockTransport(handler))


def error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message, "details": {}}}


class TestErrorMessage:

    def test_error_envelope(self):
        response = httpx.Response(400, json=error_body("DISCOUNT_CODE_REJECTED", "Discount code has expired"))
        assert error_message(response) == "Discount code has expired"

    def test_plain_error_string(self):
        assert error_message(httpx.Response(400, json={"error": "Bad request"})) == "Bad request"

    def test_fastapi_detail(self):
        assert error_message(httpx.Response(404, json={"detail": "Not Found"})) == "Not Found"

    def test_non_json_body(self):
        assert error_message(httpx.Response(502, text="<html>Bad gateway</html>")) is None


class TestPricingGateway:

    @pytest.mark.asyncio
    async def test_fetch_tiers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["membership_type"] = request.url.params["membership_type"]
            return httpx.Response(200, json=[
                {"id": "tier-1", "name": "Early Bird", "price": "40.00", "pricing_type": "early_bird",
                 "membership_type": "all", "available_tickets": 25},
            ])

        async with api_client(handler) as client:
            tiers = await HttpPricingGateway(client).fetch_pricing_tiers("event-1", "member")

        assert seen == {"path": "/api/v1/events/event-1/pricing", "membership_type": "member"}
        assert tiers[0].name == "Early Bird"
        assert tiers[0].price == Decimal("40.00")
        assert tiers[0].available_tickets == 25

    @pytest.mark.asyncio
    async def test_missing_event(self):
        def handler(request):
            return httpx.Response(404, json=error_body("NOT_FOUND", "Event not found"))

        async with api_client(handler) as client:
            with pytest.raises(NotFoundError):
                await HttpPricingGateway(client).fetch_pricing_tiers("event-1", "member")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with api_client(handler) as client:
            with pytest.raises(PricingTimeoutError):
                await HttpPricingGateway(client).fetch_pricing_tiers("event-1", "member")

    @pytest.mark.asyncio
    async def test_server_error(self):
        def handler(request):
            return httpx.Response(500, json=error_body("INTERNAL_ERROR", "An internal server error occurred"))

        async with api_client(handler) as client:
            with pytest.raises(ExternalServiceError) as exc_info:
                await HttpPricingGateway(client).fetch_pricing_tiers("event-1", "member")
        assert exc_info.value.service == "pricing"


class TestDiscountGateway:

    @pytest.mark.asyncio
    async def test_calculate_discounts(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "total_discount": "10.00",
                "applied_discounts": [{
                    "discount_id": "d-1", "name": "Returning runner", "amount_off": "10.00",
                    "rule_type": "previous_event", "eligible_participants": 1, "previous_event": True,
                }],
                "final_amount": "90.00",
            })

        participants = [ParticipantData(first_name="Ada", last_name="Lovelace")]
        async with api_client(handler) as client:
            result = await HttpDiscountGateway(client).calculate_discounts(
                "event-1", participants, Decimal("100.00"), 1
            )

        assert seen["path"] == "/api/v1/events/event-1/calculate-discounts"
        assert seen["body"]["base_amount"] == "100.00"
        assert seen["body"]["participants"][0]["first_name"] == "Ada"
        assert result.applied_discounts[0].previous_event
        assert result.final_amount == Decimal("90.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404])
    async def test_rejected_code(self, status):
        def handler(request):
            return httpx.Response(status, json=error_body("DISCOUNT_CODE_REJECTED", "Discount code has expired"))

        async with api_client(handler) as client:
            with pytest.raises(DiscountCodeError) as exc_info:
                await HttpDiscountGateway(client).apply_code("event-1", "OLD", Decimal("100"), 1)
        assert exc_info.value.message == "Discount code has expired"
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with api_client(handler) as client:
            with pytest.raises(ExternalServiceError):
                await HttpDiscountGateway(client).calculate_discounts("event-1", [], Decimal("10"), 1)


class TestParticipantValidationGateway:

    @pytest.mark.asyncio
    async def test_rejection(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "valid": False,
                "errors": [{"participant_index": 0, "error": "Sorry, we cannot process your entry right now."}],
            })

        async with api_client(handler) as client:
            result = await HttpParticipantValidationGateway(client).validate_participants(
                "event-1", [ParticipantData(first_name="Ada", last_name="Lovelace")], exclude_booking_id="b-1"
            )

        assert seen["body"]["exclude_booking_id"] == "b-1"
        assert not result.valid
        assert result.errors[0].participant_index == 0


class TestPaymentGateway:

    @pytest.mark.asyncio
    async def test_create_session(self):
        def handler(request):
            assert request.url.path == "/api/v1/checkout/sessions"
            return httpx.Response(200, json={
                "session_id": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1",
                "processing_fee": "2.00",
            })

        async with api_client(handler) as client:
            session = await HttpPaymentGateway(client).create_checkout_session(
                "b-1", "event-1", 1, Decimal("100.00"), "Regular x 1"
            )
        assert session.session_id == "cs_test_1"
        assert session.processing_fee == Decimal("2.00")

    @pytest.mark.asyncio
    async def test_failure(self):
        def handler(request):
            return httpx.Response(402, json=error_body("PAYMENT_FAILED", "Payment processing error: card declined"))

        async with api_client(handler) as client:
            with pytest.raises(PaymentError) as exc_info:
                await HttpPaymentGateway(client).create_checkout_session(
                    "b-1", "event-1", 1, Decimal("100.00"), "Regular x 1"
                )
        assert "card declined" in exc_info.value.message


class TestNotificationGateway:

    @pytest.mark.asyncio
    async def test_send(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        async with api_client(handler) as client:
            sent = await HttpNotificationGateway(client).send("whitelisted_booking", "b-1")

        assert sent
        assert seen == {"path": "/api/v1/notifications/whitelisted-booking", "body": {"booking_id": "b-1"}}

    @pytest.mark.asyncio
    async def test_rejected(self):
        def handler(request):
            return httpx.Response(404, json=error_body("NOT_FOUND", "Booking not found"))

        async with api_client(handler) as client:
            assert not await HttpNotificationGateway(client).send("conditional_free_request", "b-1")
