"""
Tests for pricing tier resolution
"""

import asyncio
from decimal import Decimal

import pytest

from bookingflow.booking.pricing_catalog import DEFAULT_TIER_ID, PricingCatalog, is_synthetic_tier
from bookingflow.core.exceptions import PricingTimeoutError
from bookingflow.models.event import MembershipType


class TestPricingCatalog:

    @pytest.mark.asyncio
    async def test_configured_tiers_returned_in_order(self, gateways, make_event, make_tier):
        early, regular = make_tier(name="Early Bird", price="40.00"), make_tier(name="Regular", price="60.00")
        gateways.pricing.fetch_pricing_tiers.return_value = [early, regular]
        event = make_event()

        tiers = await PricingCatalog(gateways.pricing).resolve(event, "member")

        assert [t.name for t in tiers] == ["Early Bird", "Regular"]
        gateways.pricing.fetch_pricing_tiers.assert_awaited_once_with(event.id, "member")

    @pytest.mark.asyncio
    async def test_default_membership_type(self, gateways, make_event):
        event = make_event()
        await PricingCatalog(gateways.pricing).resolve(event)
        gateways.pricing.fetch_pricing_tiers.assert_awaited_once_with(event.id, "non_member")

    @pytest.mark.asyncio
    async def test_default_tier_for_free_event(self, gateways, make_event):
        tiers = await PricingCatalog(gateways.pricing).resolve(make_event(price=0))

        assert len(tiers) == 1
        tier = tiers[0]
        assert tier.id == DEFAULT_TIER_ID
        assert tier.name == "Free Event"
        assert tier.price == Decimal("0")
        assert tier.membership_type == MembershipType.ALL
        assert tier.available_tickets == 999
        assert is_synthetic_tier(tier)

    @pytest.mark.asyncio
    async def test_default_tier_for_paid_event(self, gateways, make_event):
        tiers = await PricingCatalog(gateways.pricing).resolve(make_event(price="35.00", max_attendees=80))

        assert tiers[0].name == "General Admission"
        assert tiers[0].price == Decimal("35.00")
        assert tiers[0].available_tickets == 80

    @pytest.mark.asyncio
    async def test_slow_fetch_times_out(self, gateways, make_event):
        async def slow_fetch(event_id, membership_type):
            await asyncio.sleep(1)
            return []

        gateways.pricing.fetch_pricing_tiers.side_effect = slow_fetch

        with pytest.raises(PricingTimeoutError) as exc_info:
            await PricingCatalog(gateways.pricing, timeout=0.01).resolve(make_event())
        assert exc_info.value.code == "PRICING_TIMEOUT"

    def test_find_tier(self, make_tier):
        tiers = [make_tier(name="A"), make_tier(name="B")]
        assert PricingCatalog.find_tier(tiers, tiers[1].id) is tiers[1]
        assert PricingCatalog.find_tier(tiers, "missing") is None
