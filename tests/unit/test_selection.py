"""
Unit tests for startup delivery mode selection.
"""

import asyncio

import pytest

from storefront_mail.constants import DeliveryMode, DeliveryTier
from storefront_mail.delivery.selection import select_delivery_mode


class TestSelectDeliveryMode:
    """Tests for choosing the delivery mode at startup."""

    @pytest.mark.asyncio
    async def test_primary_verifies(self, primary, fallback, test_settings):
        """Test that a reachable primary tier selects the primary mode."""
        mode = await select_delivery_mode(primary, fallback, test_settings)

        assert mode == DeliveryMode.PRIMARY
        assert fallback.verify_calls == 0

    @pytest.mark.asyncio
    async def test_fallback_verifies(self, primary, fallback, test_settings):
        """Test that the fallback mode is chosen when only the fallback tier is reachable."""
        primary.healthy = False

        mode = await select_delivery_mode(primary, fallback, test_settings)

        assert mode == DeliveryMode.FALLBACK

    @pytest.mark.asyncio
    async def test_nothing_verifies(self, primary, fallback, test_settings):
        """Test that the service falls back to simulated delivery."""
        primary.healthy = False
        fallback.healthy = False

        mode = await select_delivery_mode(primary, fallback, test_settings)

        assert mode == DeliveryMode.SIMULATED

    @pytest.mark.asyncio
    async def test_development_without_credentials(self, primary, fallback, test_settings):
        """Test that development without credentials never contacts a server."""
        settings = test_settings.model_copy(
            update={"environment": "development", "email_user": None, "email_pass": None}
        )

        mode = await select_delivery_mode(primary, fallback, settings)

        assert mode == DeliveryMode.SIMULATED
        assert primary.verify_calls == 0
        assert fallback.verify_calls == 0

    @pytest.mark.asyncio
    async def test_pinned_mode(self, primary, fallback, test_settings):
        """Test that a configured mode skips verification."""
        settings = test_settings.model_copy(update={"email_delivery_mode": DeliveryMode.FALLBACK})

        mode = await select_delivery_mode(primary, fallback, settings)

        assert mode == DeliveryMode.FALLBACK
        assert primary.verify_calls == 0

    @pytest.mark.asyncio
    async def test_verification_timeout(self, make_transport, fallback, test_settings):
        """Test that a hanging verification counts as unreachable."""

        class HangingTransport(make_transport):
            async def verify(self) -> bool:
                await asyncio.sleep(10)
                return True

        settings = test_settings.model_copy(update={"email_verify_timeout_seconds": 0.05})

        mode = await select_delivery_mode(HangingTransport(DeliveryTier.PRIMARY), fallback, settings)

        assert mode == DeliveryMode.FALLBACK
