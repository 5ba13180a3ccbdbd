"""
Integration tests for the API endpoints.
"""

import logging

import pytest
from httpx import ASGITransport, AsyncClient

from storefront_mail.api.main import create_app
from storefront_mail.constants import DeliveryMode
from storefront_mail.runtime import MailRuntime


class TestHealthAPI:
    """Integration tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test health check endpoint."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["delivery_mode"] == "primary"
        assert "version" in data
        assert "X-Response-Time" in response.headers

    @pytest.mark.asyncio
    async def test_health_degraded_when_simulated(self, client: AsyncClient, runtime: MailRuntime):
        """Test that simulated delivery reports a degraded service."""
        runtime.orchestrator.mode = DeliveryMode.SIMULATED

        response = await client.get("/health")

        assert response.json()["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_liveness_check(self, client: AsyncClient):
        """Test liveness probe."""
        response = await client.get("/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True

    @pytest.mark.asyncio
    async def test_readiness_check(self, client: AsyncClient):
        """Test readiness probe."""
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True

    @pytest.mark.asyncio
    async def test_metrics_endpoint(self, client: AsyncClient):
        """Test Prometheus metrics endpoint."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "email_queue_depth" in response.text


class TestStatusAPI:
    """Integration tests for the email status endpoints."""

    @pytest.mark.asyncio
    async def test_email_mode(self, client: AsyncClient):
        """Test the public email mode endpoint."""
        response = await client.get("/api/status/email-mode")

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "real"
        assert data["delivery_mode"] == "primary"
        assert data["environment"] == "test"
        assert data["email_host"] == "smtp.test.local"

    @pytest.mark.asyncio
    async def test_email_mode_simulated(self, client: AsyncClient, runtime: MailRuntime):
        """Test the email mode while simulating."""
        runtime.orchestrator.mode = DeliveryMode.SIMULATED

        response = await client.get("/api/status/email-mode")

        assert response.json()["mode"] == "simulated"

    @pytest.mark.asyncio
    async def test_check_without_data(self, client: AsyncClient):
        """Test the public check before any delivery attempt."""
        response = await client.get("/api/status/check")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["email"]["delivery_status"] == "no data"
        assert data["email"]["tasks_queued"] == 0
        assert data["email"]["tasks_processing"] == 0

    @pytest.mark.asyncio
    async def test_check_reports_failures(self, client: AsyncClient, runtime: MailRuntime, primary, sample_order):
        """Test the delivery status after successful and failed attempts."""
        await runtime.notifications.send_customer_confirmation(sample_order)

        response = await client.get("/api/status/check")
        assert response.json()["email"]["delivery_status"] == "operational"

        primary.fail = True
        await runtime.notifications.send_customer_confirmation(sample_order)

        response = await client.get("/api/status/check")
        assert response.json()["email"]["delivery_status"] == "issues detected"

    @pytest.mark.asyncio
    async def test_email_status_requires_auth(self, client: AsyncClient):
        """Test that the admin endpoints reject anonymous callers."""
        response = await client.get("/api/status/email")

        # HTTPBearer returns 401 or 403 depending on the FastAPI version
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_email_status_requires_admin(self, client: AsyncClient, make_token):
        """Test that non-admin tokens are forbidden."""
        token = make_token("customer-1", role="customer")

        response = await client.get(
            "/api/status/email",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_email_status_invalid_token(self, client: AsyncClient):
        """Test that an invalid token is rejected."""
        response = await client.get(
            "/api/status/email",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_email_status(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        runtime: MailRuntime,
        primary,
        sample_order,
    ):
        """Test the admin email status view."""
        primary.fail = True
        for _ in range(3):
            await runtime.notifications.send_admin_notification(sample_order)

        response = await client.get("/api/status/email?limit=4", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email_stats"]["total"] == 6
        assert data["email_stats"]["success"] == 3
        assert data["email_stats"]["success_rate"] == 50.0
        assert data["tier_stats"]["primary"] == {"attempts": 3, "successes": 0, "success_rate": 0.0}
        assert data["tier_stats"]["fallback"]["successes"] == 3
        assert data["queue_stats"]["queue_length"] == 0
        assert len(data["recent_logs"]) == 4
        assert data["recent_logs"][0]["tier"] == "fallback"
        assert data["recent_logs"][0]["type"] == "admin_notification"

    @pytest.mark.asyncio
    async def test_email_status_limit_validation(self, client: AsyncClient, admin_headers: dict[str, str]):
        """Test that out-of-range limits are rejected."""
        response = await client.get("/api/status/email?limit=0", headers=admin_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_system_status(self, client: AsyncClient, admin_headers: dict[str, str]):
        """Test the admin system view."""
        response = await client.get("/api/status/system", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["uptime"]["formatted"].startswith("0d 0h")
        assert data["max_rss"].endswith("B")
        assert data["task_queue"]["is_processing"] is False


class TestTimingMiddleware:
    """Integration tests for request timing."""

    @pytest.mark.asyncio
    async def test_slow_threshold_comes_from_runtime(
        self,
        test_settings,
        primary,
        fallback,
        caplog: pytest.LogCaptureFixture,
    ):
        """Test that the app uses the slow request threshold of the runtime it serves."""
        settings = test_settings.model_copy(update={"slow_request_threshold_ms": 0.0})
        runtime = MailRuntime.from_settings(settings, primary=primary, fallback=fallback)
        app = create_app(runtime=runtime)

        with caplog.at_level(logging.WARNING, logger="storefront_mail.api.middleware"):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.get("/api/status/check")

        assert response.status_code == 200
        assert any(record.getMessage() == "Slow request" for record in caplog.records)
