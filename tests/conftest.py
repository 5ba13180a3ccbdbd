"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt

from storefront_mail.api.main import create_app
from storefront_mail.config import Settings, get_settings
from storefront_mail.constants import ADMIN_ROLE, DeliveryTier
from storefront_mail.delivery.attempt_log import AttemptLogger
from storefront_mail.delivery.transports import MailTransport, SimulatedTransport
from storefront_mail.errors import TransportError
from storefront_mail.runtime import MailRuntime
from storefront_mail.types.delivery import MailMessage, SendReceipt
from storefront_mail.types.order import Address, Customer, OrderRecord, Payment, ProductLine


class FakeTransport(MailTransport):
    """In-memory delivery tier that either always accepts or always fails."""

    def __init__(self, tier: DeliveryTier, fail: bool = False, healthy: bool = True):
        super().__init__()
        self.tier = tier
        self.fail = fail
        self.healthy = healthy
        self.sent: list[MailMessage] = []
        self.verify_calls = 0

    async def _send(self, message: MailMessage) -> SendReceipt:
        self.sent.append(message)
        if self.fail:
            raise TransportError(self.tier, "connection refused")
        return SendReceipt(message_id=f"<{self.tier.value}-{len(self.sent)}@test>")

    async def verify(self) -> bool:
        self.verify_calls += 1
        return self.healthy


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    """Factory for fake delivery tiers."""
    return FakeTransport


@pytest.fixture
def primary() -> FakeTransport:
    return FakeTransport(DeliveryTier.PRIMARY)


@pytest.fixture
def fallback() -> FakeTransport:
    return FakeTransport(DeliveryTier.FALLBACK)


@pytest.fixture
def simulated() -> SimulatedTransport:
    return SimulatedTransport()


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "email-logs.json"


@pytest.fixture
def test_settings(log_file: Path) -> Settings:
    """Create test settings."""
    return Settings(
        environment="test",
        email_host="smtp.test.local",
        email_user="shop@example.com",
        email_pass="app-password",
        email_from="shop@example.com",
        admin_notification_email="owner@example.com",
        email_log_file=log_file,
        queue_default_retry_delay_ms=0,
        api_secret_key="test-secret-key",
        log_level="DEBUG",
        log_format="console",
    )


@pytest_asyncio.fixture
async def attempt_log(log_file: Path) -> AttemptLogger:
    """Attempt logger writing to a temporary file."""
    logger = AttemptLogger(log_file=log_file)
    await logger.init()
    return logger


@pytest_asyncio.fixture
async def runtime(
    test_settings: Settings,
    primary: FakeTransport,
    fallback: FakeTransport,
) -> AsyncGenerator[MailRuntime]:
    """A started mail runtime backed by fake tiers."""
    runtime = MailRuntime.from_settings(test_settings, primary=primary, fallback=fallback)
    await runtime.start()

    yield runtime

    await runtime.stop(drain_timeout=1.0)


@pytest_asyncio.fixture
async def app(runtime: MailRuntime) -> FastAPI:
    """Create a FastAPI app serving the test runtime."""
    return create_app(runtime=runtime)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_token() -> Callable[..., str]:
    """
    Factory for bearer tokens signed the way the storefront's auth service
    signs them.
    """

    def _make_token(
        subject: str,
        role: str | None = ADMIN_ROLE,
        expires_delta: timedelta = timedelta(minutes=30),
    ) -> str:
        settings = get_settings()
        now = datetime.now(timezone.utc)
        claims = {"sub": subject, "exp": now + expires_delta, "iat": now}
        if role is not None:
            claims["role"] = role
        return jwt.encode(claims, settings.api_secret_key, algorithm=settings.api_algorithm)

    return _make_token


@pytest.fixture
def admin_headers(make_token: Callable[..., str]) -> dict[str, str]:
    """Authorization headers carrying an admin token."""
    return {"Authorization": f"Bearer {make_token('admin-1')}"}


@pytest.fixture
def sample_order() -> OrderRecord:
    """Create a sample order."""
    return OrderRecord(
        order_id="ORD-1001",
        order_date=datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc),
        status="confirmed",
        customer=Customer(
            name="Asha Rao",
            email="asha@example.com",
            phone="+91-9000000000",
            address=Address(street="12 MG Road", city="Pune", state="MH", pincode="411001"),
        ),
        product=ProductLine(name="Herbal Capsules", quantity=2, price=499.0, discount=10),
        payment=Payment(method="razorpay", status="paid"),
        total_amount=898.2,
    )
