"""
Delivery tiers.

Every tier exposes the same contract: ``send_mail`` hands a message to a
backend and returns its Message-ID or raises ``TransportError``; ``verify``
checks connectivity and never raises.
"""

import asyncio
import logging
import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formatdate, make_msgid, parseaddr

import aiosmtplib

from storefront_mail.config import Settings
from storefront_mail.constants import SIMULATED_MESSAGE_DOMAIN, DeliveryTier
from storefront_mail.errors import TransportError
from storefront_mail.types.delivery import MailMessage, SendReceipt, TierStats

logger = logging.getLogger(__name__)

# Errors a real SMTP tier can raise while connecting or sending
SMTP_ERRORS = (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError)


def build_email(message: MailMessage) -> EmailMessage:
    """Build a MIME message with a plain-text part and the HTML alternative."""
    email = EmailMessage()
    email["From"] = message.sender
    email["To"] = message.to
    email["Subject"] = message.subject
    email["Date"] = formatdate(localtime=True)

    domain = parseaddr(message.sender)[1].rpartition("@")[2] or None
    email["Message-ID"] = make_msgid(domain=domain)

    for name, value in message.headers.items():
        email[name] = value

    email.set_content("This message is best viewed in an HTML-capable mail client.")
    email.add_alternative(message.html, subtype="html")
    return email


class MailTransport(ABC):
    """
    Base class for a delivery tier.

    Keeps per-tier attempt counters; subclasses implement ``_send``.
    """

    tier: DeliveryTier

    def __init__(self) -> None:
        self.stats = TierStats()

    async def send_mail(self, message: MailMessage) -> SendReceipt:
        """
        Hand one message to this tier.

        Raises:
            TransportError: If the tier could not accept the message.
        """
        try:
            receipt = await self._send(message)
        except Exception:
            self.stats.record(success=False)
            raise
        self.stats.record(success=True)
        return receipt

    @abstractmethod
    async def _send(self, message: MailMessage) -> SendReceipt:
        ...

    @abstractmethod
    async def verify(self) -> bool:
        """Check that the tier can accept mail."""


@dataclass(frozen=True)
class SmtpTransportConfig:
    """Connection settings for one SMTP tier."""

    host: str
    port: int
    username: str | None = None
    password: str | None = None
    use_tls: bool = False
    validate_certs: bool = True
    connection_timeout: float = 30.0
    greeting_timeout: float = 15.0
    socket_timeout: float = 30.0

    @classmethod
    def primary(cls, settings: Settings) -> "SmtpTransportConfig":
        """Configured port, implicit TLS only on 465."""
        return cls(
            host=settings.email_host,
            port=settings.email_port,
            username=settings.email_user,
            password=settings.email_pass,
            use_tls=settings.email_port == 465,
            validate_certs=True,
            connection_timeout=settings.email_connection_timeout_seconds,
            greeting_timeout=settings.email_greeting_timeout_seconds,
            socket_timeout=settings.email_socket_timeout_seconds,
        )

    @classmethod
    def fallback(cls, settings: Settings) -> "SmtpTransportConfig":
        """Same account over implicit TLS with relaxed certificate checks."""
        return cls(
            host=settings.email_host,
            port=settings.email_fallback_port,
            username=settings.email_user,
            password=settings.email_pass,
            use_tls=True,
            validate_certs=False,
            connection_timeout=settings.email_fallback_connection_timeout_seconds,
            greeting_timeout=settings.email_fallback_greeting_timeout_seconds,
            socket_timeout=settings.email_fallback_socket_timeout_seconds,
        )


class SmtpTransport(MailTransport):
    """SMTP delivery tier using one connection per message."""

    def __init__(self, tier: DeliveryTier, config: SmtpTransportConfig):
        super().__init__()
        self.tier = tier
        self.config = config

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[aiosmtplib.SMTP]:
        """Connect (and log in when credentials are set), then quit on exit."""
        cfg = self.config
        smtp = aiosmtplib.SMTP(
            hostname=cfg.host,
            port=cfg.port,
            username=cfg.username,
            password=cfg.password,
            use_tls=cfg.use_tls,
            validate_certs=cfg.validate_certs,
            timeout=cfg.socket_timeout,
        )

        # connect() covers the TCP handshake and the server greeting
        await asyncio.wait_for(
            smtp.connect(timeout=cfg.connection_timeout),
            timeout=cfg.connection_timeout + cfg.greeting_timeout,
        )
        try:
            yield smtp
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except aiosmtplib.SMTPException:
                    smtp.close()

    async def _send(self, message: MailMessage) -> SendReceipt:
        email = build_email(message)

        try:
            async with self._session() as smtp:
                await smtp.send_message(email)
        except SMTP_ERRORS as e:
            raise TransportError(self.tier, str(e) or e.__class__.__name__) from e

        logger.info(
            "Email accepted by SMTP server",
            extra={
                "tier": self.tier.value,
                "to": message.to,
                "message_id": email["Message-ID"],
            },
        )
        return SendReceipt(message_id=email["Message-ID"])

    async def verify(self) -> bool:
        try:
            async with self._session():
                pass
        except SMTP_ERRORS as e:
            logger.warning(
                "SMTP tier verification failed",
                extra={
                    "tier": self.tier.value,
                    "host": self.config.host,
                    "port": self.config.port,
                    "error": str(e) or e.__class__.__name__,
                },
            )
            return False

        logger.info(
            "SMTP tier ready",
            extra={"tier": self.tier.value, "host": self.config.host, "port": self.config.port},
        )
        return True


class SimulatedTransport(MailTransport):
    """
    Tier that never contacts a network endpoint.

    Used to keep the storefront operable when no real tier is reachable,
    e.g. in local development.
    """

    tier = DeliveryTier.SIMULATED

    async def _send(self, message: MailMessage) -> SendReceipt:
        message_id = (
            f"noop-{int(time.time() * 1000)}-{secrets.token_hex(5)[:9]}"
            f"@{SIMULATED_MESSAGE_DOMAIN}"
        )

        logger.info(
            "Simulated email delivery",
            extra={"to": message.to, "subject": message.subject, "message_id": message_id},
        )
        return SendReceipt(message_id=message_id)

    async def verify(self) -> bool:
        return True
