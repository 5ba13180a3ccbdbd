"""
Startup selection of the delivery mode.
"""

import asyncio
import logging

from storefront_mail.config import Settings
from storefront_mail.constants import DeliveryMode
from storefront_mail.delivery.transports import MailTransport

logger = logging.getLogger(__name__)


async def _verify_within(transport: MailTransport, timeout: float) -> bool:
    try:
        return await asyncio.wait_for(transport.verify(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "Delivery tier verification timed out",
            extra={"tier": transport.tier.value, "timeout": timeout},
        )
        return False


async def select_delivery_mode(
    primary: MailTransport,
    fallback: MailTransport,
    settings: Settings,
) -> DeliveryMode:
    """
    Decide once, at startup, which delivery mode to run in.

    Order of precedence:
    1. An explicit ``email_delivery_mode`` setting
    2. Development without SMTP credentials -> SIMULATED, nothing is contacted
    3. Primary verifies -> PRIMARY; else fallback verifies -> FALLBACK
    4. Nothing verifies -> SIMULATED, so the service can still start

    Args:
        primary: The primary tier.
        fallback: The fallback tier.
        settings: Application settings.

    Returns:
        The selected DeliveryMode.
    """
    if settings.email_delivery_mode is not None:
        logger.info(
            "Delivery mode pinned by configuration",
            extra={"mode": settings.email_delivery_mode.value},
        )
        return settings.email_delivery_mode

    if settings.is_development and not settings.smtp_configured:
        logger.info("SMTP credentials not configured, email sending will be simulated")
        return DeliveryMode.SIMULATED

    timeout = settings.email_verify_timeout_seconds

    if await _verify_within(primary, timeout):
        mode = DeliveryMode.PRIMARY
    elif await _verify_within(fallback, timeout):
        mode = DeliveryMode.FALLBACK
    else:
        logger.warning("No delivery tier reachable, activating simulated delivery")
        mode = DeliveryMode.SIMULATED

    logger.info("Delivery mode selected", extra={"mode": mode.value})
    return mode
