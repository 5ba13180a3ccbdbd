"""
SMTP setup checker.

Tries the usual port/TLS combinations against the configured SMTP host and
reports which ones accept a connection and login. Optionally sends a test
message through the first combination that works.

    python -m storefront_mail.delivery.diagnostics --send-to you@example.com
"""

import argparse
import asyncio
import logging
from dataclasses import replace

from storefront_mail.config import get_settings
from storefront_mail.constants import DeliveryTier
from storefront_mail.delivery.transports import SmtpTransport, SmtpTransportConfig
from storefront_mail.errors import TransportError
from storefront_mail.observability.logging import setup_logging
from storefront_mail.types.delivery import MailMessage

logger = logging.getLogger(__name__)

# (label, port, implicit TLS)
CANDIDATES: list[tuple[str, int, bool]] = [
    ("465 with implicit TLS", 465, True),
    ("465 without implicit TLS", 465, False),
    ("587 with STARTTLS", 587, False),
    ("587 with implicit TLS", 587, True),
]


async def check_candidates(base: SmtpTransportConfig) -> list[tuple[str, SmtpTransportConfig, bool]]:
    """
    Verify every candidate combination against the base configuration.

    Args:
        base: Host, credentials and timeouts shared by all candidates.

    Returns:
        (label, config, ok) for each candidate, in order.
    """
    results = []
    for label, port, use_tls in CANDIDATES:
        config = replace(base, port=port, use_tls=use_tls)
        ok = await SmtpTransport(DeliveryTier.PRIMARY, config).verify()

        logger.info(
            "SMTP combination checked",
            extra={"combination": label, "host": config.host, "ok": ok},
        )
        results.append((label, config, ok))
    return results


async def send_test_message(config: SmtpTransportConfig, sender: str, recipient: str) -> bool:
    """Send a short test message through one configuration."""
    transport = SmtpTransport(DeliveryTier.PRIMARY, config)
    message = MailMessage(
        sender=sender,
        to=recipient,
        subject="SMTP configuration test",
        html="<p>If you can read this, the SMTP configuration works.</p>",
    )
    try:
        receipt = await transport.send_mail(message)
    except TransportError as e:
        logger.error("Test message failed", extra={"to": recipient, "error": str(e)})
        return False

    logger.info("Test message sent", extra={"to": recipient, "message_id": receipt.message_id})
    return True


async def run_async(send_to: str | None = None) -> int:
    """Run the checker. Returns the process exit code."""
    setup_logging()
    settings = get_settings()

    results = await check_candidates(SmtpTransportConfig.primary(settings))
    working = [(label, config) for label, config, ok in results if ok]

    if not working:
        logger.error("No SMTP combination worked", extra={"host": settings.email_host})
        return 1

    label, config = working[0]
    logger.info("Recommended SMTP combination", extra={"combination": label})

    if send_to and not await send_test_message(config, settings.email_from, send_to):
        return 1
    return 0


def run() -> None:
    """Run the SMTP setup checker."""
    parser = argparse.ArgumentParser(description="Check SMTP connectivity for the storefront mailer")
    parser.add_argument("--send-to", help="Send a test message to this address")
    args = parser.parse_args()

    raise SystemExit(asyncio.run(run_async(send_to=args.send_to)))


if __name__ == "__main__":
    run()
