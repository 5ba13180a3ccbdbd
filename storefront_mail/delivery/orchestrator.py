"""
Delivery orchestrator.

Tries the delivery tiers in strict order (primary, fallback, then simulated
when the simulated mode was selected at startup), logging each attempt, and
returns the first success or a failure result. Tier errors never propagate.
"""

import logging

from storefront_mail.constants import SPAN_DELIVER_ATTEMPT, AttemptStatus, DeliveryMode, DeliveryTier
from storefront_mail.delivery.attempt_log import AttemptLogger
from storefront_mail.delivery.transports import MailTransport
from storefront_mail.observability.metrics import MetricsCollector, get_metrics
from storefront_mail.observability.tracing import get_tracer
from storefront_mail.queue.task_queue import current_retry_count
from storefront_mail.types.delivery import (
    AttemptRecord,
    DeliveryMetadata,
    DeliveryResult,
    MailMessage,
    TierStats,
)

logger = logging.getLogger(__name__)


class DeliveryOrchestrator:
    """
    Tiered message delivery.

    A tier is never retried within one pass; retrying the whole pass is the
    task queue's job.
    """

    def __init__(
        self,
        primary: MailTransport,
        fallback: MailTransport,
        simulated: MailTransport,
        attempt_log: AttemptLogger,
        mode: DeliveryMode = DeliveryMode.PRIMARY,
        metrics: MetricsCollector | None = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.simulated = simulated
        self.attempt_log = attempt_log
        self.mode = mode
        self._metrics = metrics or get_metrics()

    def tiers(self) -> list[MailTransport]:
        """Tiers consulted by ``deliver``, in order."""
        chain = [self.primary, self.fallback]
        if self.mode == DeliveryMode.SIMULATED:
            chain.append(self.simulated)
        return chain

    def tier_stats(self) -> dict[str, TierStats]:
        return {
            transport.tier.value: transport.stats
            for transport in (self.primary, self.fallback, self.simulated)
        }

    async def deliver(
        self,
        message: MailMessage,
        metadata: DeliveryMetadata | None = None,
    ) -> DeliveryResult:
        """
        Deliver a message through the first tier that accepts it.

        Args:
            message: The rendered message.
            metadata: Message type and order reference for the attempt log.

        Returns:
            DeliveryResult with the accepting tier's message id, or the last
            tier error if every tier failed.
        """
        metadata = metadata or DeliveryMetadata()
        retry_count = current_retry_count()
        last_error = "No delivery tier available"

        for transport in self.tiers():
            tier = transport.tier

            with get_tracer().start_as_current_span(SPAN_DELIVER_ATTEMPT) as span:
                span.set_attribute("tier", tier.value)
                span.set_attribute("message_type", metadata.message_type.value)

                try:
                    receipt = await transport.send_mail(message)
                except Exception as e:
                    last_error = str(e) or e.__class__.__name__
                    span.set_attribute("success", False)
                    logger.warning(
                        "Delivery tier failed",
                        extra={
                            "tier": tier.value,
                            "to": message.to,
                            "order_id": metadata.order_id,
                            "error": last_error,
                        },
                    )
                    await self._log_attempt(
                        message, metadata, tier, retry_count, success=False, error=last_error
                    )
                    continue

                span.set_attribute("success", True)

            await self._log_attempt(
                message, metadata, tier, retry_count, success=True, message_id=receipt.message_id
            )
            logger.info(
                "Email delivered",
                extra={
                    "tier": tier.value,
                    "to": message.to,
                    "order_id": metadata.order_id,
                    "message_id": receipt.message_id,
                },
            )
            return DeliveryResult(success=True, message_id=receipt.message_id, tier=tier)

        logger.error(
            "All delivery tiers failed",
            extra={"to": message.to, "order_id": metadata.order_id, "error": last_error},
        )
        return DeliveryResult(success=False, error=last_error)

    async def _log_attempt(
        self,
        message: MailMessage,
        metadata: DeliveryMetadata,
        tier: DeliveryTier,
        retry_count: int,
        success: bool,
        message_id: str | None = None,
        error: str | None = None,
    ) -> None:
        self._metrics.record_delivery_attempt(
            tier=tier.value,
            status=(AttemptStatus.SUCCESS if success else AttemptStatus.FAILED).value,
        )
        await self.attempt_log.record_attempt(
            AttemptRecord(
                message_type=metadata.message_type,
                to=message.to,
                subject=message.subject,
                order_id=metadata.order_id,
                success=success,
                message_id=message_id,
                error=error,
                retry_count=retry_count,
                tier=tier,
            )
        )
