"""
Mail runtime.

Builds the mail pipeline components from settings and owns their lifecycle.
The process entry point (the API lifespan) creates one runtime, starts it,
hands it to request handlers and stops it on shutdown.
"""

import logging
import time
from dataclasses import dataclass, field

from storefront_mail.config import Settings
from storefront_mail.constants import DeliveryMode, DeliveryTier
from storefront_mail.delivery.attempt_log import AttemptLogger
from storefront_mail.delivery.orchestrator import DeliveryOrchestrator
from storefront_mail.delivery.selection import select_delivery_mode
from storefront_mail.delivery.transports import (
    MailTransport,
    SimulatedTransport,
    SmtpTransport,
    SmtpTransportConfig,
)
from storefront_mail.notifications.service import EmailNotificationService
from storefront_mail.queue.task_queue import TaskQueue
from storefront_mail.types.job import JobOptions

logger = logging.getLogger(__name__)


@dataclass
class MailRuntime:
    """The wired mail pipeline for one process."""

    settings: Settings
    attempt_log: AttemptLogger
    primary: MailTransport
    fallback: MailTransport
    simulated: MailTransport
    orchestrator: DeliveryOrchestrator
    queue: TaskQueue
    notifications: EmailNotificationService
    started_at: float = field(default_factory=time.monotonic)
    started: bool = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        primary: MailTransport | None = None,
        fallback: MailTransport | None = None,
    ) -> "MailRuntime":
        """
        Build every component from settings.

        Args:
            settings: Application settings.
            primary: Override for the primary tier.
            fallback: Override for the fallback tier.
        """
        attempt_log = AttemptLogger(
            log_file=settings.email_log_file,
            memory_capacity=settings.email_log_memory_capacity,
            durable_capacity=settings.email_log_durable_capacity,
        )
        primary = primary or SmtpTransport(
            DeliveryTier.PRIMARY, SmtpTransportConfig.primary(settings)
        )
        fallback = fallback or SmtpTransport(
            DeliveryTier.FALLBACK, SmtpTransportConfig.fallback(settings)
        )
        simulated = SimulatedTransport()

        orchestrator = DeliveryOrchestrator(
            primary=primary,
            fallback=fallback,
            simulated=simulated,
            attempt_log=attempt_log,
        )
        queue = TaskQueue(
            max_concurrent=settings.queue_max_concurrent,
            default_options=JobOptions(
                max_retries=settings.queue_default_max_retries,
                retry_delay_ms=settings.queue_default_retry_delay_ms,
            ),
        )
        notifications = EmailNotificationService.from_settings(settings, queue, orchestrator)

        return cls(
            settings=settings,
            attempt_log=attempt_log,
            primary=primary,
            fallback=fallback,
            simulated=simulated,
            orchestrator=orchestrator,
            queue=queue,
            notifications=notifications,
        )

    @property
    def delivery_mode(self) -> DeliveryMode | None:
        return self.orchestrator.mode if self.started else None

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    async def start(self) -> None:
        """Open the durable log and select the delivery mode."""
        await self.attempt_log.init()
        self.orchestrator.mode = await select_delivery_mode(
            self.primary, self.fallback, self.settings
        )
        self.started_at = time.monotonic()
        self.started = True

        logger.info(
            "Mail runtime started",
            extra={"delivery_mode": self.orchestrator.mode.value},
        )

    async def stop(self, drain_timeout: float | None = 30.0) -> None:
        """Let queued email finish (up to ``drain_timeout``), then stop the queue."""
        drained = await self.queue.drain(timeout=drain_timeout)
        await self.queue.stop()
        self.started = False

        logger.info("Mail runtime stopped", extra={"drained": drained})
