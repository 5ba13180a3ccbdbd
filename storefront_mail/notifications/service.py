"""
Order notification adapters.

Each ``send_*`` method renders a message from an order record and submits its
delivery to the task queue. The returned future settles with a
``DeliveryResult`` on success or a ``JobFailure`` once retries run out.
"""

import asyncio
import logging

from storefront_mail.config import Settings
from storefront_mail.constants import HIGH_PRIORITY_HEADERS, MessageType
from storefront_mail.delivery.orchestrator import DeliveryOrchestrator
from storefront_mail.errors import DeliveryError
from storefront_mail.notifications.templates import TemplateRenderer
from storefront_mail.queue.task_queue import TaskQueue
from storefront_mail.types.delivery import DeliveryMetadata, DeliveryResult, MailMessage
from storefront_mail.types.job import JobOptions
from storefront_mail.types.order import OrderRecord

logger = logging.getLogger(__name__)


class EmailNotificationService:
    """Builds order emails and queues their delivery."""

    def __init__(
        self,
        queue: TaskQueue,
        orchestrator: DeliveryOrchestrator,
        renderer: TemplateRenderer,
        sender: str,
        admin_email: str,
        job_options: JobOptions | None = None,
    ):
        self.queue = queue
        self.orchestrator = orchestrator
        self.renderer = renderer
        self.sender = sender
        self.admin_email = admin_email
        self.job_options = job_options or JobOptions()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        queue: TaskQueue,
        orchestrator: DeliveryOrchestrator,
    ) -> "EmailNotificationService":
        renderer = TemplateRenderer(
            store_name=settings.store_name,
            support_email=settings.email_from,
            dashboard_url=settings.admin_dashboard_url,
            currency=settings.currency_symbol,
        )
        return cls(
            queue=queue,
            orchestrator=orchestrator,
            renderer=renderer,
            sender=settings.email_from,
            admin_email=settings.admin_notification_email,
            job_options=JobOptions(
                max_retries=settings.queue_default_max_retries,
                retry_delay_ms=settings.queue_default_retry_delay_ms,
            ),
        )

    async def deliver(self, message: MailMessage, metadata: DeliveryMetadata) -> DeliveryResult:
        """
        Job body: one orchestration pass over the delivery tiers.

        Raises:
            DeliveryError: If every tier failed, so the queue retries the job.
        """
        result = await self.orchestrator.deliver(message, metadata)
        if not result.success:
            raise DeliveryError(result.error or "All delivery tiers failed")
        return result

    def submit(self, job_name: str, message: MailMessage, metadata: DeliveryMetadata) -> asyncio.Future:
        logger.info(
            "Queueing email",
            extra={
                "job_name": job_name,
                "type": metadata.message_type.value,
                "to": message.to,
                "order_id": metadata.order_id,
            },
        )
        return self.queue.submit(
            self.deliver, job_name, message, metadata, options=self.job_options
        )

    def send_customer_confirmation(self, order: OrderRecord) -> asyncio.Future:
        """Order confirmation to the customer."""
        message = MailMessage(
            sender=self.sender,
            to=order.customer.email,
            subject=f"Order Confirmation - {order.order_id}",
            html=self.renderer.render(MessageType.CUSTOMER_CONFIRMATION, order),
        )
        return self.submit(
            "send_customer_confirmation",
            message,
            DeliveryMetadata(message_type=MessageType.CUSTOMER_CONFIRMATION, order_id=order.order_id),
        )

    def send_admin_notification(self, order: OrderRecord) -> asyncio.Future:
        """New-order notification to the store admin."""
        message = MailMessage(
            sender=self.sender,
            to=self.admin_email,
            subject=f"New Order Received - {order.order_id}",
            html=self.renderer.render(MessageType.ADMIN_NOTIFICATION, order),
        )
        return self.submit(
            "send_admin_notification",
            message,
            DeliveryMetadata(message_type=MessageType.ADMIN_NOTIFICATION, order_id=order.order_id),
        )

    def send_status_update(self, order: OrderRecord, previous_status: str) -> asyncio.Future:
        """Tell the customer their order moved from ``previous_status`` to its current status."""
        message = MailMessage(
            sender=self.sender,
            to=order.customer.email,
            subject=f"Order Status Update - {order.order_id}",
            html=self.renderer.status_update(order, previous_status),
        )
        return self.submit(
            "send_status_update",
            message,
            DeliveryMetadata(message_type=MessageType.STATUS_UPDATE, order_id=order.order_id),
        )

    def send_alert(self, order: OrderRecord, email: str | None = None) -> asyncio.Future:
        """High-priority new-order alert, to ``email`` or the admin address."""
        message = MailMessage(
            sender=self.sender,
            to=email or self.admin_email,
            subject=f"Order Alert: {order.order_id} - Action Required",
            html=self.renderer.render(MessageType.ORDER_ALERT, order),
            headers=dict(HIGH_PRIORITY_HEADERS),
        )
        return self.submit(
            "send_alert",
            message,
            DeliveryMetadata(message_type=MessageType.ORDER_ALERT, order_id=order.order_id),
        )
