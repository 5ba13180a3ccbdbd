"""
Delivery module.
Contains the delivery tiers, the attempt log and the tier orchestrator.
"""

from storefront_mail.delivery.attempt_log import AttemptLogger
from storefront_mail.delivery.orchestrator import DeliveryOrchestrator
from storefront_mail.delivery.selection import select_delivery_mode
from storefront_mail.delivery.transports import (
    MailTransport,
    SimulatedTransport,
    SmtpTransport,
    SmtpTransportConfig,
)

__all__ = [
    "AttemptLogger",
    "DeliveryOrchestrator",
    "select_delivery_mode",
    "MailTransport",
    "SmtpTransport",
    "SmtpTransportConfig",
    "SimulatedTransport",
]
