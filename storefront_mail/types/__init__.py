"""
Type definitions for the storefront mailer.
Contains input/output type definitions for all functions, grouped by module.
"""

from storefront_mail.types.api import (
    EmailModeResponse,
    EmailStatusResponse,
    ErrorResponse,
    HealthResponse,
    StatusCheckResponse,
    SystemStatusResponse,
)
from storefront_mail.types.delivery import (
    AttemptLogEntry,
    AttemptRecord,
    AttemptStats,
    DeliveryMetadata,
    DeliveryResult,
    MailMessage,
    SendReceipt,
    TierStats,
)
from storefront_mail.types.job import (
    JobFailure,
    JobOptions,
    QueuedJob,
    QueueStatus,
)
from storefront_mail.types.order import (
    Address,
    Customer,
    OrderRecord,
    Payment,
    ProductLine,
)

__all__ = [
    # API types
    "HealthResponse",
    "EmailModeResponse",
    "StatusCheckResponse",
    "EmailStatusResponse",
    "SystemStatusResponse",
    "ErrorResponse",
    # Job types
    "JobOptions",
    "JobFailure",
    "QueuedJob",
    "QueueStatus",
    # Delivery types
    "MailMessage",
    "DeliveryMetadata",
    "DeliveryResult",
    "SendReceipt",
    "AttemptRecord",
    "AttemptLogEntry",
    "AttemptStats",
    "TierStats",
    # Order types
    "OrderRecord",
    "Customer",
    "Address",
    "ProductLine",
    "Payment",
]
