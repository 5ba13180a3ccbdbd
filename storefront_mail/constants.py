"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class DeliveryTier(StrEnum):
    """Interchangeable message-delivery backends, in fallback order."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    SIMULATED = "simulated"


class DeliveryMode(StrEnum):
    """
    Delivery mode selected once at startup.

    - PRIMARY: primary tier verified; chain is primary -> fallback
    - FALLBACK: only the fallback tier verified; chain is primary -> fallback
    - SIMULATED: no real tier verified; chain is primary -> fallback -> simulated
    """

    PRIMARY = "primary"
    FALLBACK = "fallback"
    SIMULATED = "simulated"


class AttemptStatus(StrEnum):
    """Outcome of a single tier-level delivery attempt."""

    SUCCESS = "success"
    FAILED = "failed"


class MessageType(StrEnum):
    """Kinds of transactional email sent by the storefront."""

    CUSTOMER_CONFIRMATION = "customer_confirmation"
    ADMIN_NOTIFICATION = "admin_notification"
    STATUS_UPDATE = "status_update"
    ORDER_ALERT = "order_alert"
    UNKNOWN = "unknown"


class JobOutcome(StrEnum):
    """How a job run ended, for metrics and logs."""

    SUCCEEDED = "succeeded"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"


# Default values
DEFAULT_MAX_CONCURRENT = 3
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 10_000
MEMORY_LOG_CAPACITY = 100
DURABLE_LOG_CAPACITY = 500
DEFAULT_RECENT_LIMIT = 50

# Headers that mark a message as high priority in common mail clients
HIGH_PRIORITY_HEADERS: dict[str, str] = {
    "X-Priority": "1",
    "X-MSMail-Priority": "High",
    "Importance": "high",
}

SIMULATED_MESSAGE_DOMAIN = "simulated.local"

# API constants
STATUS_PREFIX = "/api/status"
ADMIN_ROLE = "admin"

# Metrics names
METRIC_QUEUE_DEPTH = "email_queue_depth"
METRIC_QUEUE_ACTIVE = "email_queue_active_jobs"
METRIC_JOBS_COMPLETED = "email_jobs_completed_total"
METRIC_JOB_RETRIES = "email_job_retries_total"
METRIC_JOB_DURATION = "email_job_duration_seconds"
METRIC_DELIVERY_ATTEMPTS = "email_attempts_total"
METRIC_API_REQUESTS = "api_requests_total"
METRIC_API_LATENCY = "api_request_latency_seconds"

# Trace span names
SPAN_EXECUTE_JOB = "execute_job"
SPAN_DELIVER_ATTEMPT = "deliver_attempt"
