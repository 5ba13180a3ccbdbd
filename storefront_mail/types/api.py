"""
API response type definitions for the status endpoints.
"""

from datetime import datetime

from pydantic import BaseModel

from storefront_mail.constants import DeliveryMode
from storefront_mail.types.delivery import AttemptLogEntry, AttemptStats
from storefront_mail.types.job import QueueStatus


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    delivery_mode: DeliveryMode | None
    timestamp: datetime


class EmailModeResponse(BaseModel):
    """Whether email is really being sent or only simulated."""

    success: bool = True
    mode: str
    delivery_mode: DeliveryMode | None
    environment: str
    email_host: str


class EmailCheck(BaseModel):
    delivery_status: str
    tasks_queued: int
    tasks_processing: int


class StatusCheckResponse(BaseModel):
    """Public system health summary."""

    success: bool = True
    message: str = "System operational"
    timestamp: datetime
    email: EmailCheck


class TierStatsResponse(BaseModel):
    attempts: int
    successes: int
    success_rate: float


class EmailStatusData(BaseModel):
    email_stats: AttemptStats
    tier_stats: dict[str, TierStatsResponse]
    queue_stats: QueueStatus
    recent_logs: list[AttemptLogEntry]


class EmailStatusResponse(BaseModel):
    """Admin view of email delivery."""

    success: bool = True
    data: EmailStatusData


class Uptime(BaseModel):
    seconds: float
    formatted: str


class SystemStatusData(BaseModel):
    uptime: Uptime
    max_rss: str
    task_queue: QueueStatus


class SystemStatusResponse(BaseModel):
    """Admin view of process health."""

    success: bool = True
    data: SystemStatusData


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None
