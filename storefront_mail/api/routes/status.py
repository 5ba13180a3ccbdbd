"""
Operational status routes for email delivery.
"""

import logging
import resource
import sys
from datetime import datetime, timezone

from fastapi import APIRouter, Query

from storefront_mail.api.auth import AdminUser
from storefront_mail.api.deps import Runtime
from storefront_mail.constants import STATUS_PREFIX, DeliveryMode
from storefront_mail.types.api import (
    EmailCheck,
    EmailModeResponse,
    EmailStatusData,
    EmailStatusResponse,
    StatusCheckResponse,
    SystemStatusData,
    SystemStatusResponse,
    TierStatsResponse,
    Uptime,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=STATUS_PREFIX, tags=["Status"])


def format_bytes(num_bytes: float) -> str:
    """Human readable byte count, e.g. ``1.5 MB``."""
    if num_bytes <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def format_uptime(seconds: float) -> str:
    """Format seconds as ``Xd Xh Xm Xs``."""
    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{days}d {hours}h {minutes}m {secs}s"


def _max_rss_bytes() -> int:
    # ru_maxrss is kilobytes on Linux, bytes on macOS
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return rss if sys.platform == "darwin" else rss * 1024


@router.get(
    "/email-mode",
    response_model=EmailModeResponse,
    summary="Email mode",
    description="Check whether email is being sent for real or simulated.",
)
async def email_mode(runtime: Runtime) -> EmailModeResponse:
    mode = runtime.delivery_mode
    return EmailModeResponse(
        mode="simulated" if mode == DeliveryMode.SIMULATED else "real",
        delivery_mode=mode,
        environment=runtime.settings.environment,
        email_host=runtime.settings.email_host or "(not configured)",
    )


@router.get(
    "/check",
    response_model=StatusCheckResponse,
    summary="System check",
    description="Public summary of email delivery health.",
)
async def status_check(runtime: Runtime) -> StatusCheckResponse:
    """
    Basic system health check.

    Delivery is ``no data`` until an attempt has been logged, then
    ``operational`` while no logged attempt has failed.
    """
    stats = runtime.attempt_log.stats()
    queue_status = runtime.queue.status()

    if stats.total == 0:
        delivery_status = "no data"
    elif stats.failed == 0:
        delivery_status = "operational"
    else:
        delivery_status = "issues detected"

    return StatusCheckResponse(
        timestamp=datetime.now(timezone.utc),
        email=EmailCheck(
            delivery_status=delivery_status,
            tasks_queued=queue_status.queue_length,
            tasks_processing=queue_status.active_count,
        ),
    )


@router.get(
    "/email",
    response_model=EmailStatusResponse,
    summary="Email delivery status",
    description="Delivery stats, tier stats, queue status and recent attempts.",
)
async def email_status(
    runtime: Runtime,
    admin: AdminUser,
    limit: int = Query(default=10, ge=1, le=100),
) -> EmailStatusResponse:
    logger.info("Email status requested", extra={"admin": admin.subject})

    tier_stats = {
        tier: TierStatsResponse(
            attempts=stats.attempts,
            successes=stats.successes,
            success_rate=stats.success_rate,
        )
        for tier, stats in runtime.orchestrator.tier_stats().items()
    }

    return EmailStatusResponse(
        data=EmailStatusData(
            email_stats=runtime.attempt_log.stats(),
            tier_stats=tier_stats,
            queue_stats=runtime.queue.status(),
            recent_logs=runtime.attempt_log.recent_entries(limit),
        )
    )


@router.get(
    "/system",
    response_model=SystemStatusResponse,
    summary="System status",
    description="Process uptime, memory and task queue status.",
)
async def system_status(runtime: Runtime, admin: AdminUser) -> SystemStatusResponse:
    uptime = runtime.uptime_seconds
    return SystemStatusResponse(
        data=SystemStatusData(
            uptime=Uptime(seconds=uptime, formatted=format_uptime(uptime)),
            max_rss=format_bytes(_max_rss_bytes()),
            task_queue=runtime.queue.status(),
        )
    )
