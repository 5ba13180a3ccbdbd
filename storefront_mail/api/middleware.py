"""
Request timing middleware.
"""

import logging
import time
from collections.abc import Callable

from fastapi import Request
from starlette.responses import Response

from storefront_mail.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

# Paths excluded from timing so scrapes and probes don't dominate the metrics
UNTIMED_PATHS = ("/metrics", "/live")


def create_timing_middleware(slow_request_threshold_ms: float) -> Callable:
    """
    Create request timing middleware for FastAPI.

    Args:
        slow_request_threshold_ms: Requests slower than this are logged at
            WARNING.

    Returns:
        The middleware function.
    """

    async def timing_middleware(request: Request, call_next: Callable) -> Response:
        """Record latency metrics and flag slow requests."""
        if request.url.path in UNTIMED_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        # Label by route template, not raw path, to keep cardinality bounded
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        get_metrics().record_api_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration_seconds=duration,
        )
        response.headers["X-Response-Time"] = f"{duration * 1000:.1f}ms"

        if duration * 1000 > slow_request_threshold_ms:
            logger.warning(
                "Slow request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round(duration * 1000, 1),
                    "status": response.status_code,
                },
            )

        return response

    return timing_middleware
