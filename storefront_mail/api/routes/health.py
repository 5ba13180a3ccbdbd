"""
Health check routes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import Response

from storefront_mail import __version__
from storefront_mail.api.deps import Runtime
from storefront_mail.constants import DeliveryMode
from storefront_mail.observability.metrics import get_metrics
from storefront_mail.types.api import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health of the service and its delivery mode.",
)
async def health_check(runtime: Runtime) -> HealthResponse:
    """
    Perform a health check.

    The service is degraded while it is not started or is only simulating
    delivery.
    """
    mode = runtime.delivery_mode
    healthy = runtime.started and mode is not None and mode != DeliveryMode.SIMULATED

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=__version__,
        delivery_mode=mode,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the service is ready to accept work.",
)
async def readiness_check(runtime: Runtime) -> dict:
    """Kubernetes readiness probe endpoint."""
    return {"ready": runtime.started and not runtime.queue.is_closed}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """Kubernetes liveness probe endpoint."""
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    metrics_collector = get_metrics()
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
