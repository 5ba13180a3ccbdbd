"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from storefront_mail.observability.logging import (
    bind_context,
    setup_logging,
)
from storefront_mail.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from storefront_mail.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "bind_context",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
]
