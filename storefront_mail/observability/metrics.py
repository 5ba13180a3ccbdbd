"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from storefront_mail.constants import (
    METRIC_API_LATENCY,
    METRIC_API_REQUESTS,
    METRIC_DELIVERY_ATTEMPTS,
    METRIC_JOB_DURATION,
    METRIC_JOB_RETRIES,
    METRIC_JOBS_COMPLETED,
    METRIC_QUEUE_ACTIVE,
    METRIC_QUEUE_DEPTH,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the mail pipeline.

    Collects metrics for:
    - Queue depth and active jobs
    - Job completions, retries and duration
    - Delivery attempts per tier
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of jobs waiting in the queue",
            registry=self._registry,
        )

        self.queue_active = Gauge(
            METRIC_QUEUE_ACTIVE,
            "Number of job bodies currently executing",
            registry=self._registry,
        )

        self.jobs_completed = Counter(
            METRIC_JOBS_COMPLETED,
            "Total number of job runs by outcome",
            ["job_name", "outcome"],
            registry=self._registry,
        )

        self.job_retries = Counter(
            METRIC_JOB_RETRIES,
            "Total number of job retries scheduled",
            ["job_name"],
            registry=self._registry,
        )

        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Job body execution duration in seconds",
            ["job_name", "outcome"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

        self.delivery_attempts = Counter(
            METRIC_DELIVERY_ATTEMPTS,
            "Total number of delivery attempts by tier and status",
            ["tier", "status"],
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

        self.api_latency = Histogram(
            METRIC_API_LATENCY,
            "API request latency in seconds",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

    def update_queue(self, depth: int, active: int) -> None:
        """Update queue depth and active job gauges."""
        self.queue_depth.set(depth)
        self.queue_active.set(active)

    def record_job_run(
        self,
        job_name: str,
        outcome: str,
        duration_seconds: float,
    ) -> None:
        """Record the end of one job body execution."""
        self.jobs_completed.labels(job_name=job_name, outcome=outcome).inc()
        self.job_duration.labels(job_name=job_name, outcome=outcome).observe(
            duration_seconds
        )

    def record_job_retry(self, job_name: str) -> None:
        """Record a retry being scheduled."""
        self.job_retries.labels(job_name=job_name).inc()

    def record_delivery_attempt(self, tier: str, status: str) -> None:
        """Record one tier-level delivery attempt."""
        self.delivery_attempts.labels(tier=tier, status=status).inc()

    def record_api_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration_seconds: float,
    ) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.api_latency.labels(method=method, endpoint=endpoint).observe(
            duration_seconds
        )

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
