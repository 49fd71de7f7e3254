"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
)

from workqueue.constants import METRIC_EVENTS_PUBLISHED, METRIC_PUBLISH_LATENCY

# Global metrics instance
_metrics: "PublisherMetrics | None" = None


class PublisherMetrics:
    """
    Prometheus metrics collector for producers.

    Collects metrics for:
    - Publish outcomes per event (success or the failing stage)
    - Publish latency per event
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.events_published = Counter(
            METRIC_EVENTS_PUBLISHED,
            "Total number of publish calls by outcome",
            ["event", "outcome"],
            registry=self._registry,
        )

        # Buckets start low: the client timeout is tens of milliseconds
        self.publish_latency = Histogram(
            METRIC_PUBLISH_LATENCY,
            "Publish call latency in seconds",
            ["event"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_publish(self, event: str, outcome: str, duration_seconds: float) -> None:
        """Record a finished publish call."""
        self.events_published.labels(event=event, outcome=outcome).inc()
        self.publish_latency.labels(event=event).observe(duration_seconds)


def setup_metrics() -> PublisherMetrics:
    """
    Set up and return the process-wide metrics collector.

    Returns:
        PublisherMetrics: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = PublisherMetrics()
    return _metrics


def get_metrics() -> PublisherMetrics:
    """Get the process-wide metrics collector, creating it on first use."""
    if _metrics is None:
        return setup_metrics()
    return _metrics
