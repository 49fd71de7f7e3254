"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from workqueue.observability.logging import get_logger, setup_logging
from workqueue.observability.metrics import (
    PublisherMetrics,
    get_metrics,
    setup_metrics,
)
from workqueue.observability.tracing import get_tracer, setup_tracing, start_span

__all__ = [
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "PublisherMetrics",
    "setup_tracing",
    "get_tracer",
    "start_span",
]
