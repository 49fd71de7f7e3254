"""
Work Queue Producer

Client library for enqueueing background events on a remote work queue over HTTP,
with per-event delivery options (queue type, retries, scheduling, retention, dedup window).
"""

from workqueue.errors import (
    AckReadError,
    BackendError,
    ParseError,
    PublishError,
    SerializationError,
    TransportError,
    ValidationError,
    WorkqueueError,
)
from workqueue.producer import AsyncProducer, Producer
from workqueue.types import (
    Duration,
    Input,
    InputBuilder,
    Options,
    OptionsBuilder,
    Payload,
)

__version__ = "1.0.0"

__all__ = [
    # Producers
    "Producer",
    "AsyncProducer",
    # Request types
    "Duration",
    "Options",
    "OptionsBuilder",
    "Input",
    "InputBuilder",
    "Payload",
    # Errors
    "WorkqueueError",
    "ParseError",
    "PublishError",
    "ValidationError",
    "SerializationError",
    "TransportError",
    "AckReadError",
    "BackendError",
]
