"""
Producers for publishing events to the work queue backend.
"""

from workqueue.producer.aio import AsyncProducer
from workqueue.producer.base import BaseProducer
from workqueue.producer.sync import Producer

__all__ = [
    "BaseProducer",
    "Producer",
    "AsyncProducer",
]
