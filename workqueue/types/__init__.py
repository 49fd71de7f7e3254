"""
Type definitions for publish requests.
Contains the caller-facing request types and the wire envelope.
"""

from workqueue.types.duration import Duration
from workqueue.types.event import Input, InputBuilder
from workqueue.types.options import Options, OptionsBuilder
from workqueue.types.payload import Payload

__all__ = [
    "Duration",
    "Options",
    "OptionsBuilder",
    "Input",
    "InputBuilder",
    "Payload",
]
