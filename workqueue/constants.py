"""
Library constants.
Centralized location for wire-level and observability constant values.
"""

from enum import StrEnum


class PublishStage(StrEnum):
    """
    Stages of the publish pipeline.

    Stages run in order and every stage is terminal on failure:
    - VALIDATE -> MARSHAL -> REQUEST -> TRANSPORT -> ACK -> PUBLISHER
    """

    VALIDATE = "validate"
    MARSHAL = "marshal"
    REQUEST = "request"
    TRANSPORT = "transport"
    ACK = "ack"
    PUBLISHER = "publisher"


# Wire protocol
PUBLISH_PATH = "/event/publisher"
CONTENT_TYPE_JSON = "application/json"
AUTHORIZATION_SCHEME = "Basic"
MAX_ACCEPTED_STATUS = 399

# Payload keys
METADATA_HEADERS_KEY = "headers"
CORRELATION_ID_KEY = "correlation_id"
EVENT_ID_KEY = "event_id"

# Client defaults (tuned for a co-located backend)
DEFAULT_TIMEOUT_MS = 50
DEFAULT_TIMEOUT_SECONDS = DEFAULT_TIMEOUT_MS / 1000

# Metrics names
METRIC_EVENTS_PUBLISHED = "workqueue_events_published_total"
METRIC_PUBLISH_LATENCY = "workqueue_publish_latency_seconds"
OUTCOME_SUCCESS = "success"

# Trace span and attribute names
SPAN_PUBLISH = "workqueue.publish"
ATTR_EVENT = "workqueue.event"
ATTR_QUEUE_TYPE = "workqueue.queue_type"
ATTR_ERROR_STAGE = "workqueue.error.stage"

# How often a blocking publish checks its cancel token
CANCEL_POLL_INTERVAL_SECONDS = 0.005
