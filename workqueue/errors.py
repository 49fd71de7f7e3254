"""
Exception hierarchy for the work queue producer.

Every publish failure is raised as exactly one PublishError subclass naming the
stage that failed. The underlying cause is chained on the exception.
"""

from workqueue.constants import PublishStage


class WorkqueueError(Exception):
    """Base class for all errors raised by this library."""


class ParseError(WorkqueueError, ValueError):
    """Raised when a duration string cannot be parsed."""


class PublishError(WorkqueueError):
    """Base class for failures of Producer.publish."""

    stage: PublishStage = PublishStage.PUBLISHER

    def __init__(self, message: str, *, stage: PublishStage | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ValidationError(PublishError):
    """The input was rejected before any I/O took place."""

    stage = PublishStage.VALIDATE

    @classmethod
    def empty_event(cls) -> "ValidationError":
        return cls("event cannot be empty")


class SerializationError(PublishError):
    """The payload data could not be encoded as JSON."""

    stage = PublishStage.MARSHAL

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"failed to marshal payload: {cause}")
        self.cause = cause


class TransportError(PublishError):
    """
    The request could not be built, sent, or was aborted.

    Attributes:
        cancelled: True when the caller's cancellation token or deadline
            aborted the call.
    """

    stage = PublishStage.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        stage: PublishStage = PublishStage.TRANSPORT,
        cancelled: bool = False,
    ) -> None:
        super().__init__(message, stage=stage)
        self.cancelled = cancelled

    @classmethod
    def request_failed(cls, cause: Exception) -> "TransportError":
        """Create an error for a request that could not be constructed."""
        return cls(f"failed to create request: {cause}", stage=PublishStage.REQUEST)

    @classmethod
    def send_failed(cls, cause: Exception, cancelled: bool = False) -> "TransportError":
        """Create an error for a network failure or timeout."""
        return cls(f"failed on publisher: {cause}", cancelled=cancelled)

    @classmethod
    def cancelled_before_send(cls) -> "TransportError":
        return cls("failed on publisher: publish cancelled", cancelled=True)

    @classmethod
    def deadline_exceeded(cls) -> "TransportError":
        return cls("failed on publisher: deadline exceeded", cancelled=True)

    @classmethod
    def cancelled_in_flight(cls) -> "TransportError":
        return cls("failed on publisher: publish cancelled in flight", cancelled=True)


class AckReadError(PublishError):
    """
    The response body could not be read after the request was sent.

    The outcome is ambiguous: the backend may have accepted the event.
    """

    stage = PublishStage.ACK

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"failed to confirm ack: {cause}")
        self.cause = cause


class BackendError(PublishError):
    """
    The backend answered with an error status.

    Attributes:
        status_code: The HTTP status returned by the backend.
        body: The raw response body, kept verbatim for diagnostics.
    """

    stage = PublishStage.PUBLISHER

    def __init__(self, status_code: int, body: str) -> None:
        detail = body if body else f"HTTP {status_code}"
        super().__init__(f"error on publisher: {detail}")
        self.status_code = status_code
        self.body = body
