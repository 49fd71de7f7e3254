"""
Publish pipeline shared by the sync and async producers.

A publish runs five stages in order, each terminal on failure:
validate -> resolve default options -> build envelope -> transmit -> interpret.
Only transmission differs between the two producers.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

import httpx

from workqueue.constants import (
    ATTR_ERROR_STAGE,
    ATTR_EVENT,
    ATTR_QUEUE_TYPE,
    AUTHORIZATION_SCHEME,
    CONTENT_TYPE_JSON,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_ACCEPTED_STATUS,
    OUTCOME_SUCCESS,
    PUBLISH_PATH,
    SPAN_PUBLISH,
)
from workqueue.errors import BackendError, PublishError, TransportError, ValidationError
from workqueue.observability.metrics import PublisherMetrics
from workqueue.observability.tracing import start_span
from workqueue.types.event import Input
from workqueue.types.options import Options
from workqueue.types.payload import Payload

logger = logging.getLogger(__name__)


class BaseProducer:
    """
    Configuration and transport-independent stages of a producer.

    A producer holds no per-call state, so one instance may serve many
    concurrent publish calls.
    """

    def __init__(
        self,
        host: str,
        token: str,
        default_options: Options | None = None,
        *,
        timeout: float | None = None,
        metrics: PublisherMetrics | None = None,
    ):
        """
        Initialize the producer.

        Args:
            host: Backend base URL, e.g. "http://localhost:8080".
            token: Opaque credential sent as "Authorization: Basic <token>".
            default_options: Options used when an input carries none.
            timeout: Client timeout in seconds. Defaults to 50 ms.
            metrics: Optional collector to record publish outcomes to.
        """
        self.host = host.rstrip("/")
        self.token = token
        self.default_options = default_options if default_options is not None else Options()
        self.timeout = DEFAULT_TIMEOUT_SECONDS if timeout is None else timeout
        self.url = f"{self.host}{PUBLISH_PATH}"
        self._metrics = metrics

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": CONTENT_TYPE_JSON,
            "Authorization": f"{AUTHORIZATION_SCHEME} {self.token}",
        }

    def resolve_options(self, options: Options | None) -> Options:
        """
        Pick the options to send.

        Unset or empty options fall back to the producer default. This means an
        input cannot ask for pure backend defaults while the producer has a
        non-empty default configured.
        """
        if options is None or options.is_empty():
            return self.default_options
        return options

    def build_payload(self, event_input: Input) -> Payload:
        """
        Validate an input and turn it into the wire envelope.

        Raises:
            ValidationError: If the event name is empty.
        """
        if not event_input.event:
            raise ValidationError.empty_event()
        return Payload.from_input(event_input, self.resolve_options(event_input.options))

    def request_timeout(self, timeout: float | None) -> float:
        """
        Get the timeout for one request.

        Args:
            timeout: Per-call deadline in seconds, or None.

        Returns:
            The lesser of the per-call deadline and the client timeout.

        Raises:
            TransportError: If the per-call deadline has already passed.
        """
        if timeout is None:
            return self.timeout
        if timeout <= 0:
            raise TransportError.deadline_exceeded()
        return min(timeout, self.timeout)

    def start_deadline(self, timeout: float | None) -> float:
        """Get the monotonic instant by which the whole call must finish."""
        return time.monotonic() + self.request_timeout(timeout)

    def remaining(self, deadline: float) -> float:
        """
        Get the seconds left before a deadline.

        Raises:
            TransportError: If the deadline has passed.
        """
        left = deadline - time.monotonic()
        if left <= 0:
            raise TransportError.deadline_exceeded()
        return left

    def build_request(
        self, client: httpx.Client | httpx.AsyncClient, body: bytes, timeout: float
    ) -> httpx.Request:
        try:
            return client.build_request(
                "POST",
                self.url,
                content=body,
                headers=self.headers,
                timeout=timeout,
            )
        except (httpx.InvalidURL, ValueError) as exc:
            raise TransportError.request_failed(exc) from exc

    def interpret(self, status_code: int, body: str) -> None:
        """
        Check the backend's answer.

        Args:
            status_code: HTTP status of the response.
            body: Response body text, kept verbatim for errors.

        Raises:
            BackendError: If the status code is above 399.
        """
        logger.debug(
            "Publish acknowledged",
            extra={"url": self.url, "status_code": status_code},
        )
        if status_code > MAX_ACCEPTED_STATUS:
            raise BackendError(status_code, body)

    @contextmanager
    def instrument(self, event_input: Input) -> Iterator[None]:
        """Wrap one publish call in a span and record its outcome."""
        attributes = {
            ATTR_EVENT: event_input.event,
            ATTR_QUEUE_TYPE: self.resolve_options(event_input.options).queue_type,
        }
        started = time.perf_counter()
        with start_span(SPAN_PUBLISH, attributes) as span:
            try:
                yield
            except PublishError as exc:
                span.set_attribute(ATTR_ERROR_STAGE, str(exc.stage))
                self._record(event_input.event, str(exc.stage), started)
                raise
            self._record(event_input.event, OUTCOME_SUCCESS, started)

    def _record(self, event: str, outcome: str, started: float) -> None:
        if self._metrics is not None:
            self._metrics.record_publish(event, outcome, time.perf_counter() - started)
