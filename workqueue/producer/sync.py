"""
Blocking producer over httpx.Client.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from types import TracebackType

import httpx

from workqueue.config import Settings, get_settings
from workqueue.constants import CANCEL_POLL_INTERVAL_SECONDS
from workqueue.errors import AckReadError, TransportError
from workqueue.observability.metrics import PublisherMetrics
from workqueue.producer.base import BaseProducer
from workqueue.types.event import Input
from workqueue.types.options import Options

logger = logging.getLogger(__name__)


class Producer(BaseProducer):
    """
    Publishes events to the work queue backend.

    Each publish issues exactly one POST to {host}/event/publisher. Failed
    publishes are raised, never retried.

    The HTTP exchange runs on a small internal thread pool so the calling
    thread can give up on it as soon as its deadline passes or its cancel
    token is set.

    Example:
        with Producer("http://localhost:8080", "token", opts) as producer:
            producer.publish(InputBuilder().with_event("user.created").build())
    """

    def __init__(
        self,
        host: str,
        token: str,
        default_options: Options | None = None,
        *,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        metrics: PublisherMetrics | None = None,
    ):
        """
        Initialize the producer.

        Args:
            host: Backend base URL.
            token: Opaque credential for the Authorization header.
            default_options: Options used when an input carries none.
            timeout: Client timeout in seconds. Defaults to 50 ms.
            client: Optional preconfigured client. It is not closed by the
                producer.
            metrics: Optional collector to record publish outcomes to.
        """
        super().__init__(host, token, default_options, timeout=timeout, metrics=metrics)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.timeout)
        self._executor = ThreadPoolExecutor(thread_name_prefix="workqueue-publish")

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        metrics: PublisherMetrics | None = None,
    ) -> "Producer":
        """Create a producer from WORKQUEUE_* settings."""
        settings = settings or get_settings()
        return cls(
            settings.host,
            settings.token,
            settings.default_options(),
            timeout=settings.timeout_seconds,
            metrics=metrics,
        )

    def publish(
        self,
        event_input: Input,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        """
        Publish one event.

        The whole exchange, from connecting to reading the last byte of the
        response, must finish within the lesser of the per-call timeout and
        the client timeout.

        A cancelled TransportError does not prove the event was dropped: the
        backend may have accepted it before the token was set. A response that
        arrived before the token was noticed is always reported as received.

        Args:
            event_input: The event to publish.
            timeout: Per-call deadline in seconds.
            cancel: Cancellation token. Once set, the call fails with a
                cancelled TransportError instead of waiting on the backend.

        Raises:
            ValidationError: If the event name is empty. No request is sent.
            SerializationError: If the data cannot be encoded as JSON.
            TransportError: If the request cannot be built or sent, the
                deadline passes, or the call is cancelled.
            AckReadError: If the response body cannot be read.
            BackendError: If the backend answers with a status above 399.
        """
        with self.instrument(event_input):
            payload = self.build_payload(event_input)
            body = payload.to_json()
            status_code, text = self._send(body, timeout=timeout, cancel=cancel)
            self.interpret(status_code, text)

    def _send(
        self,
        body: bytes,
        *,
        timeout: float | None,
        cancel: threading.Event | None,
    ) -> tuple[int, str]:
        if cancel is not None and cancel.is_set():
            raise TransportError.cancelled_before_send()

        deadline = self.start_deadline(timeout)
        request = self.build_request(self._client, body, self.remaining(deadline))

        logger.debug("Publishing event", extra={"url": self.url, "bytes": len(body)})

        abandoned = threading.Event()
        future = self._executor.submit(self._exchange, request, deadline, abandoned)
        try:
            return self._wait(future, deadline, cancel)
        finally:
            abandoned.set()

    def _wait(
        self,
        future: "Future[tuple[int, str]]",
        deadline: float,
        cancel: threading.Event | None,
    ) -> tuple[int, str]:
        """Wait for the exchange, giving up on the deadline or the cancel token."""
        while True:
            left = self.remaining(deadline)
            if cancel is not None:
                left = min(left, CANCEL_POLL_INTERVAL_SECONDS)
            wait([future], timeout=left)
            if future.done():
                return future.result()
            if cancel is not None and cancel.is_set():
                raise TransportError.cancelled_in_flight()

    def _exchange(
        self,
        request: httpx.Request,
        deadline: float,
        abandoned: threading.Event,
    ) -> tuple[int, str]:
        """Send the request and read the body, runs on the executor."""
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError.send_failed(exc) from exc

        try:
            content = bytearray()
            try:
                for chunk in response.iter_bytes():
                    if abandoned.is_set():
                        raise TransportError.cancelled_in_flight()
                    self.remaining(deadline)
                    content.extend(chunk)
            except (httpx.HTTPError, httpx.StreamError) as exc:
                raise AckReadError(exc) from exc
        finally:
            response.close()

        text = bytes(content).decode(response.encoding or "utf-8", errors="replace")
        return response.status_code, text

    def close(self) -> None:
        """Stop the publish threads and close the client if the producer created it."""
        self._executor.shutdown(wait=True)
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Producer":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
