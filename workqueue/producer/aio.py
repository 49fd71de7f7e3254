"""
Asyncio producer over httpx.AsyncClient.
"""

import asyncio
import contextlib
import logging
from types import TracebackType

import httpx

from workqueue.config import Settings, get_settings
from workqueue.errors import AckReadError, TransportError
from workqueue.observability.metrics import PublisherMetrics
from workqueue.producer.base import BaseProducer
from workqueue.types.event import Input
from workqueue.types.options import Options

logger = logging.getLogger(__name__)


class AsyncProducer(BaseProducer):
    """
    Asyncio counterpart of Producer with the same publish contract.

    Cancelling the task that awaits publish() propagates CancelledError as
    usual; the cancel token is for callers that want a TransportError instead.
    """

    def __init__(
        self,
        host: str,
        token: str,
        default_options: Options | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        metrics: PublisherMetrics | None = None,
    ):
        super().__init__(host, token, default_options, timeout=timeout, metrics=metrics)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        metrics: PublisherMetrics | None = None,
    ) -> "AsyncProducer":
        """Create a producer from WORKQUEUE_* settings."""
        settings = settings or get_settings()
        return cls(
            settings.host,
            settings.token,
            settings.default_options(),
            timeout=settings.timeout_seconds,
            metrics=metrics,
        )

    async def publish(
        self,
        event_input: Input,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """
        Publish one event.

        The whole exchange, from connecting to reading the last byte of the
        response, must finish within the lesser of the per-call timeout and
        the client timeout.

        Args:
            event_input: The event to publish.
            timeout: Per-call deadline in seconds.
            cancel: Cancellation token. Setting it while the request is in
                flight aborts the request. A response that already arrived
                is still reported.

        Raises:
            ValidationError, SerializationError, TransportError, AckReadError,
            BackendError: As for Producer.publish.
        """
        with self.instrument(event_input):
            payload = self.build_payload(event_input)
            body = payload.to_json()
            status_code, text = await self._send(body, timeout=timeout, cancel=cancel)
            self.interpret(status_code, text)

    async def _send(
        self,
        body: bytes,
        *,
        timeout: float | None,
        cancel: asyncio.Event | None,
    ) -> tuple[int, str]:
        if cancel is not None and cancel.is_set():
            raise TransportError.cancelled_before_send()

        limit = self.request_timeout(timeout)
        request = self.build_request(self._client, body, limit)

        logger.debug("Publishing event", extra={"url": self.url, "bytes": len(body)})

        if cancel is None:
            return await self._exchange_within(request, limit)
        return await self._exchange_until_cancelled(request, limit, cancel)

    async def _exchange_until_cancelled(
        self, request: httpx.Request, limit: float, cancel: asyncio.Event
    ) -> tuple[int, str]:
        """Run the exchange, racing it against the cancel token."""
        exchange = asyncio.ensure_future(self._exchange_within(request, limit))
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({exchange, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not exchange.done():
                exchange.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await exchange

        if exchange.cancelled():
            raise TransportError.cancelled_in_flight()
        return exchange.result()

    async def _exchange_within(self, request: httpx.Request, limit: float) -> tuple[int, str]:
        try:
            async with asyncio.timeout(limit):
                return await self._exchange(request)
        except TimeoutError as exc:
            raise TransportError.deadline_exceeded() from exc

    async def _exchange(self, request: httpx.Request) -> tuple[int, str]:
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError.send_failed(exc) from exc

        try:
            try:
                await response.aread()
            except (httpx.HTTPError, httpx.StreamError) as exc:
                raise AckReadError(exc) from exc
        finally:
            await response.aclose()

        return response.status_code, response.text

    async def aclose(self) -> None:
        """Close the underlying client if the producer created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncProducer":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
