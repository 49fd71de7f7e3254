"""
Unit tests for logging and tracing helpers.
"""

import io
import json
import logging
from collections.abc import Generator

import httpx
import pytest
import respx
import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from workqueue.config import Settings
from workqueue.errors import BackendError
from workqueue.observability import logging as wq_logging
from workqueue.producer import Producer
from workqueue.types import Input


class TestLogging:
    """Tests for structured logging setup."""

    @pytest.fixture(autouse=True)
    def restore_loggers(self) -> Generator[None]:
        loggers = [logging.getLogger(), logging.getLogger("workqueue")]
        saved = [(lg, lg.handlers[:], lg.level, lg.propagate) for lg in loggers]
        yield
        for lg, handlers, level, propagate in saved:
            lg.handlers = handlers
            lg.setLevel(level)
            lg.propagate = propagate

    def test_setup_logging_console(self, test_settings: Settings):
        logger = wq_logging.setup_logging(test_settings)

        assert logger is logging.getLogger("workqueue")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_setup_logging_leaves_root_alone(self, test_settings: Settings):
        """Application handlers and third-party levels survive setup."""
        root = logging.getLogger()
        app_handler = logging.NullHandler()
        root.addHandler(app_handler)
        root.setLevel(logging.WARNING)
        httpx_level = logging.getLogger("httpx").level

        wq_logging.setup_logging(test_settings)

        assert app_handler in root.handlers
        assert root.level == logging.WARNING
        assert logging.getLogger("httpx").level == httpx_level

    def test_setup_logging_twice_replaces_handler(self, test_settings: Settings):
        logger = logging.getLogger("workqueue")
        own_handler = logging.NullHandler()
        logger.addHandler(own_handler)

        wq_logging.setup_logging(test_settings)
        wq_logging.setup_logging(test_settings)

        assert own_handler in logger.handlers
        assert len(logger.handlers) == 2

    def test_setup_logging_json(self):
        settings = Settings(_env_file=None, log_format="json", log_level="INFO")
        stream = io.StringIO()
        wq_logging.setup_logging(settings, stream=stream)

        wq_logging.get_logger("workqueue.test").info("event published", event_name="user.created")
        logging.getLogger("workqueue.test").debug("below the level")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["event"] == "event published"
        assert record["level"] == "info"
        assert record["event_name"] == "user.created"

    def test_stdlib_records_rendered(self):
        settings = Settings(_env_file=None, log_format="json", log_level="DEBUG")
        stream = io.StringIO()
        wq_logging.setup_logging(settings, stream=stream)

        logging.getLogger("workqueue.producer.sync").debug("Publishing event", extra={"bytes": 12})

        record = json.loads(stream.getvalue())
        assert record["event"] == "Publishing event"
        assert record["bytes"] == 12

    def test_span_ids_added(self):
        provider = TracerProvider()
        with provider.get_tracer("test").start_as_current_span("publish") as span:
            event_dict = wq_logging.add_span_ids(None, "info", {"event": "x"})
            ctx = span.get_span_context()

        assert event_dict["trace_id"] == format(ctx.trace_id, "032x")
        assert event_dict["span_id"] == format(ctx.span_id, "016x")

    def test_no_span_ids_outside_span(self):
        assert wq_logging.add_span_ids(None, "info", {"event": "x"}) == {"event": "x"}

    def test_bind_and_clear_context(self):
        wq_logging.bind_context(correlation_id="corr-1")
        assert structlog.contextvars.get_contextvars() == {"correlation_id": "corr-1"}

        wq_logging.clear_context()
        assert structlog.contextvars.get_contextvars() == {}


class TestTracing:
    """Tests for publish spans."""

    @pytest.fixture
    def exporter(self, monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
        """Route the library tracer to an in-memory exporter."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        monkeypatch.setattr(
            "workqueue.observability.tracing.get_tracer",
            lambda: provider.get_tracer("workqueue"),
        )
        return exporter

    @pytest.mark.respx(base_url="http://workqueue.test")
    def test_publish_span(self, exporter: InMemorySpanExporter, producer: Producer, respx_mock: respx.MockRouter):
        respx_mock.post("/event/publisher").mock(return_value=httpx.Response(200))

        producer.publish(Input(event="user.created"))

        (span,) = exporter.get_finished_spans()
        assert span.name == "workqueue.publish"
        assert span.attributes["workqueue.event"] == "user.created"
        assert span.attributes["workqueue.queue_type"] == "internal.medium"

    @pytest.mark.respx(base_url="http://workqueue.test")
    def test_failed_publish_span(self, exporter: InMemorySpanExporter, producer: Producer, respx_mock: respx.MockRouter):
        respx_mock.post("/event/publisher").mock(return_value=httpx.Response(500, text="boom"))

        with pytest.raises(BackendError):
            producer.publish(Input(event="user.created"))

        (span,) = exporter.get_finished_spans()
        assert span.attributes["workqueue.error.stage"] == "publisher"
        assert span.status.status_code == trace.StatusCode.ERROR
