"""
Pytest configuration and shared fixtures.
"""

import threading
import time
from collections.abc import Generator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from workqueue.config import Settings
from workqueue.observability.metrics import PublisherMetrics
from workqueue.producer import Producer
from workqueue.types import Duration, Input, InputBuilder, Options, OptionsBuilder

TEST_HOST = "http://workqueue.test"
TEST_TOKEN = "test-token"


@pytest.fixture
def host() -> str:
    """Get the backend base URL used by tests."""
    return TEST_HOST


@pytest.fixture
def token() -> str:
    return TEST_TOKEN


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings that ignore the environment's .env file."""
    return Settings(
        _env_file=None,
        host=TEST_HOST,
        token=TEST_TOKEN,
        timeout_ms=1000,
        default_queue_type="internal.medium",
        default_max_retries=5,
        default_schedule_in="5min",
        default_retention="168h",
        log_level="DEBUG",
        log_format="console",
    )


@pytest.fixture
def default_options() -> Options:
    """Create the producer's fallback options."""
    return Options(
        queue_type="internal.medium",
        max_retries=5,
        retention=Duration.parse("168h"),
        schedule_in=Duration.parse("5min"),
    )


@pytest.fixture
def critical_options() -> Options:
    """Create non-default options for a critical queue."""
    return (
        OptionsBuilder()
        .with_queue_type("internal.critical")
        .with_max_retries(5)
        .with_retention("168h")
        .with_schedule_in("5min")
        .build()
    )


@pytest.fixture
def metrics() -> PublisherMetrics:
    """Create a metrics collector on an isolated registry."""
    return PublisherMetrics(registry=CollectorRegistry())


@pytest.fixture
def producer(default_options: Options, metrics: PublisherMetrics) -> Generator[Producer]:
    """Create a producer against the test host."""
    with Producer(TEST_HOST, TEST_TOKEN, default_options, timeout=1.0, metrics=metrics) as producer:
        yield producer


@pytest.fixture
def sample_data() -> dict[str, Any]:
    return {"input": "value"}


@pytest.fixture
def sample_input(sample_data: dict[str, Any]) -> Input:
    """Create an input without options."""
    return InputBuilder().with_event("user.created").with_data(sample_data).build()


class SlowBackendHandler(BaseHTTPRequestHandler):
    """
    Backend that accepts the publish but is slow to answer it.

    The first path segment picks the behaviour:
    /drip sends a 100 byte body one byte every 30 ms;
    /hang holds the response back until the server is released.
    """

    server: "SlowBackend"

    def do_POST(self) -> None:
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        try:
            if self.path.startswith("/drip"):
                self._drip()
            else:
                self.server.released.wait(0.5)
                self.send_response(200)
                self.send_header("Content-Length", "0")
                self.end_headers()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def _drip(self) -> None:
        self.send_response(200)
        self.send_header("Content-Length", "100")
        self.end_headers()
        for _ in range(100):
            if self.server.released.is_set():
                return
            self.wfile.write(b"x")
            self.wfile.flush()
            time.sleep(0.03)

    def log_message(self, format: str, *args: Any) -> None:
        pass


class SlowBackend(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), SlowBackendHandler)
        self.released = threading.Event()

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


@pytest.fixture
def slow_backend() -> Generator[SlowBackend]:
    """Run a local backend that answers slowly."""
    server = SlowBackend()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.released.set()
    server.shutdown()
    server.server_close()
    thread.join()
