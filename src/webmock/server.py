"""
Webmock Mock Server

FastAPI-based HTTP double that answers requests from a programmable stub
registry.

Features:
- Listening socket bound at construction, so the URL is known before start
- uvicorn served from a background thread, one asyncio loop per server
- Stub registration and reset while requests are in flight
- Cassette loading from YAML/JSON fixtures
- Request metrics
"""

from __future__ import annotations  # Enable forward references for type hints

import logging
import socket
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import uvicorn
from fastapi import FastAPI, Request, Response

from .cassette import CassetteLoader
from .matcher import IncomingRequest, MatchResult
from .registry import StubRegistry
from .stub import Stub, StubOption


# Set by the transport from the body it actually sends
SKIPPED_RESPONSE_HEADERS = {'content-length', 'transfer-encoding', 'connection'}


@dataclass
class ServerConfig:
    """Configuration for mock server behavior."""

    # Listener
    host: str = "127.0.0.1"
    port: int = 0  # 0 = ephemeral port picked by the OS
    backlog: int = 128

    # Logging
    log_level: str = "warning"
    access_log: bool = False

    # Lifecycle (seconds)
    startup_timeout: float = 5.0
    shutdown_timeout: float = 5.0


@dataclass
class ServerMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, matched: bool):
        with self._lock:
            self.total_requests += 1
            if matched:
                self.matched_requests += 1
            else:
                self.unmatched_requests += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        with self._lock:
            total = self.total_requests
            matched = self.matched_requests
            unmatched = self.unmatched_requests
        return {
            'total_requests': total,
            'matched_requests': matched,
            'unmatched_requests': unmatched,
            'match_rate': round((matched / total * 100) if total > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class Dispatcher:
    """
    Turns an incoming request into the response of the first matching stub.

    Unmatched requests get a fixed 404 with an empty body and no custom
    headers.
    """

    def __init__(self, registry: StubRegistry, metrics: Optional[ServerMetrics] = None):
        self.registry = registry
        self.metrics = metrics or ServerMetrics()
        self.logger = logging.getLogger("webmock.dispatcher")

    def dispatch(self, request: IncomingRequest) -> Response:
        stub = self.registry.resolve(request)
        self.metrics.record(stub is not None)

        if stub is None:
            if self.logger.isEnabledFor(logging.DEBUG):
                result = self.registry.explain(request)
                self.logger.debug(f"No match for {request.describe()}: {result.reason}")
            return Response(status_code=404)

        self.logger.debug(f"Matched {request.describe()} -> {stub.describe()}")
        return self.create_response(stub)

    @staticmethod
    def create_response(stub: Stub) -> Response:
        """Build the HTTP response a stub declares."""
        headers = {
            k: v for k, v in stub.response.headers.items()
            if k.lower() not in SKIPPED_RESPONSE_HEADERS
        }
        return Response(
            content=stub.response.body_bytes,
            status_code=stub.response.status,
            headers=headers
        )


class MockServer:
    """
    In-process HTTP double serving stubbed responses.

    The listening socket is bound when the server is created, so url is
    valid before start(). Each server owns its own registry; several
    servers can run side by side in one process.

    Example:
        server = MockServer()
        server.start()

        server.stub('GET', '/abc', 'ok')
        server.stub('GET', '/get', '', with_headers('Accept-Encoding: gzip,deflate'))
        server.load_cassettes('tests/fixtures')

        response = httpx.get(server.url + '/abc')

        server.reset()
        server.stop()

        # Or as a context manager
        with MockServer() as server:
            server.stub('POST', '/post', 'ok post')
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        registry: Optional[StubRegistry] = None,
        loader: Optional[CassetteLoader] = None
    ):
        """
        Initialize mock server and bind its listening socket.

        Args:
            config: Optional ServerConfig for server behavior
            registry: Optional StubRegistry instance (will create if None)
            loader: Optional CassetteLoader instance (will create if None)

        Raises:
            OSError: If the socket cannot be bound
        """
        self.config = config or ServerConfig()
        self.registry = registry if registry is not None else StubRegistry()
        self.loader = loader or CassetteLoader()
        self.metrics = ServerMetrics()
        self.dispatcher = Dispatcher(self.registry, self.metrics)

        self.logger = logging.getLogger("webmock.server")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

        self._socket = self._bind_socket()
        self._address = self._socket.getsockname()
        self._uvicorn: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._closed = False
        self._lifecycle_lock = threading.Lock()

        self.app = self._create_app()

    def _bind_socket(self) -> socket.socket:
        family = socket.AF_INET6 if ':' in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError:
            sock.close()
            raise
        return sock

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with the catch-all stub route."""
        app = FastAPI(
            title="webmock",
            description="HTTP double serving stubbed responses",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        async def mock_request(request: Request) -> Response:
            """Handle incoming requests and serve stubbed responses."""
            return self.dispatcher.dispatch(IncomingRequest.from_starlette(request))

        # methods=None: every verb reaches the registry
        app.add_route("/{path:path}", mock_request, methods=None, include_in_schema=False)

        return app

    @property
    def host(self) -> str:
        host = self._address[0]
        if host in ('0.0.0.0', ''):
            return '127.0.0.1'
        if host == '::':
            return '::1'
        return host

    @property
    def port(self) -> int:
        return self._address[1]

    @property
    def url(self) -> str:
        """Base URL of the server, valid before start()."""
        host = self.host
        if ':' in host:
            host = f"[{host}]"
        return f"http://{host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> 'MockServer':
        """
        Start serving requests from a background thread.

        Returns once uvicorn reports it is accepting connections. Calling
        start() on a running server does nothing.

        Raises:
            RuntimeError: If the server was stopped, or did not come up
                within config.startup_timeout
        """
        with self._lifecycle_lock:
            if self._closed:
                raise RuntimeError("Mock server has been stopped and cannot be restarted")
            if self.running:
                return self

            self._uvicorn = uvicorn.Server(self._uvicorn_config())
            self._thread = threading.Thread(
                target=self._uvicorn.run,
                kwargs={'sockets': [self._socket]},
                name=f"webmock-{self.port}",
                daemon=True
            )
            self._thread.start()

            deadline = time.monotonic() + self.config.startup_timeout
            while not self._uvicorn.started:
                if not self._thread.is_alive():
                    raise RuntimeError(f"Mock server on {self.url} exited during startup")
                if time.monotonic() > deadline:
                    self._uvicorn.should_exit = True
                    raise RuntimeError(
                        f"Mock server on {self.url} did not start within "
                        f"{self.config.startup_timeout}s"
                    )
                time.sleep(0.01)

        self.logger.info(f"Mock server listening on {self.url}")
        return self

    def stop(self):
        """Stop serving and release the listening socket. Safe to call twice."""
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True

            if self._uvicorn is not None:
                self._uvicorn.should_exit = True
            if self._thread is not None:
                self._thread.join(self.config.shutdown_timeout)
                if self._thread.is_alive():
                    self.logger.warning(f"Mock server thread on {self.url} did not exit in time")

            self._close_socket()

        self.logger.info(f"Mock server on {self.url} stopped")

    def serve_forever(self):
        """Serve on the calling thread until interrupted."""
        self._uvicorn = uvicorn.Server(self._uvicorn_config())
        try:
            self._uvicorn.run(sockets=[self._socket])
        finally:
            self._closed = True
            self._close_socket()

    def _close_socket(self):
        # uvicorn closes the listener itself on a clean shutdown
        try:
            self._socket.close()
        except OSError as e:
            self.logger.debug(f"Listener for {self.url} already released: {e}")

    def _uvicorn_config(self) -> uvicorn.Config:
        return uvicorn.Config(
            self.app,
            log_level=self.config.log_level,
            access_log=self.config.access_log,
            log_config=None,
            lifespan="off",
            timeout_graceful_shutdown=self.config.shutdown_timeout
        )

    def __enter__(self) -> 'MockServer':
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def stub(self, method: str, url: str, body: str = "", *options: StubOption) -> Stub:
        """
        Register a stub.

        Args:
            method: HTTP verb
            url: Path with optional query string (query becomes requirements)
            body: Body of the default 200 response
            *options: with_headers(...) and/or with_response(...)

        Returns:
            The registered Stub

        Raises:
            StubConfigurationError: If the arguments are malformed
        """
        return self.registry.add(Stub.create(method, url, body, *options))

    def load_cassettes(self, path: Union[str, Path]) -> int:
        """
        Register every stub declared in a cassette file or directory.

        Returns:
            Number of stubs registered

        Raises:
            CassetteError: If anything fails to load; nothing is registered
        """
        return self.loader.load_into(self.registry, path)

    def reset(self):
        """Remove every registered stub."""
        removed = self.registry.clear()
        self.logger.debug(f"Reset removed {removed} stubs")

    def reset_metrics(self):
        self.metrics = ServerMetrics()
        self.dispatcher.metrics = self.metrics

    def explain(self, method: str, url: str, headers: Optional[Dict[str, str]] = None) -> MatchResult:
        """Describe how a request would be resolved, without sending it."""
        return self.registry.explain(IncomingRequest.from_url(method, url, headers))

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    host: str = "127.0.0.1",
    port: int = 0,
    log_level: str = "warning",
    access_log: bool = False,
    cassettes: Optional[Union[str, Path]] = None
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        host: Host to bind to
        port: Port to bind to (0 = ephemeral)
        log_level: Log level for webmock and uvicorn loggers
        access_log: Enable uvicorn access logging
        cassettes: Optional cassette file or directory to load

    Returns:
        Configured MockServer instance (not started)

    Example:
        server = create_mock_server(cassettes='tests/fixtures')
        server.start()
    """
    config = ServerConfig(
        host=host,
        port=port,
        log_level=log_level,
        access_log=access_log
    )

    server = MockServer(config=config)
    if cassettes is not None:
        try:
            server.load_cassettes(cassettes)
        except Exception:
            server.stop()
            raise
    return server
