"""
MockGen Mock Server

FastAPI-based HTTP mock server that serves the generated mock bundle.

Features:
- First-match routing on ":param" route patterns
- Random alternative responses
- Stateful routes with append-only per-path state
- Port fallback when the configured port is taken
- Hot reload of the route table from mock.json
"""

from __future__ import annotations  # Enable forward references for type hints

import copy
import errno
import json
import logging
import random
import socket
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from ..common import (
    BindError,
    BundleLoader,
    BundleParseError,
    MockgenError,
    PortInUseError,
    TemplateRenderError,
    URLMatcher,
    safe_json_parse,
)
from ..config import ProjectPaths
from .generator import JSON_HEADERS, ResponseDefinition
from .matcher import RouteTable
from .state import MUTATION_METHODS, IdCounter, StateStore, TemplateRenderer

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': '*',
    'Access-Control-Allow-Headers': '*',
}

_ADDRESS_IN_USE = {errno.EADDRINUSE, 10048}  # 10048: WSAEADDRINUSE
_SKIPPED_HEADERS = {'content-length', 'transfer-encoding', 'connection'}
_NO_BODY_STATUSES = {204, 304}

HANDLED_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS']


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    host: str = "127.0.0.1"
    port: int = 3000
    max_port_attempts: int = 10  # Ports tried upward from `port`
    start_id: int = 1  # First value of the {{auto}} counter
    seed: Optional[int] = None  # Seed for alternative response selection
    log_level: str = "info"
    access_log: bool = False
    startup_timeout: float = 10.0  # Seconds to wait for a background start


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    stateful_writes: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'stateful_writes': self.stateful_writes,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class ServerState(Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


class MockServer:
    """
    FastAPI-based mock server for a project's mock bundle.

    The route table, state store and id counter belong to this instance;
    several servers can run side by side. Requests are dispatched on one
    event loop, and reload replaces the route table with a single
    reference assignment.

    Example:
        # Serve .mockgen/mock.json in the background
        server = MockServer('/path/to/project', MockConfig(port=3000))
        port = server.start()
        ...
        server.reload()   # after regenerating mock.json
        server.stop()

        # Blocking, like a CLI
        server.start(block=True)
    """

    def __init__(
        self,
        root: Union[str, Path],
        config: Optional[MockConfig] = None,
        route_table: Optional[RouteTable] = None
    ):
        """
        Initialize mock server.

        Args:
            root: Workspace root holding the .mockgen directory
            config: Optional MockConfig for server behavior
            route_table: Initial routes, for serving without a bundle file
        """
        self.paths = ProjectPaths(root)
        self.config = config or MockConfig()
        self.metrics = MockMetrics()

        self.logger = logging.getLogger("mockgen.mock")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

        self._initial_routes = route_table or RouteTable()
        self.route_table = self._initial_routes
        self._reset_state()
        self.rng = random.Random(self.config.seed)

        self.state = ServerState.STOPPED
        self.port: Optional[int] = None
        self._socket: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

        self.app = self._create_app()

    def _reset_state(self):
        self.state_store = StateStore()
        self.ids = IdCounter(self.config.start_id)
        self.renderer = TemplateRenderer(self.ids)

    @property
    def url(self) -> Optional[str]:
        if self.port is None:
            return None
        return f"http://{self.config.host}:{self.port}"

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with a catch-all mock route."""
        app = FastAPI(
            title="MockGen Mock Server",
            description="Mock HTTP server serving generated endpoint mocks",
            version="1.0.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        @app.middleware("http")
        async def add_cors_headers(request: Request, call_next):
            response = await call_next(request)
            for name, value in CORS_HEADERS.items():
                response.headers[name] = value
            return response

        @app.api_route("/{full_path:path}", methods=HANDLED_METHODS)
        async def handle_request(request: Request):
            """Handle all mock requests."""
            raw_body = await request.body()
            body = safe_json_parse(raw_body, default={})

            if request.method.upper() == 'OPTIONS':
                return Response(status_code=204)

            return self.dispatch(request.method, request.url.path, body)

        return app

    def dispatch(self, method: str, path: str, body: Any = None) -> Response:
        """
        Match a request and build its response.

        Runs without suspension points, so the table it reads and the
        state it appends to cannot change underneath it.

        Args:
            method: Request method
            path: Request path
            body: Parsed request body

        Returns:
            FastAPI Response
        """
        method = method.upper()
        path = URLMatcher.normalize_path(path)
        table = self.route_table
        self.metrics.total_requests += 1

        result = table.find(method, path)
        if not result.matched:
            self.metrics.unmatched_requests += 1
            self.logger.debug(f"No mock for {method} {path}")
            return JSONResponse(
                status_code=404,
                content={'error': 'Mock not found', 'method': method, 'path': path}
            )

        self.metrics.matched_requests += 1
        definition = result.route.definition

        if definition.stateful and method in MUTATION_METHODS:
            record = self._render_record(definition, body if body is not None else {})
            self.state_store.append(path, record)
            self.metrics.stateful_writes += 1
            return self._create_response(definition.status, definition.headers, record)

        if method == 'GET':
            recorded = self.state_store.get(path)
            if recorded is not None:
                return self._create_response(200, JSON_HEADERS, recorded)
            if definition.stateful and definition.method != method:
                return self._create_response(200, JSON_HEADERS, [])

        if definition.responses:
            entry = self.rng.choice(definition.responses)
            return self._create_response(entry['status'], entry['headers'], entry['body'])

        if definition.alternatives:
            payload = self.rng.choice(definition.alternatives)
        else:
            payload = definition.body

        return self._create_response(definition.status, definition.headers, payload)

    def _render_record(self, definition: ResponseDefinition, body: Any) -> Any:
        try:
            return self.renderer.render(definition.body, body)
        except TemplateRenderError as e:
            self.logger.warning(f"{e}; storing the template unrendered")
            return copy.deepcopy(definition.body)

    def _create_response(self, status: int, headers: Optional[Dict[str, str]], payload: Any) -> Response:
        """
        Create FastAPI Response from a definition's parts.

        Args:
            status: Status code
            headers: Response headers (JSON content type if empty)
            payload: JSON body; ignored for statuses that carry none

        Returns:
            FastAPI Response object
        """
        headers = headers or JSON_HEADERS
        filtered_headers = {
            k: v for k, v in headers.items()
            if k.lower() not in _SKIPPED_HEADERS and k.lower() != 'content-type'
        }
        content_type = next(
            (v for k, v in headers.items() if k.lower() == 'content-type'),
            'application/json'
        )

        if status in _NO_BODY_STATUSES:
            return Response(status_code=status, headers=filtered_headers)

        return Response(
            content=json.dumps(payload if payload is not None else {}),
            status_code=status,
            headers=filtered_headers,
            media_type=content_type
        )

    def reload(self) -> bool:
        """
        Re-read mock.json and swap in the new route table.

        A missing bundle yields an empty table. A malformed one is logged
        and the current table stays in use. State is never touched.

        Returns:
            True if a new table was installed
        """
        loader = BundleLoader(self.paths.mock_bundle_file)
        try:
            bundle = loader.load()
        except BundleParseError as e:
            self.logger.warning(f"{e}; keeping {len(self.route_table)} current routes")
            return False

        table = RouteTable.from_bundle(bundle)
        self.route_table = table
        self.logger.info(f"Loaded {len(table)} routes from {self.paths.mock_bundle_file}")
        return True

    def bind(self) -> socket.socket:
        """
        Bind the listening socket, moving up from the configured port.

        Returns:
            Bound, listening socket; self.port holds the actual port

        Raises:
            PortInUseError: If every port in the attempt window is taken
            BindError: On any other bind failure
        """
        host = self.config.host
        family = socket.AF_INET6 if ':' in host else socket.AF_INET
        attempts = max(1, self.config.max_port_attempts)

        for attempt in range(attempts):
            port = self.config.port + attempt
            sock = socket.socket(family, socket.SOCK_STREAM)
            try:
                sock.bind((host, port))
                sock.listen(128)
            except OSError as e:
                sock.close()
                if e.errno in _ADDRESS_IN_USE:
                    self.logger.debug(f"Port {port} in use, trying {port + 1}")
                    continue
                self.logger.error(f"Cannot bind {host}:{port}: {e}")
                raise BindError(host, port, e) from e

            self.port = sock.getsockname()[1]
            return sock

        self.logger.error(f"No free port in {self.config.port}-{self.config.port + attempts - 1}")
        raise PortInUseError(host, self.config.port, attempts)

    def start(self, block: bool = False) -> int:
        """
        Start the mock server.

        Args:
            block: Serve in the calling thread until stopped

        Returns:
            The port actually bound
        """
        if self.state is ServerState.LISTENING:
            raise MockgenError(f"Mock server already listening on port {self.port}")

        self._socket = self.bind()
        self._reset_state()
        self.route_table = self._initial_routes
        self.metrics = MockMetrics()
        self.state = ServerState.LISTENING
        if BundleLoader(self.paths.mock_bundle_file).exists():
            self.reload()

        self._server = uvicorn.Server(uvicorn.Config(
            self.app,
            log_level=self.config.log_level,
            access_log=self.config.access_log,
            lifespan="off"
        ))

        print(f"🚀 MockGen Mock Server running at {self.url}")
        print(f"   Routes loaded: {len(self.route_table)}")
        if self.port != self.config.port:
            print(f"   ⚠️  Port {self.config.port} was busy, using {self.port}")

        if block:
            try:
                self._server.run(sockets=[self._socket])
            finally:
                self._cleanup()
            return self.port

        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={'sockets': [self._socket]},
            name=f"mockgen-server-{self.port}",
            daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + self.config.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.stop()
                raise MockgenError("Mock server failed to start")
            time.sleep(0.01)

        return self.port

    def stop(self):
        """Stop accepting requests and shut the server down."""
        if self.state is ServerState.STOPPED:
            return

        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.config.startup_timeout)

        self._cleanup()
        print("🛑 MockGen Mock Server stopped")

    def _cleanup(self):
        if self._socket is not None:
            self._socket.close()
        self._socket = None
        self._server = None
        self._thread = None
        self.route_table = self._initial_routes
        self._reset_state()
        self.state = ServerState.STOPPED

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    root: Union[str, Path],
    host: str = "127.0.0.1",
    port: int = 3000,
    max_port_attempts: int = 10,
    log_level: str = "info",
    seed: Optional[int] = None
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Returns:
        Configured MockServer instance
    """
    config = MockConfig(
        host=host,
        port=port,
        max_port_attempts=max_port_attempts,
        log_level=log_level,
        seed=seed
    )
    return MockServer(root, config=config)
