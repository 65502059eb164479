"""Loopback HTTP transport.

``GET /<namespace>/<route>/<subroute>?k=v`` answers 200 with the outcome as
JSON, whether the handler succeeded or not; unregistered paths answer 404
with an empty body. The listener runs ``serve_forever`` on a daemon thread
and holds at most one socket: starting twice reuses it, stopping releases
it so a later start binds again.
"""
import logging
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from actions_uri.models.results import outcome_to_json
from actions_uri.server.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class ActionRequestHandler(BaseHTTPRequestHandler):
    dispatcher: Dispatcher

    protocol_version = "HTTP/1.1"

    def _send_bytes(self, body: bytes, content_type: str, status: int = HTTPStatus.OK) -> None:
        self.send_response(status)
        if content_type:
            self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            try:
                self.wfile.write(body)
            except (BrokenPipeError, ConnectionResetError, ConnectionAbortedError) as e:
                logger.debug(f"Client went away before the response was written: {e}")

    def do_GET(self) -> None:  # noqa: N802
        parts = urlsplit(self.path)
        route = self.dispatcher.lookup(parts.path)
        if route is None:
            self._send_bytes(b"", "", status=HTTPStatus.NOT_FOUND)
            return

        raw = dict(parse_qsl(parts.query, keep_blank_values=True))
        outcome = self.dispatcher.dispatch(route, raw, transport="http")
        self._send_bytes(
            outcome_to_json(outcome).encode("utf-8"),
            "application/json; charset=utf-8",
        )

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class HttpTransport:
    """Start/stop wrapper around a ``ThreadingHTTPServer``."""

    def __init__(self, dispatcher: Dispatcher, host: str = "127.0.0.1", port: int = 3000):
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port), useful when started on port 0."""
        if self._server is None:
            return None
        return self._server.server_address[:2]

    def _make_handler(self) -> type:
        return type(
            "BoundActionRequestHandler",
            (ActionRequestHandler,),
            {"dispatcher": self.dispatcher},
        )

    def start(self) -> Tuple[str, int]:
        """Bind and serve in the background; a running listener is reused."""
        with self._lock:
            if self._server is None:
                server = ThreadingHTTPServer((self.host, self.port), self._make_handler())
                server.daemon_threads = True
                self._server = server
                self._thread = threading.Thread(
                    target=server.serve_forever,
                    kwargs={"poll_interval": 0.2},
                    name="actions-uri-http",
                    daemon=True,
                )
                self._thread.start()
                logger.info(f"HTTP server listening on http://{self.host}:{self.address[1]}")
            return self.address

    def stop(self) -> None:
        """Stop serving and release the socket."""
        with self._lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if thread is not None:
            thread.join(timeout=5)
        logger.info("HTTP server stopped")

    def serve_forever(self) -> None:
        """Serve on the calling thread until interrupted."""
        self.start()
        try:
            self._thread.join()
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()
