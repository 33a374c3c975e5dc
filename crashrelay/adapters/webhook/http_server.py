"""HTTP transport for the event receiver.

A stdlib ``http.server`` runs in a worker thread; every request is handed
to the application's asyncio loop and the thread waits for the result.

Endpoints:
- POST /api/events: dispatch one crash event
- GET /api/adapters: describe registered adapters
- GET /health: public health check

When authentication is required, callers present the API key either as
``Authorization: Bearer <key>`` or as ``X-API-Key: <key>``.
"""

import asyncio
import concurrent.futures
import hmac
import json
import logging
from collections.abc import Coroutine, Mapping
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from crashrelay.adapters.webhook.receiver import EventReceiver
from crashrelay.core.errors import (
    CrashRelayError,
    MalformedUrlError,
    UnknownAdapterError,
    UnsupportedEventError,
)

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 1024 * 1024
DEFAULT_REQUEST_TIMEOUT_SECONDS = 120.0

EVENTS_PATH = "/api/events"
ADAPTERS_PATH = "/api/adapters"
HEALTH_PATH = "/health"


def error_status(error: Exception) -> int:
    """HTTP status reported to the monitoring system for a failed event."""
    if isinstance(error, TimeoutError):
        return 504
    if isinstance(error, UnknownAdapterError):
        return 404
    if isinstance(error, (UnsupportedEventError, MalformedUrlError)):
        return 400
    if isinstance(error, CrashRelayError):
        # The third-party product rejected or never received the event
        return 502
    if isinstance(error, ValueError):
        return 400
    return 500


def presented_api_key(headers: Mapping[str, str]) -> str:
    """API key from a Bearer Authorization header or X-API-Key, else ""."""
    authorization = headers.get("Authorization") or ""
    scheme, _, token = authorization.partition(" ")
    if scheme == "Bearer" and token:
        return token
    return headers.get("X-API-Key") or ""


def is_authorized(headers: Mapping[str, str], api_key: str | None, require_auth: bool) -> bool:
    """Constant-time check of the presented key against the configured one."""
    if not require_auth:
        return True
    presented = presented_api_key(headers)
    if not api_key or not presented:
        return False
    return hmac.compare_digest(presented, api_key)


def make_webhook_handler(
    receiver: EventReceiver,
    event_loop: asyncio.AbstractEventLoop,
    api_key: str | None,
    require_auth: bool,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to one receiver and loop.

    Args:
        receiver: Receiver for event dispatch
        event_loop: Loop that runs the receiver's coroutines
        api_key: Optional API key for authentication
        require_auth: Whether authentication is required
        request_timeout: Seconds to wait for one dispatch

    Returns:
        A BaseHTTPRequestHandler subclass for HTTPServer.
    """

    class EventRequestHandler(BaseHTTPRequestHandler):
        """Serves the event, adapter listing and health endpoints."""

        def do_GET(self) -> None:
            if self.path == HEALTH_PATH:
                self._send_json({"status": "healthy"})
            elif self.path == ADAPTERS_PATH:
                if self._authorized():
                    self._send_json(receiver.handle_list_request())
            else:
                self.send_error(404, "Not found")

        def do_POST(self) -> None:
            if not self._authorized():
                return
            if self.path != EVENTS_PATH:
                self.send_error(404, "Not found")
                return

            data = self._read_json_object()
            if data is None:
                return

            try:
                result = self._await(receiver.handle_event(data))
            except Exception as e:
                self._send_failure(e, data)
                return
            self._send_json(result)

        def _authorized(self) -> bool:
            """Reply 401 and return False for unauthenticated requests."""
            if is_authorized(self.headers, api_key, require_auth):
                return True
            self.send_error(401, "Unauthorized: invalid or missing API key")
            return False

        def _read_json_object(self) -> dict[str, Any] | None:
            """Decode the request body, replying with an error if it is unusable."""
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                length = -1
            if length < 0:
                self.send_error(400, "Invalid Content-Length header")
                return None
            if length > MAX_BODY_SIZE:
                self.send_error(413, "Request body too large")
                return None

            raw = self.rfile.read(length) if length > 0 else b""
            try:
                data = json.loads(raw) if raw else {}
            except ValueError:
                self.send_error(400, "Invalid JSON body")
                return None
            if not isinstance(data, dict):
                self.send_error(400, "Request body must be a JSON object")
                return None
            return data

        def _await(self, coro: Coroutine[Any, Any, Any]) -> Any:
            """Run a coroutine on the application loop and block for its result.

            Raises:
                TimeoutError: If the coroutine outlives request_timeout; it is
                    cancelled on the loop first.
            """
            future = asyncio.run_coroutine_threadsafe(coro, event_loop)
            try:
                return future.result(timeout=request_timeout)
            except concurrent.futures.TimeoutError:
                future.cancel()
                raise TimeoutError(
                    f"Event not handled within {request_timeout:g} seconds"
                ) from None

        def _send_failure(self, error: Exception, data: Mapping[str, Any]) -> None:
            status = error_status(error)
            if status == 500:
                logger.error(f"Unexpected error handling event: {error}", exc_info=True)
                self.send_error(500, "Internal server error")
                return

            body: dict[str, Any] = {
                "status": "error",
                "operation": data.get("event"),
                "adapter": data.get("adapter"),
                "error": type(error).__name__,
                "message": str(error),
            }
            remote_status = getattr(error, "status_code", None)
            if remote_status:
                body["remote_status_code"] = remote_status
            self._send_json(body, status=status)

        def _send_json(self, data: Mapping[str, Any], status: int = 200) -> None:
            payload = json.dumps(data, default=str).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return EventRequestHandler


class WebhookHTTPServer:
    """Receives crash events from the monitoring system over HTTP."""

    def __init__(
        self,
        receiver: EventReceiver,
        host: str = "0.0.0.0",
        port: int = 8080,
        api_key: str | None = None,
        require_auth: bool = False,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ):
        """Initialize the HTTP server.

        Args:
            receiver: EventReceiver instance to handle requests.
            host: Interface to bind.
            port: Port to bind; 0 picks a free port.
            api_key: Optional API key for authentication.
            require_auth: Whether to require authentication.
            request_timeout: Seconds to wait for one dispatch.

        Raises:
            ValueError: If require_auth=True but no API key is provided.
        """
        if require_auth and not api_key:
            raise ValueError(
                "Authentication misconfigured: require_auth=True but no API key provided"
            )

        self.receiver = receiver
        self.host = host
        self.port = port
        self.api_key = api_key
        self.require_auth = require_auth
        self.request_timeout = request_timeout
        self.server: HTTPServer | None = None
        self._serve_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Bind the socket and start serving in a worker thread."""
        handler_class = make_webhook_handler(
            receiver=self.receiver,
            event_loop=asyncio.get_running_loop(),
            api_key=self.api_key,
            require_auth=self.require_auth,
            request_timeout=self.request_timeout,
        )
        self.server = HTTPServer((self.host, self.port), handler_class)
        self._serve_task = asyncio.create_task(self._serve())

        host, port = self.server.server_address[:2]
        logger.info(
            f"Webhook HTTP server listening on {host}:{port}",
            extra={"require_auth": self.require_auth},
        )

    async def _serve(self) -> None:
        if self.server is None:
            return
        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Webhook HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop serving and release the socket."""
        if self.server is not None:
            # shutdown() blocks until serve_forever returns
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
        if self._serve_task is not None:
            self._serve_task.cancel()
            try:
                await self._serve_task
            except asyncio.CancelledError:
                pass
        logger.info("Webhook HTTP server stopped")
