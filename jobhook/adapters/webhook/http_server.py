"""HTTP server adapter for the callback receiver.

Provides a simple async HTTP server using Python's built-in http.server module
and asyncio for handling partner callbacks.

Routes:
    POST /api/v1/job-callback                 signed partner callback
    POST /api/v1/job-callback/test            self-signed sample callback
    GET  /api/v1/job-callback/history         aggregate summary
    GET  /api/v1/job-callback/history/<jobId> one job's history
    GET  /health                              liveness check
"""

import asyncio
import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Coroutine
from urllib.parse import urlsplit

from jobhook.adapters.webhook.receiver import CallbackReceiver
from jobhook.core.models import CallbackValidationError
from jobhook.core.signature import AuthError

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/api/v1/job-callback"
TEST_PATH = f"{CALLBACK_PATH}/test"
HISTORY_PATH = f"{CALLBACK_PATH}/history"
SIGNATURE_HEADER = "X-Signature"

DEFAULT_MAX_BODY_BYTES = 1024 * 1024
REQUEST_TIMEOUT_SECONDS = 30


def make_callback_handler(
    receiver: CallbackReceiver,
    event_loop: asyncio.AbstractEventLoop,
    max_body_bytes: int,
    test_endpoint_enabled: bool,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create a CallbackHTTPHandler class with instance-specific state.

    Implements proper dependency injection by creating a handler class with
    closure-captured dependencies instead of using class-level mutable state.

    Args:
        receiver: Receiver for callback operations
        event_loop: Event loop the receiver's coroutines run on
        max_body_bytes: Largest accepted request body
        test_endpoint_enabled: Whether the self-signed test route is served

    Returns:
        A CallbackHTTPHandler class configured with the provided dependencies
    """

    class CallbackHTTPHandler(BaseHTTPRequestHandler):
        """HTTP request handler for callback endpoints."""

        def do_POST(self) -> None:
            """Handle POST requests.

            Routes to appropriate handler based on path.
            """
            path = urlsplit(self.path).path.rstrip("/")

            body = self._read_body()
            if body is None:
                return

            if path == CALLBACK_PATH:
                signature_header = self.headers.get(SIGNATURE_HEADER)
                self._run_async(receiver.handle_callback(body, signature_header))
            elif path == TEST_PATH and test_endpoint_enabled:
                self._run_async(receiver.handle_test_callback())
            else:
                self._send_json(404, {"error": "Not found"})

        def do_GET(self) -> None:
            """Handle GET requests."""
            path = urlsplit(self.path).path.rstrip("/")

            if path == "/health":
                self._send_json(200, {"status": "healthy"})
            elif path == HISTORY_PATH:
                self._run_async(receiver.handle_all_history_request())
            elif path.startswith(HISTORY_PATH + "/"):
                raw_job_id = path[len(HISTORY_PATH) + 1 :]
                try:
                    job_id = int(raw_job_id)
                except ValueError:
                    self._send_json(
                        400, {"error": "Validation failed (numeric string is expected)"}
                    )
                    return
                self._run_async(receiver.handle_history_request(job_id))
            else:
                self._send_json(404, {"error": "Not found"})

        def _read_body(self) -> bytes | None:
            """Read the request body, answering the request itself on failure."""
            try:
                content_length = int(self.headers.get("Content-Length", 0))
            except ValueError:
                self._send_json(400, {"error": "Invalid Content-Length header"})
                return None

            if content_length < 0:
                self._send_json(400, {"error": "Invalid Content-Length header"})
                return None
            if content_length > max_body_bytes:
                self._send_json(413, {"error": "Request body too large"})
                return None

            return self.rfile.read(content_length) if content_length > 0 else b""

        def _run_async(self, coro: Coroutine[Any, Any, dict[str, Any]]) -> None:
            """Run a receiver coroutine on the event loop and send its result.

            Auth failures map to 401, validation failures to 400, anything
            else to a generic 500.
            """
            future = asyncio.run_coroutine_threadsafe(coro, event_loop)
            try:
                result = future.result(timeout=REQUEST_TIMEOUT_SECONDS)
            except AuthError as e:
                logger.warning(
                    f"Rejected callback from {self.client_address[0]}: {e}",
                    extra={"reason": type(e).__name__},
                )
                self._send_json(401, {"error": str(e)})
                return
            except CallbackValidationError as e:
                logger.warning(f"Invalid callback payload: {e}")
                self._send_json(400, {"error": str(e)})
                return
            except Exception as e:
                future.cancel()
                # Log full exception server-side for debugging
                logger.error(f"Error handling callback request: {e}", exc_info=True)
                self._send_json(500, {"error": "Internal server error"})
                return

            self._send_json(200, result)

        def _send_json(self, status: int, data: dict[str, Any]) -> None:
            """Send JSON response."""
            body = json.dumps(data).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return CallbackHTTPHandler


class WebhookHTTPServer:
    """Webhook HTTP server adapter.

    Serves the partner callback endpoint and the history queries.
    """

    def __init__(
        self,
        receiver: CallbackReceiver,
        host: str = "0.0.0.0",
        port: int = 3000,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
        test_endpoint_enabled: bool = True,
    ):
        """Initialize the HTTP server.

        Args:
            receiver: CallbackReceiver instance to handle requests.
            host: Host to listen on (default 0.0.0.0).
            port: Port to listen on (default 3000). 0 picks a free port,
                available as ``port`` once started.
            max_body_bytes: Largest accepted request body (default 1 MiB).
            test_endpoint_enabled: Serve the self-signed test route.
        """
        if max_body_bytes <= 0:
            raise ValueError("max_body_bytes must be positive")
        self.receiver = receiver
        self.host = host
        self.port = port
        self.max_body_bytes = max_body_bytes
        self.test_endpoint_enabled = test_endpoint_enabled
        self.server: HTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the HTTP server."""
        handler_class = make_callback_handler(
            receiver=self.receiver,
            event_loop=asyncio.get_running_loop(),
            max_body_bytes=self.max_body_bytes,
            test_endpoint_enabled=self.test_endpoint_enabled,
        )

        self.server = HTTPServer((self.host, self.port), handler_class)
        self.port = self.server.server_address[1]

        # Run server in a separate thread to avoid blocking
        self._server_task = asyncio.create_task(self._run_server())
        logger.info(f"Webhook HTTP server started on {self.host}:{self.port}")
        logger.info(f"Webhook URL for partner API: {CALLBACK_PATH}")

    async def _run_server(self) -> None:
        """Run the HTTP server loop in a thread pool."""
        if not self.server:
            return

        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            # Normal shutdown
            pass
        except Exception as e:
            logger.error(f"Webhook HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            # shutdown() blocks until serve_forever returns; keep the loop free
            # for handlers still waiting on it
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
            self.server = None
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
            self._server_task = None
        logger.info("Webhook HTTP server stopped")
