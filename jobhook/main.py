"""Composition root for the jobhook callback receiver.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- HTTP server startup and shutdown
"""

import asyncio
import logging
import sys
from dataclasses import dataclass, field

from jobhook.adapters.sinks.forward import HttpForwardSink
from jobhook.adapters.sinks.logger import default_sinks
from jobhook.adapters.store.memory import MemoryCallbackStore
from jobhook.adapters.webhook.http_server import WebhookHTTPServer
from jobhook.adapters.webhook.receiver import CallbackReceiver
from jobhook.config import Settings, load_settings
from jobhook.core.ledger import CallbackLedger
from jobhook.core.ports import EventSinkPort
from jobhook.core.signature import SignatureVerifier


@dataclass
class Application:
    """Wired components for one process."""

    verifier: SignatureVerifier
    ledger: CallbackLedger
    receiver: CallbackReceiver
    http_server: WebhookHTTPServer
    forward_sink: HttpForwardSink | None = None
    sinks: list[EventSinkPort] = field(default_factory=list)

    async def close(self) -> None:
        """Finish outstanding side effects and release clients."""
        await self.ledger.drain()
        if self.forward_sink is not None:
            await self.forward_sink.close()


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    # Map string level to logging constant
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_application(settings: Settings) -> Application:
    """Instantiate adapters and core services from settings.

    Args:
        settings: Validated settings.

    Returns:
        Application with every component wired but nothing started.
    """
    logger = logging.getLogger(__name__)

    if settings.uses_default_secret:
        logger.warning(
            "CALLBACK_SECRET not set; using the development fallback secret. "
            "Never run a production deployment with it."
        )

    verifier = SignatureVerifier(
        secret=settings.callback_secret,
        tolerance_seconds=settings.signature_tolerance_seconds,
    )

    sinks = default_sinks()
    forward_sink: HttpForwardSink | None = None
    if settings.forward_url:
        forward_sink = HttpForwardSink(
            url=settings.forward_url,
            timeout_seconds=settings.forward_timeout_seconds,
            signer=verifier if settings.forward_sign else None,
        )
        sinks.append(forward_sink)
        logger.info(f"Forwarding callbacks to {settings.forward_url}")

    store = MemoryCallbackStore()
    ledger = CallbackLedger(store=store, sinks=sinks)
    receiver = CallbackReceiver(callback_port=ledger, verifier=verifier)

    http_server = WebhookHTTPServer(
        receiver=receiver,
        host=settings.webhook_host,
        port=settings.webhook_port,
        max_body_bytes=settings.max_body_bytes,
        test_endpoint_enabled=settings.test_endpoint_enabled,
    )

    return Application(
        verifier=verifier,
        ledger=ledger,
        receiver=receiver,
        http_server=http_server,
        forward_sink=forward_sink,
        sinks=sinks,
    )


async def bootstrap() -> None:
    """Load configuration, wire adapters, and serve until cancelled.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Wire adapters and core services
    4. Start the HTTP server and wait

    Raises:
        pydantic.ValidationError: On invalid configuration
        asyncio.CancelledError: On graceful shutdown signal
    """
    settings = load_settings()

    log_level = "DEBUG" if settings.debug else settings.log_level
    configure_logging(log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading jobhook callback receiver...")

    app = build_application(settings)

    try:
        await app.http_server.start()
        while True:
            await asyncio.sleep(1)
    finally:
        await app.http_server.stop()
        await app.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
