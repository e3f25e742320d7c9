"""HTTP forwarding event sink.

Implements EventSinkPort by POSTing each recorded callback to a downstream
URL, so another internal system can follow job status without polling the
history endpoints. There is no retry; a failed forward is logged by the
ledger and dropped.
"""

import json
import logging

import httpx

from jobhook.core.models import CallbackEvent
from jobhook.core.ports import EventSinkPort
from jobhook.core.signature import SignatureVerifier

logger = logging.getLogger(__name__)


class HttpForwardSink(EventSinkPort):
    """Forwards callback events to a downstream HTTP endpoint."""

    name = "http_forward"

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        signer: SignatureVerifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the forwarding sink.

        Args:
            url: Downstream endpoint receiving the event JSON.
            timeout_seconds: Request timeout.
            signer: If given, forwarded bodies carry an ``X-Signature``
                header produced with the same scheme the partner uses.
            transport: Optional httpx transport (used by tests).
        """
        if not url:
            raise ValueError("url must be a non-empty string")
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.signer = signer
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def handle(self, event: CallbackEvent) -> None:
        """Forward one event.

        Raises:
            httpx.RequestError: If the downstream endpoint is unreachable.
        """
        body = json.dumps(event.to_payload(), separators=(",", ":")).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.signer is not None:
            headers["X-Signature"] = self.signer.sign(body)

        client = await self._get_client()
        try:
            response = await client.post(self.url, content=body, headers=headers)
        except httpx.RequestError as e:
            logger.error(
                f"Failed to forward callback for job {event.job_id}: {e}",
                extra={"job_id": event.job_id, "url": self.url},
            )
            raise

        if response.is_success:
            logger.info(
                f"Forwarded callback for job {event.job_id}",
                extra={"job_id": event.job_id, "status_code": response.status_code},
            )
        else:
            logger.error(
                f"Downstream rejected callback for job {event.job_id}: "
                f"{response.status_code}",
                extra={
                    "job_id": event.job_id,
                    "status_code": response.status_code,
                    "response": response.text,
                },
            )
