"""Webhook receiver for partner job callbacks.

Turns already-read HTTP request data (raw body bytes, header values, path
parameters) into calls on the core: signature verification first, then
payload validation, then the CallbackPort. Responses are returned as
plain dicts ready for JSON serialization.

Authentication and validation failures are raised, not returned, so the
HTTP layer can map them to status codes.
"""

import json
import logging
from typing import Any

from jobhook.core.models import (
    CallbackEvent,
    CallbackValidationError,
    JobEventType,
)
from jobhook.core.ports import CallbackPort
from jobhook.core.signature import SignatureVerifier

logger = logging.getLogger(__name__)

SAMPLE_EVENT = CallbackEvent(
    job_id=999,
    event_type=JobEventType.JOB_ASSIGNED,
    job_name="Open House 23 Main St",
    job_status="New",
    guardian_phone="+1234567890",
)


class CallbackReceiver:
    """Verifies, parses and forwards partner callbacks to the CallbackPort."""

    def __init__(self, callback_port: CallbackPort, verifier: SignatureVerifier):
        """Initialize the receiver.

        Args:
            callback_port: CallbackPort implementation (usually CallbackLedger).
            verifier: Verifier holding the shared secret.
        """
        self.callback_port = callback_port
        self.verifier = verifier

    async def handle_callback(
        self, raw_body: bytes, signature_header: str | None
    ) -> dict[str, Any]:
        """Handle a signed callback from the partner.

        Args:
            raw_body: Request body exactly as received.
            signature_header: Value of the X-Signature header, if any.

        Returns:
            Acknowledgment as a wire-format dict.

        Raises:
            AuthError: If the signature does not verify. The ledger is
                not touched.
            CallbackValidationError: If the body is not a valid callback.
        """
        self.verifier.verify(raw_body, signature_header)
        event = self._parse_event(raw_body)

        logger.info(
            f"Valid callback received: {event.event_type.value} "
            f"for jobId {event.job_id}",
            extra={"job_id": event.job_id, "event_type": event.event_type.value},
        )
        acknowledgment = await self.callback_port.process_callback(event)
        return acknowledgment.to_payload()

    @staticmethod
    def _parse_event(raw_body: bytes) -> CallbackEvent:
        try:
            payload = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise CallbackValidationError("Invalid JSON body") from None
        return CallbackEvent.from_payload(payload)

    async def handle_test_callback(self) -> dict[str, Any]:
        """Sign the sample event locally and run it through handle_callback.

        Exercises signing and verification with the same secret, so a
        successful result shows the two are symmetric.

        Returns:
            Acknowledgment for the sample event.
        """
        raw_body = json.dumps(SAMPLE_EVENT.to_payload()).encode("utf-8")
        signature_header = self.verifier.sign(raw_body)
        logger.info(
            "Processing test job callback with sample data",
            extra={"job_id": SAMPLE_EVENT.job_id},
        )
        return await self.handle_callback(raw_body, signature_header)

    async def handle_history_request(self, job_id: int) -> dict[str, Any]:
        """Handle a request for one job's callback history.

        Args:
            job_id: Partner job identifier.

        Returns:
            Dictionary with the job id, callback count and ordered callbacks.
            Unknown jobs yield an empty list.
        """
        history = self.callback_port.history(job_id)
        logger.debug(
            f"Retrieving callback history for jobId: {job_id}",
            extra={"job_id": job_id, "count": len(history)},
        )
        return {
            "jobId": job_id,
            "callbackCount": len(history),
            "callbacks": [record.to_payload() for record in history],
        }

    async def handle_all_history_request(self) -> dict[str, Any]:
        """Handle a request for the aggregate callback summary.

        Returns:
            Dictionary with job and callback totals and one line per job.
        """
        summary = self.callback_port.summarize()
        logger.debug(
            "Retrieving all callback history",
            extra={
                "total_jobs": summary.total_jobs,
                "total_callbacks": summary.total_callbacks,
            },
        )
        return {
            "totalJobs": summary.total_jobs,
            "totalCallbacks": summary.total_callbacks,
            "jobs": [
                {
                    "jobId": job.job_id,
                    "callbackCount": job.callback_count,
                    "latestStatus": job.latest_status.value,
                    "lastUpdated": job.last_updated.isoformat(),
                }
                for job in summary.jobs
            ],
        }
