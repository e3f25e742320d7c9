"""Domain models for the jobhook callback receiver.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class CallbackValidationError(ValueError):
    """A callback payload is missing a field or has a field of the wrong type."""


class JobEventType(Enum):
    """Job lifecycle events sent by the partner system.

    The wire value is the enum value; it is also what the history summary
    reports as a job's latest status.
    """

    JOB_ASSIGNED = "JobAssigned"
    JOB_STARTED = "JobStarted"
    JOB_COMPLETED = "JobCompleted"
    JOB_WITHDRAWED = "JobWithdrawed"


_PAYLOAD_FIELDS = frozenset(
    {"jobId", "eventType", "jobName", "jobStatus", "guardianPhone"}
)


@dataclass(frozen=True)
class CallbackEvent:
    """A single job status notification as received from the partner."""

    job_id: int
    event_type: JobEventType
    job_name: str
    job_status: str
    guardian_phone: str | None = None

    def __post_init__(self) -> None:
        """Validate event invariants on creation."""
        # bool is an int subclass; a JSON true is not a job id
        if isinstance(self.job_id, bool) or not isinstance(self.job_id, int):
            raise CallbackValidationError("jobId must be an integer")
        if not isinstance(self.event_type, JobEventType):
            raise CallbackValidationError("eventType must be a JobEventType")
        if not isinstance(self.job_name, str):
            raise CallbackValidationError("jobName must be a string")
        if not isinstance(self.job_status, str):
            raise CallbackValidationError("jobStatus must be a string")
        if self.guardian_phone is not None and not isinstance(
            self.guardian_phone, str
        ):
            raise CallbackValidationError("guardianPhone must be a string")

    @classmethod
    def from_payload(cls, payload: Any) -> "CallbackEvent":
        """Build an event from a decoded JSON body.

        Args:
            payload: Decoded JSON object using the partner's camelCase keys.

        Returns:
            Validated CallbackEvent.

        Raises:
            CallbackValidationError: If the payload is not an object, has
                unknown keys, misses a required key, or carries an unknown
                event type.
        """
        if not isinstance(payload, dict):
            raise CallbackValidationError("Request body must be a JSON object")

        unknown = sorted(set(payload) - _PAYLOAD_FIELDS)
        if unknown:
            raise CallbackValidationError(
                f"Unexpected fields: {', '.join(unknown)}"
            )

        for key in ("jobId", "eventType", "jobName", "jobStatus"):
            if key not in payload or payload[key] is None:
                raise CallbackValidationError(f"Missing required field: {key}")

        raw_event_type = payload["eventType"]
        try:
            event_type = JobEventType(raw_event_type)
        except ValueError:
            allowed = ", ".join(e.value for e in JobEventType)
            raise CallbackValidationError(
                f"eventType must be one of: {allowed}"
            ) from None

        return cls(
            job_id=payload["jobId"],
            event_type=event_type,
            job_name=payload["jobName"],
            job_status=payload["jobStatus"],
            guardian_phone=payload.get("guardianPhone"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the partner's wire format."""
        payload: dict[str, Any] = {
            "jobId": self.job_id,
            "eventType": self.event_type.value,
            "jobName": self.job_name,
            "jobStatus": self.job_status,
        }
        if self.guardian_phone is not None:
            payload["guardianPhone"] = self.guardian_phone
        return payload


@dataclass(frozen=True)
class StoredCallbackRecord:
    """A callback event as recorded in the ledger.

    received_at is assigned by the ledger, never by the caller.
    """

    event: CallbackEvent
    received_at: datetime

    def to_payload(self) -> dict[str, Any]:
        """Serialize to wire format, adding the receipt timestamp."""
        payload = self.event.to_payload()
        payload["receivedAt"] = self.received_at.isoformat()
        return payload


@dataclass(frozen=True)
class Acknowledgment:
    """Result returned to the partner after a callback is processed."""

    success: bool
    message: str
    job_id: int
    processed_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "jobId": self.job_id,
            "processedAt": self.processed_at.isoformat(),
        }


@dataclass(frozen=True)
class JobSummary:
    """Per-job line of the ledger summary."""

    job_id: int
    callback_count: int
    latest_status: JobEventType
    last_updated: datetime


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregate view over every job in the ledger."""

    total_jobs: int
    total_callbacks: int
    jobs: tuple[JobSummary, ...]
