"""Port interfaces for the jobhook callback receiver.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - CallbackStorePort: Append and read per-job callback history
   - EventSinkPort: Side effects run after a callback is recorded

2. **Driving Ports** (adapters/external systems call into core)
   - CallbackPort: Entry point for processing and querying callbacks
"""

from abc import ABC, abstractmethod

from .models import (
    Acknowledgment,
    CallbackEvent,
    LedgerSummary,
    StoredCallbackRecord,
)


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class CallbackStorePort(ABC):
    """Port for the append-only per-job callback history.

    Implementations must preserve insertion order within a job and must
    never remove or rewrite a stored record. Appends for the same job must
    be serialized.
    """

    @abstractmethod
    def append(self, record: StoredCallbackRecord) -> None:
        """Append a record to the history of its job.

        Creates the job's history if this is its first record.

        Args:
            record: Record to append.
        """

    @abstractmethod
    def get_history(self, job_id: int) -> tuple[StoredCallbackRecord, ...]:
        """Retrieve the history of one job.

        Args:
            job_id: Partner job identifier.

        Returns:
            Records in insertion order. Empty tuple if the job is unknown.
        """

    @abstractmethod
    def get_all(self) -> dict[int, tuple[StoredCallbackRecord, ...]]:
        """Retrieve every job's history.

        Returns:
            Mapping of job id to records, ordered by each job's first
            appearance. The mapping is a snapshot; mutating it does not
            affect the store.
        """


class EventSinkPort(ABC):
    """Port for side effects triggered by a recorded callback.

    Sinks are dispatched fire-and-forget after the callback has been
    appended to the ledger. A sink may raise; the ledger logs the failure
    and the partner still receives a successful acknowledgment.
    """

    name: str = "sink"

    @abstractmethod
    async def handle(self, event: CallbackEvent) -> None:
        """Run the side effect for an event.

        Args:
            event: The callback event that was recorded.

        Raises:
            Exception: Any failure. Caller logs and discards it.
        """


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class CallbackPort(ABC):
    """Port for processing verified callbacks and querying their history.

    Called by the webhook receiver once a request's signature has been
    verified and its body parsed.
    """

    @abstractmethod
    async def process_callback(self, event: CallbackEvent) -> Acknowledgment:
        """Record a callback and trigger its side effects.

        Args:
            event: Verified, validated callback event.

        Returns:
            Acknowledgment to send back to the partner.
        """

    @abstractmethod
    def history(self, job_id: int) -> tuple[StoredCallbackRecord, ...]:
        """Return the ordered callback history for a job (empty if unknown)."""

    @abstractmethod
    def all_histories(self) -> dict[int, tuple[StoredCallbackRecord, ...]]:
        """Return every job's callback history."""

    @abstractmethod
    def summarize(self) -> LedgerSummary:
        """Compute aggregate counts and the latest status per job."""
