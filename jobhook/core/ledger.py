"""Callback ledger: records verified callbacks and dispatches side effects.

The ledger owns no global state. Its store and sinks are injected by the
composition root so tests and future persistent stores can substitute
their own implementations.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from .models import (
    Acknowledgment,
    CallbackEvent,
    JobSummary,
    LedgerSummary,
    StoredCallbackRecord,
)
from .ports import CallbackPort, CallbackStorePort, EventSinkPort

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CallbackLedger(CallbackPort):
    """Append-only per-job callback history with fire-and-forget side effects."""

    def __init__(
        self,
        store: CallbackStorePort,
        sinks: Sequence[EventSinkPort] = (),
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the ledger.

        Args:
            store: Store holding the per-job histories.
            sinks: Side effects dispatched for every recorded callback,
                in this order.
            clock: Returns the current UTC time; injectable for tests.
        """
        self.store = store
        self.sinks = tuple(sinks)
        self.clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    async def process_callback(self, event: CallbackEvent) -> Acknowledgment:
        """Record a callback and trigger its side effects.

        Steps:
        1. Append the event with a receipt timestamp
        2. Schedule every sink without awaiting it
        3. Return the acknowledgment

        Args:
            event: Verified, validated callback event.

        Returns:
            Acknowledgment with success=True. Sink failures never change it.
        """
        logger.info(
            f"Callback received - Event: {event.event_type.value}, "
            f"JobId: {event.job_id}",
            extra={
                "job_id": event.job_id,
                "event_type": event.event_type.value,
                "job_status": event.job_status,
            },
        )

        record = self._record(event)
        self.store.append(record)
        logger.debug(f"Stored callback history for jobId: {event.job_id}")

        for sink in self.sinks:
            self._dispatch(sink, event)

        return Acknowledgment(
            success=True,
            message=f"Job callback processed successfully: {event.event_type.value}",
            job_id=event.job_id,
            processed_at=self.clock(),
        )

    def _record(self, event: CallbackEvent) -> StoredCallbackRecord:
        """Stamp an event, never going backwards within its job."""
        received_at = self.clock()
        previous = self.store.get_history(event.job_id)
        if previous and previous[-1].received_at > received_at:
            received_at = previous[-1].received_at
        return StoredCallbackRecord(event=event, received_at=received_at)

    def _dispatch(self, sink: EventSinkPort, event: CallbackEvent) -> None:
        task = asyncio.create_task(self._run_sink(sink, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_sink(self, sink: EventSinkPort, event: CallbackEvent) -> None:
        try:
            await sink.handle(event)
        except Exception as e:
            logger.error(
                f"Event sink {sink.name} failed for job {event.job_id}: {e}",
                exc_info=True,
                extra={
                    "sink": sink.name,
                    "job_id": event.job_id,
                    "event_type": event.event_type.value,
                },
            )

    @property
    def pending_dispatches(self) -> int:
        """Number of sink dispatches still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight sink dispatch to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def history(self, job_id: int) -> tuple[StoredCallbackRecord, ...]:
        return self.store.get_history(job_id)

    def all_histories(self) -> dict[int, tuple[StoredCallbackRecord, ...]]:
        return self.store.get_all()

    def summarize(self) -> LedgerSummary:
        """Compute per-job counts and latest status from the current store.

        Computed on every call; nothing is cached.
        """
        histories = self.store.get_all()
        jobs = tuple(
            JobSummary(
                job_id=job_id,
                callback_count=len(records),
                latest_status=records[-1].event.event_type,
                last_updated=records[-1].received_at,
            )
            for job_id, records in histories.items()
            if records
        )
        return LedgerSummary(
            total_jobs=len(histories),
            total_callbacks=sum(len(records) for records in histories.values()),
            jobs=jobs,
        )
