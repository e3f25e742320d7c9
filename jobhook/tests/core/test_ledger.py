"""Unit tests for CallbackLedger."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

import pytest

from jobhook.adapters.store.memory import MemoryCallbackStore
from jobhook.core.ledger import CallbackLedger
from jobhook.core.models import CallbackEvent, JobEventType
from jobhook.tests.fakes import FakeEventSinkPort

# ============================================================================
# Test Fixtures
# ============================================================================


class SteppingClock:
    """Clock returning scripted UTC times, repeating the last one."""

    def __init__(self, *times: datetime):
        self.times = list(times)

    def __call__(self) -> datetime:
        if len(self.times) > 1:
            return self.times.pop(0)
        return self.times[0]


T0 = datetime(2026, 1, 15, 10, 0, 0, tzinfo=UTC)


def make_event(
    job_id: int = 5,
    event_type: JobEventType = JobEventType.JOB_ASSIGNED,
    job_status: str = "Assigned",
) -> CallbackEvent:
    return CallbackEvent(
        job_id=job_id,
        event_type=event_type,
        job_name="Open House",
        job_status=job_status,
    )


@pytest.fixture
def sink() -> FakeEventSinkPort:
    return FakeEventSinkPort()


@pytest.fixture
def store() -> MemoryCallbackStore:
    return MemoryCallbackStore()


@pytest.fixture
def ledger(store, sink) -> CallbackLedger:
    return CallbackLedger(store=store, sinks=[sink])


# ============================================================================
# process_callback
# ============================================================================


class TestProcessCallback:
    """Tests for recording callbacks."""

    @pytest.mark.asyncio
    async def test_acknowledgment(self, ledger):
        ack = await ledger.process_callback(make_event())

        assert ack.success is True
        assert ack.job_id == 5
        assert ack.message == "Job callback processed successfully: JobAssigned"
        assert ack.processed_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_appends_with_receipt_time(self, store, sink):
        ledger = CallbackLedger(store=store, sinks=[sink], clock=lambda: T0)

        await ledger.process_callback(make_event())

        (record,) = ledger.history(5)
        assert record.event == make_event()
        assert record.received_at == T0

    @pytest.mark.asyncio
    async def test_history_grows_by_one_and_keeps_prior_records(self, ledger):
        await ledger.process_callback(make_event())
        before = ledger.history(5)

        await ledger.process_callback(
            make_event(event_type=JobEventType.JOB_STARTED, job_status="InProgress")
        )
        after = ledger.history(5)

        assert len(after) == len(before) + 1
        assert after[: len(before)] == before

    @pytest.mark.asyncio
    async def test_jobs_are_kept_separate(self, ledger):
        await ledger.process_callback(make_event(job_id=1))
        await ledger.process_callback(make_event(job_id=2))
        await ledger.process_callback(make_event(job_id=1))

        assert len(ledger.history(1)) == 2
        assert len(ledger.history(2)) == 1

    @pytest.mark.asyncio
    async def test_received_at_never_goes_backwards(self, store):
        clock = SteppingClock(T0, T0, T0 - timedelta(seconds=30))
        ledger = CallbackLedger(store=store, clock=clock)

        await ledger.process_callback(make_event())
        await ledger.process_callback(make_event())

        first, second = ledger.history(5)
        assert second.received_at >= first.received_at

    @pytest.mark.asyncio
    async def test_sinks_receive_event(self, ledger, sink):
        event = make_event()

        await ledger.process_callback(event)
        await ledger.drain()

        assert sink.handled_events == [event]

    @pytest.mark.asyncio
    async def test_every_sink_dispatched(self, store):
        sinks = [FakeEventSinkPort(name=f"sink-{i}") for i in range(3)]
        ledger = CallbackLedger(store=store, sinks=sinks)

        await ledger.process_callback(make_event())
        await ledger.drain()

        assert all(s.handle_call_count == 1 for s in sinks)

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_fail_callback(self, ledger, sink, caplog):
        sink.set_should_fail(True, "downstream unavailable")

        with caplog.at_level(logging.ERROR, logger="jobhook.core.ledger"):
            ack = await ledger.process_callback(make_event())
            await ledger.drain()

        assert ack.success is True
        assert len(ledger.history(5)) == 1
        assert "downstream unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_stop_others(self, store):
        failing = FakeEventSinkPort(name="failing")
        failing.set_should_fail(True)
        healthy = FakeEventSinkPort(name="healthy")
        ledger = CallbackLedger(store=store, sinks=[failing, healthy])

        await ledger.process_callback(make_event())
        await ledger.drain()

        assert len(healthy.handled_events) == 1

    @pytest.mark.asyncio
    async def test_acknowledgment_does_not_wait_for_sinks(self, ledger, sink):
        release = sink.block()

        ack = await ledger.process_callback(make_event())

        assert ack.success is True
        assert ledger.pending_dispatches == 1
        assert sink.handled_events == []

        release.set()
        await ledger.drain()
        assert ledger.pending_dispatches == 0
        assert len(sink.handled_events) == 1

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, ledger):
        await asyncio.wait_for(ledger.drain(), timeout=1)


# ============================================================================
# Read operations
# ============================================================================


class TestReads:
    """Tests for history and summary queries."""

    def test_unknown_job_has_empty_history(self, ledger):
        assert ledger.history(12345) == ()

    @pytest.mark.asyncio
    async def test_history_is_idempotent(self, ledger):
        await ledger.process_callback(make_event())

        assert ledger.history(5) == ledger.history(5)

    @pytest.mark.asyncio
    async def test_all_histories(self, ledger):
        await ledger.process_callback(make_event(job_id=1))
        await ledger.process_callback(make_event(job_id=2))

        histories = ledger.all_histories()

        assert list(histories) == [1, 2]
        assert len(histories[1]) == 1

    def test_empty_summary(self, ledger):
        summary = ledger.summarize()

        assert summary.total_jobs == 0
        assert summary.total_callbacks == 0
        assert summary.jobs == ()

    @pytest.mark.asyncio
    async def test_summary_latest_status(self, store):
        ledger = CallbackLedger(store=store, clock=SteppingClock(T0, T0, T0 + timedelta(minutes=5)))

        await ledger.process_callback(make_event(job_id=8))
        await ledger.process_callback(
            make_event(job_id=8, event_type=JobEventType.JOB_COMPLETED, job_status="Done")
        )

        history = ledger.history(8)
        assert [r.event.event_type for r in history] == [
            JobEventType.JOB_ASSIGNED,
            JobEventType.JOB_COMPLETED,
        ]

        summary = ledger.summarize()
        assert summary.total_jobs == 1
        assert summary.total_callbacks == 2
        (job,) = summary.jobs
        assert job.job_id == 8
        assert job.callback_count == 2
        assert job.latest_status is JobEventType.JOB_COMPLETED
        assert job.last_updated == T0 + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_summary_is_not_cached(self, ledger):
        await ledger.process_callback(make_event(job_id=1))
        assert ledger.summarize().total_callbacks == 1

        await ledger.process_callback(make_event(job_id=2))
        assert ledger.summarize().total_callbacks == 2
