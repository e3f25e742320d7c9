"""Logging event sinks.

Implement EventSinkPort as logging-only placeholders for the three side
effects a recorded callback triggers: propagating the job status,
notifying the interested parties, and starting the matching workflow.
Real integrations replace these without touching the ledger.
"""

import logging

from jobhook.core.models import CallbackEvent, JobEventType
from jobhook.core.ports import EventSinkPort

logger = logging.getLogger(__name__)


class StatusUpdateSink(EventSinkPort):
    """Propagates the partner's job status label."""

    name = "status_update"

    async def handle(self, event: CallbackEvent) -> None:
        logger.info(
            f"Updating status for job {event.job_id} to {event.job_status}",
            extra={"job_id": event.job_id, "job_status": event.job_status},
        )


class NotificationSink(EventSinkPort):
    """Notifies the parties interested in each kind of job event."""

    name = "notification"

    MESSAGES: dict[JobEventType, str] = {
        JobEventType.JOB_ASSIGNED: "Notify client: Guardian assigned",
        JobEventType.JOB_STARTED: "Notify client: Job started",
        JobEventType.JOB_COMPLETED: "Notify client + billing: Job completed",
        JobEventType.JOB_WITHDRAWED: "Notify all: Job cancelled/withdrawn",
    }

    async def handle(self, event: CallbackEvent) -> None:
        message = self.MESSAGES[event.event_type]
        logger.info(
            f"{message} (job {event.job_id})",
            extra={
                "job_id": event.job_id,
                "event_type": event.event_type.value,
                "guardian_phone": event.guardian_phone,
            },
        )


class WorkflowTriggerSink(EventSinkPort):
    """Starts the downstream workflow for each kind of job event."""

    name = "workflow_trigger"

    WORKFLOWS: dict[JobEventType, str] = {
        JobEventType.JOB_ASSIGNED: "guardian tracking",
        JobEventType.JOB_STARTED: "monitoring",
        JobEventType.JOB_COMPLETED: "billing + reporting",
        JobEventType.JOB_WITHDRAWED: "cancellation",
    }

    async def handle(self, event: CallbackEvent) -> None:
        workflow = self.WORKFLOWS[event.event_type]
        logger.info(
            f"Trigger {workflow} workflow for job {event.job_id}",
            extra={
                "job_id": event.job_id,
                "event_type": event.event_type.value,
                "workflow": workflow,
            },
        )


def default_sinks() -> list[EventSinkPort]:
    """Sinks wired for every deployment, in dispatch order."""
    return [StatusUpdateSink(), NotificationSink(), WorkflowTriggerSink()]
