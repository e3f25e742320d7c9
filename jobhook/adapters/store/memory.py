"""In-memory callback store.

Implements CallbackStorePort with a dict of per-job lists. History lives
for the lifetime of the process and is lost on restart.
"""

import threading

from jobhook.core.models import StoredCallbackRecord
from jobhook.core.ports import CallbackStorePort


class MemoryCallbackStore(CallbackStorePort):
    """Process-lifetime, unbounded, append-only callback history."""

    def __init__(self) -> None:
        self._histories: dict[int, list[StoredCallbackRecord]] = {}
        self._lock = threading.Lock()

    def append(self, record: StoredCallbackRecord) -> None:
        with self._lock:
            self._histories.setdefault(record.event.job_id, []).append(record)

    def get_history(self, job_id: int) -> tuple[StoredCallbackRecord, ...]:
        with self._lock:
            return tuple(self._histories.get(job_id, ()))

    def get_all(self) -> dict[int, tuple[StoredCallbackRecord, ...]]:
        with self._lock:
            return {
                job_id: tuple(records)
                for job_id, records in self._histories.items()
            }
