"""
Hub event vocabulary.

Inbound operations are issued by connections; outbound events are emitted by
the hub. Both travel as {"event": <name>, "data": <payload>} envelopes.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel

from workermap.core.models import RejectReason, WorkerRecord


class Operation(str, Enum):
    """Operations a connection may submit."""

    ADD_WORKER = "addWorker"
    ADD_WORKERS_BATCH = "addWorkersBatch"
    REMOVE_WORKER = "removeWorker"
    CLEAR_ALL = "clearAll"


class EventName(str, Enum):
    """Events the hub emits."""

    CURRENT_WORKERS = "currentWorkers"
    WORKER_ADDED = "workerAdded"
    WORKERS_ADDED_BATCH = "workersAddedBatch"
    WORKER_REMOVED = "workerRemoved"
    ALL_CLEARED = "allCleared"
    ADD_WORKER_REJECTED = "addWorkerRejected"
    ADD_WORKERS_BATCH_RESULT = "addWorkersBatchResult"


class Envelope(BaseModel):
    """Wire frame for both directions."""

    event: str
    data: Any = None


class HubEvent(BaseModel):
    """An outbound event."""

    event: EventName
    data: Any = None

    def to_wire(self) -> dict[str, Any]:
        return {"event": self.event.value, "data": self.data}


def current_workers(workers: list[WorkerRecord]) -> HubEvent:
    return HubEvent(event=EventName.CURRENT_WORKERS, data=[w.to_wire() for w in workers])


def worker_added(worker: WorkerRecord) -> HubEvent:
    return HubEvent(event=EventName.WORKER_ADDED, data=worker.to_wire())


def workers_added_batch(workers: list[WorkerRecord]) -> HubEvent:
    return HubEvent(event=EventName.WORKERS_ADDED_BATCH, data=[w.to_wire() for w in workers])


def worker_removed(worker: WorkerRecord) -> HubEvent:
    return HubEvent(event=EventName.WORKER_REMOVED, data=worker.to_wire())


def all_cleared() -> HubEvent:
    return HubEvent(event=EventName.ALL_CLEARED)


def add_worker_rejected(reason: RejectReason) -> HubEvent:
    return HubEvent(event=EventName.ADD_WORKER_REJECTED, data={"reason": reason.value})


def batch_result(accepted: int) -> HubEvent:
    return HubEvent(event=EventName.ADD_WORKERS_BATCH_RESULT, data={"accepted": accepted})
