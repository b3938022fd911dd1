"""
Registry Hub - the single owner of the shared worker registry.

Every mutation and every snapshot read goes through one asyncio.Lock, so
operations from concurrent connections are applied one at a time in arrival
order. Events for an operation are enqueued on every connection before the
lock is released, which gives all viewers the same totally ordered stream.

Persistence is scheduled, never awaited, while the lock is held; the
SnapshotStore serializes the writes.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from workermap.core.config import HubSettings
from workermap.core.exceptions import (
    CapacityExceededError,
    DuplicateRecordError,
    InvalidRecordError,
    RateLimitedError,
    WorkerMapError,
    format_exception,
)
from workermap.core.models import REPORTABLE_REASONS, RejectReason, WorkerRecord
from workermap.hub import events
from workermap.hub.connection import Connection
from workermap.hub.events import HubEvent, Operation
from workermap.hub.rate_limit import RateLimiter
from workermap.monitoring.metrics import HubMetrics
from workermap.registry.dedup import DedupIndex
from workermap.registry.storage import LoadStatus, SnapshotStore
from workermap.registry.validator import canonical_key, identity_key, sanitize

logger = logging.getLogger(__name__)


@dataclass
class HubResult:
    """Outcome of a hub operation."""

    operation: Operation
    affected: int = 0
    reason: RejectReason | None = None

    @property
    def status(self) -> str:
        return "rejected" if self.reason is not None else "success"


@dataclass
class ReconcileReport:
    """Result of re-validating persisted records against current settings."""

    workers: list[WorkerRecord]
    invalid: int = 0
    duplicates: int = 0
    over_capacity: int = 0

    @property
    def dropped(self) -> int:
        return self.invalid + self.duplicates + self.over_capacity


def reconcile(records: Sequence[WorkerRecord], settings: HubSettings) -> ReconcileReport:
    """
    Re-sanitize stored records, keeping the first of each canonical key.

    Stops keeping records once settings.max_workers is reached.
    """
    report = ReconcileReport(workers=[])
    seen: set[str] = set()
    for record in records:
        try:
            worker = sanitize(
                record.to_wire(),
                bounds=settings.bounds,
                max_name_length=settings.max_name_length,
                max_address_length=settings.max_address_length,
            )
        except InvalidRecordError as e:
            report.invalid += 1
            logger.warning(f"Dropping invalid stored worker: {format_exception(e)}")
            continue
        key = canonical_key(worker)
        if key in seen:
            report.duplicates += 1
        elif len(report.workers) >= settings.max_workers:
            report.over_capacity += 1
        else:
            seen.add(key)
            report.workers.append(worker)
    return report


class RegistryHub:
    """
    Authoritative in-memory worker registry with real-time fan-out.

    Owns:
    - the insertion-ordered list of WorkerRecord
    - the DedupIndex mirroring it
    - the set of connected subscribers

    start() must be awaited before any operation.
    """

    def __init__(
        self,
        settings: HubSettings | None = None,
        *,
        store: SnapshotStore | None = None,
        metrics: HubMetrics | None = None,
    ) -> None:
        self.settings = settings or HubSettings()
        self.store = store or SnapshotStore(self.settings.data_file)
        self.metrics = metrics or HubMetrics()
        self._workers: list[WorkerRecord] = []
        self._index = DedupIndex()
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def size(self) -> int:
        return len(self._workers)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Load the persisted snapshot and start accepting operations.

        Loaded records are re-validated against the current settings;
        invalid, duplicate and over-capacity entries are dropped. A missing
        or corrupt snapshot, or any dropped entry, triggers an immediate
        rewrite of the snapshot.
        """
        async with self._lock:
            if self._running:
                return
            loaded = await asyncio.to_thread(self.store.load)
            report = reconcile(loaded, self.settings)
            dropped = report.dropped
            self._workers = report.workers
            self._index.rebuild(canonical_key(w) for w in report.workers)
            self._running = True

            status = self.store.last_load_status
            if status is not LoadStatus.LOADED or dropped or self.store.skipped_on_load:
                logger.info(
                    "Rewriting snapshot after load",
                    extra={"load_status": status.value, "dropped": dropped},
                )
                self._persist()

        logger.info(
            f"Registry hub started with {len(self._workers)} workers",
            extra={"max_workers": self.settings.max_workers},
        )

    async def close(self) -> None:
        """Disconnect everyone and wait for pending snapshot writes."""
        async with self._lock:
            self._running = False
            for connection in self._connections.values():
                connection.close()
            self._connections.clear()
        await self.store.flush()
        logger.info("Registry hub stopped", extra={"store": self.store.stats()})

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def new_rate_limiter(self) -> RateLimiter:
        return RateLimiter(self.settings.rate_limit_max, self.settings.rate_limit_window_seconds)

    def new_connection(self, connection_id: str | None = None) -> Connection:
        """Create a connection with its own limiter and outbox."""
        return Connection(
            self.new_rate_limiter(),
            connection_id=connection_id,
            outbox_size=self.settings.outbox_size,
        )

    async def connect(self, connection: Connection) -> None:
        """
        Subscribe a connection and send it the current registry.

        Registration and the snapshot happen under the lock, so the
        connection sees every event after the snapshot and none before it.
        """
        async with self._lock:
            self._require_running()
            self._connections[connection.connection_id] = connection
            connection.deliver(events.current_workers(self._workers))
        self.metrics.record_connection()
        logger.info(
            "Connection subscribed",
            extra={"connection_id": connection.connection_id, "connections": len(self._connections)},
        )

    async def disconnect(self, connection: Connection) -> None:
        """Stop delivering to a connection. Operations it already submitted still complete."""
        if self._connections.pop(connection.connection_id, None) is not None:
            logger.info(
                "Connection unsubscribed",
                extra={"connection_id": connection.connection_id, "connections": len(self._connections)},
            )
        connection.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def handle(self, connection: Connection, operation: str, payload: Any = None) -> HubResult | None:
        """
        Dispatch an inbound operation by name.

        Returns:
            HubResult, or None for unknown operations
        """
        try:
            op = Operation(operation)
        except ValueError:
            logger.warning(
                f"Ignoring unknown operation: {operation!r}",
                extra={"connection_id": connection.connection_id},
            )
            return None

        match op:
            case Operation.ADD_WORKER:
                return await self.add_one(payload, connection)
            case Operation.ADD_WORKERS_BATCH:
                return await self.add_batch(payload, connection)
            case Operation.REMOVE_WORKER:
                return await self.remove_one(payload, connection)
            case Operation.CLEAR_ALL:
                return await self.clear_all(connection)

    async def add_one(self, raw: Any, connection: Connection) -> HubResult:
        """
        Add a single worker.

        Rejections (invalid, duplicate, limit) are reported to the submitter
        with addWorkerRejected; rate-limited calls are dropped silently.
        """
        op = Operation.ADD_WORKER
        if not self._admit(connection, op):
            return HubResult(op, reason=RejectReason.RATE_LIMITED)

        try:
            worker = self._sanitize(raw)
        except InvalidRecordError as e:
            return self._reject(connection, op, RejectReason.INVALID, e)

        key = canonical_key(worker)
        async with self._lock:
            self._require_running()
            if self._index.contains(key):
                return self._reject(
                    connection, op, RejectReason.DUPLICATE,
                    DuplicateRecordError("Worker already registered", key=key),
                )
            if len(self._workers) >= self.settings.max_workers:
                return self._reject(
                    connection, op, RejectReason.LIMIT,
                    CapacityExceededError("Registry is full", max_workers=self.settings.max_workers),
                )

            self._index.insert(key)
            self._workers.append(worker)
            self._persist()
            self._broadcast(events.worker_added(worker))

        self.metrics.record_added()
        logger.info(
            "Worker added",
            extra={"connection_id": connection.connection_id, "workers": len(self._workers)},
        )
        return HubResult(op, affected=1)

    async def add_batch(self, raw_list: Any, connection: Connection) -> HubResult:
        """
        Add many workers with one rate-limit check.

        Elements are accepted one by one in input order; invalid and duplicate
        elements (including repeats inside the batch) are skipped and the batch
        stops once the registry is full. Accepted workers go out in a single
        workersAddedBatch event and a single snapshot write. The submitter
        receives addWorkersBatchResult with the accepted count.
        """
        op = Operation.ADD_WORKERS_BATCH
        if not self._admit(connection, op):
            return HubResult(op, reason=RejectReason.RATE_LIMITED)

        if not isinstance(raw_list, (list, tuple)):
            self.metrics.record_rejection(RejectReason.INVALID)
            logger.debug(
                "Batch payload is not a list",
                extra={"connection_id": connection.connection_id},
            )
            connection.deliver(events.batch_result(0))
            return HubResult(op, reason=RejectReason.INVALID)

        candidates: list[WorkerRecord] = []
        invalid = 0
        for raw in raw_list:
            try:
                candidates.append(self._sanitize(raw))
            except InvalidRecordError:
                invalid += 1

        accepted: list[WorkerRecord] = []
        duplicates = 0
        over_capacity = 0
        async with self._lock:
            self._require_running()
            for position, worker in enumerate(candidates):
                if len(self._workers) >= self.settings.max_workers:
                    over_capacity = len(candidates) - position
                    break
                key = canonical_key(worker)
                if self._index.contains(key):
                    duplicates += 1
                    continue
                self._index.insert(key)
                self._workers.append(worker)
                accepted.append(worker)

            if accepted:
                self._persist()
                self._broadcast(events.workers_added_batch(accepted))
            connection.deliver(events.batch_result(len(accepted)))

        self.metrics.record_batch()
        self.metrics.record_added(len(accepted))
        for reason, count in (
            (RejectReason.INVALID, invalid),
            (RejectReason.DUPLICATE, duplicates),
            (RejectReason.LIMIT, over_capacity),
        ):
            if count:
                self.metrics.record_rejection(reason, count)

        logger.info(
            f"Batch accepted {len(accepted)} of {len(raw_list)} workers",
            extra={
                "connection_id": connection.connection_id,
                "invalid": invalid,
                "duplicates": duplicates,
                "over_capacity": over_capacity,
            },
        )

        reason = None
        if not accepted:
            if over_capacity:
                reason = RejectReason.LIMIT
            elif duplicates:
                reason = RejectReason.DUPLICATE
            elif invalid:
                reason = RejectReason.INVALID
        return HubResult(op, affected=len(accepted), reason=reason)

    async def remove_one(self, raw: Any, connection: Connection) -> HubResult:
        """
        Remove the worker matching the payload's name + address.

        Unknown workers are a no-op: nothing is broadcast or persisted.
        """
        op = Operation.REMOVE_WORKER
        if not self._admit(connection, op):
            return HubResult(op, reason=RejectReason.RATE_LIMITED)

        try:
            key = identity_key(raw)
        except InvalidRecordError as e:
            return self._reject(connection, op, RejectReason.INVALID, e)

        async with self._lock:
            self._require_running()
            if not self._index.contains(key):
                self.metrics.record_rejection(RejectReason.NOT_FOUND)
                logger.debug(
                    "Remove ignored, worker not registered",
                    extra={"connection_id": connection.connection_id},
                )
                return HubResult(op, reason=RejectReason.NOT_FOUND)

            position = next(i for i, w in enumerate(self._workers) if canonical_key(w) == key)
            removed = self._workers.pop(position)
            self._index.remove(key)
            self._persist()
            self._broadcast(events.worker_removed(removed))

        self.metrics.record_removed()
        logger.info(
            "Worker removed",
            extra={"connection_id": connection.connection_id, "workers": len(self._workers)},
        )
        return HubResult(op, affected=1)

    async def clear_all(self, connection: Connection) -> HubResult:
        """Empty the registry and tell every connection."""
        op = Operation.CLEAR_ALL
        if not self._admit(connection, op):
            return HubResult(op, reason=RejectReason.RATE_LIMITED)

        async with self._lock:
            self._require_running()
            cleared = len(self._workers)
            self._workers = []
            self._index.clear()
            self._persist()
            self._broadcast(events.all_cleared())

        self.metrics.record_clear()
        logger.info(
            f"Registry cleared ({cleared} workers)",
            extra={"connection_id": connection.connection_id},
        )
        return HubResult(op, affected=cleared)

    # ------------------------------------------------------------------
    # Read-only inspection
    # ------------------------------------------------------------------

    async def snapshot(self) -> list[WorkerRecord]:
        """Point-in-time copy of the registry, read through the lock."""
        async with self._lock:
            return list(self._workers)

    def stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "workers": len(self._workers),
            "max_workers": self.settings.max_workers,
            "connections": len(self._connections),
            "store": self.store.stats(),
        }

    # ------------------------------------------------------------------
    # Internals (callers hold the lock where noted)
    # ------------------------------------------------------------------

    def _sanitize(self, raw: Any) -> WorkerRecord:
        return sanitize(
            raw,
            bounds=self.settings.bounds,
            max_name_length=self.settings.max_name_length,
            max_address_length=self.settings.max_address_length,
        )

    def _require_running(self) -> None:
        if not self._running:
            raise WorkerMapError("Registry hub is not running")

    def _admit(self, connection: Connection, op: Operation) -> bool:
        if connection.limiter.allow():
            return True
        self.metrics.record_rejection(RejectReason.RATE_LIMITED)
        error = RateLimitedError(
            "Operation dropped by rate limit", connection_id=connection.connection_id
        )
        logger.debug(
            format_exception(error),
            extra={"connection_id": connection.connection_id, "operation": op.value},
        )
        return False

    def _reject(
        self,
        connection: Connection,
        op: Operation,
        reason: RejectReason,
        error: WorkerMapError,
    ) -> HubResult:
        self.metrics.record_rejection(reason)
        logger.debug(
            f"{op.value} rejected: {format_exception(error)}",
            extra={"connection_id": connection.connection_id, "reason": reason.value},
        )
        if op is Operation.ADD_WORKER and reason in REPORTABLE_REASONS:
            connection.deliver(events.add_worker_rejected(reason))
        return HubResult(op, reason=reason)

    def _persist(self) -> None:
        """Schedule a snapshot write of the current registry. Lock held."""
        self.store.save(self._workers)

    def _broadcast(self, event: HubEvent) -> None:
        """Enqueue an event on every connection. Lock held."""
        for connection in list(self._connections.values()):
            if not connection.deliver(event):
                self._connections.pop(connection.connection_id, None)
                self.metrics.record_connection(dropped=True)
