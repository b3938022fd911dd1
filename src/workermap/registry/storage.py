"""
Snapshot Storage - durable persistence for the worker registry.

Stores the whole registry as one JSON document:

    {"version": "1.0", "saved_at": "...", "workers": [...]}

Writes are atomic (temp file + os.replace) and serialized through a single
in-flight slot plus a single pending slot, so rapid mutations collapse into
an ordered sequence of complete snapshots.
"""

import asyncio
import json
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from workermap.core.exceptions import PersistenceError, format_exception
from workermap.core.models import WorkerRecord

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


class LoadStatus(Enum):
    """Outcome of the last load()."""

    NOT_LOADED = "not_loaded"
    LOADED = "loaded"
    MISSING = "missing"
    CORRUPT = "corrupt"


class RegistrySnapshot(BaseModel):
    """On-disk document layout."""

    version: str = SNAPSHOT_VERSION
    saved_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    workers: list[WorkerRecord] = Field(default_factory=list)


@dataclass
class _PendingWrite:
    payload: str
    waiters: list[asyncio.Future] = field(default_factory=list)


class SnapshotStore:
    """
    Durable store for registry snapshots.

    Manages a single JSON file with:
    - load(): read once at startup, tolerant of missing/corrupt content
    - save(): atomic, serialized, coalescing background writes
    """

    def __init__(self, path: Path | str) -> None:
        """Initialize the store for the given snapshot path."""
        self._path = Path(path)
        self._temp_path = self._path.with_name(f"{self._path.name}.tmp")
        self._writer: asyncio.Task | None = None
        self._pending: _PendingWrite | None = None
        self.last_load_status = LoadStatus.NOT_LOADED
        self.skipped_on_load = 0
        self.writes_completed = 0
        self.writes_failed = 0
        self.writes_coalesced = 0
        self.last_saved_at: str | None = None
        self.last_error: str | None = None
        self.last_write_ok: bool | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def busy(self) -> bool:
        """True while a write is in flight or pending."""
        return self._writer is not None and not self._writer.done()

    def load(self) -> list[WorkerRecord]:
        """
        Read the persisted snapshot.

        Missing, unreadable or malformed files yield an empty list; the
        outcome is recorded in last_load_status. Individual entries that do
        not match the record shape are skipped.
        """
        self.skipped_on_load = 0

        if not self._path.exists():
            logger.info("No snapshot found, starting empty", extra={"path": str(self._path)})
            self.last_load_status = LoadStatus.MISSING
            return []

        # ValueError covers JSONDecodeError, UnicodeDecodeError and the int
        # digit limit; RecursionError comes from deeply nested arrays.
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError, RecursionError) as e:
            logger.warning(
                f"Snapshot unreadable, starting empty: {e}",
                extra={"path": str(self._path)},
            )
            self.last_load_status = LoadStatus.CORRUPT
            return []

        # Legacy snapshots are a bare list of workers.
        if isinstance(data, dict) and isinstance(data.get("workers"), list):
            entries = data["workers"]
        elif isinstance(data, list):
            entries = data
        else:
            logger.warning(
                "Snapshot has unexpected shape, starting empty",
                extra={"path": str(self._path)},
            )
            self.last_load_status = LoadStatus.CORRUPT
            return []

        workers: list[WorkerRecord] = []
        for position, entry in enumerate(entries):
            try:
                workers.append(WorkerRecord.model_validate(entry))
            except (PydanticValidationError, OverflowError):
                self.skipped_on_load += 1
                logger.warning(
                    "Skipping malformed snapshot entry",
                    extra={"path": str(self._path), "position": position},
                )

        self.last_load_status = LoadStatus.LOADED
        logger.info(
            f"Loaded {len(workers)} workers from snapshot",
            extra={"path": str(self._path), "skipped": self.skipped_on_load},
        )
        return workers

    @staticmethod
    def serialize(workers: Sequence[WorkerRecord]) -> str:
        """Render the snapshot document for the given records."""
        return RegistrySnapshot(workers=list(workers)).model_dump_json(indent=2)

    def save(self, workers: Sequence[WorkerRecord]) -> asyncio.Future:
        """
        Schedule a snapshot write of the given records.

        The records are serialized immediately. If a write is already in
        flight, this snapshot waits in the pending slot; a newer save()
        replaces a pending snapshot that has not started yet.

        Must be called from a running event loop.

        Returns:
            Future resolving to True once this (or a superseding) snapshot
            is on disk, False if that write failed
        """
        loop = asyncio.get_running_loop()
        payload = self.serialize(workers)
        future: asyncio.Future = loop.create_future()

        if self._pending is None:
            self._pending = _PendingWrite(payload=payload, waiters=[future])
        else:
            self._pending.payload = payload
            self._pending.waiters.append(future)
            self.writes_coalesced += 1

        if not self.busy:
            self._writer = loop.create_task(self._drain())
        return future

    async def flush(self) -> None:
        """Wait until no write is in flight or pending."""
        while self.busy:
            await asyncio.wait({self._writer})

    async def _drain(self) -> None:
        while self._pending is not None:
            job, self._pending = self._pending, None
            ok = False
            try:
                ok = await self._write(job.payload)
            finally:
                for waiter in job.waiters:
                    if not waiter.done():
                        waiter.set_result(ok)

    async def _write(self, payload: str) -> bool:
        try:
            await asyncio.to_thread(self._write_atomic, payload)
        except OSError as e:
            error = PersistenceError(f"Snapshot write failed: {e}", path=str(self._path))
            self.writes_failed += 1
            self.last_write_ok = False
            self.last_error = format_exception(error)
            logger.error(self.last_error, extra={"path": str(self._path)})
            return False

        self.writes_completed += 1
        self.last_write_ok = True
        self.last_saved_at = datetime.now(timezone.utc).isoformat()
        return True

    def _write_atomic(self, payload: str) -> None:
        """Persist payload to disk atomically using write-replace pattern."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            # Write to temporary file in same directory
            with open(self._temp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            # Atomic replace operation
            os.replace(self._temp_path, self._path)
        except Exception:
            # Clean up temp file on any exception
            self._temp_path.unlink(missing_ok=True)
            raise

    def stats(self) -> dict[str, Any]:
        """Return write counters for health and metrics endpoints."""
        return {
            "path": str(self._path),
            "load_status": self.last_load_status.value,
            "writes_completed": self.writes_completed,
            "writes_failed": self.writes_failed,
            "writes_coalesced": self.writes_coalesced,
            "write_in_progress": self.busy,
            "last_saved_at": self.last_saved_at,
            "last_write_ok": self.last_write_ok,
            "last_error": self.last_error,
        }
