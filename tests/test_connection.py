"""Tests for connection outboxes and hub events."""

import asyncio

import pytest

from workermap.core.models import RejectReason, WorkerRecord
from workermap.hub import events
from workermap.hub.connection import Connection
from workermap.hub.events import Envelope, EventName
from workermap.hub.rate_limit import RateLimiter


def _connection(outbox_size: int = 10) -> Connection:
    return Connection(RateLimiter(10, 1.0), outbox_size=outbox_size)


class TestConnection:
    """Tests for Connection."""

    def test_deliver_and_drain_in_order(self) -> None:
        """Events come out in the order they were delivered."""
        conn = _connection()
        assert conn.deliver(events.all_cleared())
        assert conn.deliver(events.batch_result(2))
        assert [e.event for e in conn.drain()] == [
            EventName.ALL_CLEARED,
            EventName.ADD_WORKERS_BATCH_RESULT,
        ]

    def test_full_outbox_closes(self) -> None:
        """Overflowing the outbox closes the connection."""
        conn = _connection(outbox_size=1)
        assert conn.deliver(events.all_cleared())
        assert not conn.deliver(events.all_cleared())
        assert conn.closed
        assert not conn.deliver(events.all_cleared())

    def test_ids_are_unique(self) -> None:
        """Generated connection ids differ."""
        assert _connection().connection_id != _connection().connection_id

    @pytest.mark.asyncio
    async def test_next_event_ends_after_close(self) -> None:
        """A reader gets queued events, then None once closed."""
        conn = _connection()
        conn.deliver(events.all_cleared())
        conn.close()

        first = await conn.next_event()
        assert first is not None and first.event is EventName.ALL_CLEARED
        assert await conn.next_event() is None

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_reader(self) -> None:
        """close() releases a reader blocked on an empty outbox."""
        conn = _connection()
        reader = asyncio.create_task(conn.next_event())
        await asyncio.sleep(0)
        conn.close()
        assert await asyncio.wait_for(reader, timeout=1) is None


class TestEvents:
    """Tests for event builders and envelopes."""

    def test_wire_format(self) -> None:
        """Events serialize to {"event", "data"} with wire names."""
        record = WorkerRecord(name="A", address="B", lat=40, lng=-74, level="HIGH")
        assert events.worker_added(record).to_wire() == {
            "event": "workerAdded",
            "data": {"name": "A", "address": "B", "lat": 40.0, "lng": -74.0, "level": "high"},
        }
        assert events.add_worker_rejected(RejectReason.LIMIT).to_wire() == {
            "event": "addWorkerRejected",
            "data": {"reason": "limit"},
        }
        assert events.all_cleared().to_wire() == {"event": "allCleared", "data": None}

    def test_envelope_parsing(self) -> None:
        """Inbound frames parse with optional data."""
        envelope = Envelope.model_validate_json('{"event": "clearAll"}')
        assert envelope.event == "clearAll"
        assert envelope.data is None
