"""
Realtime WebSocket endpoint.

One socket per viewer. Inbound frames are JSON envelopes
{"event": "<operation>", "data": <payload>} handed to the hub in order;
outbound hub events are pumped from the connection's outbox by a separate
task so a slow socket never holds up the hub.
"""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from workermap.core.exceptions import WorkerMapError
from workermap.hub.connection import Connection
from workermap.hub.core import RegistryHub
from workermap.hub.events import Envelope

router = APIRouter()
logger = logging.getLogger(__name__)


async def _pump(websocket: WebSocket, connection: Connection) -> None:
    """Forward hub events to the socket until the connection closes."""
    while True:
        event = await connection.next_event()
        if event is None:
            # Closed by the hub (shutdown or outbox overflow).
            with contextlib.suppress(RuntimeError):
                await websocket.close(code=1008)
            return
        try:
            await websocket.send_json(event.to_wire())
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(
                f"Send failed, closing connection: {e}",
                extra={"connection_id": connection.connection_id},
            )
            connection.close()
            return


@router.websocket("/ws")
async def realtime(websocket: WebSocket) -> None:
    """Subscribe a viewer to registry events and accept its operations."""
    hub: RegistryHub | None = getattr(websocket.app.state, "hub", None)
    if hub is None or not hub.running:
        await websocket.close(code=1013)
        return

    await websocket.accept()
    connection = hub.new_connection()
    await hub.connect(connection)
    pump = asyncio.create_task(_pump(websocket, connection))

    try:
        while not connection.closed:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            text = message.get("text")
            if text is None:
                logger.warning(
                    "Ignoring non-text frame",
                    extra={"connection_id": connection.connection_id},
                )
                continue
            try:
                envelope = Envelope.model_validate_json(text)
            except PydanticValidationError:
                logger.warning(
                    "Ignoring malformed frame",
                    extra={"connection_id": connection.connection_id},
                )
                continue
            await hub.handle(connection, envelope.event, envelope.data)
    except WebSocketDisconnect:
        pass
    except WorkerMapError as e:
        # Hub shut down while the socket was open.
        logger.info(f"Closing socket: {e}", extra={"connection_id": connection.connection_id})
        await websocket.close(code=1012)
    finally:
        await hub.disconnect(connection)
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
