from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from starlette.requests import HTTPConnection
from starlette.websockets import WebSocketDisconnect

from eventhub.schemas.event import RealtimeSignal, ViewerUpdate
from eventhub.services.presence import PresenceRegistry

log = logging.getLogger(__name__)

OUTBOX_SIZE = 256

EVENT_UPDATED = "eventUpdated"
EVENT_DELETED = "eventDeleted"
VIEWER_UPDATE = "viewerUpdate"


def encode_message(event_name: str, payload: Any) -> str:
    return json.dumps({"event": event_name, "data": jsonable_encoder(payload)})


class Connection:
    """One live client socket with its own outbound queue."""

    def __init__(self, websocket: WebSocket, maxsize: int = OUTBOX_SIZE) -> None:
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)

    def deliver(self, message: str) -> bool:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            log.warning("Outbox full for %s; dropping message", self.id)
            return False
        return True

    async def pump(self) -> None:
        while True:
            message = await self.queue.get()
            try:
                await self.websocket.send_text(message)
            except (WebSocketDisconnect, RuntimeError):
                log.debug("Dropping message for closed connection %s", self.id)
                return


class BroadcastChannel:
    """Fire-and-forget fan-out to connected clients, globally or per room."""

    def __init__(self, presence: PresenceRegistry) -> None:
        self.presence = presence
        self._connections: Dict[str, Connection] = {}

    def register(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def unregister(self, connection: Connection) -> None:
        self._connections.pop(connection.id, None)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def publish_to_room(self, room: str, event_name: str, payload: Any) -> None:
        message = encode_message(event_name, payload)
        for connection_id in self.presence.members(room):
            connection = self._connections.get(connection_id)
            if connection is not None:
                connection.deliver(message)

    async def publish_to_all(self, event_name: str, payload: Any) -> None:
        message = encode_message(event_name, payload)
        for connection in list(self._connections.values()):
            connection.deliver(message)


class RealtimeHub:
    """Process-wide presence and broadcast state, built once per app."""

    def __init__(self) -> None:
        self.presence = PresenceRegistry()
        self.channel = BroadcastChannel(self.presence)

    def viewer_count(self, room: str) -> int:
        return self.presence.count(room)

    async def publish_to_room(self, room: str, event_name: str, payload: Any) -> None:
        await self.channel.publish_to_room(room, event_name, payload)

    async def publish_to_all(self, event_name: str, payload: Any) -> None:
        await self.channel.publish_to_all(event_name, payload)

    def connect(self, websocket: WebSocket) -> Connection:
        connection = Connection(websocket)
        self.channel.register(connection)
        log.info("User connected: %s (%d clients)", connection.id, self.channel.connection_count)
        return connection

    def disconnect(self, connection: Connection) -> None:
        # Rooms the connection was in do not get a fresh viewer count here;
        # only an explicit leaveEvent rebroadcasts.
        rooms = self.presence.rooms_of(connection.id)
        self.presence.remove_connection_everywhere(connection.id)
        self.channel.unregister(connection)
        log.info(
            "User disconnected: %s (left %d rooms, %d clients)",
            connection.id,
            len(rooms),
            self.channel.connection_count,
        )

    async def join_room(self, room: str, connection: Connection) -> None:
        log.info("Connection %s joining event room: %s", connection.id, room)
        self.presence.join(room, connection.id)
        await self._broadcast_viewers(room)

    async def leave_room(self, room: str, connection: Connection) -> None:
        log.info("Connection %s leaving event room: %s", connection.id, room)
        self.presence.leave(room, connection.id)
        await self._broadcast_viewers(room)

    async def handle_signal(self, connection: Connection, signal: RealtimeSignal) -> None:
        if signal.event == "joinEvent":
            await self.join_room(signal.data, connection)
        else:
            await self.leave_room(signal.data, connection)

    async def _broadcast_viewers(self, room: str) -> None:
        update = ViewerUpdate(
            room=room,
            viewer_count=self.presence.count(room),
            timestamp=datetime.now(timezone.utc),
        )
        await self.publish_to_room(room, VIEWER_UPDATE, update.model_dump(mode="json", by_alias=True))


def get_hub(connection: HTTPConnection) -> RealtimeHub:
    return connection.app.state.hub
