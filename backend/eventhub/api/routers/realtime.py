from __future__ import annotations

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Depends, WebSocket
from pydantic import ValidationError

from eventhub.schemas.event import RealtimeSignal
from eventhub.services.realtime import RealtimeHub, get_hub

log = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime(websocket: WebSocket, hub: RealtimeHub = Depends(get_hub)):
    await websocket.accept()
    connection = hub.connect(websocket)
    writer = asyncio.create_task(connection.pump())
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                log.warning("Ignoring binary frame from %s", connection.id)
                continue
            try:
                signal = RealtimeSignal.model_validate(json.loads(raw))
            except (ValueError, ValidationError):
                log.warning("Ignoring malformed signal from %s: %.200s", connection.id, raw)
                continue
            await hub.handle_signal(connection, signal)
    finally:
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        hub.disconnect(connection)
