"""WebSocket endpoint for presence and typing indicators.

Frames are JSON objects `{"event": <name>, "data": <payload>}`. Relays are
unauthenticated and nothing is written to the database; messages themselves
are sent through the REST API.
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.core.presence import chat_room, presence_registry

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Realtime"],
)

# client event -> event relayed to the rest of the chat room
ROOM_RELAYS = {
    "send_message": "new_message",
    "typing": "user_typing",
    "stop_typing": "user_stop_typing",
}


def _parse_user_id(data: Any) -> Optional[int]:
    if isinstance(data, dict):
        data = data.get("userId")
    if isinstance(data, bool):
        return None
    try:
        return int(data)
    except (TypeError, ValueError):
        return None


def _chat_id(data: Any) -> Optional[Any]:
    if isinstance(data, dict):
        chat_id = data.get("chatId")
    else:
        chat_id = data
    if chat_id is None or isinstance(chat_id, (dict, list, bool)) or chat_id == "":
        return None
    return chat_id


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})


async def handle_frame(websocket: WebSocket, socket_id: str, event: str, data: Any) -> None:
    """Dispatch one decoded frame."""
    if event == "ping":
        await websocket.send_json({"event": "pong", "data": None})

    elif event == "user_online":
        user_id = _parse_user_id(data)
        if user_id is None:
            await _send_error(websocket, "user_online requires a user id")
            return
        came_online = await presence_registry.mark_online(socket_id, user_id)
        logger.info(f"[WS] User {user_id} online on socket {socket_id}")
        if came_online:
            await presence_registry.broadcast(
                "user_status", {"userId": user_id, "status": "online"}, exclude=socket_id
            )

    elif event == "join_chat":
        chat_id = _chat_id(data)
        if chat_id is None:
            await _send_error(websocket, "join_chat requires a chat id")
            return
        await presence_registry.join(socket_id, chat_room(chat_id))

    elif event in ROOM_RELAYS:
        chat_id = _chat_id(data) if isinstance(data, dict) else None
        if chat_id is None:
            await _send_error(websocket, f"{event} requires data.chatId")
            return
        await presence_registry.emit_to_room(
            chat_room(chat_id), ROOM_RELAYS[event], data, exclude=socket_id
        )

    else:
        await _send_error(websocket, f"Unknown event: {event}")


@router.websocket("/ws")
async def realtime_endpoint(websocket: WebSocket):
    await websocket.accept()
    socket_id = await presence_registry.register(websocket)
    logger.info(f"[WS] Socket connected: {socket_id}")

    try:
        while True:
            raw = await websocket.receive_text()

            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(websocket, "Invalid JSON format")
                continue

            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await _send_error(websocket, "Frame must be an object with an 'event' name")
                continue

            await handle_frame(websocket, socket_id, frame["event"], frame.get("data"))

    except WebSocketDisconnect:
        logger.info(f"[WS] Socket disconnected: {socket_id}")
    finally:
        offline_user_id = await presence_registry.remove(socket_id)
        if offline_user_id is not None:
            logger.info(f"[WS] User {offline_user_id} offline")
            await presence_registry.broadcast(
                "user_status", {"userId": offline_user_id, "status": "offline"}
            )


__all__ = ["router", "handle_frame", "ROOM_RELAYS"]
