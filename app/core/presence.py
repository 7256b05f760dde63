"""In-memory presence registry for the realtime channel.

Process-local and non-authoritative: it resets on restart and is not shared
between instances. Multi-instance deployments need an external pub/sub layer.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Tracks socket-to-user mapping and chat rooms for connected sockets."""

    def __init__(self):
        self._sockets: Dict[str, Any] = {}  # socket_id -> websocket
        self._socket_user: Dict[str, int] = {}  # socket_id -> user_id
        self._user_sockets: Dict[int, Set[str]] = {}  # user_id -> socket_ids
        self._rooms: Dict[str, Set[str]] = {}  # room -> socket_ids
        self._lock = asyncio.Lock()

    async def register(self, websocket: Any) -> str:
        """Track a newly accepted socket and return its id."""
        socket_id = uuid.uuid4().hex
        async with self._lock:
            self._sockets[socket_id] = websocket
        return socket_id

    async def mark_online(self, socket_id: str, user_id: int) -> bool:
        """Bind a socket to a user.

        Returns:
            True if the user had no other live socket (just came online).
        """
        async with self._lock:
            previous = self._socket_user.get(socket_id)
            if previous is not None and previous != user_id:
                self._detach_user(socket_id, previous)
            self._socket_user[socket_id] = user_id
            sockets = self._user_sockets.setdefault(user_id, set())
            came_online = not sockets
            sockets.add(socket_id)
        return came_online

    async def join(self, socket_id: str, room: str) -> None:
        async with self._lock:
            self._rooms.setdefault(room, set()).add(socket_id)

    async def remove(self, socket_id: str) -> Optional[int]:
        """Forget a socket.

        Returns:
            The user id if that user has no socket left, otherwise None.
        """
        async with self._lock:
            self._sockets.pop(socket_id, None)
            for room in list(self._rooms):
                members = self._rooms[room]
                members.discard(socket_id)
                if not members:
                    del self._rooms[room]
            user_id = self._socket_user.pop(socket_id, None)
            if user_id is None:
                return None
            if self._detach_user(socket_id, user_id):
                return user_id
            return None

    def _detach_user(self, socket_id: str, user_id: int) -> bool:
        sockets = self._user_sockets.get(user_id)
        if sockets is None:
            return False
        sockets.discard(socket_id)
        if not sockets:
            del self._user_sockets[user_id]
            return True
        return False

    def clear(self) -> None:
        """Drop every tracked socket, user and room."""
        self._sockets.clear()
        self._socket_user.clear()
        self._user_sockets.clear()
        self._rooms.clear()

    def online_user_ids(self) -> List[int]:
        return sorted(self._user_sockets)

    def is_online(self, user_id: int) -> bool:
        return user_id in self._user_sockets

    def room_members(self, room: str) -> Set[str]:
        return set(self._rooms.get(room, set()))

    async def broadcast(self, event: str, data: Any, *, exclude: Optional[str] = None) -> None:
        """Send an event to every connected socket except `exclude`."""
        async with self._lock:
            targets = [sid for sid in self._sockets if sid != exclude]
        await self._send(targets, event, data)

    async def emit_to_room(self, room: str, event: str, data: Any, *, exclude: Optional[str] = None) -> None:
        """Send an event to the sockets in a room except `exclude`."""
        async with self._lock:
            targets = [sid for sid in self._rooms.get(room, set()) if sid != exclude]
        await self._send(targets, event, data)

    async def _send(self, socket_ids: List[str], event: str, data: Any) -> None:
        dead = []
        for socket_id in socket_ids:
            websocket = self._sockets.get(socket_id)
            if websocket is None:
                continue
            try:
                await websocket.send_json({"event": event, "data": data})
            except Exception as e:
                logger.warning(f"[WS] Dropping socket {socket_id} after send failure: {e}")
                dead.append(socket_id)
        for socket_id in dead:
            # the endpoint's own cleanup will get None for this socket, so announce here
            user_id = await self.remove(socket_id)
            if user_id is not None:
                await self.broadcast("user_status", {"userId": user_id, "status": "offline"})


def chat_room(chat_id: Any) -> str:
    """Room name for a chat id."""
    return f"chat_{chat_id}"


# Global registry instance
presence_registry = PresenceRegistry()
