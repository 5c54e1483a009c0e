import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4
from fastapi import WebSocket
from starlette.websockets import WebSocketState
from src.backend.models.chat import User

logger = logging.getLogger(__name__)

AGENTS_ROOM = "agents"


class Connection:
    """One live client connection, whatever the transport"""

    def __init__(self, user: Optional[User]):
        self.id = uuid4().hex
        self.user = user

    @property
    def is_connected(self) -> bool:
        return True

    async def send_json(self, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def emit(self, event: str, data: Any = None) -> None:
        await self.send_json({"event": event, "data": data})

    def __repr__(self) -> str:
        user_id = self.user.id if self.user else None
        return f"<{type(self).__name__} {self.id[:8]} user={user_id}>"


class WebSocketConnection(Connection):
    def __init__(self, websocket: WebSocket, user: Optional[User]):
        super().__init__(user)
        self.websocket = websocket

    @property
    def is_connected(self) -> bool:
        return self.websocket.client_state == WebSocketState.CONNECTED

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send_json(payload)


class RoomRegistry:
    """In-memory rooms. Structure: {room: {connection_id: connection}}

    Rooms exist only while they have members; nothing here is persisted.
    """

    def __init__(self):
        self.rooms: Dict[str, Dict[str, Connection]] = {}

    def join(self, room: str, connection: Connection) -> None:
        self.rooms.setdefault(room, {})[connection.id] = connection
        logger.info(f"{connection} joined room {room}")

    def leave(self, room: str, connection: Connection) -> None:
        members = self.rooms.get(room)
        if not members:
            return
        members.pop(connection.id, None)
        if not members:
            del self.rooms[room]
            logger.info(f"Removed empty room {room}")

    def leave_all(self, connection: Connection) -> List[str]:
        """Drop a connection from every room; returns the rooms it left."""
        left = [room for room, members in self.rooms.items()
                if connection.id in members]
        for room in left:
            self.leave(room, connection)
        return left

    def members(self, room: str) -> List[Connection]:
        return list(self.rooms.get(room, {}).values())

    def is_member(self, room: str, connection: Connection) -> bool:
        return connection.id in self.rooms.get(room, {})

    async def broadcast(self, room: str, event: str, data: Any = None) -> int:
        """Send to every member of `room`, sender included.

        Members whose send fails are dropped from the room. Returns the number
        of members reached.
        """
        delivered = 0
        closed_connections = []
        for connection in self.members(room):
            if not connection.is_connected:
                closed_connections.append(connection)
                continue
            try:
                await connection.emit(event, data)
                delivered += 1
            except Exception as e:
                logger.error(f"Error broadcasting {event} to {connection}: {e}")
                closed_connections.append(connection)
        for connection in closed_connections:
            self.leave(room, connection)
        return delivered
